"""
Unit tests for phenotype mapper.
Tests diplotype → phenotype resolution across table lookup, activity score
and zygosity fallback.
"""

import pytest

from pharmaguard.services.pharmacogenomics.models import Phenotype
from pharmaguard.services.pharmacogenomics.phenotype_mapper import PhenotypeMapper, map_phenotype
from pharmaguard.services.pharmacogenomics.terminology import get_phenotype_label


class TestPhenotypeMapper:
    """Test PhenotypeMapper resolution order."""

    @pytest.fixture
    def mapper(self):
        return PhenotypeMapper()

    # ===== CPIC table lookups =====

    def test_cyp2d6_poor_metabolizer(self, mapper):
        result = mapper.map_phenotype("CYP2D6", "*4/*4")
        assert result.phenotype == Phenotype.PM
        assert result.phenotype_label == "Poor Metabolizer"
        assert result.activity_score is None

    def test_unsorted_diplotype_is_normalized_before_lookup(self, mapper):
        result = mapper.map_phenotype("CYP2D6", "*4/*1")
        assert result.diplotype == "*1/*4"
        assert result.phenotype == Phenotype.IM

    def test_cyp2d6_duplication_with_decreased_allele(self, mapper):
        assert mapper.map_phenotype("CYP2D6", "*41/*1xN").phenotype == Phenotype.NM

    def test_cyp2c19_rapid_and_ultrarapid(self, mapper):
        assert mapper.map_phenotype("CYP2C19", "*1/*17").phenotype == Phenotype.RM
        ultra = mapper.map_phenotype("CYP2C19", "*17/*17")
        assert ultra.phenotype == Phenotype.URM
        assert ultra.phenotype_label == "Ultra-rapid Metabolizer"

    def test_tpmt_uses_activity_terminology(self, mapper):
        result = mapper.map_phenotype("TPMT", "*1/*3A")
        assert result.phenotype == Phenotype.IM
        assert result.phenotype_label == "Intermediate TPMT Activity"

    def test_slco1b1_uses_function_terminology(self, mapper):
        result = mapper.map_phenotype("SLCO1B1", "*5/*5")
        assert result.phenotype == Phenotype.PM
        assert result.phenotype_label == "Poor Function"

    def test_dpyd_named_variant(self, mapper):
        result = mapper.map_phenotype("DPYD", "HapB3/*1")
        assert result.diplotype == "*1/HapB3"
        assert result.phenotype_label == "Reduced DPD Activity"

    def test_single_allele_pairs_with_reference(self, mapper):
        result = mapper.map_phenotype("CYP2C9", "*3")
        assert result.diplotype == "*1/*3"
        assert result.phenotype == Phenotype.IM

    # ===== Activity score =====

    @pytest.mark.parametrize("gene,diplotype,score,phenotype", [
        ("CYP2D6", "*2/*9", 1.5, Phenotype.NM),
        ("CYP2D6", "*2/*10", 1.25, Phenotype.NM),
        ("CYP2D6", "*9/*10", 0.75, Phenotype.IM),
        ("CYP2D6", "*2/*1xN", 3.0, Phenotype.URM),
        ("CYP2C19", "*4/*17", 1.5, Phenotype.RM),
        ("CYP2C9", "*1/*5", 1.0, Phenotype.NM),
        ("CYP2C9", "*2/*5", 0.5, Phenotype.IM),
        ("CYP2C9", "*5/*6", 0.0, Phenotype.PM),
    ])
    def test_activity_score_path(self, mapper, gene, diplotype, score, phenotype):
        result = mapper.map_phenotype(gene, diplotype)
        assert result.activity_score == pytest.approx(score)
        assert result.phenotype == phenotype

    @pytest.mark.parametrize("gene,diplotype", [
        ("CYP2D6", "*9/*2"),
        ("CYP2D6", "*10/*9"),
        ("CYP2D6", "*1xN/*2"),
        ("CYP2C19", "*17/*4"),
        ("CYP2C9", "*5/*2"),
        ("CYP2D6", "*99/*1"),
        ("CYP2D6", "*99/*98"),
        ("GENEX", "*2/*1"),
    ])
    def test_allele_order_does_not_matter(self, mapper, gene, diplotype):
        """Both orders of a diplotype resolve to the same result off the direct table."""
        a, b = diplotype.split("/")
        forward = mapper.map_phenotype(gene, f"{a}/{b}")
        reverse = mapper.map_phenotype(gene, f"{b}/{a}")

        assert forward == reverse
        assert forward.diplotype == f"{min(a, b)}/{max(a, b)}"

    def test_activity_score_requires_both_alleles(self):
        assert PhenotypeMapper.activity_score("CYP2D6", "*1", "*99") is None
        assert PhenotypeMapper.activity_score("GENEX", "*1", "*1") is None

    # ===== Zygosity fallback =====

    def test_fallback_one_wildtype(self, mapper):
        result = mapper.map_phenotype("CYP2D6", "*1/*99")
        assert result.phenotype == Phenotype.IM
        assert result.phenotype_label == "Reduced Function"
        assert result.activity_score is None

    def test_fallback_no_wildtype(self, mapper):
        result = mapper.map_phenotype("CYP2D6", "*98/*99")
        assert result.phenotype == Phenotype.PM
        assert result.phenotype_label == "Poor Function"

    def test_fallback_unknown_gene(self, mapper):
        result = mapper.map_phenotype("GENEX", "*1/*1")
        assert result.phenotype == Phenotype.NM
        assert result.phenotype_label == "Normal Function"

    def test_module_level_helper(self):
        assert map_phenotype("CYP2C19", "*2/*2").phenotype == Phenotype.PM


class TestTerminology:
    """Test gene-specific phenotype labels."""

    @pytest.mark.parametrize("gene,phenotype,label", [
        ("CYP2D6", Phenotype.URM, "Ultra-rapid Metabolizer"),
        ("CYP2C9", "IM", "Intermediate Metabolizer"),
        ("TPMT", Phenotype.PM, "Deficient TPMT Activity"),
        ("DPYD", Phenotype.NM, "Normal DPD Activity"),
        ("SLCO1B1", Phenotype.IM, "Decreased Function"),
    ])
    def test_labels(self, gene, phenotype, label):
        assert get_phenotype_label(gene, phenotype) == label

    def test_unknown_code_returned_verbatim(self):
        assert get_phenotype_label("CYP2D6", "XX") == "XX"

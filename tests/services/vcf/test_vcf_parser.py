"""
Unit tests for the VCF parser.
Covers header validation, genotype resolution and star-allele annotation.
"""

import pytest

from pharmaguard.core.config import update_config
from pharmaguard.services.vcf.parser import (
    VariantRecord,
    VcfParseError,
    Zygosity,
    detected_genes,
    filter_variants_for_gene,
    parse_info_field,
    parse_vcf,
    process_row,
)


class TestHeaderValidation:
    """Structural failures abort the parse with a typed error."""

    def test_empty_file(self):
        with pytest.raises(VcfParseError) as exc:
            parse_vcf("  \n\n  ")
        assert exc.value.error == "Empty VCF file"
        assert exc.value.code == "INVALID_VCF"

    def test_missing_fileformat(self):
        with pytest.raises(VcfParseError) as exc:
            parse_vcf("#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\n")
        assert exc.value.error == "Invalid VCF format"
        assert exc.value.details == "Missing ##fileformat header line."

    def test_unrecognized_format(self):
        with pytest.raises(VcfParseError) as exc:
            parse_vcf("##fileformat=BCFv2\n#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\n")
        assert exc.value.details == "Unrecognized format: BCFv2."

    def test_missing_column_header(self):
        with pytest.raises(VcfParseError) as exc:
            parse_vcf("##fileformat=VCFv4.2\nchr1\t100\t.\tA\tG\t50\tPASS\t.\n")
        assert exc.value.details == "Missing #CHROM header line."

    def test_wrong_column_name(self):
        with pytest.raises(VcfParseError) as exc:
            parse_vcf("##fileformat=VCFv4.2\n#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTR\tINFO\n")
        assert exc.value.error == "Invalid VCF column headers"
        assert exc.value.details == "Expected FILTER at column 7, found FILTR."

    def test_truncated_column_header(self):
        with pytest.raises(VcfParseError) as exc:
            parse_vcf("##fileformat=VCFv4.2\n#CHROM\tPOS\n")
        assert exc.value.details == "Expected ID at column 3, found missing."

    def test_file_too_large(self):
        update_config(**{"vcf_parser.max_file_size_bytes": 100})
        content = "##fileformat=VCFv4.2\n" + "#" * 200
        with pytest.raises(VcfParseError) as exc:
            parse_vcf(content)
        assert exc.value.code == "FILE_TOO_LARGE"
        assert exc.value.details.startswith("File size: ")
        assert exc.value.details.endswith("MB")

    def test_size_is_checked_before_structure(self):
        update_config(**{"vcf_parser.max_file_size_bytes": 10})
        with pytest.raises(VcfParseError) as exc:
            parse_vcf("not a vcf at all, but long")
        assert exc.value.code == "FILE_TOO_LARGE"

    def test_header_only_file_parses_to_no_variants(self, make_vcf):
        result = parse_vcf(make_vcf([]))
        assert result.variants == []
        assert result.sample_id == "PATIENT_001"
        assert result.file_format == "VCFv4.2"

    def test_sample_id_absent_without_sample_column(self):
        content = "##fileformat=VCFv4.1\n#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\n"
        assert parse_vcf(content).sample_id is None


class TestGenotypeResolution:
    """Zygosity is derived from GT; non-carried or malformed rows are dropped."""

    def _single(self, make_vcf, alt="T", gt="0/1", info="GENE=CYP2D6;STAR=*4"):
        return parse_vcf(make_vcf([("chr22", 42130692, "rs3892097", "C", alt, info, gt)])).variants

    def test_homozygous_alternate(self, make_vcf):
        [v] = self._single(make_vcf, gt="1/1")
        assert v.zygosity is Zygosity.HOM_ALT
        assert v.genotype == "1/1"
        assert v.gene == "CYP2D6"
        assert v.star_allele == "*4"

    def test_heterozygous(self, make_vcf):
        [v] = self._single(make_vcf, gt="1/0")
        assert v.zygosity is Zygosity.HET

    def test_homozygous_reference_excluded(self, make_vcf):
        assert self._single(make_vcf, gt="0/0") == []

    def test_phased_genotype_normalized(self, make_vcf):
        [v] = self._single(make_vcf, gt="0|1")
        assert v.genotype == "0/1"
        assert v.zygosity is Zygosity.HET

    def test_compound_heterozygous(self, make_vcf):
        [v] = self._single(make_vcf, alt="T,G", gt="1/2")
        assert v.zygosity is Zygosity.COMPOUND_HET
        assert v.alt_alleles == ("T", "G")
        assert v.alt == "T,G"

    def test_alt_index_out_of_range_excluded(self, make_vcf):
        assert self._single(make_vcf, alt="T,G", gt="2/5") == []

    @pytest.mark.parametrize("gt", ["./.", ".", "././.", "./1", "1/."])
    def test_missing_genotype_excluded(self, make_vcf, gt):
        assert self._single(make_vcf, gt=gt) == []

    @pytest.mark.parametrize("gt", ["1", "0/1/1"])
    def test_non_diploid_excluded(self, make_vcf, gt):
        assert self._single(make_vcf, gt=gt) == []

    def test_malformed_genotype_excluded(self, make_vcf):
        assert self._single(make_vcf, gt="a/1") == []

    @pytest.mark.parametrize("alt", [".", "<DEL>", "T,<DUP>"])
    def test_uninformative_alt_excluded(self, make_vcf, alt):
        assert self._single(make_vcf, alt=alt, gt="1/1") == []

    def test_missing_format_columns_default_to_heterozygous(self):
        content = (
            "##fileformat=VCFv4.2\n"
            "#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\n"
            "chr10\t94781859\trs4244285\tG\tA\t60\tPASS\t.\n"
        )
        [v] = parse_vcf(content).variants
        assert v.genotype == "0/1"
        assert v.zygosity is Zygosity.HET
        assert v.gene == "CYP2C19"
        assert v.star_allele == "*2"

    def test_format_without_gt_defaults_to_heterozygous(self):
        outcome = process_row(["chr1", "100", "rs1", "A", "G", "50", "PASS", ".", "DP", "30"])
        assert outcome.retained
        assert outcome.variant.genotype == "0/1"

    def test_short_rows_skipped(self, make_vcf):
        content = make_vcf(["chr1\t100\trs1\tA", ("chr1", 200, "rs2", "C", "T", ".", "0/1")])
        variants = parse_vcf(content).variants
        assert [v.id for v in variants] == ["rs2"]

    def test_only_carried_variants_returned(self, make_vcf):
        content = make_vcf([
            ("chr1", 100, "rs1", "A", "G", ".", "0/0"),
            ("chr1", 200, "rs2", "A", "G", ".", "0/1"),
            ("chr1", 300, "rs3", "A", "G", ".", "1/1"),
            ("chr1", 400, "rs4", "A", "G", ".", "./."),
        ])
        variants = parse_vcf(content).variants
        assert [v.id for v in variants] == ["rs2", "rs3"]
        for v in variants:
            assert v.zygosity is not Zygosity.HOM_REF

    def test_windows_line_endings(self, make_vcf):
        content = make_vcf([("chr1", 100, "rs1", "A", "G", ".", "0/1")]).replace("\n", "\r\n")
        assert len(parse_vcf(content).variants) == 1

    def test_whitespace_delimited_file(self):
        content = (
            "##fileformat=VCFv4.2\n"
            "#CHROM POS ID REF ALT QUAL FILTER INFO FORMAT S1\n"
            "chr6  18130918 rs1800460 C T 50 PASS GENE=TPMT GT 0/1\n"
        )
        result = parse_vcf(content)
        assert result.sample_id == "S1"
        [v] = result.variants
        assert v.gene == "TPMT"
        assert v.star_allele == "*3B"
        assert v.pos == 18130918


class TestAnnotation:
    """Gene and star allele come from INFO first, then the marker table."""

    def test_info_keys_are_case_insensitive(self):
        outcome = process_row(["chr6", "1", ".", "A", "G", ".", ".", "gene=TPMT;Star=*3C", "GT", "0/1"])
        assert outcome.variant.gene == "TPMT"
        assert outcome.variant.star_allele == "*3C"

    def test_star_diplotype_annotation_keeps_non_reference(self):
        outcome = process_row(["chr22", "1", ".", "A", "G", ".", ".", "GENE=CYP2D6;STAR=*1/*4", "GT", "0/1"])
        assert outcome.variant.star_allele == "*4"

    def test_star_diplotype_of_reference_alleles(self):
        outcome = process_row(["chr22", "1", ".", "A", "G", ".", ".", "GENE=CYP2D6;STAR=*1/*1", "GT", "0/1"])
        assert outcome.variant.star_allele == "*1"

    def test_marker_table_fills_missing_star(self):
        outcome = process_row(["chr1", "1", "rs3918290", "C", "T", ".", ".", "GENE=DPYD", "GT", "0/1"])
        assert outcome.variant.gene == "DPYD"
        assert outcome.variant.star_allele == "*2A"

    def test_info_annotation_wins_over_marker_table(self):
        outcome = process_row(["chr1", "1", "rs3918290", "C", "T", ".", ".", "STAR=*13", "GT", "0/1"])
        assert outcome.variant.gene == "DPYD"
        assert outcome.variant.star_allele == "*13"

    def test_unannotated_variant_has_no_gene(self):
        outcome = process_row(["chr1", "1", "rs999", "C", "T", ".", ".", "DP=30", "GT", "0/1"])
        assert outcome.retained
        assert outcome.variant.gene is None
        assert outcome.variant.rsid == "rs999"

    def test_unset_id(self):
        outcome = process_row(["chr1", "1", ".", "C", "T", ".", ".", ".", "GT", "0/1"])
        assert outcome.variant.id == "."
        assert outcome.variant.rsid is None

    def test_non_numeric_position(self):
        outcome = process_row(["chr1", "BADPOS", ".", "C", "T", ".", ".", ".", "GT", "0/1"])
        assert outcome.variant.pos == 0


class TestInfoField:

    def test_flags_and_values(self):
        assert parse_info_field("GENE=TPMT;PASSED;DP=30") == {"GENE": "TPMT", "PASSED": "true", "DP": "30"}

    def test_value_containing_equals(self):
        assert parse_info_field("ANN=a=b") == {"ANN": "a=b"}

    @pytest.mark.parametrize("info", [".", ""])
    def test_empty(self, info):
        assert parse_info_field(info) == {}


class TestGeneHelpers:

    @pytest.fixture
    def variants(self):
        return [
            VariantRecord(chrom="chr10", pos=1, id="a", ref="A", alt="G", gene="CYP2C19"),
            VariantRecord(chrom="chr22", pos=2, id="b", ref="A", alt="G", gene="CYP2D6"),
            VariantRecord(chrom="chr1", pos=3, id="c", ref="A", alt="G"),
            VariantRecord(chrom="chr10", pos=4, id="d", ref="A", alt="G", gene="CYP2C19"),
        ]

    def test_detected_genes_first_occurrence_order(self, variants):
        assert detected_genes(variants) == ["CYP2C19", "CYP2D6"]

    def test_filter_variants_for_gene_is_stable(self, variants):
        assert [v.id for v in filter_variants_for_gene(variants, "CYP2C19")] == ["a", "d"]

    def test_filter_unknown_gene(self, variants):
        assert filter_variants_for_gene(variants, "TPMT") == []

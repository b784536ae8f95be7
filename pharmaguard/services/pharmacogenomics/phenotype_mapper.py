"""
Phenotype Mapper - diplotype → phenotype determination.

Resolution is deterministic and never fails:
  1. exact match in the CPIC diplotype table
  2. summed allele activity score with gene-specific thresholds
  3. zygosity-derived fallback (wildtype count)
"""

import logging
from typing import Optional

from .alleles import WILDTYPE_ALLELES, normalize_diplotype
from .cpic_tables import ALLELE_ACTIVITY, DIPLOTYPE_PHENOTYPES, score_to_phenotype
from .models import Phenotype, PhenotypeResult
from .terminology import FALLBACK_LABELS, get_phenotype_label

logger = logging.getLogger(__name__)


class PhenotypeMapper:
    """Maps a gene's diplotype to its CPIC phenotype."""

    def map_phenotype(self, gene: str, diplotype: str) -> PhenotypeResult:
        normalized = normalize_diplotype(diplotype)

        # 1. Direct CPIC table lookup
        phenotype = DIPLOTYPE_PHENOTYPES.get(gene, {}).get(normalized)
        if phenotype is not None:
            return PhenotypeResult(
                gene=gene,
                diplotype=normalized,
                phenotype=phenotype,
                phenotype_label=get_phenotype_label(gene, phenotype),
            )

        allele1, allele2 = self._split(normalized)

        # 2. Activity score
        score = self.activity_score(gene, allele1, allele2)
        if score is not None:
            phenotype = score_to_phenotype(gene, score)
            logger.debug("%s %s resolved by activity score %.2f -> %s", gene, normalized, score, phenotype.value)
            return PhenotypeResult(
                gene=gene,
                diplotype=normalized,
                phenotype=phenotype,
                phenotype_label=get_phenotype_label(gene, phenotype),
                activity_score=score,
            )

        # 3. Zygosity fallback
        phenotype = self._fallback_phenotype(allele1, allele2)
        logger.debug("%s %s resolved by zygosity fallback -> %s", gene, normalized, phenotype.value)
        return PhenotypeResult(
            gene=gene,
            diplotype=normalized,
            phenotype=phenotype,
            phenotype_label=FALLBACK_LABELS[phenotype],
        )

    @staticmethod
    def activity_score(gene: str, allele1: str, allele2: str) -> Optional[float]:
        """Sum of both allele activities, or None unless both are tabulated."""
        activities = ALLELE_ACTIVITY.get(gene)
        if not activities or allele1 not in activities or allele2 not in activities:
            return None
        return activities[allele1] + activities[allele2]

    @staticmethod
    def _split(diplotype: str):
        parts = diplotype.split("/")
        first = parts[0] if parts else ""
        second = parts[1] if len(parts) > 1 else ""
        return first, second

    @staticmethod
    def _fallback_phenotype(allele1: str, allele2: str) -> Phenotype:
        if not allele1 or not allele2:
            return Phenotype.NM

        wildtype = (allele1 in WILDTYPE_ALLELES) + (allele2 in WILDTYPE_ALLELES)
        if wildtype == 2:
            return Phenotype.NM
        if wildtype == 1:
            return Phenotype.IM
        return Phenotype.PM


def map_phenotype(gene: str, diplotype: str) -> PhenotypeResult:
    return PhenotypeMapper().map_phenotype(gene, diplotype)

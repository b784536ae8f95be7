"""
Diplotype Builder - resolves one gene's annotated variants into a single
two-allele diplotype.

Alleles are ranked by clinical severity so that when more than two candidate
star alleles are present, the loss-of-function ones are reported.
"""

import logging
from types import MappingProxyType
from typing import Dict, List, Mapping, Sequence

from pharmaguard.services.vcf.parser import DEFAULT_GENOTYPE, VariantRecord, clean_genotype
from .alleles import DEFAULT_DIPLOTYPE, REFERENCE_ALLELE, make_diplotype

logger = logging.getLogger(__name__)

UNRANKED_SEVERITY = 50

# Lower rank = more clinically impactful
ALLELE_SEVERITY: Mapping[str, int] = MappingProxyType({
    # No function
    "*4": 0, "*5": 0, "*6": 0, "*2A": 0, "*13": 0,
    "*3": 0, "*3A": 0, "*3B": 0, "*3C": 0, "*2": 0,
    # Decreased function
    "*9": 1, "*10": 1, "*17": 1, "*29": 1, "*41": 1, "*15": 1,
    "c.2846A>T": 1, "HapB3": 1,
    # Duplications
    "*1xN": 2, "*2xN": 2,
    # Normal function
    "*1": 99, "*1a": 99, "*1b": 99, "*37": 99,
})


def allele_severity(allele: str) -> int:
    return ALLELE_SEVERITY.get(allele, UNRANKED_SEVERITY)


def _is_hom_alt(genotype: str) -> bool:
    parts = genotype.split("/")
    return len(parts) == 2 and parts[0] == parts[1] and parts[0] != "0"


def build_diplotype(variants: Sequence[VariantRecord], gene: str) -> str:
    """
    Build the diplotype for ``gene`` from its annotated variants.

    Returns a sorted "<a>/<b>" string; "*1/*1" when no variant qualifies.
    """
    # One genotype per star allele; a homozygous call replaces an earlier one.
    genotypes: Dict[str, str] = {}
    for v in variants:
        if v.gene != gene or not v.star_allele:
            continue
        star = v.star_allele.strip()
        if not star:
            continue
        gt = clean_genotype(v.genotype or DEFAULT_GENOTYPE)
        if star not in genotypes or gt == "1/1":
            genotypes[star] = gt

    ranked = sorted(genotypes.items(), key=lambda item: allele_severity(item[0]))

    alleles: List[str] = []
    for star, gt in ranked:
        if len(alleles) >= 2:
            break
        if _is_hom_alt(gt):
            alleles.extend([star, star])
        else:
            alleles.append(star)

    if not alleles:
        return DEFAULT_DIPLOTYPE
    if len(alleles) == 1:
        diplotype = make_diplotype([REFERENCE_ALLELE, alleles[0]])
    else:
        diplotype = make_diplotype(alleles[:2])

    logger.debug("%s diplotype %s from alleles %s", gene, diplotype, [s for s, _ in ranked])
    return diplotype

"""
Star-allele primitives shared by the diplotype builder, the CPIC tables and
the phenotype mapper.
"""

from typing import FrozenSet, List

REFERENCE_ALLELE = "*1"
DEFAULT_DIPLOTYPE = "*1/*1"

# Reference-function aliases
WILDTYPE_ALLELES: FrozenSet[str] = frozenset({"*1", "*1a", "*1b", "*37"})


def make_diplotype(alleles: List[str]) -> str:
    """Join two alleles in lexicographic order."""
    return "/".join(sorted(alleles))


def normalize_diplotype(diplotype: str) -> str:
    """
    Canonical "<a>/<b>" form of a diplotype string.

    Components are trimmed and sorted; a single allele is paired with *1 and
    an empty string becomes *1/*1. With more than two components the first two
    non-reference alleles win (falling back to the first two raw ones).
    Canonical input is returned unchanged.
    """
    parts = [p.strip() for p in (diplotype or "").split("/") if p.strip()]
    if not parts:
        return DEFAULT_DIPLOTYPE
    if len(parts) == 1:
        return make_diplotype([REFERENCE_ALLELE, parts[0]])
    if len(parts) > 2:
        non_ref = [p for p in parts if p != REFERENCE_ALLELE]
        parts = non_ref[:2] if len(non_ref) >= 2 else parts[:2]
    return make_diplotype(parts)

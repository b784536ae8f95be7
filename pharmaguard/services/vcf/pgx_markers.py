"""
Known pharmacogenomic marker table.

Maps dbSNP identifiers to the gene and star allele they define. Used by the
VCF parser to annotate records whose INFO column carries no GENE/STAR tags.
"""
from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, NamedTuple, Optional


class PgxMarker(NamedTuple):
    gene: str
    star: str


# ----------------------------------------------------------------------
# rsID → (gene, star allele)
# ----------------------------------------------------------------------

KNOWN_PGX_VARIANTS: Mapping[str, PgxMarker] = MappingProxyType({
    # CYP2D6
    "rs3892097": PgxMarker("CYP2D6", "*4"),
    "rs5030655": PgxMarker("CYP2D6", "*6"),
    "rs1065852": PgxMarker("CYP2D6", "*10"),
    "rs28371725": PgxMarker("CYP2D6", "*41"),
    "rs16947": PgxMarker("CYP2D6", "*2"),
    "rs1135840": PgxMarker("CYP2D6", "*2"),
    # CYP2C19
    "rs4244285": PgxMarker("CYP2C19", "*2"),
    "rs4986893": PgxMarker("CYP2C19", "*3"),
    "rs12248560": PgxMarker("CYP2C19", "*17"),
    "rs28399504": PgxMarker("CYP2C19", "*4"),
    # CYP2C9
    "rs1799853": PgxMarker("CYP2C9", "*2"),
    "rs1057910": PgxMarker("CYP2C9", "*3"),
    "rs28371686": PgxMarker("CYP2C9", "*5"),
    # SLCO1B1
    "rs4149056": PgxMarker("SLCO1B1", "*5"),
    "rs2306283": PgxMarker("SLCO1B1", "*1b"),
    "rs4149015": PgxMarker("SLCO1B1", "*15"),
    # TPMT
    "rs1800462": PgxMarker("TPMT", "*2"),
    "rs1800460": PgxMarker("TPMT", "*3B"),
    "rs1142345": PgxMarker("TPMT", "*3C"),
    # DPYD
    "rs3918290": PgxMarker("DPYD", "*2A"),
    "rs55886062": PgxMarker("DPYD", "*13"),
    "rs67376798": PgxMarker("DPYD", "c.2846A>T"),
    "rs75017182": PgxMarker("DPYD", "HapB3"),
})


def lookup_marker(rsid: Optional[str]) -> Optional[PgxMarker]:
    """Return the known marker for ``rsid``, or None."""
    if not rsid:
        return None
    return KNOWN_PGX_VARIANTS.get(rsid)

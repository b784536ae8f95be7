from .parser import (
    RowOutcome,
    VariantRecord,
    VcfParseError,
    VcfParseResult,
    Zygosity,
    detected_genes,
    filter_variants_for_gene,
    parse_vcf,
    process_row,
)
from .pgx_markers import KNOWN_PGX_VARIANTS, PgxMarker, lookup_marker

__all__ = [
    "RowOutcome",
    "VariantRecord",
    "VcfParseError",
    "VcfParseResult",
    "Zygosity",
    "detected_genes",
    "filter_variants_for_gene",
    "parse_vcf",
    "process_row",
    "KNOWN_PGX_VARIANTS",
    "PgxMarker",
    "lookup_marker",
]

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Mapping, Optional, Tuple

from pharmaguard.core.config import get_parser_config
from .pgx_markers import lookup_marker

logger = logging.getLogger(__name__)


# ----------------------------------------------------------------------
# Constants
# ----------------------------------------------------------------------

UNSET_ID = "."

# Genotype tokens treated as "no call"
MISSING_GENOTYPES = frozenset({"./.", ".", "", "././."})

# Genotype assumed when a row carries no FORMAT/SAMPLE columns or no GT key
DEFAULT_GENOTYPE = "0/1"

_WHITESPACE = re.compile(r"\s+")
_ALLELE_INDEX = re.compile(r"[0-9]+")


class Zygosity(str, Enum):
    HOM_REF = "Homozygous Reference"
    HET = "Heterozygous"
    HOM_ALT = "Homozygous Alternate"
    COMPOUND_HET = "Compound Heterozygous"
    UNKNOWN = "Unknown"


@dataclass(frozen=True)
class VariantRecord:
    chrom: str
    pos: int
    id: str
    ref: str
    alt: str
    alt_alleles: Tuple[str, ...] = ()
    qual: str = "."
    filter: str = "."
    info: Mapping[str, str] = field(default_factory=dict)

    gene: Optional[str] = None
    star_allele: Optional[str] = None
    genotype: Optional[str] = None
    zygosity: Zygosity = Zygosity.UNKNOWN

    @property
    def rsid(self) -> Optional[str]:
        return self.id if self.id != UNSET_ID else None


@dataclass
class VcfParseResult:
    variants: List[VariantRecord]
    sample_id: Optional[str]
    file_format: str


class VcfParseError(ValueError):
    """Structural failure that aborts the whole parse."""

    def __init__(self, error: str, details: Optional[str] = None, code: str = "INVALID_VCF"):
        super().__init__(error if details is None else f"{error} {details}")
        self.error = error
        self.details = details
        self.code = code


@dataclass(frozen=True)
class RowOutcome:
    """Result of resolving one data line."""
    variant: VariantRecord
    skip_reason: Optional[str] = None

    @property
    def retained(self) -> bool:
        return self.skip_reason is None


# ----------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------

def parse_vcf(content: str) -> VcfParseResult:
    """
    Parse VCF text into the variants the patient actually carries.

    Structural problems raise ``VcfParseError``; malformed or uninformative
    data rows are skipped without aborting the parse.
    """
    cfg = get_parser_config()

    size = len(content.encode("utf-8"))
    if size > cfg.max_file_size_bytes:
        raise VcfParseError(
            "File exceeds 5MB size limit",
            f"File size: {size / (1024 * 1024):.2f}MB",
            code="FILE_TOO_LARGE",
        )

    lines = [line.strip() for line in content.split("\n")]
    if not any(lines):
        raise VcfParseError("Empty VCF file")

    format_line = next((l for l in lines if l.startswith(cfg.fileformat_prefix)), None)
    if format_line is None:
        raise VcfParseError("Invalid VCF format", "Missing ##fileformat header line.")

    file_format = format_line[len(cfg.fileformat_prefix):]
    if not file_format.startswith(cfg.format_family):
        raise VcfParseError("Invalid VCF format", f"Unrecognized format: {file_format}.")

    header_index = next(
        (i for i, l in enumerate(lines) if l.startswith(cfg.column_header_prefix)), None
    )
    if header_index is None:
        raise VcfParseError("Invalid VCF format", "Missing #CHROM header line.")

    header_line = lines[header_index]
    use_tabs = "\t" in header_line
    header_cols = _split_columns(header_line, use_tabs)

    for i, expected in enumerate(cfg.required_columns):
        found = header_cols[i] if i < len(header_cols) else None
        if found != expected:
            raise VcfParseError(
                "Invalid VCF column headers",
                f"Expected {expected} at column {i + 1}, found {found or 'missing'}.",
            )

    sample_id = header_cols[9] if len(header_cols) > 9 else None

    variants: List[VariantRecord] = []
    skipped = 0
    for line in lines[header_index + 1:]:
        if not line or line.startswith("#"):
            continue
        cols = _split_columns(line, use_tabs)
        if len(cols) < 5:
            skipped += 1
            logger.debug("Skipping row with %d columns: %r", len(cols), line[:80])
            continue

        outcome = process_row(cols)
        if outcome.retained:
            variants.append(outcome.variant)
        else:
            skipped += 1
            logger.debug(
                "Skipping %s:%s (%s): %s",
                outcome.variant.chrom, outcome.variant.pos, outcome.variant.id, outcome.skip_reason,
            )

    logger.info(
        "Parsed VCF (%s, sample=%s): %d variants retained, %d rows skipped",
        file_format, sample_id or "-", len(variants), skipped,
    )
    return VcfParseResult(variants=variants, sample_id=sample_id, file_format=file_format)


def process_row(cols: List[str]) -> RowOutcome:
    """Resolve annotation, genotype and zygosity for one split data line."""
    chrom, pos_s, vid, ref, alt = cols[:5]
    qual = cols[5] if len(cols) > 5 else "."
    flt = cols[6] if len(cols) > 6 else "."
    info = parse_info_field(cols[7] if len(cols) > 7 else "")

    try:
        pos = int(pos_s)
    except ValueError:
        pos = 0

    gene, star = _annotate(vid, info)

    base = VariantRecord(
        chrom=chrom,
        pos=pos,
        id=vid or UNSET_ID,
        ref=ref,
        alt=alt,
        qual=qual,
        filter=flt,
        info=info,
        gene=gene,
        star_allele=star,
    )

    # ── ALT column ─────────────────────────────────────────────────────────
    if not alt or alt == ".":
        return RowOutcome(replace(base, zygosity=Zygosity.HOM_REF), "No ALT allele")
    if alt.startswith("<") and alt.endswith(">"):
        return RowOutcome(base, f"Symbolic ALT allele {alt}")

    alt_alleles = tuple(a.strip() for a in alt.split(",") if a.strip())
    if not alt_alleles:
        return RowOutcome(base, "Empty ALT allele list")
    if any(a.startswith("<") and a.endswith(">") for a in alt_alleles):
        return RowOutcome(base, "Symbolic ALT allele in list")
    base = replace(base, alt_alleles=alt_alleles)

    # ── Genotype ───────────────────────────────────────────────────────────
    raw_gt = _extract_gt(cols)
    if raw_gt is None:
        return RowOutcome(replace(base, genotype=DEFAULT_GENOTYPE, zygosity=Zygosity.HET))

    genotype = clean_genotype(raw_gt)
    if genotype in MISSING_GENOTYPES:
        return RowOutcome(base, "Missing genotype")

    parts = genotype.split("/")
    if len(parts) != 2:
        return RowOutcome(base, f"Unsupported ploidy ({len(parts)} alleles)")

    indices: List[int] = []
    for part in parts:
        if part in (".", ""):
            return RowOutcome(base, "Partially missing genotype")
        if not _ALLELE_INDEX.fullmatch(part):
            return RowOutcome(base, f"Malformed genotype {genotype}")
        idx = int(part)
        if idx > len(alt_alleles):
            return RowOutcome(base, f"Invalid ALT index ({idx} > {len(alt_alleles)})")
        indices.append(idx)

    zygosity = infer_zygosity(indices[0], indices[1])
    variant = replace(base, genotype=genotype, zygosity=zygosity)
    if zygosity is Zygosity.HOM_REF:
        return RowOutcome(variant, "Homozygous reference genotype")
    return RowOutcome(variant)


def infer_zygosity(a: int, b: int) -> Zygosity:
    """Zygosity of a diploid call given its two allele indices."""
    if a == 0 and b == 0:
        return Zygosity.HOM_REF
    if a == 0 or b == 0:
        return Zygosity.HET
    if a == b:
        return Zygosity.HOM_ALT
    return Zygosity.COMPOUND_HET


def clean_genotype(gt: str) -> str:
    """Normalize phased separators to ``/``."""
    return gt.replace("|", "/").strip()


def parse_info_field(info: str) -> Dict[str, str]:
    out: Dict[str, str] = {}
    if info in (".", ""):
        return out
    for item in info.split(";"):
        if not item:
            continue
        key, sep, value = item.partition("=")
        if sep and key:
            out[key] = value
        else:
            out[item] = "true"
    return out


def detected_genes(variants: List[VariantRecord]) -> List[str]:
    """Distinct genes in first-occurrence order."""
    seen: Dict[str, None] = {}
    for v in variants:
        if v.gene and v.gene not in seen:
            seen[v.gene] = None
    return list(seen)


def filter_variants_for_gene(variants: List[VariantRecord], gene: str) -> List[VariantRecord]:
    return [v for v in variants if v.gene == gene]


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------

def _split_columns(line: str, use_tabs: bool) -> List[str]:
    if use_tabs:
        return line.split("\t")
    return _WHITESPACE.split(line)


def _info_value(info: Mapping[str, str], key: str) -> Optional[str]:
    """Case-insensitive INFO lookup; empty values count as absent."""
    wanted = key.upper()
    for k, v in info.items():
        if k.upper() == wanted and v.strip():
            return v.strip()
    return None


def _resolve_star(raw: str) -> str:
    """Collapse a diplotype-style STAR annotation to its non-reference allele."""
    if "/" not in raw:
        return raw
    parts = [p.strip() for p in raw.split("/")]
    non_ref = [p for p in parts if p != "*1"]
    return non_ref[0] if non_ref else parts[0]


def _annotate(vid: str, info: Mapping[str, str]) -> Tuple[Optional[str], Optional[str]]:
    gene = _info_value(info, "GENE")
    star_raw = _info_value(info, "STAR")
    star = _resolve_star(star_raw) if star_raw else None

    marker = lookup_marker(vid if vid != UNSET_ID else None)
    if marker is not None:
        gene = gene or marker.gene
        star = star or marker.star
    return gene, star


def _extract_gt(cols: List[str]) -> Optional[str]:
    """GT field of the first sample, or None when the row carries none."""
    if len(cols) < 10 or not cols[8] or not cols[9]:
        return None
    format_keys = cols[8].split(":")
    if "GT" not in format_keys:
        return None
    gt_index = format_keys.index("GT")
    sample_fields = cols[9].split(":")
    if gt_index >= len(sample_fields):
        return None
    return sample_fields[gt_index]

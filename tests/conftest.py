"""
Shared fixtures: a small VCF text builder and config isolation.
"""

import pytest

from pharmaguard.core.config import reset_config

COLUMNS = "#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\tFORMAT"


def build_vcf(rows, sample="PATIENT_001", fileformat="VCFv4.2"):
    """
    Build VCF text from (chrom, pos, id, ref, alt, info, gt) tuples.

    A row given as a plain string is inserted verbatim.
    """
    header_cols = COLUMNS + (f"\t{sample}" if sample else "")
    lines = [f"##fileformat={fileformat}", header_cols]
    for row in rows:
        if isinstance(row, str):
            lines.append(row)
            continue
        chrom, pos, vid, ref, alt, info, gt = row
        lines.append(f"{chrom}\t{pos}\t{vid}\t{ref}\t{alt}\t50\tPASS\t{info}\tGT\t{gt}")
    return "\n".join(lines) + "\n"


@pytest.fixture
def make_vcf():
    return build_vcf


@pytest.fixture(autouse=True)
def _default_config():
    reset_config()
    yield
    reset_config()

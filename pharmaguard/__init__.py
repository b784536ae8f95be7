"""PharmaGuard: CPIC-aligned pharmacogenomic risk classification from VCF files."""

__version__ = "1.0.0"

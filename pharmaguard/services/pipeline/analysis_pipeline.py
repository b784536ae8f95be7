"""
Analysis Pipeline: orchestrates VCF → Diplotype → Phenotype → Risk → Explanation.

Receives VCF content from the API route, runs the pharmacogenomic analysis
for every requested drug, and returns a MultiDrugAnalysisResult.
"""
import logging
import time
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence, Tuple

from fastapi import UploadFile

from pharmaguard.core.config import get_confidence_config, get_pipeline_config
from pharmaguard.schemas.pharma_schema import (
    AnalysisResult,
    DetectedVariant,
    MultiDrugAnalysisResult,
    PharmacogenomicProfile,
    QualityMetrics,
    ResultsSummary,
)
from pharmaguard.services.explanation.explanation_service import generate_explanation
from pharmaguard.services.pharmacogenomics.alleles import DEFAULT_DIPLOTYPE
from pharmaguard.services.pharmacogenomics.diplotype_builder import build_diplotype
from pharmaguard.services.pharmacogenomics.drug_catalog import (
    SUPPORTED_DRUGS,
    SUPPORTED_GENES,
    get_primary_gene,
    is_supported_drug,
    is_supported_gene,
    normalize_drug_name,
)
from pharmaguard.services.pharmacogenomics.models import (
    ClinicalRecommendation,
    RiskAssessment,
    RiskLabel,
    RiskLevel,
)
from pharmaguard.services.pharmacogenomics.phenotype_mapper import PhenotypeMapper
from pharmaguard.services.pharmacogenomics.risk_engine import (
    RiskEngine,
    apply_genotype_override,
    get_genotype_override,
)
from pharmaguard.services.vcf.parser import (
    VariantRecord,
    VcfParseResult,
    detected_genes,
    filter_variants_for_gene,
    parse_vcf,
)

logger = logging.getLogger(__name__)


class NoVariantsError(ValueError):
    code = "NO_VARIANTS"

    def __init__(self, details: str = "The uploaded VCF file contains no variant data lines."):
        super().__init__("No variants detected in VCF file")
        self.error = "No variants detected in VCF file"
        self.details = details


class UnsupportedDrugError(ValueError):
    code = "UNSUPPORTED_DRUG"

    def __init__(self, drugs: Sequence[str]):
        super().__init__(f"Unsupported drug(s): {', '.join(drugs)}")
        self.error = "Unsupported drug"
        self.details = f"Supported drugs: {', '.join(SUPPORTED_DRUGS)}. Received: {', '.join(drugs)}."
        self.drugs = list(drugs)


RISK_ORDER = {
    RiskLevel.CRITICAL: 0,
    RiskLevel.HIGH: 1,
    RiskLevel.MODERATE: 2,
    RiskLevel.LOW: 3,
    RiskLevel.UNKNOWN: 4,
}

_mapper = PhenotypeMapper()
_engine = RiskEngine()


# ── Helpers ───────────────────────────────────────────────────────────────

def resolve_drugs(drugs: Optional[Iterable[str]]) -> List[str]:
    """Normalize requested drug names; all supported drugs when none are given."""
    if not drugs:
        return list(SUPPORTED_DRUGS)
    resolved = [normalize_drug_name(d) for d in drugs if d and d.strip()]
    if not resolved:
        return list(SUPPORTED_DRUGS)
    unsupported = [d for d in resolved if not is_supported_drug(d)]
    if unsupported:
        raise UnsupportedDrugError(unsupported)
    # De-duplicate, keep request order
    return list(dict.fromkeys(resolved))


def _to_detected_variant(v: VariantRecord, gene: str) -> DetectedVariant:
    return DetectedVariant(
        rsid=v.id,
        chromosome=v.chrom,
        position=v.pos,
        ref_allele=v.ref,
        alt_allele=v.alt,
        gene=v.gene or gene,
        star_allele=v.star_allele,
    )


def build_quality_metrics(parsed: VcfParseResult, genes: List[str]) -> QualityMetrics:
    cfg = get_pipeline_config()
    return QualityMetrics(
        variants_analyzed=len(parsed.variants),
        pgx_variants_found=sum(1 for v in parsed.variants if v.gene),
        gene_coverage=list(genes),
        analysis_version=cfg.analysis_version,
        pipeline=cfg.pipeline_name,
    )


def apply_gene_coverage(
    gene: str,
    gene_detected: bool,
    genes: List[str],
    risk: RiskAssessment,
    recommendation: ClinicalRecommendation,
) -> Tuple[RiskAssessment, ClinicalRecommendation]:
    """
    Downgrade to Unknown when the drug's gene was not observed in the file.

    Runs after any genotype override, so absence of data always wins.
    """
    if gene_detected:
        return risk, recommendation

    cfg = get_confidence_config()
    if genes:
        confidence = cfg.gene_not_tested
        severity = f"No {gene} variants detected."
        dosing = f"No {gene} variants found. Assume wildtype (*1/*1) pending testing. Use standard dosing."
        warning = f"VCF did not contain variants for {gene}."
    else:
        confidence = cfg.no_pgx_variants
        severity = "No pharmacogenomic variants detected."
        dosing = "No PGx variants found. Use standard clinical protocols."
        warning = "No PGx variants detected in VCF."

    risk = risk.model_copy(update={
        "risk_level": RiskLevel.UNKNOWN,
        "risk_label": RiskLabel.UNKNOWN,
        "confidence_score": confidence,
        "severity": severity,
    })
    recommendation = recommendation.model_copy(update={
        "dosing_guidance": dosing,
        "warnings": recommendation.warnings + [warning],
    })
    return risk, recommendation


def sort_results_by_severity(results: Sequence[AnalysisResult]) -> List[AnalysisResult]:
    """Most severe first; ties keep their original order."""
    return sorted(results, key=lambda r: RISK_ORDER.get(r.risk_assessment.risk_level, len(RISK_ORDER)))


def summarize_results(result: MultiDrugAnalysisResult) -> ResultsSummary:
    """Headline figures for a multi-drug report."""
    results = result.results
    flagged = sum(
        1 for r in results
        if r.risk_assessment.risk_level in (RiskLevel.CRITICAL, RiskLevel.MODERATE)
    )
    average = round(sum(r.risk_assessment.confidence_score for r in results) / len(results)) if results else 0
    covered = [g for g in result.quality_metrics.gene_coverage if is_supported_gene(g)]
    coverage = round(len(covered) / len(SUPPORTED_GENES) * 100)
    return ResultsSummary(flagged=flagged, average_confidence=average, gene_coverage_percent=coverage)


# ── Per-drug analysis ─────────────────────────────────────────────────────

def analyze_drug(
    parsed: VcfParseResult,
    drug: str,
    patient_id: str,
    timestamp: str,
    quality: QualityMetrics,
) -> AnalysisResult:
    drug = normalize_drug_name(drug)
    gene = get_primary_gene(drug)
    if gene is None:
        raise UnsupportedDrugError([drug])

    genes = quality.gene_coverage
    gene_detected = gene in genes

    if gene_detected:
        diplotype = build_diplotype(parsed.variants, gene)
        listed = filter_variants_for_gene(parsed.variants, gene)
    else:
        diplotype = DEFAULT_DIPLOTYPE
        listed = [v for v in parsed.variants if v.gene]
    phenotype = _mapper.map_phenotype(gene, diplotype)

    risk, recommendation = _engine.evaluate_risk(drug, gene, phenotype.phenotype)
    risk = apply_genotype_override(risk, get_genotype_override(drug, gene, parsed.variants))
    risk, recommendation = apply_gene_coverage(gene, gene_detected, genes, risk, recommendation)

    explanation = generate_explanation(drug, gene, phenotype.phenotype, diplotype)

    logger.info(
        "%s: %s %s (%s) -> %s/%s confidence %d",
        drug, gene, phenotype.diplotype, phenotype.phenotype.value,
        risk.risk_level.value, risk.risk_label.value, risk.confidence_score,
    )

    return AnalysisResult(
        patient_id=patient_id,
        drug=drug,
        timestamp=timestamp,
        risk_assessment=risk,
        pharmacogenomic_profile=PharmacogenomicProfile(
            gene=gene,
            diplotype=phenotype.diplotype,
            phenotype=phenotype.phenotype,
            phenotype_label=phenotype.phenotype_label,
            detected_variants=[_to_detected_variant(v, gene) for v in listed],
        ),
        clinical_recommendations=recommendation,
        ai_explanation=explanation,
        quality_metrics=quality,
    )


# ── Entry points ──────────────────────────────────────────────────────────

def analyze_vcf_text(content: str, drugs: Optional[Iterable[str]] = None) -> MultiDrugAnalysisResult:
    """
    Full pipeline on VCF text: parse once, then analyze each drug.

    Raises VcfParseError, NoVariantsError or UnsupportedDrugError.
    """
    start_time = time.time()
    targets = resolve_drugs(drugs)

    # ── 1. Parse VCF ──────────────────────────────────────────────────────
    parsed = parse_vcf(content)
    if not parsed.variants:
        raise NoVariantsError()

    # ── 2. Shared metadata ────────────────────────────────────────────────
    genes = detected_genes(parsed.variants)
    timestamp = datetime.now(timezone.utc).isoformat()
    patient_id = parsed.sample_id or f"SAMPLE_{int(time.time() * 1000)}"
    quality = build_quality_metrics(parsed, genes)
    logger.info("Starting analysis for patient %s, drugs %s, genes %s", patient_id, targets, genes)

    # ── 3. Analyze each drug ──────────────────────────────────────────────
    results = [analyze_drug(parsed, drug, patient_id, timestamp, quality) for drug in targets]

    logger.info("Analysis for %s completed in %.3fs", patient_id, time.time() - start_time)
    return MultiDrugAnalysisResult(
        patient_id=patient_id,
        timestamp=timestamp,
        quality_metrics=quality,
        results=results,
    )


async def run_analysis_pipeline(
    vcf_file: UploadFile,
    drugs: Optional[Iterable[str]] = None,
) -> MultiDrugAnalysisResult:
    """Read the uploaded VCF and run the analysis pipeline on its text."""
    vcf_bytes = await vcf_file.read()
    content = vcf_bytes.decode("utf-8", errors="replace")
    return analyze_vcf_text(content, drugs)

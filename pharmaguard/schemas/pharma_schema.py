from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, field_validator

from pharmaguard.services.pharmacogenomics.models import (
    ClinicalRecommendation,
    Phenotype,
    RiskAssessment,
)


class DetectedVariant(BaseModel):
    rsid: str
    chromosome: str
    position: int
    ref_allele: str
    alt_allele: str
    gene: str
    star_allele: Optional[str] = None


class PharmacogenomicProfile(BaseModel):
    gene: str
    diplotype: str
    phenotype: Phenotype
    phenotype_label: str
    detected_variants: List[DetectedVariant] = []


class AIExplanation(BaseModel):
    summary: str
    mechanism: str
    patient_friendly: str
    citations: List[str] = []


class QualityMetrics(BaseModel):
    variants_analyzed: int
    pgx_variants_found: int
    gene_coverage: List[str] = []
    analysis_version: str
    pipeline: str


class AnalysisResult(BaseModel):
    patient_id: str
    drug: str
    timestamp: str
    risk_assessment: RiskAssessment
    pharmacogenomic_profile: PharmacogenomicProfile
    clinical_recommendations: ClinicalRecommendation
    ai_explanation: AIExplanation
    quality_metrics: QualityMetrics

    @field_validator('timestamp')
    @classmethod
    def validate_timestamp(cls, v):
        try:
            datetime.fromisoformat(v.replace('Z', '+00:00'))
            return v
        except ValueError:
            raise ValueError("Timestamp must be a valid ISO 8601 string")


class MultiDrugAnalysisResult(BaseModel):
    patient_id: str
    timestamp: str
    quality_metrics: QualityMetrics
    results: List[AnalysisResult]


class ResultsSummary(BaseModel):
    flagged: int
    average_confidence: int
    gene_coverage_percent: int


class AnalysisErrorResponse(BaseModel):
    error: str
    code: str
    details: Optional[str] = None


class DrugInfoResponse(BaseModel):
    drug: str
    label: str
    gene: str
    description: str

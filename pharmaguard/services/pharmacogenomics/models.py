"""
Internal data models for the pharmacogenomics service.
These models carry the phenotype and risk results produced for each
drug-gene pair.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Phenotype(str, Enum):
    """CPIC metabolizer / function class."""
    PM = "PM"
    IM = "IM"
    NM = "NM"
    RM = "RM"
    URM = "URM"


class RiskLevel(str, Enum):
    CRITICAL = "Critical"
    HIGH = "High"  # legacy, never produced by the label rules
    MODERATE = "Moderate"
    LOW = "Low"
    UNKNOWN = "Unknown"


class RiskLabel(str, Enum):
    SAFE = "Safe"
    ADJUST_DOSAGE = "Adjust Dosage"
    INEFFECTIVE = "Ineffective"
    TOXIC = "Toxic"
    UNKNOWN = "Unknown"


class PhenotypeResult(BaseModel):
    """Phenotype resolved for one gene from its diplotype."""
    gene: str = Field(..., description="Gene symbol")
    diplotype: str = Field(..., description="Normalized diplotype (e.g., *1/*4)")
    phenotype: Phenotype = Field(..., description="Phenotype code")
    phenotype_label: str = Field(..., description="Gene-specific phenotype label")
    activity_score: Optional[float] = Field(None, description="Summed allele activity, when used")


class RiskAssessment(BaseModel):
    """Risk assessment result for a drug-gene interaction."""
    risk_level: RiskLevel = Field(..., description="Risk level")
    risk_label: RiskLabel = Field(..., description="Clinical risk label")
    confidence_score: int = Field(..., ge=0, le=100, description="Confidence score (0-100)")
    severity: str = Field(..., description="Severity narrative")


class ClinicalRecommendation(BaseModel):
    """Clinical recommendation based on pharmacogenomic data."""
    dosing_guidance: str = Field(..., description="Dosing guidance text")
    alternative_drugs: List[str] = Field(default_factory=list, description="Alternative drugs")
    warnings: List[str] = Field(default_factory=list, description="Clinical warnings")
    cpic_level: str = Field(..., description="CPIC recommendation strength: Strong/Moderate/Optional")


class GenotypeOverride(BaseModel):
    """Genotype-specific risk that supersedes the phenotype-level result."""
    model_config = ConfigDict(frozen=True)

    risk_level: RiskLevel
    risk_label: RiskLabel
    severity: str
    confidence: int = Field(..., ge=0, le=100)

"""
Pharmacogenomics Service

CPIC-aligned pharmacogenomic decision engine for drug risk assessment.
Provides deterministic diplotype construction, phenotype mapping and
rule-based risk classification with clinical recommendations.
"""

from .models import (
    Phenotype,
    RiskLevel,
    RiskLabel,
    PhenotypeResult,
    RiskAssessment,
    ClinicalRecommendation,
    GenotypeOverride,
)
from .alleles import normalize_diplotype
from .diplotype_builder import build_diplotype
from .drug_catalog import (
    DRUG_DETAILS,
    SUPPORTED_DRUGS,
    SUPPORTED_GENES,
    get_primary_gene,
    is_supported_drug,
    is_supported_gene,
)
from .phenotype_mapper import PhenotypeMapper, map_phenotype
from .risk_engine import (
    RiskEngine,
    create_risk_engine,
    get_genotype_override,
    apply_genotype_override,
)
from .terminology import get_phenotype_label

__all__ = [
    # Models
    'Phenotype',
    'RiskLevel',
    'RiskLabel',
    'PhenotypeResult',
    'RiskAssessment',
    'ClinicalRecommendation',
    'GenotypeOverride',

    # Drugs
    'DRUG_DETAILS',
    'SUPPORTED_DRUGS',
    'SUPPORTED_GENES',
    'get_primary_gene',
    'is_supported_drug',
    'is_supported_gene',

    # Diplotypes & phenotypes
    'normalize_diplotype',
    'build_diplotype',
    'PhenotypeMapper',
    'map_phenotype',
    'get_phenotype_label',

    # Risk Engine
    'RiskEngine',
    'create_risk_engine',
    'get_genotype_override',
    'apply_genotype_override',
]

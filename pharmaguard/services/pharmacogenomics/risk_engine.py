"""
Risk Engine - Evaluates pharmacogenomic risk for drug-gene-phenotype combinations.

Risk is derived from the gene-specific phenotype label:
- loss of function ("Poor", "Deficient") is always Critical
- reduced function is Moderate, normal function is Low
- ultra-rapid metabolism is Critical only for CYP2D6 (codeine → morphine)

A genotype-level override table supersedes the phenotype-level risk for a few
well-characterized star-allele/genotype combinations.
"""

import logging
from types import MappingProxyType
from typing import List, Mapping, Optional, Sequence, Tuple

from pharmaguard.core.config import get_confidence_config
from pharmaguard.services.vcf.parser import VariantRecord
from .drug_catalog import normalize_drug_name
from .models import (
    ClinicalRecommendation,
    GenotypeOverride,
    Phenotype,
    RiskAssessment,
    RiskLabel,
    RiskLevel,
)
from .terminology import get_phenotype_label

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Per-drug narrative tables (keyed by phenotype label)
# ---------------------------------------------------------------------------

_SEVERITY_TEXT: Mapping[str, Mapping[str, str]] = MappingProxyType({
    "CODEINE": {
        "Poor Metabolizer": "Reduced conversion to morphine. Therapy may be ineffective. Consider alternative analgesics.",
        "Intermediate Metabolizer": "Reduced but partial conversion to morphine. Monitor for inadequate pain relief.",
        "Ultra-rapid Metabolizer": "Excessive morphine formation. Risk of respiratory depression and CNS toxicity.",
    },
    "CLOPIDOGREL": {
        "Poor Metabolizer": "Severely impaired activation. High risk of cardiovascular events (stent thrombosis). Contraindicated.",
        "Intermediate Metabolizer": "Reduced activation. Consider increased dose or alternative antiplatelet (prasugrel, ticagrelor).",
    },
    "WARFARIN": {
        "Poor Metabolizer": "Significantly reduced clearance. High bleeding risk. Requires major dose reduction (30-80%).",
        "Intermediate Metabolizer": "Moderately reduced clearance. Requires dose reduction (20-40%) with close INR monitoring.",
    },
    "SIMVASTATIN": {
        "Poor Function": "Greatly increased plasma levels. High risk of myopathy and rhabdomyolysis. Contraindicated at high doses.",
        "Decreased Function": "Increased plasma levels. Elevated myopathy risk. Consider lower dose or alternative statin.",
    },
    "AZATHIOPRINE": {
        "Deficient TPMT Activity": "Severely impaired drug inactivation. Life-threatening myelosuppression risk. Contraindicated or reduce dose by 90%.",
        "Intermediate TPMT Activity": "Reduced inactivation. Increased toxicity risk. Reduce dose by 30-50% and monitor blood counts.",
    },
    "FLUOROURACIL": {
        "Deficient DPD Activity": "Severely impaired clearance. Fatal toxicity risk. Contraindicated.",
        "Reduced DPD Activity": "Reduced clearance. Increased GI and hematologic toxicity. Reduce dose by 25-50%.",
    },
})

_STANDARD_DOSING = "Use standard dosing per clinical guidelines."

_DOSING_TEXT: Mapping[str, Mapping[str, str]] = MappingProxyType({
    "CODEINE": {
        "Poor Metabolizer": "AVOID codeine. Use alternative analgesics not metabolized by CYP2D6 (e.g., acetaminophen, NSAIDs, morphine at standard doses).",
        "Intermediate Metabolizer": "Use codeine with caution. Monitor for efficacy. Consider alternative analgesics if inadequate response.",
        "Normal Metabolizer": _STANDARD_DOSING,
        "Ultra-rapid Metabolizer": "AVOID codeine. Risk of fatal respiratory depression. Use non-opioid analgesics.",
    },
    "CLOPIDOGREL": {
        "Poor Metabolizer": "AVOID clopidogrel. Use prasugrel or ticagrelor as alternative antiplatelet therapy.",
        "Intermediate Metabolizer": "Consider prasugrel or ticagrelor. If clopidogrel is used, consider platelet function testing.",
        "Normal Metabolizer": _STANDARD_DOSING,
        "Rapid Metabolizer": _STANDARD_DOSING,
        "Ultra-rapid Metabolizer": _STANDARD_DOSING,
    },
    "WARFARIN": {
        "Poor Metabolizer": "Reduce initial dose by 50-80%. Use pharmacogenomic dosing algorithms. Monitor INR closely for 2-3 weeks.",
        "Intermediate Metabolizer": "Reduce initial dose by 20-40%. Monitor INR more frequently during dose titration.",
        "Normal Metabolizer": "Use standard warfarin dosing with routine INR monitoring.",
    },
    "SIMVASTATIN": {
        "Poor Function": "AVOID simvastatin or do not exceed 20mg/day. Use rosuvastatin or pravastatin instead.",
        "Decreased Function": "Use simvastatin at max 20mg/day. Monitor for muscle symptoms. Consider alternative statin.",
        "Normal Function": _STANDARD_DOSING,
    },
    "AZATHIOPRINE": {
        "Deficient TPMT Activity": "Reduce dose by 90% or AVOID. Use alternative immunosuppressant. Monitor CBC weekly for 8 weeks.",
        "Intermediate TPMT Activity": "Reduce starting dose by 30-50%. Monitor CBC every 1-2 weeks for first 2 months.",
        "Normal TPMT Activity": _STANDARD_DOSING,
    },
    "FLUOROURACIL": {
        "Deficient DPD Activity": "CONTRAINDICATED. Use alternative chemotherapy regimen. Fatal toxicity has been reported.",
        "Reduced DPD Activity": "Reduce dose by 25-50%. Monitor closely for GI and hematologic toxicity.",
        "Normal DPD Activity": "Use standard dosing per protocol.",
    },
})

DRUG_ALTERNATIVES: Mapping[str, List[str]] = MappingProxyType({
    "CODEINE": ["Acetaminophen", "Ibuprofen", "Morphine (direct)", "Hydromorphone", "Oxycodone"],
    "CLOPIDOGREL": ["Prasugrel", "Ticagrelor", "Aspirin"],
    "WARFARIN": ["Apixaban", "Rivaroxaban", "Edoxaban", "Dabigatran"],
    "SIMVASTATIN": ["Rosuvastatin", "Pravastatin", "Fluvastatin", "Pitavastatin"],
    "AZATHIOPRINE": ["Mycophenolate mofetil", "Methotrexate", "Cyclosporine"],
    "FLUOROURACIL": ["Capecitabine (also DPYD-dependent)", "Gemcitabine", "Oxaliplatin"],
})

_SEVERE_LEVELS = (RiskLevel.CRITICAL, RiskLevel.HIGH)


# ---------------------------------------------------------------------------
# Label → risk rules
# ---------------------------------------------------------------------------

def _is_ultrarapid(label: str) -> bool:
    return "Ultra-rapid" in label or "Ultrarapid" in label


def determine_risk(gene: str, label: str) -> RiskLevel:
    """Risk level from a phenotype label; first matching rule wins."""
    if "Poor" in label or "Deficient" in label:
        return RiskLevel.CRITICAL
    if "Intermediate" in label or "Reduced" in label or "Decreased" in label:
        return RiskLevel.MODERATE
    if "Normal" in label:
        return RiskLevel.LOW
    if _is_ultrarapid(label):
        return RiskLevel.CRITICAL if gene == "CYP2D6" else RiskLevel.MODERATE
    if "Rapid" in label:
        return RiskLevel.LOW
    return RiskLevel.UNKNOWN


def risk_to_label(drug: str, risk_level: RiskLevel, label: str) -> RiskLabel:
    if risk_level is RiskLevel.LOW:
        return RiskLabel.SAFE
    if risk_level is RiskLevel.MODERATE:
        return RiskLabel.ADJUST_DOSAGE
    if risk_level in _SEVERE_LEVELS:
        if drug == "CODEINE":
            # Ultra-rapid: morphine overdose. Poor: no active metabolite.
            return RiskLabel.TOXIC if _is_ultrarapid(label) else RiskLabel.INEFFECTIVE
        if drug == "CLOPIDOGREL":
            return RiskLabel.INEFFECTIVE
        return RiskLabel.TOXIC
    return RiskLabel.UNKNOWN


def confidence_for(risk_level: RiskLevel) -> int:
    cfg = get_confidence_config()
    return {
        RiskLevel.CRITICAL: cfg.critical,
        RiskLevel.HIGH: cfg.high,
        RiskLevel.MODERATE: cfg.moderate,
        RiskLevel.LOW: cfg.low,
    }.get(risk_level, cfg.unknown)


def _severity_text(drug: str, label: str, risk_level: RiskLevel) -> str:
    if risk_level is RiskLevel.LOW:
        return f"Standard {drug.lower()} response expected with {label}."
    if risk_level is RiskLevel.UNKNOWN:
        return f"Unable to determine risk for {drug} with phenotype: {label}."
    text = _SEVERITY_TEXT.get(drug, {}).get(label)
    return text or f"{risk_level.value} risk for {drug} with {label}. Consult CPIC guidelines."


def _cpic_level(risk_level: RiskLevel) -> str:
    if risk_level in _SEVERE_LEVELS:
        return "Strong"
    if risk_level is RiskLevel.MODERATE:
        return "Moderate"
    return "Optional"


def build_recommendation(drug: str, label: str, risk_level: RiskLevel) -> ClinicalRecommendation:
    dosing = _DOSING_TEXT.get(drug, {}).get(label) or (
        f"Use standard {drug.lower()} dosing. Consult CPIC guidelines for {label}."
    )

    warnings: List[str] = []
    alternatives: List[str] = []
    if risk_level in _SEVERE_LEVELS:
        alternatives = list(DRUG_ALTERNATIVES.get(drug, []))
        warnings.append(
            f"CPIC recommends avoiding or significantly adjusting {drug.lower()} for this phenotype."
        )
    elif risk_level is RiskLevel.MODERATE:
        warnings.append("Dose adjustment recommended. Monitor closely for adverse effects.")

    return ClinicalRecommendation(
        dosing_guidance=dosing,
        alternative_drugs=alternatives,
        warnings=warnings,
        cpic_level=_cpic_level(risk_level),
    )


class RiskEngine:
    """Evaluates pharmacogenomic risk for drug-gene-phenotype combinations."""

    def evaluate_risk(
        self,
        drug: str,
        gene: str,
        phenotype: Phenotype,
    ) -> Tuple[RiskAssessment, ClinicalRecommendation]:
        """
        Evaluate risk and build the recommendation for a drug given the
        patient's phenotype for its primary gene. Never raises for
        unrecognized inputs; those resolve to an Unknown risk.
        """
        drug = normalize_drug_name(drug)
        label = get_phenotype_label(gene, phenotype)
        risk_level = determine_risk(gene, label)

        risk = RiskAssessment(
            risk_level=risk_level,
            risk_label=risk_to_label(drug, risk_level, label),
            confidence_score=confidence_for(risk_level),
            severity=_severity_text(drug, label, risk_level),
        )
        recommendation = build_recommendation(drug, label, risk_level)

        logger.debug("%s/%s %s -> %s (%s)", drug, gene, label, risk.risk_level.value, risk.risk_label.value)
        return risk, recommendation


def create_risk_engine() -> RiskEngine:
    return RiskEngine()


# ---------------------------------------------------------------------------
# Genotype-level overrides
# ---------------------------------------------------------------------------

def override_key(drug: str, gene: str, star_allele: str, genotype: str) -> str:
    """Canonical lookup key shared by the override table and its queries."""
    return f"{normalize_drug_name(drug)}:{gene}:{star_allele.strip()}:{genotype.strip()}"


def _override(level: RiskLevel, label: RiskLabel, severity: str, confidence: int) -> GenotypeOverride:
    return GenotypeOverride(risk_level=level, risk_label=label, severity=severity, confidence=confidence)


_MOD, _CRIT = RiskLevel.MODERATE, RiskLevel.CRITICAL
_ADJUST, _INEFF, _TOXIC = RiskLabel.ADJUST_DOSAGE, RiskLabel.INEFFECTIVE, RiskLabel.TOXIC

_OVERRIDE_ROWS: Sequence[Tuple[str, str, str, str, GenotypeOverride]] = (
    ("CLOPIDOGREL", "CYP2C19", "*2", "0/1", _override(_MOD, _ADJUST, "Heterozygous CYP2C19*2. Intermediate metabolizer. Reduced clopidogrel activation.", 90)),
    ("CLOPIDOGREL", "CYP2C19", "*2", "1/1", _override(_CRIT, _INEFF, "Homozygous CYP2C19*2. Poor metabolizer. Severely impaired clopidogrel activation. Contraindicated.", 98)),
    ("CLOPIDOGREL", "CYP2C19", "*3", "0/1", _override(_MOD, _ADJUST, "Heterozygous CYP2C19*3. Reduced clopidogrel activation.", 90)),
    ("CLOPIDOGREL", "CYP2C19", "*3", "1/1", _override(_CRIT, _INEFF, "Homozygous CYP2C19*3. Severely impaired clopidogrel activation.", 98)),
    ("CODEINE", "CYP2D6", "*4", "0/1", _override(_MOD, _ADJUST, "Heterozygous CYP2D6*4. Reduced codeine-to-morphine conversion.", 90)),
    ("CODEINE", "CYP2D6", "*4", "1/1", _override(_CRIT, _INEFF, "Homozygous CYP2D6*4. No codeine-to-morphine conversion. Drug completely ineffective.", 98)),
    ("CODEINE", "CYP2D6", "*1xN", "0/1", _override(_CRIT, _TOXIC, "CYP2D6 gene duplication (*1xN). Ultra-rapid metabolizer. Risk of morphine overdose and respiratory depression.", 95)),
    ("CODEINE", "CYP2D6", "*1xN", "1/1", _override(_CRIT, _TOXIC, "CYP2D6 gene duplication (homozygous *1xN). Ultra-rapid metabolizer. Severe morphine overdose risk.", 98)),
    ("WARFARIN", "CYP2C9", "*2", "0/1", _override(_MOD, _ADJUST, "Heterozygous CYP2C9*2. Mildly reduced warfarin clearance.", 88)),
    ("WARFARIN", "CYP2C9", "*2", "1/1", _override(_CRIT, _TOXIC, "Homozygous CYP2C9*2. Significantly reduced warfarin clearance. High bleeding risk.", 95)),
    ("WARFARIN", "CYP2C9", "*3", "0/1", _override(_MOD, _ADJUST, "Heterozygous CYP2C9*3. Reduced warfarin clearance.", 90)),
    ("WARFARIN", "CYP2C9", "*3", "1/1", _override(_CRIT, _TOXIC, "Homozygous CYP2C9*3. Severely reduced warfarin clearance. Very high bleeding risk.", 97)),
    ("SIMVASTATIN", "SLCO1B1", "*5", "0/1", _override(_MOD, _ADJUST, "Heterozygous SLCO1B1*5. Decreased function. Elevated myopathy risk.", 88)),
    ("SIMVASTATIN", "SLCO1B1", "*5", "1/1", _override(_CRIT, _TOXIC, "Homozygous SLCO1B1*5. Poor function. High myopathy/rhabdomyolysis risk.", 95)),
    ("AZATHIOPRINE", "TPMT", "*3A", "0/1", _override(_MOD, _ADJUST, "Heterozygous TPMT*3A. Intermediate activity. Reduce dose 30-50%.", 90)),
    ("AZATHIOPRINE", "TPMT", "*3A", "1/1", _override(_CRIT, _TOXIC, "Homozygous TPMT*3A. No TPMT activity. Life-threatening myelosuppression.", 98)),
    ("AZATHIOPRINE", "TPMT", "*3C", "0/1", _override(_MOD, _ADJUST, "Heterozygous TPMT*3C. Intermediate activity.", 90)),
    ("AZATHIOPRINE", "TPMT", "*3C", "1/1", _override(_CRIT, _TOXIC, "Homozygous TPMT*3C. No TPMT activity. Life-threatening myelosuppression.", 98)),
    ("FLUOROURACIL", "DPYD", "*2A", "0/1", _override(_MOD, _ADJUST, "Heterozygous DPYD*2A. Reduced DPD activity. Dose reduction 25-50% required.", 90)),
    ("FLUOROURACIL", "DPYD", "*2A", "1/1", _override(_CRIT, _TOXIC, "Homozygous DPYD*2A. No DPD activity. Fatal toxicity risk. Contraindicated.", 99)),
)

GENOTYPE_OVERRIDES: Mapping[str, GenotypeOverride] = MappingProxyType({
    override_key(drug, gene, star, gt): entry for drug, gene, star, gt, entry in _OVERRIDE_ROWS
})


def get_genotype_override(
    drug: str,
    gene: str,
    variants: Sequence[VariantRecord],
) -> Optional[GenotypeOverride]:
    """
    First matching override among ``gene``'s annotated variants, in input order.

    Each genotype is tried literally, then with phased separators normalized.
    """
    for v in variants:
        if v.gene != gene or not v.star_allele or not v.genotype:
            continue
        for genotype in (v.genotype, v.genotype.replace("|", "/")):
            entry = GENOTYPE_OVERRIDES.get(override_key(drug, gene, v.star_allele, genotype))
            if entry is not None:
                logger.debug("Genotype override %s %s %s for %s", gene, v.star_allele, genotype, drug)
                return entry
    return None


def apply_genotype_override(risk: RiskAssessment, override: Optional[GenotypeOverride]) -> RiskAssessment:
    """
    Replace level, label, severity and confidence with the override's values.
    The recommendation is intentionally left as computed from the phenotype.
    """
    if override is None:
        return risk
    return risk.model_copy(update={
        "risk_level": override.risk_level,
        "risk_label": override.risk_label,
        "severity": override.severity,
        "confidence_score": override.confidence,
    })

"""
Supported drugs and the primary pharmacogene for each.
"""

from types import MappingProxyType
from typing import List, Mapping, NamedTuple, Optional


class DrugInfo(NamedTuple):
    label: str
    gene: str
    description: str


# Insertion order is the order drugs are analyzed and reported in.
DRUG_DETAILS: Mapping[str, DrugInfo] = MappingProxyType({
    "CODEINE": DrugInfo("Codeine", "CYP2D6", "Opioid analgesic"),
    "WARFARIN": DrugInfo("Warfarin", "CYP2C9", "Anticoagulant"),
    "CLOPIDOGREL": DrugInfo("Clopidogrel", "CYP2C19", "Antiplatelet"),
    "SIMVASTATIN": DrugInfo("Simvastatin", "SLCO1B1", "Statin / Lipid-lowering"),
    "AZATHIOPRINE": DrugInfo("Azathioprine", "TPMT", "Immunosuppressant"),
    "FLUOROURACIL": DrugInfo("5-Fluorouracil", "DPYD", "Chemotherapy"),
})

SUPPORTED_DRUGS: List[str] = list(DRUG_DETAILS)
SUPPORTED_GENES: List[str] = ["CYP2D6", "CYP2C19", "CYP2C9", "SLCO1B1", "TPMT", "DPYD"]


def normalize_drug_name(drug: str) -> str:
    return drug.strip().upper()


def is_supported_drug(drug: str) -> bool:
    return normalize_drug_name(drug) in DRUG_DETAILS


def is_supported_gene(gene: str) -> bool:
    return gene in SUPPORTED_GENES


def get_primary_gene(drug: str) -> Optional[str]:
    """Primary gene for ``drug`` (case-insensitive), or None if unsupported."""
    info = DRUG_DETAILS.get(normalize_drug_name(drug))
    return info.gene if info else None

"""
Gene-specific phenotype terminology.

CYP genes use "Metabolizer" wording, TPMT and DPYD report enzyme activity and
SLCO1B1 reports transporter function. Every component that needs a label for
a (gene, phenotype) pair goes through ``get_phenotype_label``.
"""

from types import MappingProxyType
from typing import Mapping, Union

from .models import Phenotype

METABOLIZER_LABELS: Mapping[Phenotype, str] = MappingProxyType({
    Phenotype.PM: "Poor Metabolizer",
    Phenotype.IM: "Intermediate Metabolizer",
    Phenotype.NM: "Normal Metabolizer",
    Phenotype.RM: "Rapid Metabolizer",
    Phenotype.URM: "Ultra-rapid Metabolizer",
})

_GENE_LABELS: Mapping[str, Mapping[Phenotype, str]] = MappingProxyType({
    "TPMT": {
        Phenotype.PM: "Deficient TPMT Activity",
        Phenotype.IM: "Intermediate TPMT Activity",
        Phenotype.NM: "Normal TPMT Activity",
        Phenotype.RM: "Normal TPMT Activity",
        Phenotype.URM: "Normal TPMT Activity",
    },
    "DPYD": {
        Phenotype.PM: "Deficient DPD Activity",
        Phenotype.IM: "Reduced DPD Activity",
        Phenotype.NM: "Normal DPD Activity",
        Phenotype.RM: "Normal DPD Activity",
        Phenotype.URM: "Normal DPD Activity",
    },
    "SLCO1B1": {
        Phenotype.PM: "Poor Function",
        Phenotype.IM: "Decreased Function",
        Phenotype.NM: "Normal Function",
        Phenotype.RM: "Normal Function",
        Phenotype.URM: "Normal Function",
    },
})

# Labels used when a diplotype is resolved from zygosity alone
FALLBACK_LABELS: Mapping[Phenotype, str] = MappingProxyType({
    Phenotype.NM: "Normal Function",
    Phenotype.IM: "Reduced Function",
    Phenotype.PM: "Poor Function",
})


def get_phenotype_label(gene: str, phenotype: Union[Phenotype, str]) -> str:
    """
    Human-readable label for ``phenotype`` in ``gene``'s terminology.

    Codes outside the five known phenotypes are returned verbatim.
    """
    try:
        code = Phenotype(phenotype)
    except ValueError:
        return str(phenotype)
    labels = _GENE_LABELS.get(gene, METABOLIZER_LABELS)
    return labels[code]

"""
Static CPIC-derived lookup tables.

- DIPLOTYPE_PHENOTYPES: gene → canonical diplotype → phenotype
- ALLELE_ACTIVITY: gene → star allele → activity value

Diplotype keys are canonicalized with ``normalize_diplotype`` when the table is
built, so each pair is listed once in whichever order reads naturally.
"""

from types import MappingProxyType
from typing import Dict, Iterable, Mapping

from .alleles import normalize_diplotype
from .models import Phenotype

PM, IM, NM, RM, URM = Phenotype.PM, Phenotype.IM, Phenotype.NM, Phenotype.RM, Phenotype.URM


def _diplotypes(groups: Mapping[Phenotype, Iterable[str]]) -> Mapping[str, Phenotype]:
    table: Dict[str, Phenotype] = {}
    for phenotype, diplotypes in groups.items():
        for diplotype in diplotypes:
            key = normalize_diplotype(diplotype)
            if key in table and table[key] is not phenotype:
                raise ValueError(f"Conflicting phenotype for diplotype {key}")
            table[key] = phenotype
    return MappingProxyType(table)


# ============================================================================
# Diplotype → phenotype
# ============================================================================

DIPLOTYPE_PHENOTYPES: Mapping[str, Mapping[str, Phenotype]] = MappingProxyType({
    "TPMT": _diplotypes({
        NM: ["*1/*1"],
        IM: ["*1/*2", "*1/*3", "*1/*3A", "*1/*3B", "*1/*3C"],
        PM: [
            "*2/*3", "*2/*3A", "*2/*3B", "*2/*3C", "*2/*2",
            "*3/*3", "*3A/*3A", "*3A/*3B", "*3A/*3C",
            "*3B/*3B", "*3B/*3C", "*3C/*3C",
        ],
    }),
    "CYP2C9": _diplotypes({
        NM: ["*1/*1"],
        IM: ["*1/*2", "*1/*3", "*2/*2"],
        PM: ["*2/*3", "*3/*3"],
    }),
    "CYP2D6": _diplotypes({
        NM: ["*1/*1", "*1xN/*41"],
        IM: [
            "*1/*4", "*1/*5", "*1/*6", "*1/*9", "*1/*10", "*1/*17", "*1/*29", "*1/*41",
            "*10/*41", "*41/*41", "*9/*41", "*10/*17", "*1xN/*4",
        ],
        PM: [
            "*4/*4", "*5/*5", "*6/*6", "*10/*10",
            "*4/*5", "*4/*6", "*4/*10", "*4/*41",
            "*5/*6", "*5/*10", "*5/*41", "*6/*10", "*6/*41",
        ],
        URM: ["*1/*1xN", "*1xN/*1xN", "*2/*2xN"],
    }),
    "CYP2C19": _diplotypes({
        NM: ["*1/*1"],
        IM: ["*1/*2", "*1/*3", "*1/*4", "*2/*17", "*3/*17"],
        PM: ["*2/*2", "*3/*3", "*2/*3", "*2/*4", "*3/*4", "*4/*4"],
        RM: ["*1/*17"],
        URM: ["*17/*17"],
    }),
    "SLCO1B1": _diplotypes({
        NM: ["*1/*1", "*1/*1a", "*1/*1b", "*1a/*1a", "*1a/*1b", "*1b/*1b", "*1/*37"],
        IM: ["*1/*5", "*1a/*5", "*1b/*5", "*1/*15", "*1a/*15", "*1b/*15"],
        PM: ["*5/*5", "*15/*15", "*5/*15"],
    }),
    "DPYD": _diplotypes({
        NM: ["*1/*1"],
        IM: ["*1/*2A", "*1/*13", "*1/c.2846A>T", "*1/HapB3"],
        PM: [
            "*2A/*2A", "*13/*13", "*2A/*13",
            "*2A/c.2846A>T", "*13/c.2846A>T",
            "*2A/HapB3", "*13/HapB3",
            "HapB3/HapB3", "c.2846A>T/HapB3", "c.2846A>T/c.2846A>T",
        ],
    }),
})


# ============================================================================
# Allele activity values
# ============================================================================

ALLELE_ACTIVITY: Mapping[str, Mapping[str, float]] = MappingProxyType({
    "CYP2D6": MappingProxyType({
        "*1": 1.0, "*2": 1.0, "*4": 0.0, "*5": 0.0, "*6": 0.0,
        "*9": 0.5, "*10": 0.25, "*17": 0.5, "*29": 0.5, "*41": 0.5,
        "*1xN": 2.0, "*2xN": 2.0, "*4xN": 0.0,
    }),
    "CYP2C19": MappingProxyType({
        "*1": 1.0, "*2": 0.0, "*3": 0.0, "*4": 0.0, "*17": 1.5,
    }),
    "CYP2C9": MappingProxyType({
        "*1": 1.0, "*2": 0.5, "*3": 0.0, "*5": 0.0, "*6": 0.0,
    }),
    "SLCO1B1": MappingProxyType({
        "*1": 1.0, "*1a": 1.0, "*1b": 1.0, "*5": 0.0, "*15": 0.0, "*37": 1.0,
    }),
    "TPMT": MappingProxyType({
        "*1": 1.0, "*2": 0.0, "*3": 0.0, "*3A": 0.0, "*3B": 0.0, "*3C": 0.0,
    }),
    "DPYD": MappingProxyType({
        "*1": 1.0, "*2A": 0.0, "*13": 0.0, "c.2846A>T": 0.5, "HapB3": 0.5,
    }),
})


def score_to_phenotype(gene: str, score: float) -> Phenotype:
    """Translate a summed activity score into a phenotype using gene thresholds."""
    if gene == "CYP2D6":
        if score == 0:
            return PM
        if score < 1.25:
            return IM
        if score <= 2.25:
            return NM
        return URM

    if gene == "CYP2C19":
        if score == 0:
            return PM
        if score < 1.0:
            return IM
        if score <= 1.25:
            return NM
        if score < 2.0:
            return RM
        return URM

    if score == 0:
        return PM
    if score < 1.0:
        return IM
    return NM

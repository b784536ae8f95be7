"""
Explanation Service: template-based, CPIC-aligned narrative for a result.

Produces a clinician summary, a mechanism paragraph, patient-friendly text and
citations for a (drug, gene, phenotype, diplotype) tuple. Pure function of its
inputs; no network access.
"""
import logging
from types import MappingProxyType
from typing import Dict, List, Mapping, NamedTuple, Union

from pharmaguard.schemas.pharma_schema import AIExplanation
from pharmaguard.services.pharmacogenomics.drug_catalog import normalize_drug_name
from pharmaguard.services.pharmacogenomics.models import Phenotype
from pharmaguard.services.pharmacogenomics.terminology import METABOLIZER_LABELS

logger = logging.getLogger(__name__)


BASE_CITATIONS: List[str] = [
    "CPIC Guidelines - Clinical Pharmacogenetics Implementation Consortium. https://cpicpgx.org/guidelines/",
    "PharmGKB - Pharmacogenomics Knowledge Base. https://www.pharmgkb.org/",
    "PharmVar - Pharmacogene Variation Consortium. https://www.pharmvar.org/",
]


class ExplanationTemplate(NamedTuple):
    summary: str
    mechanism: str
    patient_friendly: str
    guideline: str


# ── Per drug-gene templates ──────────────────────────────────────────────
TEMPLATES: Mapping[tuple, ExplanationTemplate] = MappingProxyType({
    ("CODEINE", "CYP2D6"): ExplanationTemplate(
        summary=(
            "CYP2D6 {phenotype_label} status detected. CYP2D6 is the primary enzyme responsible for "
            "converting codeine (a prodrug) into its active metabolite morphine. {risk_explanation}"
        ),
        mechanism=(
            "Codeine undergoes O-demethylation by hepatic CYP2D6 to form morphine, which is the primary "
            "analgesic metabolite. The CYP2D6 gene is highly polymorphic, with over 100 known allelic variants. "
            "The detected diplotype {diplotype} results in {phenotype_label} status with an activity score that "
            "{activity_explanation}. This directly impacts the rate and extent of codeine-to-morphine conversion, "
            "{clinical_consequence}."
        ),
        patient_friendly=(
            "Your body uses an enzyme called CYP2D6 to convert codeine into morphine, which is the part of the "
            "drug that actually relieves pain. Your genetic test shows you are a {phenotype_label}, which means "
            "{patient_explanation}. {patient_action}"
        ),
        guideline=(
            "Crews KR, et al. Clinical Pharmacogenetics Implementation Consortium Guidelines for Cytochrome P450 "
            "2D6 Genotype and Codeine Therapy: 2014 update. Clin Pharmacol Ther. 2014;95(4):376-382."
        ),
    ),
    ("CLOPIDOGREL", "CYP2C19"): ExplanationTemplate(
        summary=(
            "CYP2C19 {phenotype_label} status detected. CYP2C19 is the primary enzyme responsible for "
            "activating clopidogrel. {risk_explanation}"
        ),
        mechanism=(
            "Clopidogrel is a prodrug that requires two sequential CYP-dependent oxidation steps for activation, "
            "with CYP2C19 playing the primary role. The detected diplotype {diplotype} results in "
            "{phenotype_label} status, {activity_explanation}. {clinical_consequence}."
        ),
        patient_friendly=(
            "Clopidogrel is a blood thinner that needs to be activated by your body before it can work. Your "
            "genetic test shows you are a {phenotype_label} for the enzyme CYP2C19, which means "
            "{patient_explanation}. {patient_action}"
        ),
        guideline=(
            "Scott SA, et al. Clinical Pharmacogenetics Implementation Consortium Guidelines for CYP2C19 "
            "Genotype and Clopidogrel Therapy: 2013 update. Clin Pharmacol Ther. 2013;94(3):317-323."
        ),
    ),
    ("WARFARIN", "CYP2C9"): ExplanationTemplate(
        summary=(
            "CYP2C9 {phenotype_label} status detected. CYP2C9 metabolizes the more potent S-enantiomer of "
            "warfarin. {risk_explanation}"
        ),
        mechanism=(
            "Warfarin is administered as a racemic mixture. The S-enantiomer is 3-5 times more potent than the "
            "R-enantiomer and is primarily metabolized by CYP2C9. The detected diplotype {diplotype} results in "
            "{phenotype_label} status, {activity_explanation}. {clinical_consequence}."
        ),
        patient_friendly=(
            "Warfarin is a blood thinner used to prevent blood clots. Your body breaks down warfarin using an "
            "enzyme called CYP2C9. Your genetic test shows you are a {phenotype_label}, which means "
            "{patient_explanation}. {patient_action}"
        ),
        guideline=(
            "Johnson JA, et al. Clinical Pharmacogenetics Implementation Consortium (CPIC) Guidelines for "
            "Pharmacogenetics-Guided Warfarin Dosing: 2017 Update. Clin Pharmacol Ther. 2017;102(3):397-404."
        ),
    ),
    ("SIMVASTATIN", "SLCO1B1"): ExplanationTemplate(
        summary=(
            "SLCO1B1 {phenotype_label} status detected. SLCO1B1 encodes the hepatic uptake transporter OATP1B1, "
            "which facilitates simvastatin acid uptake into the liver. {risk_explanation}"
        ),
        mechanism=(
            "SLCO1B1 encodes the organic anion transporting polypeptide 1B1 (OATP1B1), a hepatic influx "
            "transporter critical for simvastatin lactone and acid uptake into hepatocytes. The detected "
            "diplotype {diplotype} results in {phenotype_label} transporter function, {activity_explanation}. "
            "{clinical_consequence}."
        ),
        patient_friendly=(
            "Simvastatin is a cholesterol-lowering medication. Your body uses a transporter protein called "
            "OATP1B1 to move this drug into your liver where it works. Your genetic test shows you have "
            "{phenotype_label} transporter function, which means {patient_explanation}. {patient_action}"
        ),
        guideline=(
            "Ramsey LB, et al. The Clinical Pharmacogenetics Implementation Consortium Guideline for SLCO1B1 and "
            "Simvastatin-Induced Myopathy: 2014 Update. Clin Pharmacol Ther. 2014;96(4):423-428."
        ),
    ),
    ("AZATHIOPRINE", "TPMT"): ExplanationTemplate(
        summary=(
            "TPMT {phenotype_label} status detected. TPMT is a key enzyme in the metabolism of thiopurine drugs "
            "including azathioprine. {risk_explanation}"
        ),
        mechanism=(
            "Azathioprine is converted to 6-mercaptopurine (6-MP), which undergoes competing metabolic pathways. "
            "TPMT catalyzes S-methylation of 6-MP, diverting it away from cytotoxic thioguanine nucleotide (TGN) "
            "formation. The detected diplotype {diplotype} results in {phenotype_label} TPMT activity, "
            "{activity_explanation}. {clinical_consequence}."
        ),
        patient_friendly=(
            "Azathioprine is an immunosuppressant medication. Your body uses an enzyme called TPMT to break it "
            "down. Your genetic test shows you are a {phenotype_label}, which means {patient_explanation}. "
            "{patient_action}"
        ),
        guideline=(
            "Relling MV, et al. Clinical Pharmacogenetics Implementation Consortium Guidelines for Thiopurine "
            "Methyltransferase Genotype and Thiopurine Dosing: 2013 Update. Clin Pharmacol Ther. "
            "2013;93(4):324-325."
        ),
    ),
    ("FLUOROURACIL", "DPYD"): ExplanationTemplate(
        summary=(
            "DPYD {phenotype_label} status detected. Dihydropyrimidine dehydrogenase (DPD), encoded by DPYD, is "
            "the rate-limiting enzyme in fluoropyrimidine catabolism. {risk_explanation}"
        ),
        mechanism=(
            "Dihydropyrimidine dehydrogenase (DPD) is the initial and rate-limiting enzyme in the catabolism of "
            "5-fluorouracil, responsible for degrading >80% of administered dose. The detected diplotype "
            "{diplotype} results in {phenotype_label} DPD activity, {activity_explanation}. "
            "{clinical_consequence}."
        ),
        patient_friendly=(
            "5-Fluorouracil (5-FU) is a chemotherapy drug. Your body uses an enzyme called DPD to break down this "
            "drug after it does its job. Your genetic test shows you are a {phenotype_label}, which means "
            "{patient_explanation}. {patient_action}"
        ),
        guideline=(
            "Amstutz U, et al. Clinical Pharmacogenetics Implementation Consortium (CPIC) Guideline for "
            "Dihydropyrimidine Dehydrogenase Genotype and Fluoropyrimidine Dosing: 2017 Update. Clin Pharmacol "
            "Ther. 2018;103(2):210-216."
        ),
    ),
})


# ── Phenotype-specific phrases ───────────────────────────────────────────
_RISK_EXPLANATION = {
    Phenotype.PM: "This patient has significantly reduced or absent enzyme activity, which substantially impacts {drug} metabolism and clinical outcomes.",
    Phenotype.IM: "This patient has reduced enzyme activity, which may moderately impact {drug} metabolism and clinical response.",
    Phenotype.NM: "This patient has normal enzyme activity. Standard {drug} metabolism and clinical response are expected.",
    Phenotype.RM: "This patient has increased enzyme activity, which may result in enhanced {drug} metabolism.",
    Phenotype.URM: "This patient has significantly increased enzyme activity, which may substantially alter {drug} metabolism and increase risk of adverse effects.",
}

_ACTIVITY_EXPLANATION = {
    Phenotype.PM: "indicating absent or severely reduced enzymatic activity",
    Phenotype.IM: "indicating reduced enzymatic activity compared to normal metabolizers",
    Phenotype.NM: "indicating normal enzymatic activity",
    Phenotype.RM: "indicating increased enzymatic activity above the normal range",
    Phenotype.URM: "indicating significantly elevated enzymatic activity",
}

_CLINICAL_CONSEQUENCE = {
    Phenotype.PM: "This significantly alters the pharmacokinetics of {drug}, requiring major dosing adjustments or drug avoidance.",
    Phenotype.IM: "This may result in altered {drug} pharmacokinetics, potentially requiring dosing modifications.",
    Phenotype.NM: "Standard pharmacokinetics of {drug} are expected, and standard dosing is appropriate.",
    Phenotype.RM: "Enhanced metabolism of {drug} may result in altered drug exposure.",
    Phenotype.URM: "Significantly enhanced metabolism of {drug} may result in dangerous changes in drug exposure.",
}

_PATIENT_EXPLANATION = {
    Phenotype.PM: "your body breaks down this medication much more slowly than most people, or cannot break it down at all",
    Phenotype.IM: "your body breaks down this medication somewhat more slowly than most people",
    Phenotype.NM: "your body processes this medication at a normal rate",
    Phenotype.RM: "your body breaks down this medication faster than most people",
    Phenotype.URM: "your body breaks down this medication much faster than most people",
}

_PATIENT_ACTION = {
    Phenotype.PM: "Your doctor may need to use a different medication or a much lower dose. Do not change your medication without consulting your healthcare provider.",
    Phenotype.IM: "Your doctor may consider adjusting your dose or monitoring you more closely. Discuss this result with your healthcare provider.",
    Phenotype.NM: "Standard dosing should work well for you. Continue taking your medication as prescribed.",
    Phenotype.RM: "Your doctor may want to monitor your response more closely. Discuss this result with your healthcare provider.",
    Phenotype.URM: "Your doctor may need to use a different medication. This result is important to share with all your healthcare providers.",
}


def _phrases(phenotype: Phenotype, drug: str, diplotype: str) -> Dict[str, str]:
    drug_lower = drug.lower()
    return {
        "phenotype_label": METABOLIZER_LABELS[phenotype],
        "diplotype": diplotype,
        "risk_explanation": _RISK_EXPLANATION[phenotype].format(drug=drug_lower),
        "activity_explanation": _ACTIVITY_EXPLANATION[phenotype],
        "clinical_consequence": _CLINICAL_CONSEQUENCE[phenotype].format(drug=drug_lower),
        "patient_explanation": _PATIENT_EXPLANATION[phenotype],
        "patient_action": _PATIENT_ACTION[phenotype],
    }


def generate_explanation(
    drug: str,
    gene: str,
    phenotype: Union[Phenotype, str],
    diplotype: str,
) -> AIExplanation:
    """Fill the drug-gene template; unknown pairs get a generic explanation."""
    drug = normalize_drug_name(drug)
    phenotype = Phenotype(phenotype)
    label = METABOLIZER_LABELS[phenotype]

    template = TEMPLATES.get((drug, gene))
    if template is None:
        logger.debug("No explanation template for %s-%s", drug, gene)
        return AIExplanation(
            summary=f"{gene} {label} status detected for {drug}. Consult CPIC guidelines for specific recommendations.",
            mechanism=f"No detailed mechanism template available for {drug}-{gene} interaction.",
            patient_friendly=(
                f"Your genetic test found a result that may affect how your body processes {drug}. "
                "Please discuss with your doctor."
            ),
            citations=list(BASE_CITATIONS),
        )

    phrases = _phrases(phenotype, drug, diplotype)
    return AIExplanation(
        summary=template.summary.format(**phrases),
        mechanism=template.mechanism.format(**phrases),
        patient_friendly=template.patient_friendly.format(**phrases),
        citations=BASE_CITATIONS + [template.guideline],
    )

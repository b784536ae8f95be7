import logging
from typing import List, Optional

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile, status

from pharmaguard.core.config import get_parser_config, get_pipeline_config
from pharmaguard.schemas.pharma_schema import (
    AnalysisErrorResponse,
    AnalysisResult,
    DrugInfoResponse,
    MultiDrugAnalysisResult,
    ResultsSummary,
)
from pharmaguard.services.pharmacogenomics.drug_catalog import DRUG_DETAILS, SUPPORTED_DRUGS
from pharmaguard.services.pipeline.analysis_pipeline import (
    NoVariantsError,
    UnsupportedDrugError,
    run_analysis_pipeline,
    sort_results_by_severity,
    summarize_results,
)
from pharmaguard.services.pipeline.analysis_store import AnalysisSessionRegistry
from pharmaguard.services.vcf.parser import VcfParseError

router = APIRouter()
logger = logging.getLogger(__name__)


def _error(status_code: int, error: str, code: str, details: Optional[str] = None) -> HTTPException:
    payload = AnalysisErrorResponse(error=error, code=code, details=details)
    return HTTPException(status_code=status_code, detail=payload.model_dump(exclude_none=True))


def _sessions(request: Request) -> AnalysisSessionRegistry:
    return request.app.state.analysis_sessions


async def _validate_vcf_upload(vcf_file: Optional[UploadFile]) -> None:
    """Check the upload's presence, size and extension, then rewind it."""
    if vcf_file is None:
        raise _error(status.HTTP_400_BAD_REQUEST, "No VCF file uploaded", "MISSING_FILE")

    content = await vcf_file.read()
    limit = get_parser_config().max_file_size_bytes
    if len(content) > limit:
        raise _error(
            status.HTTP_400_BAD_REQUEST,
            "File exceeds 5MB size limit",
            "FILE_TOO_LARGE",
            f"File size: {len(content) / (1024 * 1024):.2f}MB",
        )

    filename = (vcf_file.filename or "").lower()
    if not filename.endswith(tuple(get_pipeline_config().allowed_extensions)):
        raise _error(status.HTTP_400_BAD_REQUEST, "Invalid file type. Please upload a .vcf file.", "INVALID_VCF")

    await vcf_file.seek(0)


async def _run(vcf_file: UploadFile, drugs: Optional[List[str]]) -> MultiDrugAnalysisResult:
    """Run the pipeline, translating typed failures into HTTP errors."""
    try:
        return await run_analysis_pipeline(vcf_file, drugs)
    except VcfParseError as e:
        logger.warning("Rejected VCF upload: %s", e)
        raise _error(status.HTTP_400_BAD_REQUEST, e.error, e.code, e.details)
    except (NoVariantsError, UnsupportedDrugError) as e:
        logger.warning("Rejected analysis request: %s", e)
        raise _error(status.HTTP_400_BAD_REQUEST, e.error, e.code, e.details)
    except Exception as e:
        logger.exception("Unexpected error in analysis pipeline")
        raise _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "An unexpected error occurred during analysis",
            "PARSE_ERROR",
            str(e) or type(e).__name__,
        )


@router.post(
    "/analyze-all",
    response_model=MultiDrugAnalysisResult,
    status_code=status.HTTP_200_OK,
    summary="Analyze All Supported Drugs",
    description="Upload a VCF file to receive a pharmacogenomic risk assessment for every supported drug.",
)
async def analyze_all(
    request: Request,
    vcf_file: Optional[UploadFile] = File(None, alias="vcfFile", description="Patient's VCF file"),
    session_id: Optional[str] = Form(None, description="Store the result under this session id"),
) -> MultiDrugAnalysisResult:
    await _validate_vcf_upload(vcf_file)
    result = await _run(vcf_file, None)

    if session_id:
        _sessions(request).get(session_id).set_multi_drug_result(result)
    return result


@router.post(
    "/analyze",
    response_model=AnalysisResult,
    status_code=status.HTTP_200_OK,
    summary="Analyze One Drug",
    description="Upload a VCF file and name a drug to receive its pharmacogenomic risk assessment.",
)
async def analyze_single(
    request: Request,
    drug: str = Form(..., description="Drug to analyze (e.g., Clopidogrel)"),
    vcf_file: Optional[UploadFile] = File(None, alias="vcfFile", description="Patient's VCF file"),
    session_id: Optional[str] = Form(None, description="Store the result under this session id"),
) -> AnalysisResult:
    if not drug.strip():
        raise _error(
            status.HTTP_400_BAD_REQUEST,
            "Unsupported drug",
            "UNSUPPORTED_DRUG",
            f"Supported drugs: {', '.join(SUPPORTED_DRUGS)}. Received a blank drug name.",
        )

    await _validate_vcf_upload(vcf_file)
    result = (await _run(vcf_file, [drug])).results[0]

    if session_id:
        _sessions(request).get(session_id).set_selected_drug(result)
    return result


@router.get("/drugs", response_model=List[DrugInfoResponse])
async def list_drugs() -> List[DrugInfoResponse]:
    """Supported drugs and the gene each one is analyzed against."""
    return [
        DrugInfoResponse(drug=drug, label=info.label, gene=info.gene, description=info.description)
        for drug, info in DRUG_DETAILS.items()
    ]


@router.get("/results/{session_id}", response_model=MultiDrugAnalysisResult)
async def get_results(session_id: str, request: Request, sort: bool = False) -> MultiDrugAnalysisResult:
    """Stored multi-drug result for a session, optionally sorted most-severe first."""
    store = _sessions(request).peek(session_id)
    result = store.get_multi_drug_result() if store else None
    if result is None:
        raise _error(status.HTTP_404_NOT_FOUND, "No analysis stored for this session", "NOT_FOUND")
    if sort:
        result = result.model_copy(update={"results": sort_results_by_severity(result.results)})
    return result


@router.get("/results/{session_id}/summary", response_model=ResultsSummary)
async def get_results_summary(session_id: str, request: Request) -> ResultsSummary:
    store = _sessions(request).peek(session_id)
    result = store.get_multi_drug_result() if store else None
    if result is None:
        raise _error(status.HTTP_404_NOT_FOUND, "No analysis stored for this session", "NOT_FOUND")
    return summarize_results(result)


@router.get("/results/{session_id}/{drug}", response_model=AnalysisResult)
async def get_drug_result(session_id: str, drug: str, request: Request) -> AnalysisResult:
    """Select one drug from the stored multi-drug result."""
    store = _sessions(request).peek(session_id)
    selected = store.select_drug(drug) if store else None
    if selected is None:
        raise _error(status.HTTP_404_NOT_FOUND, f"No stored result for {drug.upper()}", "NOT_FOUND")
    return selected


@router.delete("/results/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def clear_results(session_id: str, request: Request):
    if not _sessions(request).drop(session_id):
        raise _error(status.HTTP_404_NOT_FOUND, "No analysis stored for this session", "NOT_FOUND")

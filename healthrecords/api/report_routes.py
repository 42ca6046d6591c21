"""API routes for report viewing and management."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query
from fastapi.responses import JSONResponse

from .dependencies import get_dc_client, get_signer
from ..core.dc_client import DiagnosticCenterClient
from ..core.range_evaluator import evaluate
from ..core.report_classifier import classify_report
from ..core.report_normalizer import normalize_report
from ..core.report_store import ReportStore
from ..core.report_view import build_report_view
from ..core.signed_url_cache import SignedUrlCache
from ..schemas.request_schemas import (
    AcceptSharedReportRequest,
    EvaluateParameterRequest,
    RejectReportRequest,
    ReportViewRequest,
)
from ..schemas.response_schemas import DataResponse, ErrorResponse, ListResponse, ParameterEvaluation
from ..utils.error_utils import MissingFieldError
from ..utils.log_utils import api_logger

router = APIRouter(
    prefix="/api/reports",
    tags=["reports"],
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)


def _created_response(report: Dict[str, Any], created: bool, created_message: str, existing_message: str) -> JSONResponse:
    response = DataResponse(data=report, message=created_message if created else existing_message)
    return JSONResponse(status_code=201 if created else 200, content=response.model_dump(mode="json"))


@router.post("/view", response_model=DataResponse)
async def view_report(
    request: ReportViewRequest,
    signer: SignedUrlCache = Depends(get_signer),
    dc_client: DiagnosticCenterClient = Depends(get_dc_client),
):
    """
    Assemble a report for display.

    - **report**: Report record in any stored shape
    - **viewerPhone**: Phone number of the viewing user
    """
    if not request.report:
        raise MissingFieldError("report is required", code="MISSING_REPORT")

    view = await build_report_view(request.report, request.viewerPhone, signer=signer, dc_client=dc_client)
    return DataResponse(data=view)


@router.post("/classify", response_model=DataResponse)
async def classify(request: ReportViewRequest):
    """Classify a report's origin and presentation mode."""
    classification = classify_report(normalize_report(request.report or {}), request.viewerPhone)
    return DataResponse(data=classification.to_dict())


@router.post("/evaluateParameter", response_model=DataResponse)
async def evaluate_parameter(request: EvaluateParameterRequest):
    """Evaluate one lab parameter against its reference ranges."""
    if request.parameter is None:
        raise MissingFieldError("parameter is required", code="MISSING_PARAMETER")

    result = evaluate(request.parameter)
    return DataResponse(data=ParameterEvaluation(
        status=result.status,
        displayRange=result.display_range,
        color=result.color,
    ).model_dump())


@router.post("/insertReport", response_model=DataResponse, status_code=201)
async def insert_report(data: Dict[str, Any] = Body(...)):
    """
    Store a new report.

    Reports that copy an already accepted shared report are returned as they
    are with status 200.
    """
    report, created = await ReportStore.insert_report(data)
    return _created_response(report, created, "Report created successfully", "Report already accepted")


@router.put("/updateReport", response_model=DataResponse)
async def update_report(id: Optional[str] = Query(None), changes: Dict[str, Any] = Body(...)):
    """
    Update a report.

    - **id**: Report ID, as query parameter or ``id`` in the body
    """
    report_id = id or changes.get("id")
    if not report_id:
        raise MissingFieldError(
            "Report ID is required (provide as query parameter ?id= or in request body)",
            code="MISSING_REPORT_ID",
        )

    report = await ReportStore.update_report(report_id, changes)
    return DataResponse(data=report, message="Report updated successfully")


@router.delete("/deleteReport", response_model=DataResponse)
async def delete_report(id: Optional[str] = Query(None)):
    if not id:
        raise MissingFieldError("Report ID is required", code="MISSING_REPORT_ID")

    await ReportStore.delete_report(id)
    return DataResponse(data={"id": id}, message="Report deleted successfully")


@router.get("/getReports", response_model=ListResponse)
async def get_reports(userId: Optional[str] = Query(None), status: Optional[str] = Query(None)):
    """List a user's reports, newest first."""
    reports = await ReportStore.list_reports(userId, status)
    return ListResponse(data=reports, count=len(reports))


@router.post("/acceptSharedReport", response_model=DataResponse, status_code=201)
async def accept_shared_report(request: AcceptSharedReportRequest):
    """
    Accept a shared report into the user's own records.

    - **report**: The shared report
    - **userId**: Phone number of the accepting user
    """
    report, created = await ReportStore.accept_shared_report(request.report, request.userId)
    api_logger.info(f"Shared report accepted for {request.userId} (created={created})")
    return _created_response(report, created, "Report accepted successfully", "Report already accepted")


@router.post("/reject", response_model=DataResponse)
async def reject_report(request: RejectReportRequest, dc_client: DiagnosticCenterClient = Depends(get_dc_client)):
    """
    Reject a report shared by a diagnostic center.

    - **reportId**: DC report ID
    - **userContact**: Phone number of the rejecting user
    """
    if not request.reportId or not request.userContact:
        raise MissingFieldError("reportId and userContact are required in request body", code="MISSING_REQUIRED_FIELDS")

    result = await dc_client.reject_report(request.reportId, request.userContact)
    return DataResponse(data=result, message="Report rejected successfully")

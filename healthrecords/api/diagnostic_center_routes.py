"""API routes proxying diagnostic center lookups."""

from fastapi import APIRouter, Depends

from .dependencies import get_dc_client
from ..core.dc_client import DiagnosticCenterClient
from ..schemas.request_schemas import BranchDetailsRequest, DCDetailsRequest, PathologistDetailsRequest
from ..schemas.response_schemas import DataResponse, ErrorResponse
from ..utils.error_utils import MissingFieldError, NotFoundError
from ..utils.log_utils import dc_logger

router = APIRouter(
    prefix="/api/diagnosticCenter",
    tags=["diagnostic-center"],
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)


@router.post("/getDCDetails", response_model=DataResponse)
async def get_dc_details(request: DCDetailsRequest, dc_client: DiagnosticCenterClient = Depends(get_dc_client)):
    """
    Get diagnostic center details.

    - **dcId**: Diagnostic center ID
    """
    if not request.dcId:
        raise MissingFieldError("dcId is required in request body", code="MISSING_DC_ID")

    details = await dc_client.get_dc_details(request.dcId)
    dc_logger.info(f"Fetched diagnostic center {request.dcId}")
    return DataResponse(data=details.model_dump())


@router.post("/getBranchDetails", response_model=DataResponse)
async def get_branch_details(request: BranchDetailsRequest, dc_client: DiagnosticCenterClient = Depends(get_dc_client)):
    """
    Get branch details.

    - **branchId**: Branch ID
    """
    if not request.branchId:
        raise MissingFieldError("branchId is required in request body", code="MISSING_BRANCH_ID")

    details = await dc_client.get_branch_details(request.branchId)
    return DataResponse(data=details.model_dump())


@router.post("/getPathologistDetails", response_model=DataResponse)
async def get_pathologist_details(request: PathologistDetailsRequest, dc_client: DiagnosticCenterClient = Depends(get_dc_client)):
    """
    Get pathologist details by ID, or from a branch's pathologists.

    - **pathologistId**: Pathologist ID
    - **branchId**: Branch to search when no ID is known
    - **pathologistName**: Name to match within the branch
    """
    if not request.pathologistId and not request.branchId:
        raise MissingFieldError("Either pathologistId or branchId is required", code="MISSING_PARAMS")

    details = await dc_client.get_pathologist_details(
        request.pathologistId,
        request.branchId,
        request.pathologistName,
    )
    return DataResponse(data=details.model_dump())


@router.post("/getDCName", response_model=DataResponse)
async def get_dc_name(request: DCDetailsRequest, dc_client: DiagnosticCenterClient = Depends(get_dc_client)):
    """Diagnostic center display name, served from the process-wide name cache."""
    if not request.dcId:
        raise MissingFieldError("dcId is required in request body", code="MISSING_DC_ID")

    center_name = await dc_client.get_dc_name(request.dcId)
    if not center_name:
        raise NotFoundError("Diagnostic center not found", code="DC_NOT_FOUND")
    return DataResponse(data={"dcId": request.dcId, "centerName": center_name})


@router.post("/getBranchName", response_model=DataResponse)
async def get_branch_name(request: BranchDetailsRequest, dc_client: DiagnosticCenterClient = Depends(get_dc_client)):
    """Branch display name, served from the process-wide name cache."""
    if not request.branchId:
        raise MissingFieldError("branchId is required in request body", code="MISSING_BRANCH_ID")

    branch_name = await dc_client.get_branch_name(request.branchId)
    if not branch_name:
        raise NotFoundError("Branch not found", code="BRANCH_NOT_FOUND")
    return DataResponse(data={"branchId": request.branchId, "branchName": branch_name})

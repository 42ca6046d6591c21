"""API routes for dashboard analytics."""

from fastapi import APIRouter

from ..core.analytics import build_analytics
from ..core.report_store import ReportStore
from ..schemas.request_schemas import AnalyticsRequest
from ..schemas.response_schemas import DataResponse, ErrorResponse
from ..utils.error_utils import MissingFieldError

router = APIRouter(prefix="/api/analytics", tags=["analytics"], responses={400: {"model": ErrorResponse}})


@router.post("/summary", response_model=DataResponse)
async def analytics_summary(request: AnalyticsRequest):
    """
    Chart series and health score for a member.

    - **profile**: Member profile with bmi, diagnosedCondition, activities, foodAllergies
    - **reports**: Member reports; loaded by ``memberPhone`` when omitted
    - **memberPhone**: Phone number of the member
    """
    reports = request.reports
    if reports is None:
        member_phone = request.memberPhone or (request.profile or {}).get("phoneNumber")
        if not member_phone:
            raise MissingFieldError("reports or memberPhone is required", code="MISSING_MEMBER")
        reports = await ReportStore.list_reports(member_phone)

    summary = await build_analytics(request.profile, reports, request.memberPhone)
    return DataResponse(data=summary)

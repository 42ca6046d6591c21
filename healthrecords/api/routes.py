"""Main API router that includes all route modules."""

from fastapi import APIRouter

from .analytics_routes import router as analytics_router
from .diagnostic_center_routes import router as diagnostic_center_router
from .report_routes import router as report_router


# Main API router
api_router = APIRouter()

# Include all route modules
api_router.include_router(diagnostic_center_router)
api_router.include_router(report_router)
api_router.include_router(analytics_router)

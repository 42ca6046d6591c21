"""Main FastAPI application module."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
import httpx
import uvicorn

from .config import settings
from .api.routes import api_router
from .core.database import connect_to_mongodb, close_mongodb_connection
from .utils.middleware import RequestLoggerMiddleware
from .utils.error_utils import APIError, api_error_response, format_exception
from .utils.log_utils import app_logger

SERVICE_NAME = "Health Records Report Service"
SERVICE_VERSION = "0.1.0"


# Create FastAPI app
app = FastAPI(
    title=SERVICE_NAME,
    description="Report normalization, classification, lab range evaluation, signed file URLs and dashboard analytics for health records",
    version=SERVICE_VERSION
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.CORS_ORIGINS.split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add request logger middleware
app.add_middleware(RequestLoggerMiddleware)

# Include API router
app.include_router(api_router)


@app.exception_handler(APIError)
async def api_error_handler(request: Request, exc: APIError):
    """Render API errors as the error envelope."""
    app_logger.warning(f"{exc.code} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(httpx.HTTPError)
async def upstream_error_handler(request: Request, exc: httpx.HTTPError):
    """Outbound calls that failed without an HTTP answer."""
    app_logger.error(f"Upstream request failed on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=502,
        content=api_error_response(f"Upstream service unavailable: {exc}", "UPSTREAM_UNAVAILABLE", 502)
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all uncaught exceptions."""
    app_logger.error(f"Unhandled exception: {format_exception(exc)}")

    return JSONResponse(
        status_code=500,
        content=api_error_response(str(exc) or "Internal server error", "INTERNAL_ERROR", 500)
    )


# Startup event
@app.on_event("startup")
async def startup_event():
    """Initialize services on startup."""
    app_logger.info(f"Starting {SERVICE_NAME}...")

    # Report views and analytics over posted data work without MongoDB
    mongodb_connected = await connect_to_mongodb()
    if not mongodb_connected:
        app_logger.error("Failed to connect to MongoDB; report storage endpoints will fail")

    app_logger.info(f"{SERVICE_NAME} started on {settings.API_HOST}:{settings.API_PORT}")


# Shutdown event
@app.on_event("shutdown")
async def shutdown_event():
    """Clean up resources on shutdown."""
    app_logger.info(f"Shutting down {SERVICE_NAME}...")
    await close_mongodb_connection()
    app_logger.info(f"{SERVICE_NAME} shut down")


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "status": "running"
    }


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


# Run the application
if __name__ == "__main__":
    uvicorn.run(
        "healthrecords.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.ENV == "development"
    )

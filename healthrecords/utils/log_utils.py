"""Utility functions for logging."""

import os
import logging
import json
from datetime import datetime
from typing import Dict, Any, Optional

from ..config import settings

# Configure root logger
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the specified name.

    Args:
        name: Logger name

    Returns:
        Logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(settings.LOG_LEVEL)

    # File handler only in production, added once per logger
    if settings.ENV == "production" and not any(isinstance(h, logging.FileHandler) for h in logger.handlers):
        os.makedirs(settings.LOG_DIR, exist_ok=True)

        file_handler = logging.FileHandler(os.path.join(settings.LOG_DIR, f"{name}.log"))
        file_handler.setLevel(settings.LOG_LEVEL)
        file_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))

        logger.addHandler(file_handler)

    return logger


def log_request(logger: logging.Logger, request_id: str, method: str, path: str, params: Optional[Dict[str, Any]] = None) -> None:
    """
    Log an API request.

    Args:
        logger: Logger instance
        request_id: Unique request ID
        method: HTTP method
        path: Request path
        params: Query parameters
    """
    log_data = {
        "request_id": request_id,
        "method": method,
        "path": path,
        "timestamp": datetime.now().isoformat(),
    }

    if params:
        log_data["params"] = params

    logger.info(f"API Request: {json.dumps(log_data)}")


def log_response(logger: logging.Logger, request_id: str, status_code: int, response_time: float, response_data: Optional[Dict[str, Any]] = None) -> None:
    """
    Log an API response.

    Args:
        logger: Logger instance
        request_id: Unique request ID
        status_code: HTTP status code
        response_time: Response time in seconds
        response_data: Extra response details (errors only)
    """
    log_data = {
        "request_id": request_id,
        "status_code": status_code,
        "response_time": round(response_time, 4),
        "timestamp": datetime.now().isoformat(),
    }

    if response_data:
        log_data["response"] = response_data

    logger.info(f"API Response: {json.dumps(log_data)}")


def log_report_event(logger: logging.Logger, report_id: Optional[str], event: str, details: Optional[Dict[str, Any]] = None) -> None:
    """
    Log a report lifecycle or classification event.

    Args:
        logger: Logger instance
        report_id: Report ID (may be None for unsaved reports)
        event: Event name, e.g. "inserted", "classified", "accepted"
        details: Event details
    """
    log_data = {
        "report_id": report_id,
        "event": event,
        "timestamp": datetime.now().isoformat(),
    }

    if details:
        log_data["details"] = details

    logger.info(f"Report Event: {json.dumps(log_data, default=str)}")


def log_signed_url_event(logger: logging.Logger, url: str, outcome: str, file_key: Optional[str] = None, status_code: Optional[int] = None) -> None:
    """
    Log the outcome of resolving a file URL.

    Args:
        logger: Logger instance
        url: Raw file URL (query string dropped)
        outcome: One of "signed", "passthrough", "cached", "missing"
        file_key: Storage object key, when extracted
        status_code: HTTP status from the signing endpoint, when relevant
    """
    log_data = {
        "url": url.split("?")[0] if url else url,
        "outcome": outcome,
        "timestamp": datetime.now().isoformat(),
    }

    if file_key:
        log_data["file_key"] = file_key
    if status_code is not None:
        log_data["status_code"] = status_code

    level = logging.WARNING if outcome == "missing" else logging.DEBUG
    logger.log(level, f"Signed URL: {json.dumps(log_data)}")


# Create and export application loggers
app_logger = get_logger("app")
api_logger = get_logger("api")
report_logger = get_logger("reports")
storage_logger = get_logger("storage")
dc_logger = get_logger("diagnostic_center")

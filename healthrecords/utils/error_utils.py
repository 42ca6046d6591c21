"""Utility functions for error handling."""

import traceback
import logging
from typing import Dict, Any, Optional

from ..config import settings

# Configure logger
logger = logging.getLogger(__name__)
logger.setLevel(settings.LOG_LEVEL)


def format_exception(e: Exception) -> str:
    """
    Format an exception with traceback for logging.

    Args:
        e: Exception to format

    Returns:
        Formatted exception message with traceback
    """
    return f"{type(e).__name__}: {str(e)}\n{traceback.format_exc()}"


def log_exception(e: Exception, context: Optional[str] = None) -> None:
    """
    Log an exception with context information.

    Args:
        e: Exception to log
        context: Context information
    """
    error_message = format_exception(e)
    if context:
        error_message = f"{context}: {error_message}"

    logger.error(error_message)


def api_error_response(error_message: str, code: str = "BAD_REQUEST", status_code: int = 400) -> Dict[str, Any]:
    """
    Create a standardized API error envelope.

    Args:
        error_message: Error message
        code: Machine-readable error code
        status_code: HTTP status code

    Returns:
        API error response data
    """
    return {
        "success": False,
        "error": {
            "code": code,
            "message": error_message,
            "status_code": status_code,
        }
    }


class APIError(Exception):
    """Base class for API errors."""

    default_code = "API_ERROR"
    default_status = 400

    def __init__(self, message: str, status_code: Optional[int] = None, code: Optional[str] = None, error_type: Optional[str] = None):
        """Initialize API error."""
        self.message = message
        self.status_code = status_code or self.default_status
        self.code = code or self.default_code
        self.error_type = error_type or self.__class__.__name__
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to the response envelope."""
        envelope = api_error_response(self.message, self.code, self.status_code)
        envelope["error"]["error_type"] = self.error_type
        return envelope


class MissingFieldError(APIError):
    """A required request field is absent."""

    default_code = "MISSING_FIELD"
    default_status = 400


class NotFoundError(APIError):
    """A record or upstream resource does not exist."""

    default_code = "NOT_FOUND"
    default_status = 404


class ConflictError(APIError):
    """A record with the same identity already exists."""

    default_code = "CONFLICT"
    default_status = 409


class UpstreamServiceError(APIError):
    """An external service answered with an error."""

    default_code = "UPSTREAM_ERROR"
    default_status = 502

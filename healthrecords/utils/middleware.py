"""Middleware for the application."""

import time
import uuid
from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .log_utils import api_logger, log_request, log_response


class RequestLoggerMiddleware(BaseHTTPMiddleware):
    """Assign a request ID and log each request with its timing."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Reuse a caller-supplied request ID so traces line up with the front end
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.perf_counter()
        log_request(
            api_logger,
            request_id,
            request.method,
            request.url.path,
            dict(request.query_params)
        )

        try:
            response = await call_next(request)
        except Exception as e:
            log_response(
                api_logger,
                request_id,
                500,
                time.perf_counter() - start_time,
                {"error": str(e)}
            )
            raise

        response_time = time.perf_counter() - start_time
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{response_time:.4f}"
        log_response(api_logger, request_id, response.status_code, response_time)

        return response

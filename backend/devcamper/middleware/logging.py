"""
DevCamper Backend - Development Request Logger
================================================

What:  One log line per request: method, path, status, duration, request id.
When:  Installed only when ENVIRONMENT=development, so production logs carry
       application events and errors only.

    GET /api/v1/bootcamps?page=2 200 12.4ms [a1b2c3d4]
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from devcamper.middleware.request_id import request_id_var

logger = logging.getLogger("devcamper.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs each request with its status and duration."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        path = request.url.path
        if request.url.query:
            path = f"{path}?{request.url.query}"
        rid = request_id_var.get("") or getattr(request.state, "request_id", "")

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s]",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": request.url.path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
            },
        )
        return response

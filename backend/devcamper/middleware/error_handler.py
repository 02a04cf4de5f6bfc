"""
DevCamper Backend - Error Normalizer
======================================

What:  Classifies any exception into (status, message) and renders the
       failure envelope {"success": false, "error": "<message>"}.
How:   `normalize_error()` is the single place where errors are translated.
       It is called from two entry points:
         1. EnvelopeRoute (async_handler.py) for everything a route raises
         2. App-level handlers for errors raised before a route runs
            (unknown path, wrong method, request-body validation)

Classification:
    DevCamperError subclasses      → their own status_code and message
    RequestValidationError         → 400, every field message joined by ", "
    IntegrityError, unique key     → 400 "Duplicate field value entered: <field>"
    IntegrityError, other          → 400 "Invalid value for a constrained field"
    Starlette HTTPException        → its status and detail
    anything else                  → 500 "Server Error"

Logging:
    4xx at WARNING, 5xx at ERROR with the traceback. Each line carries the
    request id. Error context is logged, never returned.
"""

import logging
import re
from typing import Any, Dict, List, Tuple

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from devcamper.exceptions import ConflictError, DevCamperError, ValidationError
from devcamper.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

SERVER_ERROR = "Server Error"

# asyncpg: 'DETAIL:  Key (slug)=(devworks-bootcamp) already exists.'
_PG_DUPLICATE_KEY = re.compile(r"Key \((\w+)\)=")
_PG_UNIQUE_CONSTRAINT = re.compile(r'unique constraint "(?:\w+?_)?(\w+?)_key"')
# sqlite: 'UNIQUE constraint failed: bootcamps.slug'
_SQLITE_UNIQUE = re.compile(r"UNIQUE constraint failed: \w+\.(\w+)")


def duplicate_field(exc: IntegrityError) -> Tuple[bool, str]:
    """(is_unique_violation, field name or "") for an IntegrityError."""
    text = str(exc.orig) if exc.orig is not None else str(exc)
    for pattern in (_PG_DUPLICATE_KEY, _SQLITE_UNIQUE, _PG_UNIQUE_CONSTRAINT):
        match = pattern.search(text)
        if match:
            return True, match.group(1)
    lowered = text.lower()
    return ("unique" in lowered or "duplicate" in lowered), ""


def validation_messages(errors: List[Dict[str, Any]]) -> List[str]:
    """Readable "field: message" strings from pydantic error dicts."""
    messages = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        msg = error.get("msg", "Invalid value")
        messages.append(f"{'.'.join(loc)}: {msg}" if loc else msg)
    return messages


def normalize_error(exc: Exception) -> DevCamperError:
    """Map any exception onto the application error it represents."""
    if isinstance(exc, DevCamperError):
        return exc
    if isinstance(exc, RequestValidationError):
        return ValidationError(errors=validation_messages(exc.errors()))
    if isinstance(exc, IntegrityError):
        unique, field = duplicate_field(exc)
        if unique:
            return ConflictError(field or None)
        return ValidationError("Invalid value for a constrained field", context={"detail": str(exc.orig)})
    if isinstance(exc, StarletteHTTPException):
        error = DevCamperError(message=str(exc.detail))
        error.status_code = exc.status_code
        error.kind = "http_error"
        return error
    return DevCamperError(message=SERVER_ERROR)


def error_response(request: Request, exc: Exception) -> JSONResponse:
    """Log `exc` and render it as the failure envelope."""
    error = normalize_error(exc)
    rid = request_id_var.get("")
    status = error.status_code

    if status >= 500:
        logger.error(
            "[%s] %s %s -> %d %s: %s | Context: %s",
            rid, request.method, request.url.path, status, error.kind, str(exc), error.context,
            exc_info=exc,
        )
    else:
        logger.warning(
            "[%s] %s %s -> %d %s: %s",
            rid, request.method, request.url.path, status, error.kind, error.message,
        )

    headers = getattr(exc, "headers", None) if isinstance(exc, StarletteHTTPException) else None
    return JSONResponse(
        status_code=status,
        content={"success": False, "error": error.message},
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install app-level handlers for errors raised outside a route handler."""

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        return error_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        return error_response(request, exc)

    @app.exception_handler(DevCamperError)
    async def handle_app_error(request: Request, exc: DevCamperError):
        return error_response(request, exc)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        return error_response(request, exc)

"""
DevCamper Backend - Custom Exception Hierarchy
================================================

What:  Application-specific exceptions, one class per error kind.
How:   Each exception carries a user-facing message, an optional context dict
       (logged, never returned), and the HTTP status it maps to.
Who:   Raised by models, services and routes; translated to responses in
       `devcamper.middleware.error_handler`.

Exception Hierarchy:
    DevCamperError (base)                         → 500
    ├── NotFoundError                             → 404
    ├── InvalidIdentifierError                    → 404 "Resource not found"
    ├── ValidationError                           → 400
    ├── ConflictError                             → 400 duplicate field value
    ├── UploadRejectedError                       → 400 wrong type / too large / missing
    ├── FileStorageError                          → 500 write to disk failed
    └── GeocodingError                            → 503 geocoder unreachable

Anything that is not a DevCamperError is "unclassified" and becomes a 500
with a generic message.
"""

from typing import Any, Dict, List, Optional


class DevCamperError(Exception):
    """
    Base exception for all DevCamper application errors.

    Attributes:
        message:     User-facing error description (safe to return)
        context:     Additional debug info (logged, NOT returned to client)
        status_code: HTTP status the error normalizer responds with
        kind:        Short machine-readable tag used in logs
    """

    status_code: int = 500
    kind: str = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class NotFoundError(DevCamperError):
    """
    A well-formed identifier that matches no record.

    Example message: "Bootcamp not found with id of 3fa85f64-..."
    """

    status_code = 404
    kind = "not_found"

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} not found with id of {resource_id}"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class InvalidIdentifierError(DevCamperError):
    """
    The identifier in the path could not be parsed as a UUID.

    Reported as 404 with a generic message: a malformed id names no resource.
    """

    status_code = 404
    kind = "cast_error"

    def __init__(self, value: str, context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        ctx["value"] = value
        super().__init__(message="Resource not found", context=ctx)
        self.value = value


class ValidationError(DevCamperError):
    """
    Client input failed validation.

    `errors` holds one message per failing field; `message` joins them with
    ", " so a single response lists every complaint.
    """

    status_code = 400
    kind = "validation_error"

    def __init__(
        self,
        message: Optional[str] = None,
        field: Optional[str] = None,
        errors: Optional[List[str]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.errors = list(errors or ([message] if message else []))
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(
            message=message or ", ".join(self.errors) or "Validation failed",
            context=ctx,
        )
        self.field = field


class ConflictError(DevCamperError):
    """A unique field (name, slug) collides with an existing record."""

    status_code = 400
    kind = "duplicate_key"

    def __init__(self, field: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
        message = "Duplicate field value entered"
        if field:
            message = f"Duplicate field value entered: {field}"
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class UploadRejectedError(DevCamperError):
    """The uploaded file is missing, of the wrong media class, or too large."""

    status_code = 400
    kind = "upload_rejected"

    def __init__(self, message: str = "Please upload a file", context: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, context=context)


class FileStorageError(DevCamperError):
    """
    Writing an accepted upload to disk failed.

    The OS error goes into `context` for the logs; the client only sees
    "Problem with file upload".
    """

    status_code = 500
    kind = "upload_failed"

    def __init__(
        self,
        message: str = "Problem with file upload",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class GeocodingError(DevCamperError):
    """The geocoding provider could not be reached after retries."""

    status_code = 503
    kind = "geocoder_unavailable"

    def __init__(
        self,
        message: str = "Geocoding service is temporarily unavailable",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)

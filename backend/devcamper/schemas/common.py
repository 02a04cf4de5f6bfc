"""
DevCamper Backend - Response Envelope Schemas
===============================================

What:  The uniform JSON wrapper every endpoint returns.

    success:  {"success": true, "data": ...}
    list:     {"success": true, "count": 10, "total": 30,
               "previous": {"page": 1, "limit": 10},
               "next": {"page": 3, "limit": 10}, "data": [...]}
    error:    {"success": false, "error": "Bootcamp not found with id of ..."}

`total`, `previous` and `next` are omitted (not null) when they do not apply.
"""

from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field, model_serializer

T = TypeVar("T")


class PageRef(BaseModel):
    """Pointer to a neighbouring page."""
    page: int
    limit: int


class Envelope(BaseModel, Generic[T]):
    success: bool = True
    data: T


class ListEnvelope(BaseModel):
    """
    Collection response. `data` items are plain dicts because a `select`
    query parameter may have trimmed them to a subset of fields.
    """
    success: bool = True
    count: int = Field(description="Number of records in this response")
    total: Optional[int] = Field(default=None, description="Records matching the filters")
    previous: Optional[PageRef] = None
    next: Optional[PageRef] = None
    data: List[Dict[str, Any]]

    @model_serializer(mode="wrap")
    def omit_absent_keys(self, handler):
        serialized = handler(self)
        for key in ("total", "previous", "next"):
            if serialized.get(key) is None:
                serialized.pop(key, None)
        return serialized


class ErrorEnvelope(BaseModel):
    """Body of every non-2xx response."""
    success: bool = False
    error: str = Field(description="Human-readable error message")

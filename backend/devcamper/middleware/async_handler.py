"""
DevCamper Backend - Route Error Wrapper
=========================================

What:  An APIRoute subclass whose handler turns any exception escaping the
       endpoint (or its dependencies and body parsing) into the failure
       envelope.
How:   Routers are built with `APIRouter(route_class=EnvelopeRoute)`; the
       wrapped handler forwards caught exceptions to `error_response()`.

    router = APIRouter(prefix="/api/v1/courses", route_class=EnvelopeRoute)

Endpoints therefore never need their own try/except.
"""

from typing import Callable

from fastapi import Request, Response
from fastapi.routing import APIRoute

from devcamper.middleware.error_handler import error_response


class EnvelopeRoute(APIRoute):
    def get_route_handler(self) -> Callable:
        original_handler = super().get_route_handler()

        async def envelope_handler(request: Request) -> Response:
            try:
                return await original_handler(request)
            except Exception as exc:
                return error_response(request, exc)

        return envelope_handler

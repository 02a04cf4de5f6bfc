"""
DevCamper Backend - Health Check Route
========================================

`GET /health` reports service status for load balancers and container probes.

    healthy    database reachable (HTTP 200)
    unhealthy  database unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import text

from devcamper import __version__
from devcamper import database
from devcamper.schemas.common import Envelope

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


class HealthStatus(BaseModel):
    status: str
    version: str
    database: str
    uptime_seconds: float


@router.get(
    "/health",
    response_model=Envelope[HealthStatus],
    summary="Service health check",
    responses={503: {"model": Envelope[HealthStatus]}},
)
async def health_check():
    """Runs `SELECT 1` against the database and reports uptime."""
    db_status = "connected"
    overall = "healthy"

    try:
        async with database.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    body = Envelope[HealthStatus](
        data=HealthStatus(
            status=overall,
            version=__version__,
            database=db_status,
            uptime_seconds=round(time.time() - _start_time, 2),
        )
    )
    if overall == "unhealthy":
        return JSONResponse(status_code=503, content=body.model_dump(mode="json"))
    return body

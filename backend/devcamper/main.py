"""
DevCamper Backend - FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() wires middleware, exception handlers, routers and the
       static file mount; lifespan() prepares upload directories on startup
       and disposes the database engine on shutdown.
Who:   uvicorn (`uvicorn devcamper.main:app`) or `python -m devcamper.main`.

Application layout:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware:  Request ID → Access log (dev) → CORS  │
    │                                                     │
    │  Routers (EnvelopeRoute):                           │
    │    /api/v1/bootcamps   /api/v1/courses   /health    │
    │                                                     │
    │  Static:      /public  → PUBLIC_ROOT                │
    │                                                     │
    │  Errors:      error_handler.error_response()        │
    └─────────────────────────────────────────────────────┘
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from devcamper import __version__
from devcamper.config import settings
from devcamper.database import dispose_engine
from devcamper.middleware.error_handler import register_exception_handlers
from devcamper.middleware.logging import RequestLoggingMiddleware
from devcamper.middleware.request_id import RequestIDMiddleware
from devcamper.routes import API_ROUTERS

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once for the whole process.

    Format: 2024-01-15T12:00:00 [INFO] devcamper.services.bootcamp_service: ...
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Lifespan
# ══════════════════════════════════════════════════════════════════════════

def ensure_directories() -> None:
    for directory in (settings.public_root, settings.photo_upload_path, settings.video_upload_path):
        path = Path(directory)
        path.mkdir(parents=True, exist_ok=True)
        logger.info("Storage directory: %s", path.resolve())


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("=" * 60)
    logger.info("DevCamper API %s starting in %s mode", __version__, settings.environment)

    ensure_directories()
    if not settings.geocoder_api_key:
        logger.warning("GEOCODER_API_KEY is not set; bootcamps will be stored without a location")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("DevCamper API shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """Assemble the application. Tests call this to get a fresh instance."""
    app = FastAPI(
        title="DevCamper API",
        description="Bootcamp directory: bootcamps, courses, radius search and media uploads.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Last added runs first: Request ID → access log → CORS.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    if settings.is_development:
        app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    for router in API_ROUTERS:
        app.include_router(router)

    # check_dir=False: the directory is created in lifespan, after this runs.
    app.mount("/public", StaticFiles(directory=settings.public_root, check_dir=False), name="public")

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    uvicorn.run(
        "devcamper.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        reload=settings.is_development,
    )


if __name__ == "__main__":
    run()

"""
DevCamper Backend - Test Configuration (conftest.py)
======================================================

Shared fixtures for the whole suite.

Fixture Hierarchy (all function-scoped):
    ├── db_engine:      in-memory SQLite (aiosqlite + StaticPool), schema
    │                   created from Base.metadata
    ├── session_factory / db_session: sessions bound to that engine
    ├── fake_geocoder:  replaces the MapQuest call with a lookup table
    ├── upload_dirs:    points photo/video uploads at tmp_path
    └── test_client:    httpx AsyncClient over ASGITransport, with the
                        request session dependency bound to db_engine
"""

import os
import tempfile
from typing import Any, Dict, Optional
from unittest.mock import AsyncMock

# Settings are read at import time, so these must be set before any
# devcamper import below.
_public_root = tempfile.mkdtemp(prefix="devcamper_test_")
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["GEOCODER_API_KEY"] = ""
os.environ["PUBLIC_ROOT"] = _public_root
os.environ["PHOTO_UPLOAD_PATH"] = os.path.join(_public_root, "uploads", "photos")
os.environ["VIDEO_UPLOAD_PATH"] = os.path.join(_public_root, "uploads", "videos")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from devcamper.config import settings
from devcamper.database import Base, get_db_session
from devcamper.services.geocoder import geocoder


# ══════════════════════════════════════════════════════════════════════════
# Geocoder stand-in
# ══════════════════════════════════════════════════════════════════════════

def _place(lat: float, lng: float, street: Optional[str], city: str, state: str, zipcode: str) -> Dict[str, Any]:
    return {
        "longitude": lng,
        "latitude": lat,
        "formatted_address": ", ".join(p for p in (street, city, state, zipcode, "US") if p),
        "street": street,
        "city": city,
        "state": state,
        "zipcode": zipcode,
        "country": "US",
    }


KNOWN_PLACES: Dict[str, Dict[str, Any]] = {
    "233 Bay State Rd Boston MA 02215": _place(42.3505, -71.1054, "233 Bay State Rd", "Boston", "MA", "02215"),
    "220 Pawtucket St, Lowell, MA 01854": _place(42.6493, -71.3162, "220 Pawtucket St", "Lowell", "MA", "01854"),
    "85 South Prospect Street Burlington VT 05405": _place(44.4779, -73.1965, "85 South Prospect Street", "Burlington", "VT", "05405"),
    "45 Upper College Rd Kingston RI 02881": _place(41.4807, -71.5258, "45 Upper College Rd", "Kingston", "RI", "02881"),
    "02118": _place(42.3389, -71.0726, None, "Boston", "MA", "02118"),
    "05401": _place(44.4759, -73.2121, None, "Burlington", "VT", "05401"),
}

BOSTON_ADDRESS = "233 Bay State Rd Boston MA 02215"
BURLINGTON_ADDRESS = "85 South Prospect Street Burlington VT 05405"


@pytest.fixture
def fake_geocoder(monkeypatch):
    """Resolve addresses from KNOWN_PLACES; anything else has no match."""

    async def lookup(query: str):
        place = KNOWN_PLACES.get(query)
        return dict(place) if place else None

    mock = AsyncMock(side_effect=lookup)
    monkeypatch.setattr(geocoder, "geocode", mock)
    return mock


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    """
    A fresh in-memory database per test.

    StaticPool keeps the single SQLite connection alive, so every session
    in the test sees the same schema and rows.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


# ══════════════════════════════════════════════════════════════════════════
# Uploads
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def upload_dirs(tmp_path, monkeypatch):
    """Photo/video directories under tmp_path, returned as (photos, videos)."""
    photos = tmp_path / "photos"
    videos = tmp_path / "videos"
    monkeypatch.setattr(settings, "photo_upload_path", str(photos))
    monkeypatch.setattr(settings, "video_upload_path", str(videos))
    return photos, videos


# PNG signature + IHDR chunk of a 1x1 RGBA image.
PNG_BYTES = (
    b"\x89PNG\r\n\x1a\n"
    b"\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x06\x00\x00\x00\x1f\x15\xc4\x89"
)

# MP4 `ftyp` box, brand mp42.
MP4_BYTES = b"\x00\x00\x00\x18ftypmp42\x00\x00\x00\x00mp42isom"


@pytest.fixture
def sample_image_bytes():
    """Smallest valid JPEG: SOI + JFIF header + EOI."""
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )


# ══════════════════════════════════════════════════════════════════════════
# HTTP client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(session_factory, fake_geocoder, upload_dirs):
    """
    HTTPX AsyncClient wired to a fresh app instance.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from devcamper.main import create_app

    app = create_app()

    async def override_get_db_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_get_db_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


def bootcamp_payload(name: str = "Devworks Bootcamp", **overrides) -> Dict[str, Any]:
    """A valid POST /api/v1/bootcamps body."""
    payload = {
        "name": name,
        "description": "Full stack JavaScript bootcamp in the heart of Boston",
        "website": "https://devworks.com",
        "phone": "(111) 111-1111",
        "email": "enroll@devworks.com",
        "address": BOSTON_ADDRESS,
        "careers": ["Web Development", "UI/UX"],
        "housing": True,
        "job_assistance": True,
    }
    payload.update(overrides)
    return payload


def course_payload(title: str = "Front End Web Development", **overrides) -> Dict[str, Any]:
    """A valid POST /api/v1/bootcamps/{id}/courses body."""
    payload = {
        "title": title,
        "description": "HTML, CSS and front end JavaScript",
        "weeks": 8,
        "tuition": 8000,
        "minimum_skill": "beginner",
        "scholarship_available": True,
    }
    payload.update(overrides)
    return payload

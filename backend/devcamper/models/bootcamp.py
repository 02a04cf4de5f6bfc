"""
DevCamper Backend - Bootcamp SQLAlchemy Model
===============================================

What:  ORM model for the `bootcamps` table.
How:   Inherits from the shared DeclarativeBase; Alembic reads it for migrations.
Who:   BootcampService (CRUD, radius search, uploads), the seeder, Alembic.

Table Design:
    - UUID primary key, generated client-side so it is known before flush
    - slug is derived from name on every assignment (see `_derive_slug`)
    - location is stored as flat columns (longitude/latitude + address parts)
      and exposed as a GeoJSON-like dict through the `location` property
    - careers is a JSON list; allowed values are checked on assignment

Lifecycle:
    Deleting a Bootcamp through the ORM deletes its courses as well. The
    rule lives on the `courses` relationship (cascade="all, delete-orphan"),
    not in a database trigger, so any code path that deletes through the
    session gets it.
"""

import re
import unicodedata
import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from sqlalchemy import JSON, Boolean, DateTime, Float, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from devcamper.database import Base
from devcamper.exceptions import ValidationError

if TYPE_CHECKING:
    from devcamper.models.course import Course


CAREERS = (
    "Web Development",
    "Mobile Development",
    "UI/UX",
    "Data Science",
    "Business",
    "Other",
)

DEFAULT_PHOTO = "no-photo.jpg"


def slugify(value: str) -> str:
    """
    Lower-case, hyphen-separated form of `value`. Letters outside ASCII are
    kept, so non-Latin names get a usable slug.

    >>> slugify("Devworks Bootcamp")
    'devworks-bootcamp'
    >>> slugify("Школа кода")
    'школа-кода'
    """
    value = unicodedata.normalize("NFKC", value)
    value = re.sub(r"[^\w\s-]", "", value.lower())
    return re.sub(r"[-\s_]+", "-", value).strip("-")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Bootcamp(Base):
    """
    A training-program listing.

    Query Patterns:
        - List with filters/sort/pagination (query_builder)
        - Lookup by primary key
        - Radius search: bounding box on (latitude, longitude), then an
          exact great-circle check on the candidates
    """

    __tablename__ = "bootcamps"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    slug: Mapped[str] = mapped_column(String(80), nullable=False, unique=True)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    website: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    address: Mapped[str] = mapped_column(Text, nullable=False)

    # ── Geolocation ───────────────────────────────────────────────────────
    # Filled by the geocoder before the row is flushed; all NULL when the
    # address could not be resolved.
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    formatted_address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    street: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    state: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    zipcode: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    careers: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    average_rating: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    average_cost: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    photo: Mapped[str] = mapped_column(String(255), nullable=False, default=DEFAULT_PHOTO)
    video: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    housing: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    job_assistance: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    job_guarantee: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    accept_gi: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    # Owning user. Accounts live outside this service, so no foreign key.
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)

    courses: Mapped[List["Course"]] = relationship(
        back_populates="bootcamp",
        cascade="all, delete-orphan",
        order_by="Course.created_at",
    )

    __table_args__ = (
        Index("idx_bootcamps_created_at", created_at.desc()),
        Index("idx_bootcamps_lat_lng", "latitude", "longitude"),
    )

    @validates("name")
    def _derive_slug(self, key: str, name: str) -> str:
        name = name.strip()
        slug = slugify(name)
        if not slug:
            raise ValidationError(
                message="Name must contain at least one letter or digit",
                field="name",
                context={"name": name},
            )
        self.slug = slug
        return name

    @validates("careers")
    def _check_careers(self, key: str, careers: List[str]) -> List[str]:
        unknown = [c for c in careers if c not in CAREERS]
        if not careers or unknown:
            raise ValidationError(
                message=f"Careers must be one or more of: {', '.join(CAREERS)}",
                field="careers",
                context={"unknown": unknown},
            )
        return list(careers)

    @property
    def location(self) -> Optional[Dict[str, Any]]:
        """GeoJSON point plus address parts, or None if never geocoded."""
        if self.longitude is None or self.latitude is None:
            return None
        return {
            "type": "Point",
            "coordinates": [self.longitude, self.latitude],
            "formatted_address": self.formatted_address,
            "street": self.street,
            "city": self.city,
            "state": self.state,
            "zipcode": self.zipcode,
            "country": self.country,
        }

    def apply_location(self, location: Optional[Dict[str, Any]]) -> None:
        """Copy a geocoder result onto the row (None clears it)."""
        location = location or {}
        self.longitude = location.get("longitude")
        self.latitude = location.get("latitude")
        self.formatted_address = location.get("formatted_address")
        self.street = location.get("street")
        self.city = location.get("city")
        self.state = location.get("state")
        self.zipcode = location.get("zipcode")
        self.country = location.get("country")

    def __repr__(self) -> str:
        return f"<Bootcamp(id={self.id}, slug='{self.slug}')>"

"""
DevCamper Backend - Bootcamp Request/Response Schemas
=======================================================

What:  Pydantic models for the bootcamp API contract.
How:   FastAPI validates request bodies against BootcampCreate/BootcampUpdate
       (failures become a 400 listing every bad field) and serializes ORM rows
       through BootcampResponse.

Schemas are separate from the ORM model: `address` is write-only input that
the service geocodes, and `slug`, `location`, `average_cost`, `photo`,
`video` are server-managed.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from devcamper.models.bootcamp import CAREERS
from devcamper.schemas.course import CourseResponse

URL_PATTERN = r"^https?://[\w.-]+(?:\.[\w.-]+)+[\w\-._~:/?#\[\]@!$&'()*+,;=%]*$"
EMAIL_PATTERN = r"^[\w.+-]+@[\w-]+(\.[\w-]+)*\.\w{2,}$"

# Columns that are NOT NULL and may not be cleared through an update.
NON_NULLABLE = {
    "name", "description", "address", "careers",
    "housing", "job_assistance", "job_guarantee", "accept_gi",
}


def _check_careers(careers: Optional[List[str]]) -> Optional[List[str]]:
    if careers is None:
        return careers
    unknown = [c for c in careers if c not in CAREERS]
    if unknown:
        raise ValueError(
            f"Invalid careers {unknown}; allowed: {', '.join(CAREERS)}"
        )
    return careers


class BootcampCreate(BaseModel):
    """Body of POST /api/v1/bootcamps."""

    name: str = Field(min_length=1, max_length=50)
    description: str = Field(min_length=1, max_length=500)
    website: Optional[str] = Field(default=None, pattern=URL_PATTERN)
    phone: Optional[str] = Field(default=None, max_length=20)
    email: Optional[str] = Field(default=None, pattern=EMAIL_PATTERN)
    address: str = Field(min_length=1)
    careers: List[str] = Field(min_length=1)
    average_rating: Optional[float] = Field(default=None, ge=1, le=10)
    housing: bool = False
    job_assistance: bool = False
    job_guarantee: bool = False
    accept_gi: bool = False
    user_id: Optional[uuid.UUID] = None

    model_config = {"str_strip_whitespace": True}

    @field_validator("careers")
    @classmethod
    def validate_careers(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _check_careers(v)


class BootcampUpdate(BaseModel):
    """
    Body of PUT /api/v1/bootcamps/{id}. Every field is optional; only the
    fields present in the request are applied.
    """

    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    description: Optional[str] = Field(default=None, min_length=1, max_length=500)
    website: Optional[str] = Field(default=None, pattern=URL_PATTERN)
    phone: Optional[str] = Field(default=None, max_length=20)
    email: Optional[str] = Field(default=None, pattern=EMAIL_PATTERN)
    address: Optional[str] = Field(default=None, min_length=1)
    careers: Optional[List[str]] = Field(default=None, min_length=1)
    average_rating: Optional[float] = Field(default=None, ge=1, le=10)
    housing: Optional[bool] = None
    job_assistance: Optional[bool] = None
    job_guarantee: Optional[bool] = None
    accept_gi: Optional[bool] = None

    model_config = {"str_strip_whitespace": True}

    @field_validator("careers")
    @classmethod
    def validate_careers(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _check_careers(v)

    @model_validator(mode="after")
    def reject_cleared_required_fields(self):
        cleared = sorted(
            name for name in self.model_fields_set
            if name in NON_NULLABLE and getattr(self, name) is None
        )
        if cleared:
            raise ValueError(f"Fields cannot be null: {', '.join(cleared)}")
        return self


class LocationResponse(BaseModel):
    type: str = "Point"
    coordinates: List[float] = Field(description="[longitude, latitude]")
    formatted_address: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zipcode: Optional[str] = None
    country: Optional[str] = None


class BootcampResponse(BaseModel):
    """Full representation of a bootcamp."""

    id: uuid.UUID
    name: str
    slug: str
    description: str
    website: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: str
    location: Optional[LocationResponse] = None
    careers: List[str]
    average_rating: Optional[float] = None
    average_cost: Optional[int] = None
    photo: str
    video: Optional[str] = None
    housing: bool
    job_assistance: bool
    job_guarantee: bool
    accept_gi: bool
    created_at: datetime
    user_id: Optional[uuid.UUID] = None

    model_config = {"from_attributes": True}


class BootcampWithCourses(BootcampResponse):
    """
    Bootcamp plus its courses. Only validate rows whose `courses`
    relationship was eager-loaded; lazy loading is not available on an
    async session.
    """

    courses: List[CourseResponse] = Field(default_factory=list)

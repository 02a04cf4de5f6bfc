"""
DevCamper Backend - Course Request/Response Schemas
=====================================================

What:  Pydantic models for the course API contract.

`bootcamp_id` never comes from the body: it is the path parameter of
POST /api/v1/bootcamps/{bootcamp_id}/courses.
"""

import uuid
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

SkillLevel = Literal["beginner", "intermediate", "advanced"]

NON_NULLABLE = {"title", "description", "weeks", "tuition", "minimum_skill", "scholarship_available"}


class CourseCreate(BaseModel):
    title: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1)
    weeks: int = Field(ge=1, description="Duration in weeks")
    tuition: int = Field(ge=0)
    minimum_skill: SkillLevel
    scholarship_available: bool = False
    user_id: Optional[uuid.UUID] = None

    model_config = {"str_strip_whitespace": True}


class CourseUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, min_length=1)
    weeks: Optional[int] = Field(default=None, ge=1)
    tuition: Optional[int] = Field(default=None, ge=0)
    minimum_skill: Optional[SkillLevel] = None
    scholarship_available: Optional[bool] = None

    model_config = {"str_strip_whitespace": True}

    @model_validator(mode="after")
    def reject_cleared_required_fields(self):
        cleared = sorted(
            name for name in self.model_fields_set
            if name in NON_NULLABLE and getattr(self, name) is None
        )
        if cleared:
            raise ValueError(f"Fields cannot be null: {', '.join(cleared)}")
        return self


class CourseResponse(BaseModel):
    id: uuid.UUID
    title: str
    description: str
    weeks: int
    tuition: int
    minimum_skill: str
    scholarship_available: bool
    created_at: datetime
    bootcamp_id: uuid.UUID
    user_id: Optional[uuid.UUID] = None

    model_config = {"from_attributes": True}


class BootcampSummary(BaseModel):
    """The slice of a bootcamp embedded in course responses."""

    id: uuid.UUID
    name: str
    description: str

    model_config = {"from_attributes": True}


class CourseWithBootcamp(CourseResponse):
    """Course plus its owning bootcamp (requires the relationship loaded)."""

    bootcamp: BootcampSummary

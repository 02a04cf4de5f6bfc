"""
DevCamper Backend - Course SQLAlchemy Model
=============================================

What:  ORM model for the `courses` table.
Who:   CourseService, BootcampService (cascade + average cost), the seeder.

Each course belongs to exactly one bootcamp (`bootcamp_id` NOT NULL). The
foreign key has no ON DELETE clause: removal of dependent courses is done by
the ORM cascade on `Bootcamp.courses`.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from devcamper.database import Base
from devcamper.exceptions import ValidationError
from devcamper.models.bootcamp import utcnow

if TYPE_CHECKING:
    from devcamper.models.bootcamp import Bootcamp


SKILL_LEVELS = ("beginner", "intermediate", "advanced")


class Course(Base):
    """A course offered by a bootcamp."""

    __tablename__ = "courses"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    weeks: Mapped[int] = mapped_column(Integer, nullable=False)
    tuition: Mapped[int] = mapped_column(Integer, nullable=False)
    minimum_skill: Mapped[str] = mapped_column(String(20), nullable=False)
    scholarship_available: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    bootcamp_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("bootcamps.id"), nullable=False
    )
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)

    bootcamp: Mapped["Bootcamp"] = relationship(back_populates="courses")

    __table_args__ = (
        Index("idx_courses_bootcamp_id", "bootcamp_id"),
    )

    @validates("title")
    def _trim_title(self, key: str, title: str) -> str:
        return title.strip()

    @validates("minimum_skill")
    def _check_skill(self, key: str, skill: str) -> str:
        if skill not in SKILL_LEVELS:
            raise ValidationError(
                message=f"Minimum skill must be one of: {', '.join(SKILL_LEVELS)}",
                field="minimum_skill",
            )
        return skill

    def __repr__(self) -> str:
        return f"<Course(id={self.id}, title='{self.title}')>"

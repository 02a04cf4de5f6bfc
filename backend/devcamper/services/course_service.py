"""
DevCamper Backend - Course Service
====================================

What:  Data-access operations behind the course endpoints.
How:   Same shape as BootcampService. Every write that changes a course's
       tuition or membership recomputes the owning bootcamp's average_cost
       in the same transaction.
Who:   routes/courses.py, routes/bootcamps.py (nested listing), the seeder.

average_cost:
    ceil(mean(tuition) / 10) * 10 over the bootcamp's courses, or NULL when
    it has none.
"""

import logging
import math
import uuid
from typing import List

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from devcamper.exceptions import NotFoundError
from devcamper.models.bootcamp import Bootcamp
from devcamper.models.course import Course
from devcamper.schemas.course import CourseCreate, CourseUpdate, CourseWithBootcamp
from devcamper.services.bootcamp_service import bootcamp_service, parse_identifier
from devcamper.services.query_builder import (
    PageResult,
    QuerySpec,
    ResourceQuery,
    column_fields,
    fetch_page,
)

logger = logging.getLogger(__name__)

COURSE_QUERY = ResourceQuery(
    model=Course,
    serializer=CourseWithBootcamp,
    fields=column_fields(Course),
    populate=(selectinload(Course.bootcamp),),
)


async def update_average_cost(db: AsyncSession, bootcamp_id: uuid.UUID) -> None:
    """Recompute and assign a bootcamp's average_cost (caller commits)."""
    mean = await db.scalar(
        select(func.avg(Course.tuition)).where(Course.bootcamp_id == bootcamp_id)
    )
    bootcamp = await db.get(Bootcamp, bootcamp_id)
    if bootcamp is None:
        return
    bootcamp.average_cost = math.ceil(float(mean) / 10) * 10 if mean is not None else None
    logger.debug("Bootcamp %s average_cost=%s", bootcamp_id, bootcamp.average_cost)


class CourseService:
    """Course CRUD."""

    async def list_courses(self, db: AsyncSession, spec: QuerySpec) -> PageResult:
        return await fetch_page(db, COURSE_QUERY, spec)

    async def list_bootcamp_courses(self, db: AsyncSession, bootcamp_id: str) -> List[Course]:
        """All courses of one bootcamp, oldest first. 404 if the bootcamp is missing."""
        bootcamp = await bootcamp_service.get_bootcamp(db, bootcamp_id)
        result = await db.execute(
            select(Course)
            .where(Course.bootcamp_id == bootcamp.id)
            .order_by(Course.created_at.asc(), Course.id.asc())
        )
        return list(result.scalars().all())

    async def get_course(self, db: AsyncSession, course_id: str) -> Course:
        """
        Fetch by id with the owning bootcamp loaded.

        Raises:
            InvalidIdentifierError: `course_id` is not a UUID
            NotFoundError:          no course has that id
        """
        key = parse_identifier(course_id)
        course = await db.get(Course, key, options=[selectinload(Course.bootcamp)])
        if course is None:
            raise NotFoundError(resource="Course", resource_id=course_id)
        return course

    async def create_course(
        self, db: AsyncSession, bootcamp_id: str, data: CourseCreate
    ) -> Course:
        """Insert a course under an existing bootcamp."""
        bootcamp = await bootcamp_service.get_bootcamp(db, bootcamp_id)

        course = Course(**data.model_dump(), bootcamp_id=bootcamp.id)
        db.add(course)
        await db.flush()
        await update_average_cost(db, bootcamp.id)
        await db.commit()

        logger.info("Course created: %s in bootcamp %s", course.id, bootcamp.id)
        return course

    async def update_course(
        self, db: AsyncSession, course_id: str, data: CourseUpdate
    ) -> Course:
        course = await self.get_course(db, course_id)
        changes = data.model_dump(exclude_unset=True)
        for key, value in changes.items():
            setattr(course, key, value)
        await db.flush()
        if "tuition" in changes:
            await update_average_cost(db, course.bootcamp_id)
        await db.commit()

        logger.info("Course updated: %s fields=%s", course.id, sorted(changes))
        return course

    async def delete_course(self, db: AsyncSession, course_id: str) -> None:
        course = await self.get_course(db, course_id)
        bootcamp_id = course.bootcamp_id
        await db.delete(course)
        await db.flush()
        await update_average_cost(db, bootcamp_id)
        await db.commit()
        logger.info("Course deleted: %s from bootcamp %s", course.id, bootcamp_id)


course_service = CourseService()

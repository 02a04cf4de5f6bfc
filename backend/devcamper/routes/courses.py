"""
DevCamper Backend - Course Route Handlers
===========================================

Route table:
    GET    /api/v1/courses                           list all (query grammar)
    GET    /api/v1/courses/{id}                      fetch one with its bootcamp
    PUT    /api/v1/courses/{id}                      update
    DELETE /api/v1/courses/{id}                      delete
    GET    /api/v1/bootcamps/{bootcamp_id}/courses   courses of one bootcamp
    POST   /api/v1/bootcamps/{bootcamp_id}/courses   create under a bootcamp

The nested pair lives on `bootcamp_courses_router`, which routes/bootcamps.py
mounts beneath its own prefix.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from devcamper.database import get_db_session
from devcamper.middleware.async_handler import EnvelopeRoute
from devcamper.schemas.common import Envelope, ErrorEnvelope, ListEnvelope
from devcamper.schemas.course import (
    CourseCreate,
    CourseResponse,
    CourseUpdate,
    CourseWithBootcamp,
)
from devcamper.services.course_service import COURSE_QUERY, course_service
from devcamper.services.query_builder import QuerySpec, query_spec

ERROR_RESPONSES = {
    400: {"model": ErrorEnvelope},
    404: {"model": ErrorEnvelope},
    500: {"model": ErrorEnvelope},
}

router = APIRouter(
    prefix="/api/v1/courses",
    tags=["Courses"],
    route_class=EnvelopeRoute,
    responses=ERROR_RESPONSES,
)

bootcamp_courses_router = APIRouter(
    prefix="/{bootcamp_id}/courses",
    tags=["Courses"],
    route_class=EnvelopeRoute,
    responses=ERROR_RESPONSES,
)


@router.get("", response_model=ListEnvelope, summary="List courses")
async def list_courses(
    spec: QuerySpec = Depends(query_spec(COURSE_QUERY)),
    db: AsyncSession = Depends(get_db_session),
) -> ListEnvelope:
    page = await course_service.list_courses(db, spec)
    return ListEnvelope(
        count=page.count,
        total=page.total,
        previous=page.previous,
        next=page.next,
        data=page.items,
    )


@router.get("/{id}", response_model=Envelope[CourseWithBootcamp], summary="Get a course")
async def get_course(
    id: str,
    db: AsyncSession = Depends(get_db_session),
) -> Envelope[CourseWithBootcamp]:
    course = await course_service.get_course(db, id)
    return Envelope[CourseWithBootcamp](data=CourseWithBootcamp.model_validate(course))


@router.put("/{id}", response_model=Envelope[CourseResponse], summary="Update a course")
async def update_course(
    id: str,
    body: CourseUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> Envelope[CourseResponse]:
    course = await course_service.update_course(db, id, body)
    return Envelope[CourseResponse](data=CourseResponse.model_validate(course))


@router.delete("/{id}", response_model=Envelope[Dict[str, Any]], summary="Delete a course")
async def delete_course(
    id: str,
    db: AsyncSession = Depends(get_db_session),
) -> Envelope[Dict[str, Any]]:
    await course_service.delete_course(db, id)
    return Envelope[Dict[str, Any]](data={})


@bootcamp_courses_router.get("", response_model=ListEnvelope, summary="List a bootcamp's courses")
async def list_bootcamp_courses(
    bootcamp_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> ListEnvelope:
    courses = await course_service.list_bootcamp_courses(db, bootcamp_id)
    data = [CourseResponse.model_validate(c).model_dump(mode="json") for c in courses]
    return ListEnvelope(count=len(data), data=data)


@bootcamp_courses_router.post(
    "",
    status_code=201,
    response_model=Envelope[CourseResponse],
    summary="Add a course to a bootcamp",
)
async def create_course(
    bootcamp_id: str,
    body: CourseCreate,
    db: AsyncSession = Depends(get_db_session),
) -> Envelope[CourseResponse]:
    course = await course_service.create_course(db, bootcamp_id, body)
    return Envelope[CourseResponse](data=CourseResponse.model_validate(course))

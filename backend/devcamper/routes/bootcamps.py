"""
DevCamper Backend - Bootcamp Route Handlers
=============================================

What:  HTTP surface of the bootcamp resource.
How:   Thin handlers: pull inputs off the request, call BootcampService,
       wrap the result in the success envelope. Errors are rendered by
       EnvelopeRoute, so no handler catches anything.

Route table (prefix /api/v1/bootcamps):
    GET    /                             list (filter/select/sort/paginate)
    POST   /                             create
    GET    /radius/{zipcode}/{distance}  radius search
    GET    /{id}                         fetch one
    PUT    /{id}                         update
    DELETE /{id}                         delete (and its courses)
    PUT    /{id}/photo                   upload photo
    PUT    /{id}/video                   upload video
    *      /{bootcamp_id}/courses        delegated to routes/courses.py
"""

import logging
from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from devcamper.database import get_db_session
from devcamper.middleware.async_handler import EnvelopeRoute
from devcamper.routes import courses
from devcamper.schemas.bootcamp import BootcampCreate, BootcampResponse, BootcampUpdate
from devcamper.schemas.common import Envelope, ErrorEnvelope, ListEnvelope
from devcamper.services.bootcamp_service import BOOTCAMP_QUERY, bootcamp_service
from devcamper.services.file_service import MediaFile
from devcamper.services.query_builder import QuerySpec, query_spec

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/bootcamps",
    tags=["Bootcamps"],
    route_class=EnvelopeRoute,
    responses={
        400: {"model": ErrorEnvelope},
        404: {"model": ErrorEnvelope},
        500: {"model": ErrorEnvelope},
    },
)


@router.get("", response_model=ListEnvelope, summary="List bootcamps")
async def list_bootcamps(
    spec: QuerySpec = Depends(query_spec(BOOTCAMP_QUERY)),
    db: AsyncSession = Depends(get_db_session),
) -> ListEnvelope:
    """
    Bootcamps with their courses. Accepts the filter grammar documented in
    services/query_builder.py, e.g. `?average_cost[lte]=10000&sort=name`.
    """
    page = await bootcamp_service.list_bootcamps(db, spec)
    return ListEnvelope(
        count=page.count,
        total=page.total,
        previous=page.previous,
        next=page.next,
        data=page.items,
    )


@router.post(
    "",
    status_code=201,
    response_model=Envelope[BootcampResponse],
    summary="Create a bootcamp",
)
async def create_bootcamp(
    body: BootcampCreate,
    db: AsyncSession = Depends(get_db_session),
) -> Envelope[BootcampResponse]:
    bootcamp = await bootcamp_service.create_bootcamp(db, body)
    return Envelope[BootcampResponse](data=BootcampResponse.model_validate(bootcamp))


@router.get(
    "/radius/{zipcode}/{distance}",
    response_model=ListEnvelope,
    summary="Bootcamps within a distance of a postal code",
)
async def bootcamps_in_radius(
    zipcode: str,
    distance: float,
    unit: Literal["mi", "km"] = Query(default="mi", description="Distance unit"),
    db: AsyncSession = Depends(get_db_session),
) -> ListEnvelope:
    bootcamps = await bootcamp_service.bootcamps_in_radius(db, zipcode, distance, unit)
    data: List[Dict[str, Any]] = [
        BootcampResponse.model_validate(b).model_dump(mode="json") for b in bootcamps
    ]
    return ListEnvelope(count=len(data), data=data)


@router.get("/{id}", response_model=Envelope[BootcampResponse], summary="Get a bootcamp")
async def get_bootcamp(
    id: str,
    db: AsyncSession = Depends(get_db_session),
) -> Envelope[BootcampResponse]:
    bootcamp = await bootcamp_service.get_bootcamp(db, id)
    return Envelope[BootcampResponse](data=BootcampResponse.model_validate(bootcamp))


@router.put("/{id}", response_model=Envelope[BootcampResponse], summary="Update a bootcamp")
async def update_bootcamp(
    id: str,
    body: BootcampUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> Envelope[BootcampResponse]:
    bootcamp = await bootcamp_service.update_bootcamp(db, id, body)
    return Envelope[BootcampResponse](data=BootcampResponse.model_validate(bootcamp))


@router.delete("/{id}", response_model=Envelope[Dict[str, Any]], summary="Delete a bootcamp")
async def delete_bootcamp(
    id: str,
    db: AsyncSession = Depends(get_db_session),
) -> Envelope[Dict[str, Any]]:
    await bootcamp_service.delete_bootcamp(db, id)
    return Envelope[Dict[str, Any]](data={})


async def _read_upload(file: Optional[UploadFile]) -> Optional[MediaFile]:
    if file is None:
        return None
    content = await file.read()
    return MediaFile(filename=file.filename or "", content_type=file.content_type, content=content)


@router.put("/{id}/photo", response_model=Envelope[str], summary="Upload a bootcamp photo")
async def upload_photo(
    id: str,
    file: Optional[UploadFile] = File(default=None, description="Image file"),
    db: AsyncSession = Depends(get_db_session),
) -> Envelope[str]:
    filename = await bootcamp_service.upload_media(db, id, "photo", await _read_upload(file))
    return Envelope[str](data=filename)


@router.put("/{id}/video", response_model=Envelope[str], summary="Upload a bootcamp video")
async def upload_video(
    id: str,
    file: Optional[UploadFile] = File(default=None, description="Video file"),
    db: AsyncSession = Depends(get_db_session),
) -> Envelope[str]:
    filename = await bootcamp_service.upload_media(db, id, "video", await _read_upload(file))
    return Envelope[str](data=filename)


router.include_router(courses.bootcamp_courses_router)

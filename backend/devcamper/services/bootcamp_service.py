"""
DevCamper Backend - Bootcamp Service
======================================

What:  Data-access operations behind the bootcamp endpoints.
How:   Each method performs one primary database operation on the request's
       AsyncSession and commits it. Not-found and malformed ids are raised
       here; every other failure (integrity errors included) propagates to
       the error handler untouched.
Who:   routes/bootcamps.py and the seeder.

Radius search:
    The requested distance is converted to an angle by dividing by Earth's
    mean radius (3963 mi / 6378 km). Rows are narrowed in SQL with a
    latitude/longitude bounding box, then kept only if their great-circle
    central angle to the centre is within that angle.
"""

import logging
import math
import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from devcamper.exceptions import InvalidIdentifierError, NotFoundError, ValidationError
from devcamper.models.bootcamp import Bootcamp
from devcamper.schemas.bootcamp import BootcampCreate, BootcampUpdate, BootcampWithCourses
from devcamper.services.file_service import MediaFile, file_service
from devcamper.services.geocoder import geocoder
from devcamper.services.query_builder import (
    PageResult,
    QuerySpec,
    ResourceQuery,
    column_fields,
    fetch_page,
)

logger = logging.getLogger(__name__)

EARTH_RADIUS = {"mi": 3963.0, "km": 6378.0}

BOOTCAMP_QUERY = ResourceQuery(
    model=Bootcamp,
    serializer=BootcampWithCourses,
    fields=column_fields(
        Bootcamp,
        aliases={
            "location.street": Bootcamp.street,
            "location.city": Bootcamp.city,
            "location.state": Bootcamp.state,
            "location.zipcode": Bootcamp.zipcode,
            "location.country": Bootcamp.country,
        },
    ),
    populate=(selectinload(Bootcamp.courses),),
)


def parse_identifier(value: str) -> uuid.UUID:
    """UUID from a path segment; malformed values are a cast error (404)."""
    try:
        return uuid.UUID(str(value))
    except (ValueError, AttributeError):
        raise InvalidIdentifierError(value)


def central_angle(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle angle in radians between two points (haversine)."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = phi2 - phi1
    d_lambda = math.radians(lng2 - lng1)
    h = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * math.asin(min(1.0, math.sqrt(h)))


class BootcampService:
    """Bootcamp CRUD, radius search and media uploads."""

    async def list_bootcamps(self, db: AsyncSession, spec: QuerySpec) -> PageResult:
        return await fetch_page(db, BOOTCAMP_QUERY, spec)

    async def get_bootcamp(
        self, db: AsyncSession, bootcamp_id: str, with_courses: bool = False
    ) -> Bootcamp:
        """
        Fetch by id.

        Raises:
            InvalidIdentifierError: `bootcamp_id` is not a UUID
            NotFoundError:          no bootcamp has that id
        """
        key = parse_identifier(bootcamp_id)
        options = [selectinload(Bootcamp.courses)] if with_courses else []
        bootcamp = await db.get(Bootcamp, key, options=options)
        if bootcamp is None:
            raise NotFoundError(resource="Bootcamp", resource_id=bootcamp_id)
        return bootcamp

    async def create_bootcamp(self, db: AsyncSession, data: BootcampCreate) -> Bootcamp:
        """
        Geocode the address, derive the slug (model validator) and insert.

        The location is resolved before the row is added to the session, so
        a stored bootcamp always has either a geocoded location or none.
        """
        location = await geocoder.geocode(data.address)

        bootcamp = Bootcamp(**data.model_dump())
        bootcamp.apply_location(location)
        db.add(bootcamp)
        await db.commit()

        logger.info("Bootcamp created: %s (%s)", bootcamp.id, bootcamp.slug)
        return bootcamp

    async def update_bootcamp(
        self, db: AsyncSession, bootcamp_id: str, data: BootcampUpdate
    ) -> Bootcamp:
        """
        Apply the fields present in `data`. A new name re-derives the slug;
        a new address is geocoded again.
        """
        bootcamp = await self.get_bootcamp(db, bootcamp_id)
        changes = data.model_dump(exclude_unset=True)

        if "address" in changes and changes["address"] != bootcamp.address:
            bootcamp.apply_location(await geocoder.geocode(changes["address"]))

        for key, value in changes.items():
            setattr(bootcamp, key, value)
        await db.commit()

        logger.info("Bootcamp updated: %s fields=%s", bootcamp.id, sorted(changes))
        return bootcamp

    async def delete_bootcamp(self, db: AsyncSession, bootcamp_id: str) -> None:
        """Delete the bootcamp; the ORM cascade removes its courses."""
        bootcamp = await self.get_bootcamp(db, bootcamp_id, with_courses=True)
        course_count = len(bootcamp.courses)
        await db.delete(bootcamp)
        await db.commit()
        logger.info("Bootcamp deleted: %s (with %d courses)", bootcamp.id, course_count)

    async def bootcamps_in_radius(
        self,
        db: AsyncSession,
        zipcode: str,
        distance: float,
        unit: str = "mi",
    ) -> List[Bootcamp]:
        """
        Bootcamps within `distance` (miles or kilometres) of a postal code.

        Raises:
            ValidationError: negative distance, unknown unit, or a zipcode
                             the geocoder cannot resolve
        """
        if unit not in EARTH_RADIUS:
            raise ValidationError(f"Unit must be one of: {', '.join(EARTH_RADIUS)}", field="unit")
        if distance < 0:
            raise ValidationError("Distance must be zero or greater", field="distance")

        location = await geocoder.geocode(zipcode)
        if location is None:
            raise ValidationError(f"Could not resolve zipcode '{zipcode}' to a location", field="zipcode")

        lat, lng = location["latitude"], location["longitude"]
        radius = distance / EARTH_RADIUS[unit]

        stmt = select(Bootcamp).where(
            Bootcamp.latitude.is_not(None), Bootcamp.longitude.is_not(None)
        )
        stmt = stmt.where(*self._bounding_box(lat, lng, radius))
        candidates = (await db.execute(stmt.order_by(Bootcamp.created_at.desc()))).scalars().all()

        matches = [
            b for b in candidates
            if central_angle(lat, lng, b.latitude, b.longitude) <= radius
        ]
        logger.info(
            "Radius search %s %.1f%s: %d candidates, %d matches",
            zipcode, distance, unit, len(candidates), len(matches),
        )
        return matches

    @staticmethod
    def _bounding_box(lat: float, lng: float, radius: float) -> list:
        if radius >= math.pi:
            return []
        d_lat = math.degrees(radius)
        conditions = [
            Bootcamp.latitude >= lat - d_lat,
            Bootcamp.latitude <= lat + d_lat,
        ]
        # Longitude bounds only hold away from the poles and the antimeridian.
        if abs(lat) + d_lat < 90:
            d_lng = math.degrees(math.asin(min(1.0, math.sin(radius) / math.cos(math.radians(lat)))))
            if -180 <= lng - d_lng and lng + d_lng <= 180:
                conditions += [
                    Bootcamp.longitude >= lng - d_lng,
                    Bootcamp.longitude <= lng + d_lng,
                ]
        return conditions

    async def upload_media(
        self,
        db: AsyncSession,
        bootcamp_id: str,
        kind_name: str,
        upload: Optional[MediaFile],
    ) -> str:
        """
        Validate, store and record a photo or video.

        The record is only touched after the file is on disk, so a rejected
        or failed upload leaves the bootcamp unchanged.

        Once the new name is committed, an earlier upload stored under a
        different extension is deleted.

        Returns:
            The stored filename, e.g. "photo_<id>.jpg".
        """
        bootcamp = await self.get_bootcamp(db, bootcamp_id)
        kind = file_service.get_kind(kind_name)
        upload = file_service.validate(kind, upload)

        filename = file_service.build_filename(kind, str(bootcamp.id), upload.filename)
        previous = getattr(bootcamp, kind.name)
        stored_path = await file_service.store(kind, filename, upload.content)

        setattr(bootcamp, kind.name, filename)
        try:
            await db.commit()
        except Exception:
            if previous != filename:
                await file_service.cleanup_file(stored_path)
            raise

        # Only files this service named are removed; the default photo stays.
        if previous and previous != filename and previous.startswith(f"{kind.name}_{bootcamp.id}"):
            await file_service.cleanup_file(stored_path.with_name(previous))

        logger.info("Bootcamp %s %s set to %s", bootcamp.id, kind.name, filename)
        return filename


bootcamp_service = BootcampService()

"""
DevCamper Backend - Database Seeder
=====================================

Loads the sample bootcamps and courses in `SEED_DATA_DIR`, or wipes them.

    python -m devcamper.seeder -i     import data/bootcamps.json + data/courses.json
    python -m devcamper.seeder -d     delete all courses, then all bootcamps

Records go through the same schemas as the API, so a fixture that the API
would reject fails the import. Each bootcamp address is geocoded as on
create. The import runs in one transaction: on any failure nothing is
written, the traceback is logged and the process exits with status 1.
"""

import asyncio
import json
import logging
import sys
import uuid
from pathlib import Path
from typing import Any, Dict, List, Tuple

import typer
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from devcamper.config import settings
from devcamper.database import async_session_factory, dispose_engine
from devcamper.models.bootcamp import Bootcamp
from devcamper.models.course import Course
from devcamper.schemas.bootcamp import BootcampCreate
from devcamper.schemas.course import CourseCreate
from devcamper.services.course_service import update_average_cost
from devcamper.services.geocoder import geocoder

logger = logging.getLogger("devcamper.seeder")

app = typer.Typer(add_completion=False, help="Import or destroy the DevCamper sample data.")


def load_fixtures(data_dir: Path) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    with open(data_dir / "bootcamps.json", encoding="utf-8") as f:
        bootcamps = json.load(f)
    with open(data_dir / "courses.json", encoding="utf-8") as f:
        courses = json.load(f)
    return bootcamps, courses


async def import_data(db: AsyncSession, data_dir: Path) -> Tuple[int, int]:
    """
    Insert every fixture record and commit once.

    Returns:
        (bootcamps imported, courses imported)
    """
    bootcamp_rows, course_rows = load_fixtures(data_dir)

    for row in bootcamp_rows:
        data = BootcampCreate.model_validate({k: v for k, v in row.items() if k != "id"})
        bootcamp = Bootcamp(**data.model_dump())
        if row.get("id"):
            bootcamp.id = uuid.UUID(row["id"])
        bootcamp.apply_location(await geocoder.geocode(data.address))
        db.add(bootcamp)
    await db.flush()

    bootcamp_ids = set()
    for row in course_rows:
        data = CourseCreate.model_validate(
            {k: v for k, v in row.items() if k not in ("id", "bootcamp_id")}
        )
        course = Course(**data.model_dump(), bootcamp_id=uuid.UUID(row["bootcamp_id"]))
        if row.get("id"):
            course.id = uuid.UUID(row["id"])
        db.add(course)
        bootcamp_ids.add(course.bootcamp_id)
    await db.flush()

    for bootcamp_id in bootcamp_ids:
        await update_average_cost(db, bootcamp_id)
    await db.commit()
    return len(bootcamp_rows), len(course_rows)


async def destroy_data(db: AsyncSession) -> Tuple[int, int]:
    """
    Delete all courses, then all bootcamps.

    Returns:
        (bootcamps deleted, courses deleted)
    """
    courses = await db.execute(delete(Course))
    bootcamps = await db.execute(delete(Bootcamp))
    await db.commit()
    return bootcamps.rowcount, courses.rowcount


async def _run(action: str, data_dir: Path) -> None:
    try:
        async with async_session_factory() as db:
            try:
                if action == "import":
                    bootcamps, courses = await import_data(db, data_dir)
                    logger.info("Data imported: %d bootcamps, %d courses", bootcamps, courses)
                else:
                    bootcamps, courses = await destroy_data(db)
                    logger.info("Data destroyed: %d bootcamps, %d courses", bootcamps, courses)
            except Exception:
                await db.rollback()
                raise
    finally:
        await dispose_engine()


@app.command()
def main(
    import_: bool = typer.Option(False, "-i", "--import", help="Import the fixture data."),
    destroy: bool = typer.Option(False, "-d", "--destroy", help="Delete all bootcamps and courses."),
    data_dir: Path = typer.Option(
        Path(settings.seed_data_dir), "--data-dir", help="Directory holding the JSON fixtures."
    ),
) -> None:
    """Seed or clear the database. Pass exactly one of -i / -d."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    if import_ == destroy:
        typer.echo("Usage: python -m devcamper.seeder [-i | -d]", err=True)
        raise typer.Exit(code=2)

    action = "import" if import_ else "destroy"
    try:
        asyncio.run(_run(action, data_dir))
    except Exception:
        logger.exception("Seeder %s failed", action)
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()

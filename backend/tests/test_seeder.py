"""
DevCamper Backend - Seeder Tests
==================================

import_data/destroy_data run against the in-memory database with the
bundled fixtures; the CLI is driven through typer's CliRunner.
"""

import json
import uuid
from pathlib import Path

import pytest
from sqlalchemy import func, select
from typer.testing import CliRunner

from devcamper.models.bootcamp import Bootcamp
from devcamper.models.course import Course
from devcamper.seeder import app, destroy_data, import_data

DATA_DIR = Path(__file__).resolve().parent.parent / "data"
DEVWORKS_ID = uuid.UUID("5d713995-b721-4ed4-9b4a-b2f5a7d4b1f0")

runner = CliRunner()


async def _count(session, model) -> int:
    return await session.scalar(select(func.count()).select_from(model))


class TestImportData:

    @pytest.mark.asyncio
    async def test_imports_fixtures(self, db_session, fake_geocoder):
        bootcamps, courses = await import_data(db_session, DATA_DIR)

        assert (bootcamps, courses) == (4, 8)
        assert await _count(db_session, Bootcamp) == 4
        assert await _count(db_session, Course) == 8

        devworks = await db_session.get(Bootcamp, DEVWORKS_ID)
        assert devworks.slug == "devworks-bootcamp"
        assert devworks.city == "Boston"
        # (8000 + 10000) / 2
        assert devworks.average_cost == 9000

    @pytest.mark.asyncio
    async def test_invalid_fixture_aborts_import(self, db_session, fake_geocoder, tmp_path):
        bootcamps = json.loads((DATA_DIR / "bootcamps.json").read_text())
        bootcamps[1]["careers"] = ["Juggling"]
        (tmp_path / "bootcamps.json").write_text(json.dumps(bootcamps))
        (tmp_path / "courses.json").write_text((DATA_DIR / "courses.json").read_text())

        with pytest.raises(Exception):
            await import_data(db_session, tmp_path)
        await db_session.rollback()

        assert await _count(db_session, Bootcamp) == 0


class TestDestroyData:

    @pytest.mark.asyncio
    async def test_destroys_everything(self, db_session, fake_geocoder):
        await import_data(db_session, DATA_DIR)

        bootcamps, courses = await destroy_data(db_session)

        assert (bootcamps, courses) == (4, 8)
        assert await _count(db_session, Bootcamp) == 0
        assert await _count(db_session, Course) == 0


class TestCli:

    def test_no_flag_prints_usage(self):
        result = runner.invoke(app, [])
        assert result.exit_code == 2

    def test_both_flags_are_rejected(self):
        result = runner.invoke(app, ["-i", "-d"])
        assert result.exit_code == 2

    def test_failure_exits_non_zero(self, tmp_path):
        result = runner.invoke(app, ["-i", "--data-dir", str(tmp_path / "missing")])
        assert result.exit_code == 1

"""
DevCamper Backend - Media Upload Service Unit Tests
=====================================================

What:  Tests for FileService validation, naming and storage.

Test Strategy:
    ✅ Presence, media class and size checks, in that order
    ✅ Content sniffed with libmagic: a mislabelled file is rejected
    ✅ Deterministic <kind>_<id><ext> names
    ✅ Storage writes bytes; disk failures become FileStorageError
"""

import magic
import pytest
from unittest.mock import patch

from conftest import MP4_BYTES, PNG_BYTES
from devcamper.exceptions import FileStorageError, UploadRejectedError
from devcamper.services.file_service import FileService, MediaFile, MediaKind


@pytest.fixture
def photo_kind(tmp_path):
    return MediaKind(
        name="photo",
        mime_prefix="image/",
        max_size=100,
        directory=str(tmp_path / "photos"),
        label="an image",
    )


@pytest.fixture
def service(photo_kind):
    return FileService(kinds={"photo": photo_kind})


class TestValidate:

    def test_accepts_image_within_limit(self, service, photo_kind):
        upload = MediaFile("a.png", "image/png", PNG_BYTES.ljust(100, b"\0"))
        assert service.validate(photo_kind, upload) is upload

    def test_missing_file(self, service, photo_kind):
        with pytest.raises(UploadRejectedError, match="Please upload a file"):
            service.validate(photo_kind, None)

    def test_missing_filename(self, service, photo_kind):
        with pytest.raises(UploadRejectedError, match="Please upload a file"):
            service.validate(photo_kind, MediaFile("", "image/png", b"x"))

    def test_wrong_media_class(self, service, photo_kind):
        with pytest.raises(UploadRejectedError, match="Please upload an image file"):
            service.validate(photo_kind, MediaFile("a.pdf", "application/pdf", b"x"))

    def test_missing_content_type(self, service, photo_kind):
        with pytest.raises(UploadRejectedError, match="Please upload an image file"):
            service.validate(photo_kind, MediaFile("a.png", None, b"x"))

    def test_mime_check_is_case_insensitive(self, service, photo_kind):
        service.validate(photo_kind, MediaFile("a.png", "IMAGE/PNG", PNG_BYTES))

    def test_over_limit(self, service, photo_kind):
        with pytest.raises(UploadRejectedError) as exc_info:
            service.validate(photo_kind, MediaFile("a.png", "image/png", b"x" * 101))
        assert exc_info.value.message == "Please upload an image less than 100 bytes"
        assert exc_info.value.context["size"] == 101

    def test_type_checked_before_size(self, service, photo_kind):
        with pytest.raises(UploadRejectedError, match="an image file"):
            service.validate(photo_kind, MediaFile("a.txt", "text/plain", b"x" * 500))

    def test_empty_file(self, service, photo_kind):
        with pytest.raises(UploadRejectedError, match="empty"):
            service.validate(photo_kind, MediaFile("a.png", "image/png", b""))

    def test_mislabelled_script_is_rejected(self, service, photo_kind):
        script = MediaFile("evil.png", "image/png", b"#!/bin/sh\nrm -rf /\n")

        with pytest.raises(UploadRejectedError, match="Please upload an image file") as exc_info:
            service.validate(photo_kind, script)

        assert exc_info.value.context["content_type"] == "image/png"
        assert not exc_info.value.context["detected"].startswith("image/")

    def test_video_content_is_not_a_photo(self, service, photo_kind):
        with pytest.raises(UploadRejectedError, match="an image file"):
            service.validate(photo_kind, MediaFile("tour.png", "image/png", MP4_BYTES))


class TestDetectMimeType:

    def test_png(self):
        assert FileService.detect_mime_type(PNG_BYTES) == "image/png"

    def test_mp4(self):
        assert FileService.detect_mime_type(MP4_BYTES).startswith("video/")

    def test_libmagic_failure_becomes_storage_error(self):
        with patch(
            "devcamper.services.file_service.magic.from_buffer",
            side_effect=magic.MagicException("broken database"),
        ):
            with pytest.raises(FileStorageError, match="Could not verify file type"):
                FileService.detect_mime_type(PNG_BYTES)


class TestNaming:

    def test_name_uses_kind_id_and_lowercased_extension(self, photo_kind):
        assert FileService.build_filename(photo_kind, "abc", "My Photo.JPeG") == "photo_abc.jpeg"

    def test_name_without_extension(self, photo_kind):
        assert FileService.build_filename(photo_kind, "abc", "README") == "photo_abc"

    def test_unknown_kind(self, service):
        with pytest.raises(ValueError, match="Unknown media kind"):
            service.get_kind("audio")


class TestStore:

    @pytest.mark.asyncio
    async def test_store_creates_directory_and_writes(self, service, photo_kind, tmp_path):
        path = await service.store(photo_kind, "photo_abc.png", b"png-bytes")

        assert path == tmp_path / "photos" / "photo_abc.png"
        assert path.read_bytes() == b"png-bytes"

    @pytest.mark.asyncio
    async def test_store_overwrites_previous_upload(self, service, photo_kind):
        await service.store(photo_kind, "photo_abc.png", b"old")
        path = await service.store(photo_kind, "photo_abc.png", b"new")
        assert path.read_bytes() == b"new"

    @pytest.mark.asyncio
    async def test_disk_failure_becomes_storage_error(self, service, photo_kind):
        with patch("devcamper.services.file_service.aiofiles.open", side_effect=OSError("disk full")):
            with pytest.raises(FileStorageError) as exc_info:
                await service.store(photo_kind, "photo_abc.png", b"x")

        assert exc_info.value.message == "Problem with file upload"
        assert exc_info.value.context["os_error"] == "disk full"

    @pytest.mark.asyncio
    async def test_cleanup_removes_file(self, service, photo_kind):
        path = await service.store(photo_kind, "photo_abc.png", b"x")
        await service.cleanup_file(path)
        assert not path.exists()

    @pytest.mark.asyncio
    async def test_cleanup_of_missing_file_is_quiet(self, service, tmp_path):
        await service.cleanup_file(tmp_path / "never-written.png")

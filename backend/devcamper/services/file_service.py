"""
DevCamper Backend - Media Upload Service
==========================================

What:  Validates and stores bootcamp photos and videos.
How:   Checks that a file is attached, that its declared MIME type belongs to
       the expected media class, and that it fits under the configured size
       ceiling. The content bytes are then sniffed with libmagic, so a
       renamed or mislabelled file is caught too. Accepted files are written
       with aiofiles under a deterministic name.
Who:   BootcampService.upload_media().

Naming:
    <kind>_<bootcamp_id><original extension>
    e.g. photo_5d713995-b721-4ed4-9b4a-b2f5a7d4b1f0.jpg

    A bootcamp has one photo and one video, so a new upload of the same
    extension overwrites the previous file.

Rejections (UploadRejectedError → 400):
    - no file attached
    - MIME type outside image/* (photo) or video/* (video), whether declared
      by the client or detected from the content
    - size above MAX_PHOTO_UPLOAD / MAX_VIDEO_UPLOAD
Disk failures raise FileStorageError → 500 "Problem with file upload".
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

import aiofiles
import magic

from devcamper.config import settings
from devcamper.exceptions import FileStorageError, UploadRejectedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MediaKind:
    """Upload rules for one kind of media."""
    name: str
    mime_prefix: str
    max_size: int
    directory: str
    label: str


def media_kinds() -> Dict[str, MediaKind]:
    """Rules for photo and video, read from the current settings."""
    return {
        "photo": MediaKind(
            name="photo",
            mime_prefix="image/",
            max_size=settings.max_photo_upload,
            directory=settings.photo_upload_path,
            label="an image",
        ),
        "video": MediaKind(
            name="video",
            mime_prefix="video/",
            max_size=settings.max_video_upload,
            directory=settings.video_upload_path,
            label="a video",
        ),
    }


@dataclass(frozen=True)
class MediaFile:
    """An uploaded file as received from the client."""
    filename: str
    content_type: Optional[str]
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


class FileService:
    """
    Upload validation and storage.

    Args:
        kinds: Override the media rules (tests point directories at tmp_path).
    """

    def __init__(self, kinds: Optional[Dict[str, MediaKind]] = None):
        self._kinds = kinds

    @property
    def kinds(self) -> Dict[str, MediaKind]:
        return self._kinds if self._kinds is not None else media_kinds()

    def get_kind(self, name: str) -> MediaKind:
        try:
            return self.kinds[name]
        except KeyError:
            raise ValueError(f"Unknown media kind '{name}'")

    def validate(self, kind: MediaKind, upload: Optional[MediaFile]) -> MediaFile:
        """
        Check presence, media class and size. Cheapest checks first; the
        content is sniffed last.

        Raises:
            UploadRejectedError with a message the client can act on.
            FileStorageError if libmagic cannot inspect the content.
        """
        if upload is None or not upload.filename:
            raise UploadRejectedError("Please upload a file")

        content_type = (upload.content_type or "").lower()
        if not content_type.startswith(kind.mime_prefix):
            raise UploadRejectedError(
                f"Please upload {kind.label} file",
                context={"content_type": content_type, "expected": kind.mime_prefix},
            )

        if upload.size > kind.max_size:
            raise UploadRejectedError(
                f"Please upload {kind.label} less than {kind.max_size} bytes",
                context={"size": upload.size, "max_size": kind.max_size},
            )

        if upload.size == 0:
            raise UploadRejectedError("Uploaded file is empty")

        detected = self.detect_mime_type(upload.content)
        if not detected.startswith(kind.mime_prefix):
            logger.warning(
                "Rejected %s %s: declared %s, content is %s",
                kind.name, upload.filename, content_type, detected,
            )
            raise UploadRejectedError(
                f"Please upload {kind.label} file",
                context={"content_type": content_type, "detected": detected},
            )

        return upload

    @staticmethod
    def detect_mime_type(content: bytes) -> str:
        """MIME type of `content` according to its header bytes."""
        try:
            return magic.from_buffer(content, mime=True).lower()
        except magic.MagicException as e:
            logger.error("MIME type detection failed: %s", str(e))
            raise FileStorageError(
                message="Could not verify file type",
                context={"error": str(e)},
            )

    @staticmethod
    def build_filename(kind: MediaKind, owner_id: str, original_name: str) -> str:
        extension = Path(original_name).suffix.lower()
        return f"{kind.name}_{owner_id}{extension}"

    async def store(self, kind: MediaKind, filename: str, content: bytes) -> Path:
        """
        Write `content` to `<kind.directory>/<filename>`.

        Raises:
            FileStorageError if the directory cannot be created or the write fails.
        """
        target = Path(kind.directory) / filename
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(target, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store %s at %s: %s", kind.name, target, str(e))
            raise FileStorageError(context={"path": str(target), "os_error": str(e)})

        logger.info("Stored %s %s (%d bytes)", kind.name, filename, len(content))
        return target

    async def cleanup_file(self, file_path: Path) -> None:
        """
        Best-effort removal of a stored file that is no longer referenced.
        Errors are logged, never raised.
        """
        try:
            if file_path.exists():
                os.remove(file_path)
                logger.info("Cleaned up file: %s", file_path.name)
        except OSError as e:
            logger.warning("Failed to clean up file %s: %s", file_path, str(e))


file_service = FileService()

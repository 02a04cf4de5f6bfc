"""
DevCamper Backend - Photo/Video Upload Endpoint Tests
=======================================================

What we test:
    ✅ Accepted photo: stored as photo_<id><ext>, record updated
    ✅ Accepted video: stored under the video directory, `video` updated
    ✅ No file / wrong media class / too large → 400, record unchanged
    ✅ Content that is not an image is rejected despite an image/* header
    ✅ Re-upload with a new extension removes the superseded file
    ✅ Unknown bootcamp → 404
"""

import uuid

import pytest

from conftest import MP4_BYTES, PNG_BYTES, bootcamp_payload
from devcamper.config import settings

BASE = "/api/v1/bootcamps"


async def _bootcamp(client):
    response = await client.post(BASE, json=bootcamp_payload())
    return response.json()["data"]


async def _photo_of(client, bootcamp_id):
    return (await client.get(f"{BASE}/{bootcamp_id}")).json()["data"]["photo"]


class TestPhotoUpload:

    @pytest.mark.asyncio
    async def test_photo_is_stored_and_recorded(self, test_client, upload_dirs, sample_image_bytes):
        photos, _ = upload_dirs
        bootcamp = await _bootcamp(test_client)

        response = await test_client.put(
            f"{BASE}/{bootcamp['id']}/photo",
            files={"file": ("Campus.JPG", sample_image_bytes, "image/jpeg")},
        )

        assert response.status_code == 200
        expected = f"photo_{bootcamp['id']}.jpg"
        assert response.json() == {"success": True, "data": expected}
        assert (photos / expected).read_bytes() == sample_image_bytes
        assert await _photo_of(test_client, bootcamp["id"]) == expected

    @pytest.mark.asyncio
    async def test_missing_file_is_rejected(self, test_client):
        bootcamp = await _bootcamp(test_client)

        response = await test_client.put(
            f"{BASE}/{bootcamp['id']}/photo",
            files={"attachment": ("notes.txt", b"hello", "text/plain")},
        )

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Please upload a file"}
        assert await _photo_of(test_client, bootcamp["id"]) == "no-photo.jpg"

    @pytest.mark.asyncio
    async def test_non_image_is_rejected(self, test_client, upload_dirs):
        photos, _ = upload_dirs
        bootcamp = await _bootcamp(test_client)

        response = await test_client.put(
            f"{BASE}/{bootcamp['id']}/photo",
            files={"file": ("notes.txt", b"hello", "text/plain")},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Please upload an image file"
        assert await _photo_of(test_client, bootcamp["id"]) == "no-photo.jpg"
        assert not photos.exists() or not any(photos.iterdir())

    @pytest.mark.asyncio
    async def test_script_labelled_as_png_is_rejected(self, test_client, upload_dirs):
        photos, _ = upload_dirs
        bootcamp = await _bootcamp(test_client)

        response = await test_client.put(
            f"{BASE}/{bootcamp['id']}/photo",
            files={"file": ("evil.png", b"#!/bin/sh\nrm -rf /\n", "image/png")},
        )

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Please upload an image file"}
        assert await _photo_of(test_client, bootcamp["id"]) == "no-photo.jpg"
        assert not photos.exists() or not any(photos.iterdir())

    @pytest.mark.asyncio
    async def test_new_extension_replaces_previous_file(self, test_client, upload_dirs, sample_image_bytes):
        photos, _ = upload_dirs
        bootcamp = await _bootcamp(test_client)
        url = f"{BASE}/{bootcamp['id']}/photo"

        await test_client.put(url, files={"file": ("a.jpg", sample_image_bytes, "image/jpeg")})
        response = await test_client.put(url, files={"file": ("b.png", PNG_BYTES, "image/png")})

        assert response.status_code == 200
        assert sorted(p.name for p in photos.iterdir()) == [f"photo_{bootcamp['id']}.png"]
        assert await _photo_of(test_client, bootcamp["id"]) == f"photo_{bootcamp['id']}.png"

    @pytest.mark.asyncio
    async def test_oversized_image_is_rejected(self, test_client, monkeypatch):
        monkeypatch.setattr(settings, "max_photo_upload", 10)
        bootcamp = await _bootcamp(test_client)

        response = await test_client.put(
            f"{BASE}/{bootcamp['id']}/photo",
            files={"file": ("big.png", b"x" * 11, "image/png")},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Please upload an image less than 10 bytes"
        assert await _photo_of(test_client, bootcamp["id"]) == "no-photo.jpg"

    @pytest.mark.asyncio
    async def test_unknown_bootcamp(self, test_client, sample_image_bytes):
        response = await test_client.put(
            f"{BASE}/{uuid.uuid4()}/photo",
            files={"file": ("a.jpg", sample_image_bytes, "image/jpeg")},
        )
        assert response.status_code == 404


class TestVideoUpload:

    @pytest.mark.asyncio
    async def test_video_is_stored_in_video_field(self, test_client, upload_dirs):
        photos, videos = upload_dirs
        bootcamp = await _bootcamp(test_client)

        response = await test_client.put(
            f"{BASE}/{bootcamp['id']}/video",
            files={"file": ("tour.mp4", MP4_BYTES, "video/mp4")},
        )

        assert response.status_code == 200
        expected = f"video_{bootcamp['id']}.mp4"
        assert response.json()["data"] == expected
        assert (videos / expected).exists()

        data = (await test_client.get(f"{BASE}/{bootcamp['id']}")).json()["data"]
        assert data["video"] == expected
        assert data["photo"] == "no-photo.jpg"

    @pytest.mark.asyncio
    async def test_image_is_not_a_video(self, test_client, sample_image_bytes):
        bootcamp = await _bootcamp(test_client)

        response = await test_client.put(
            f"{BASE}/{bootcamp['id']}/video",
            files={"file": ("a.jpg", sample_image_bytes, "image/jpeg")},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Please upload a video file"

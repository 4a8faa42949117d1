"""Tests for image upload validation and the MinIO-backed uploader."""

from io import BytesIO
from unittest.mock import MagicMock

import pytest
from fastapi import UploadFile
from PIL import Image
from starlette.datastructures import Headers

from core import AppError, Settings
from services.images import (
    ImageUploader,
    UploadTooLargeError,
    read_upload_file,
    validate_content_type,
    verify_image_bytes,
)


def make_image_bytes(image_format: str = "PNG") -> bytes:
    buffer = BytesIO()
    Image.new("RGB", (8, 8), color=(10, 20, 30)).save(buffer, format=image_format)
    return buffer.getvalue()


def make_upload(data: bytes, content_type: str = "image/png") -> UploadFile:
    return UploadFile(
        file=BytesIO(data),
        filename="upload",
        headers=Headers({"content-type": content_type}),
    )


@pytest.mark.parametrize(
    ("content_type", "extension"),
    [("image/png", "png"), ("image/jpeg", "jpeg"), ("IMAGE/JPG; charset=binary", "jpg")],
)
def test_validate_content_type_accepts_images(content_type, extension):
    assert validate_content_type(content_type) == extension


@pytest.mark.parametrize("content_type", [None, "", "image/gif", "application/pdf"])
def test_validate_content_type_rejects_others(content_type):
    with pytest.raises(AppError) as excinfo:
        validate_content_type(content_type)
    assert excinfo.value.message == "Invalid file type"


@pytest.mark.asyncio
async def test_read_upload_file_enforces_cap():
    with pytest.raises(UploadTooLargeError):
        await read_upload_file(make_upload(b"x" * 11), max_bytes=10)
    assert await read_upload_file(make_upload(b"x" * 10), max_bytes=10) == b"x" * 10


def test_verify_image_bytes():
    verify_image_bytes(make_image_bytes("JPEG"))
    with pytest.raises(ValueError):
        verify_image_bytes(b"")
    with pytest.raises(ValueError):
        verify_image_bytes(b"definitely not an image")


@pytest.mark.asyncio
async def test_uploader_stores_object_and_returns_public_url():
    client = MagicMock()
    client.bucket_exists.return_value = True
    settings = Settings(media_public_base_url="https://cdn.wander.io", minio_bucket="media")
    uploader = ImageUploader(settings, client=client)

    url = await uploader.upload(make_upload(make_image_bytes()), folder="posts/u1")

    assert url.startswith("https://cdn.wander.io/media/posts/u1/")
    assert url.endswith(".png")
    bucket, key = client.put_object.call_args.args
    assert bucket == "media"
    assert url.endswith(key)
    assert client.put_object.call_args.kwargs["content_type"] == "image/png"


@pytest.mark.asyncio
async def test_uploader_rejects_oversized_file():
    client = MagicMock()
    uploader = ImageUploader(Settings(upload_max_bytes=16), client=client)

    with pytest.raises(AppError) as excinfo:
        await uploader.upload(make_upload(make_image_bytes()), folder="posts/u1")

    assert excinfo.value.message == "File too large"
    client.put_object.assert_not_called()


@pytest.mark.asyncio
async def test_uploader_rejects_mislabelled_file():
    client = MagicMock()
    uploader = ImageUploader(Settings(), client=client)

    with pytest.raises(AppError) as excinfo:
        await uploader.upload(make_upload(b"plain text"), folder="posts/u1")

    assert excinfo.value.status_code == 400
    client.put_object.assert_not_called()


@pytest.mark.asyncio
async def test_uploader_wraps_storage_failures():
    client = MagicMock()
    client.bucket_exists.return_value = True
    client.put_object.side_effect = ConnectionError("minio down")
    uploader = ImageUploader(Settings(), client=client)

    with pytest.raises(AppError) as excinfo:
        await uploader.upload(make_upload(make_image_bytes()), folder="posts/u1")

    assert excinfo.value.status_code == 500
    assert excinfo.value.message == "Could not upload image, try again."


@pytest.mark.asyncio
async def test_discard_removes_hosted_object_only():
    client = MagicMock()
    settings = Settings(media_public_base_url="https://cdn.wander.io", minio_bucket="media")
    uploader = ImageUploader(settings, client=client)

    await uploader.discard(None)
    await uploader.discard("https://elsewhere.example/avatar.png")
    client.remove_object.assert_not_called()

    await uploader.discard("https://cdn.wander.io/media/posts/u1/abc.png")
    client.remove_object.assert_called_once_with("media", "posts/u1/abc.png")


@pytest.mark.asyncio
async def test_discard_logs_storage_failures(caplog):
    client = MagicMock()
    client.remove_object.side_effect = ConnectionError("minio down")
    settings = Settings(media_public_base_url="https://cdn.wander.io", minio_bucket="media")
    uploader = ImageUploader(settings, client=client)

    with caplog.at_level("WARNING", logger="services.images"):
        await uploader.discard("https://cdn.wander.io/media/posts/u1/abc.png")

    assert "Image cleanup failed" in caplog.text

"""Image upload validation and hosting."""

from __future__ import annotations

import asyncio
import logging
from io import BytesIO
from typing import Protocol
from uuid import uuid4

from fastapi import UploadFile
from minio import Minio
from PIL import Image, UnidentifiedImageError

from core import AppError, ErrorKind, Settings
from .storage import (
    build_minio_client,
    delete_object,
    ensure_bucket,
    object_key_from_url,
    put_object_bytes,
    public_object_url,
)

logger = logging.getLogger(__name__)

MIME_TYPE_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpeg",
    "image/jpg": "jpg",
}
READ_CHUNK_SIZE = 64 * 1024


class UploadTooLargeError(ValueError):
    """Raised when an uploaded file exceeds the configured byte cap."""


class ImageHost(Protocol):
    async def upload(self, upload: UploadFile, *, folder: str) -> str: ...

    async def discard(self, url: str | None) -> None: ...


async def read_upload_file(upload: UploadFile, max_bytes: int) -> bytes:
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await upload.read(READ_CHUNK_SIZE)
        if not chunk:
            break
        total += len(chunk)
        if total > max_bytes:
            raise UploadTooLargeError(f"File too large, maximum is {max_bytes} bytes")
        chunks.append(chunk)
    return b"".join(chunks)


def validate_content_type(content_type: str | None) -> str:
    normalized = (content_type or "").split(";", 1)[0].strip().lower()
    extension = MIME_TYPE_EXTENSIONS.get(normalized)
    if extension is None:
        raise AppError(ErrorKind.BAD_REQUEST, "Invalid file type")
    return extension


def verify_image_bytes(data: bytes) -> None:
    if not data:
        raise ValueError("Invalid file")
    try:
        with Image.open(BytesIO(data)) as image:
            image.verify()
    except (UnidentifiedImageError, OSError) as exc:
        raise ValueError("Invalid image file") from exc


class ImageUploader:
    """Validates uploads and stores them in the configured MinIO bucket."""

    def __init__(self, settings: Settings, client: Minio | None = None) -> None:
        self._settings = settings
        self._client = client

    def _get_client(self) -> Minio:
        if self._client is None:
            self._client = build_minio_client(self._settings)
        return self._client

    async def upload(self, upload: UploadFile, *, folder: str) -> str:
        extension = validate_content_type(upload.content_type)
        try:
            data = await read_upload_file(upload, self._settings.upload_max_bytes)
            await asyncio.to_thread(verify_image_bytes, data)
        except UploadTooLargeError as exc:
            raise AppError(ErrorKind.BAD_REQUEST, "File too large", description=str(exc)) from exc
        except ValueError as exc:
            raise AppError(ErrorKind.BAD_REQUEST, str(exc)) from exc

        object_key = f"{folder}/{uuid4().hex}.{extension}"
        content_type = f"image/{'jpeg' if extension == 'jpg' else extension}"
        await asyncio.to_thread(self._store, object_key, data, content_type)
        return public_object_url(
            self._settings.media_public_base_url,
            self._settings.minio_bucket,
            object_key,
        )

    def _store(self, object_key: str, data: bytes, content_type: str) -> None:
        client = self._get_client()
        try:
            ensure_bucket(client, self._settings.minio_bucket)
            put_object_bytes(client, self._settings.minio_bucket, object_key, data, content_type)
        except Exception as exc:
            logger.error(
                "Image upload failed",
                extra={"object_key": object_key},
                exc_info=exc,
            )
            raise AppError(ErrorKind.SERVER_ERROR, "Could not upload image, try again.") from exc

    async def discard(self, url: str | None) -> None:
        """Remove a previously uploaded image; failures are only logged."""
        if not url:
            return
        object_key = object_key_from_url(
            self._settings.media_public_base_url,
            self._settings.minio_bucket,
            url,
        )
        if object_key is None:
            return
        await asyncio.to_thread(self._remove, object_key)

    def _remove(self, object_key: str) -> None:
        try:
            delete_object(self._get_client(), self._settings.minio_bucket, object_key)
        except Exception as exc:
            logger.warning(
                "Image cleanup failed",
                extra={"object_key": object_key},
                exc_info=exc,
            )

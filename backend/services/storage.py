"""MinIO client utilities."""

from __future__ import annotations

from io import BytesIO

from minio import Minio
from minio.error import S3Error

from core import Settings


def build_minio_client(settings: Settings) -> Minio:
    """Return a MinIO client configured from ``settings``."""
    return Minio(
        settings.minio_endpoint,
        access_key=settings.minio_access_key,
        secret_key=settings.minio_secret_key,
        secure=settings.minio_secure,
    )


def ensure_bucket(client: Minio, bucket_name: str) -> None:
    """Ensure the bucket exists."""
    if client.bucket_exists(bucket_name):  # pragma: no cover - network call
        return

    try:
        client.make_bucket(bucket_name)  # pragma: no cover - network call
    except S3Error as exc:  # pragma: no cover - handle race conditions
        allowed_codes = {"BucketAlreadyOwnedByYou", "BucketAlreadyExists"}
        if exc.code not in allowed_codes:
            raise


def put_object_bytes(
    client: Minio,
    bucket_name: str,
    object_key: str,
    data: bytes,
    content_type: str,
) -> None:
    client.put_object(
        bucket_name,
        object_key,
        data=BytesIO(data),
        length=len(data),
        content_type=content_type,
    )


def delete_object(client: Minio, bucket_name: str, object_key: str) -> None:
    """Delete an object from the bucket when it exists."""
    try:
        client.remove_object(bucket_name, object_key)  # pragma: no cover - network call
    except S3Error as exc:  # pragma: no cover - network call
        allowed_codes = {"NoSuchKey", "NoSuchObject", "ResourceNotFound"}
        if exc.code not in allowed_codes:
            raise


def public_object_url(base_url: str, bucket_name: str, object_key: str) -> str:
    normalized_object_key = object_key.strip().lstrip("/")
    if not normalized_object_key:
        raise ValueError("object_key must not be empty")
    return f"{base_url.rstrip('/')}/{bucket_name}/{normalized_object_key}"


def object_key_from_url(base_url: str, bucket_name: str, url: str) -> str | None:
    """Return the object key behind a URL built by ``public_object_url``.

    URLs that point anywhere else, such as the default avatar, give None.
    """
    prefix = f"{base_url.rstrip('/')}/{bucket_name}/"
    if not url.startswith(prefix):
        return None
    return url[len(prefix):] or None

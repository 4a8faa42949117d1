"""Business logic services."""

from .geocoding import Coordinates, Geocoder, HereGeocoder, LOCATION_NOT_FOUND_MESSAGE
from .images import (
    MIME_TYPE_EXTENSIONS,
    ImageHost,
    ImageUploader,
    UploadTooLargeError,
    read_upload_file,
)
from .mailer import AccountMailer, Mailer
from .storage import (
    build_minio_client,
    delete_object,
    ensure_bucket,
    public_object_url,
)

__all__ = [
    "Coordinates",
    "Geocoder",
    "HereGeocoder",
    "LOCATION_NOT_FOUND_MESSAGE",
    "MIME_TYPE_EXTENSIONS",
    "ImageHost",
    "ImageUploader",
    "UploadTooLargeError",
    "read_upload_file",
    "AccountMailer",
    "Mailer",
    "build_minio_client",
    "delete_object",
    "ensure_bucket",
    "public_object_url",
]

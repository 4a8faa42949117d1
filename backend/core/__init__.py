"""Core configuration, security and error primitives."""

from .config import Settings, get_settings, settings
from .errors import AppError, ErrorKind, STATUS_BY_KIND, duplicate_key_error
from .security import hash_password, needs_rehash, verify_password
from .tokens import TokenVerification, sign_token, verify_token

__all__ = [
    "Settings",
    "get_settings",
    "settings",
    "AppError",
    "ErrorKind",
    "STATUS_BY_KIND",
    "duplicate_key_error",
    "hash_password",
    "needs_rehash",
    "verify_password",
    "TokenVerification",
    "sign_token",
    "verify_token",
]

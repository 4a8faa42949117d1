"""Database helpers."""

from .errors import is_unique_violation, unique_violation_fields
from .session import AsyncSessionMaker, async_engine, build_engine, get_session

__all__ = [
    "AsyncSessionMaker",
    "async_engine",
    "build_engine",
    "get_session",
    "is_unique_violation",
    "unique_violation_fields",
]

"""Database error helpers."""

from __future__ import annotations

import re

from sqlalchemy.exc import IntegrityError

_SQLITE_UNIQUE_PATTERN = re.compile(r"UNIQUE constraint failed: (?P<columns>[\w\.,\s]+)")
_POSTGRES_KEY_PATTERN = re.compile(r"Key \((?P<columns>[^)]+)\)=")


def is_unique_violation(error: IntegrityError) -> bool:
    """Return True when the IntegrityError indicates a unique-constraint conflict."""
    original = getattr(error, "orig", None)
    sqlstate = getattr(original, "sqlstate", None) or getattr(original, "pgcode", None)
    if sqlstate == "23505":
        return True
    message = str(original or error).lower()
    return "duplicate key" in message or "unique constraint" in message


def unique_violation_fields(error: IntegrityError) -> list[str]:
    """Return the column names named by a unique-constraint violation, if any."""
    message = str(getattr(error, "orig", None) or error)
    match = _SQLITE_UNIQUE_PATTERN.search(message) or _POSTGRES_KEY_PATTERN.search(message)
    if match is None:
        return []
    fields: list[str] = []
    for raw_column in match.group("columns").split(","):
        column = raw_column.strip().rsplit(".", 1)[-1]
        if column and column not in fields:
            fields.append(column)
    return fields


__all__ = ["is_unique_violation", "unique_violation_fields"]

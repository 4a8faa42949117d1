"""Repository-style set and field mutations over association rows."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeVar, cast

from sqlalchemy import and_, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement
from sqlmodel import SQLModel

from db.errors import is_unique_violation

ModelT = TypeVar("ModelT", bound=SQLModel)


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def _match(model: type[SQLModel], keys: Mapping[str, Any]) -> ColumnElement[bool]:
    return cast(
        ColumnElement[bool],
        and_(*(_eq(getattr(model, name), value) for name, value in keys.items())),
    )


async def add_to_set(session: AsyncSession, model: type[SQLModel], **keys: Any) -> bool:
    """Insert an association row and commit.

    Returns False, without raising, when the row already exists, including
    when a concurrent request inserted it first.
    """
    existing = await session.get(model, dict(keys))
    if existing is not None:
        return False

    session.add(model(**keys))
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        if not is_unique_violation(exc):
            raise
        return False
    return True


async def remove_from_set(session: AsyncSession, model: type[SQLModel], **keys: Any) -> bool:
    """Delete an association row and commit; False when nothing matched."""
    result = await session.execute(delete(model).where(_match(model, keys)))
    await session.commit()
    return bool(getattr(result, "rowcount", 0))


async def update_fields(
    session: AsyncSession,
    instance: ModelT,
    updates: Mapping[str, Any],
) -> list[str]:
    """Apply changed values to ``instance`` and commit; return changed names."""
    changed: list[str] = []
    for name, value in updates.items():
        if getattr(instance, name) != value:
            setattr(instance, name, value)
            changed.append(name)
    if not changed:
        return changed

    session.add(instance)
    await session.commit()
    await session.refresh(instance)
    return changed

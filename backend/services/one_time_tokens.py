"""Single-use token store backing email verification and password reset."""

from __future__ import annotations

import hmac
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, cast

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from core import AppError, ErrorKind
from models import OneTimeToken, TokenPurpose

ONE_TIME_TOKEN_TTL = timedelta(hours=2)
TOKEN_BYTES = 32
INVALID_TOKEN_MESSAGE = "Invalid or expired token"


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def _gte(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column >= value)


def _lt(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column < value)


def ensure_aware(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def generate_token_value() -> str:
    return secrets.token_hex(TOKEN_BYTES)


def is_expired(token: OneTimeToken, *, now: datetime | None = None) -> bool:
    current = now or datetime.now(timezone.utc)
    return ensure_aware(token.created_at) + ONE_TIME_TOKEN_TTL <= current


async def create_one_time_token(
    session: AsyncSession,
    *,
    user_id: str,
    token: str,
    purpose: TokenPurpose,
) -> OneTimeToken:
    token_obj = OneTimeToken(user_id=user_id, token=token, purpose=purpose.value)
    session.add(token_obj)
    await session.commit()
    await session.refresh(token_obj)
    return token_obj


async def find_one_time_token(
    session: AsyncSession,
    *,
    user_id: str,
    purpose: TokenPurpose,
    token: str | None = None,
) -> OneTimeToken | None:
    """Return the newest live token for the user, optionally matching ``token``."""
    cutoff = datetime.now(timezone.utc) - ONE_TIME_TOKEN_TTL
    stmt = (
        select(OneTimeToken)
        .where(
            _eq(OneTimeToken.user_id, user_id),
            _eq(OneTimeToken.purpose, purpose.value),
            _gte(OneTimeToken.created_at, cutoff),
        )
        .order_by(cast(Any, OneTimeToken.created_at).desc())
    )
    result = await session.execute(stmt)
    for candidate in result.scalars().all():
        if is_expired(candidate):
            continue
        if token is None or hmac.compare_digest(candidate.token, token):
            return candidate
    return None


async def get_or_create_one_time_token(
    session: AsyncSession,
    *,
    user_id: str,
    purpose: TokenPurpose,
) -> OneTimeToken:
    existing = await find_one_time_token(session, user_id=user_id, purpose=purpose)
    if existing is not None:
        return existing
    return await create_one_time_token(
        session,
        user_id=user_id,
        token=generate_token_value(),
        purpose=purpose,
    )


async def consume_one_time_token(
    session: AsyncSession,
    *,
    user_id: str,
    token: str,
    purpose: TokenPurpose,
) -> OneTimeToken:
    """Delete the matching token; the caller commits with its own change.

    The delete must remove exactly one row, so of two requests racing on
    the same token only the first one through the write lock succeeds.
    """
    token_obj = await find_one_time_token(
        session,
        user_id=user_id,
        purpose=purpose,
        token=token,
    )
    if token_obj is None:
        raise AppError(ErrorKind.UNAUTHORIZED, INVALID_TOKEN_MESSAGE)

    result = await session.execute(
        delete(OneTimeToken)
        .where(_eq(OneTimeToken.id, token_obj.id))
        .execution_options(synchronize_session=False)
    )
    if getattr(result, "rowcount", 0) != 1:
        await session.rollback()
        raise AppError(ErrorKind.UNAUTHORIZED, INVALID_TOKEN_MESSAGE)
    session.expunge(token_obj)
    return token_obj


async def prune_expired_one_time_tokens(
    session: AsyncSession,
    *,
    now: datetime | None = None,
) -> int:
    cutoff = (now or datetime.now(timezone.utc)) - ONE_TIME_TOKEN_TTL
    result = await session.execute(
        delete(OneTimeToken).where(_lt(OneTimeToken.created_at, cutoff))
    )
    await session.commit()
    return int(getattr(result, "rowcount", 0) or 0)

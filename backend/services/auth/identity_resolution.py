"""Identity normalization and credential checks."""

from __future__ import annotations

from typing import Any, cast

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from core import AppError, ErrorKind, hash_password, needs_rehash, verify_password
from models import User

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"
UNVERIFIED_USER_MESSAGE = "User is not verified"


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def normalize_email(value: str) -> str:
    return value.strip().lower()


async def authenticate(
    session: AsyncSession,
    *,
    email: str,
    password: str,
) -> User:
    """Return the verified user owning these credentials.

    Unknown email and wrong password share one message; the unverified
    message is only revealed once the password has matched.
    """
    result = await session.execute(
        select(User).where(_eq(User.email, normalize_email(email))).limit(1)
    )
    user = result.scalar_one_or_none()
    if user is None or not verify_password(password, user.password_hash):
        raise AppError(ErrorKind.FORBIDDEN, INVALID_CREDENTIALS_MESSAGE)
    if not user.is_verified:
        raise AppError(ErrorKind.FORBIDDEN, UNVERIFIED_USER_MESSAGE)

    if needs_rehash(user.password_hash):
        user.password_hash = hash_password(password)
        session.add(user)
        await session.commit()
        await session.refresh(user)
    return user

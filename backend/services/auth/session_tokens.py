"""Access and refresh token issuance and refresh rotation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from core import Settings, sign_token, verify_token
from models import User

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


@dataclass(frozen=True, slots=True)
class SessionTokens:
    access_token: str
    refresh_token: str


def _base_claims(user: User, token_type: str) -> dict[str, Any]:
    return {"type": token_type, "user_id": user.id, "email": user.email}


def create_access_token(user: User, *, settings: Settings) -> str:
    return sign_token(
        _base_claims(user, ACCESS_TOKEN_TYPE),
        settings.access_token_secret,
        expires_in=timedelta(minutes=settings.access_token_expire_minutes),
    )


def create_refresh_token(user: User, *, settings: Settings) -> str:
    claims = _base_claims(user, REFRESH_TOKEN_TYPE)
    claims["token_version"] = user.token_version
    return sign_token(
        claims,
        settings.refresh_token_secret,
        expires_in=timedelta(minutes=settings.refresh_token_expire_minutes),
    )


def issue_session_tokens(user: User, *, settings: Settings) -> SessionTokens:
    return SessionTokens(
        access_token=create_access_token(user, settings=settings),
        refresh_token=create_refresh_token(user, settings=settings),
    )


def _decode(token: str | None, secret: str, expected_type: str) -> dict[str, Any] | None:
    result = verify_token(token, secret)
    if not result.valid or result.decoded is None:
        return None
    if result.decoded.get("type") != expected_type:
        return None
    if not isinstance(result.decoded.get("user_id"), str):
        return None
    return result.decoded


def decode_access_token(token: str | None, *, settings: Settings) -> dict[str, Any] | None:
    return _decode(token, settings.access_token_secret, ACCESS_TOKEN_TYPE)


async def refresh_session(
    session: AsyncSession,
    token: str | None,
    *,
    settings: Settings,
) -> SessionTokens | None:
    """Rotate a refresh token into a fresh token pair.

    Returns None instead of raising for a missing, invalid, expired or
    revoked token; the caller decides how to answer.
    """
    payload = _decode(token, settings.refresh_token_secret, REFRESH_TOKEN_TYPE)
    if payload is None:
        return None

    user = await session.get(User, payload["user_id"])
    if user is None:
        return None
    if payload.get("token_version") != user.token_version:
        logger.info(
            "Rejected refresh token with stale version",
            extra={"user_id": user.id},
        )
        return None
    return issue_session_tokens(user, settings=settings)


async def revoke_all_sessions(session: AsyncSession, user: User) -> int:
    """Invalidate every refresh token issued so far; returns the new version."""
    user.token_version = user.token_version + 1
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user.token_version

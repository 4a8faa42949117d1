"""HTTP cookie helpers for refresh token transport."""

from __future__ import annotations

from datetime import timedelta
from typing import Literal

from fastapi import Response

from core import Settings

REFRESH_COOKIE = "jid"
COOKIE_PATH = "/"
COOKIE_SAMESITE: Literal["lax", "strict", "none"] = "lax"
REFRESH_COOKIE_TTL = timedelta(days=7)


def _cookie_secure(settings: Settings) -> bool:
    return not settings.is_development


def set_refresh_cookie(response: Response, refresh_token: str, *, settings: Settings) -> None:
    response.set_cookie(
        key=REFRESH_COOKIE,
        value=refresh_token,
        httponly=True,
        secure=_cookie_secure(settings),
        samesite=COOKIE_SAMESITE,
        max_age=int(REFRESH_COOKIE_TTL.total_seconds()),
        path=COOKIE_PATH,
    )


def clear_refresh_cookie(response: Response, *, settings: Settings) -> None:
    response.delete_cookie(
        key=REFRESH_COOKIE,
        path=COOKIE_PATH,
        secure=_cookie_secure(settings),
        samesite=COOKIE_SAMESITE,
        httponly=True,
    )

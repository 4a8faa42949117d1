"""Signed, time-bounded token codec."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import uuid4

import jwt

TOKEN_ALGORITHM = "HS256"


@dataclass(frozen=True, slots=True)
class TokenVerification:
    valid: bool
    expired: bool
    decoded: dict[str, Any] | None


def sign_token(payload: dict[str, Any], secret: str, *, expires_in: timedelta) -> str:
    """Encode ``payload`` with issued-at and expiry claims."""
    issued_at = datetime.now(timezone.utc)
    claims = {
        **payload,
        "iat": issued_at,
        "exp": issued_at + expires_in,
        "jti": uuid4().hex,
    }
    return jwt.encode(claims, secret, algorithm=TOKEN_ALGORITHM)


def verify_token(token: str | None, secret: str) -> TokenVerification:
    """Decode ``token``; never raises, callers branch on the result."""
    if not token:
        return TokenVerification(valid=False, expired=False, decoded=None)
    try:
        decoded = jwt.decode(token, secret, algorithms=[TOKEN_ALGORITHM])
    except jwt.ExpiredSignatureError:
        return TokenVerification(valid=False, expired=True, decoded=None)
    except jwt.InvalidTokenError:
        return TokenVerification(valid=False, expired=False, decoded=None)
    return TokenVerification(valid=True, expired=False, decoded=decoded)

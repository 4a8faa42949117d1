"""Authentication domain services."""

from .cookies import (
    REFRESH_COOKIE,
    REFRESH_COOKIE_TTL,
    clear_refresh_cookie,
    set_refresh_cookie,
)
from .identity_resolution import (
    INVALID_CREDENTIALS_MESSAGE,
    UNVERIFIED_USER_MESSAGE,
    authenticate,
    normalize_email,
)
from .session_tokens import (
    SessionTokens,
    create_access_token,
    create_refresh_token,
    decode_access_token,
    issue_session_tokens,
    refresh_session,
    revoke_all_sessions,
)

__all__ = [
    "REFRESH_COOKIE",
    "REFRESH_COOKIE_TTL",
    "clear_refresh_cookie",
    "set_refresh_cookie",
    "INVALID_CREDENTIALS_MESSAGE",
    "UNVERIFIED_USER_MESSAGE",
    "authenticate",
    "normalize_email",
    "SessionTokens",
    "create_access_token",
    "create_refresh_token",
    "decode_access_token",
    "issue_session_tokens",
    "refresh_session",
    "revoke_all_sessions",
]

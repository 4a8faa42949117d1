"""Shared FastAPI dependencies."""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from core import AppError, ErrorKind, Settings
from core import get_settings as load_settings
from db.session import get_session
from models import User
from services import Geocoder, HereGeocoder, ImageHost, ImageUploader, Mailer
from services.auth import decode_access_token
from services.mailer import AccountMailer

LOGIN_REQUIRED_MESSAGE = "Please login"

bearer_scheme = HTTPBearer(auto_error=False)


async def get_db() -> AsyncIterator[AsyncSession]:
    async for session in get_session():
        yield session


def get_settings() -> Settings:
    return load_settings()


def get_mailer(settings: Settings = Depends(get_settings)) -> AccountMailer:
    return Mailer(settings)


def get_geocoder(settings: Settings = Depends(get_settings)) -> Geocoder:
    return HereGeocoder(settings)


def get_image_uploader(settings: Settings = Depends(get_settings)) -> ImageHost:
    return ImageUploader(settings)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> User:
    """Resolve the bearer access token to a user or answer Forbidden."""
    token = credentials.credentials if credentials is not None else None
    payload = decode_access_token(token, settings=settings)
    if payload is None:
        raise AppError(ErrorKind.FORBIDDEN, LOGIN_REQUIRED_MESSAGE)

    user = await session.get(User, payload["user_id"])
    if user is None:
        raise AppError(ErrorKind.FORBIDDEN, LOGIN_REQUIRED_MESSAGE)
    return user

"""Authentication endpoints."""

from __future__ import annotations

from datetime import date
from typing import Literal

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_user, get_db, get_mailer, get_settings
from core import Settings
from core.responses import on_create, on_fetch
from models import User
from services.accounts import (
    NewUser,
    authenticate,
    create_user,
    request_password_reset,
    resend_verification,
    reset_password,
    start_email_verification,
    verify_email,
)
from services.auth import (
    REFRESH_COOKIE,
    clear_refresh_cookie,
    issue_session_tokens,
    refresh_session,
    revoke_all_sessions,
    set_refresh_cookie,
)
from services.mailer import AccountMailer
from .user_views import build_private_user

router = APIRouter(prefix="/auth", tags=["auth"])

MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_LENGTH = 1000


def _check_password(value: str) -> str:
    if "password" in value.lower():
        raise ValueError('The password should not contain the keyword "password"!')
    return value


class PasswordPair(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    password: str = Field(min_length=MIN_PASSWORD_LENGTH, max_length=MAX_PASSWORD_LENGTH)
    password_confirmation: str = Field(alias="passwordConfirmation")

    @field_validator("password")
    @classmethod
    def _reject_weak_password(cls, value: str) -> str:
        return _check_password(value)

    @model_validator(mode="after")
    def _passwords_match(self) -> "PasswordPair":
        if self.password != self.password_confirmation:
            raise ValueError("Passwords do not match")
        return self


class SignupRequest(PasswordPair):
    username: str = Field(min_length=3, max_length=30)
    email: EmailStr
    date_of_birth: date | None = Field(default=None, alias="dateOfBirth")
    gender: Literal["male", "female", "other"] | None = None

    @field_validator("username")
    @classmethod
    def _strip_username(cls, value: str) -> str:
        normalized = value.strip()
        if len(normalized) < 3:
            raise ValueError("Username must be at least 3 characters")
        return normalized


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=MAX_PASSWORD_LENGTH)


class EmailRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(PasswordPair):
    pass


@router.post("/signup", status_code=201)
async def signup(
    payload: SignupRequest,
    session: AsyncSession = Depends(get_db),
    mailer: AccountMailer = Depends(get_mailer),
) -> JSONResponse:
    user = await create_user(
        session,
        NewUser(
            username=payload.username,
            email=payload.email,
            password=payload.password,
            date_of_birth=payload.date_of_birth,
            gender=payload.gender,
        ),
    )
    await start_email_verification(session, user, mailer=mailer)
    return on_create(
        "User created successfully",
        await build_private_user(session, user),
        "A verification link has been sent to your email",
    )


@router.post("/login")
async def login(
    payload: LoginRequest,
    session: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    user = await authenticate(session, email=payload.email, password=payload.password)
    tokens = issue_session_tokens(user, settings=settings)
    response = on_fetch(
        "Login successful",
        {
            "access_token": tokens.access_token,
            "user": await build_private_user(session, user),
        },
    )
    set_refresh_cookie(response, tokens.refresh_token, settings=settings)
    return response


@router.post("/refresh")
async def refresh(
    request: Request,
    session: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    tokens = await refresh_session(
        session,
        request.cookies.get(REFRESH_COOKIE),
        settings=settings,
    )
    if tokens is None:
        response = on_fetch("Invalid refresh token", {"ok": False, "access_token": ""})
        clear_refresh_cookie(response, settings=settings)
        return response

    response = on_fetch("Token refreshed", {"ok": True, "access_token": tokens.access_token})
    set_refresh_cookie(response, tokens.refresh_token, settings=settings)
    return response


@router.post("/logout")
async def logout(settings: Settings = Depends(get_settings)) -> JSONResponse:
    response = on_fetch("Logged out")
    clear_refresh_cookie(response, settings=settings)
    return response


@router.post("/revoke-sessions")
async def revoke_sessions(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    token_version = await revoke_all_sessions(session, current_user)
    response = on_fetch("All sessions revoked", {"token_version": token_version})
    clear_refresh_cookie(response, settings=settings)
    return response


@router.post("/verify-email/{user_id}/{token}")
async def verify_email_address(
    user_id: str,
    token: str,
    session: AsyncSession = Depends(get_db),
) -> JSONResponse:
    user = await verify_email(session, user_id=user_id, token=token)
    return on_fetch("Email verified successfully", await build_private_user(session, user))


@router.post("/resend-verification")
async def resend_verification_email(
    payload: EmailRequest,
    session: AsyncSession = Depends(get_db),
    mailer: AccountMailer = Depends(get_mailer),
) -> JSONResponse:
    await resend_verification(session, email=payload.email, mailer=mailer)
    return on_fetch("Verification email sent")


@router.post("/forgot-password")
async def forgot_password(
    payload: EmailRequest,
    session: AsyncSession = Depends(get_db),
    mailer: AccountMailer = Depends(get_mailer),
) -> JSONResponse:
    await request_password_reset(session, email=payload.email, mailer=mailer)
    return on_fetch("Password reset email sent")


@router.post("/reset-password/{user_id}/{token}")
async def reset_password_with_token(
    user_id: str,
    token: str,
    payload: ResetPasswordRequest,
    session: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    await reset_password(
        session,
        user_id=user_id,
        token=token,
        new_password=payload.password,
    )
    response = on_fetch("Password reset successfully")
    clear_refresh_cookie(response, settings=settings)
    return response

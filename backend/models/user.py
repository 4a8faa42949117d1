"""User domain model."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from uuid import uuid4

from sqlalchemy import Boolean, Column, Date, DateTime, Integer, String, Text, func, text
from sqlmodel import Field, SQLModel

from core.config import DEFAULT_AVATAR_URL
from .timestamps import utc_now


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class User(SQLModel, table=True):
    """Registered application user."""

    __tablename__ = "users"

    id: str = Field(default_factory=lambda: str(uuid4()), sa_column=Column(String(36), primary_key=True))
    username: str = Field(
        sa_column=Column(String(30), unique=True, nullable=False, index=True)
    )
    email: str = Field(
        sa_column=Column(String(255), unique=True, nullable=False, index=True)
    )
    password_hash: str = Field(
        sa_column=Column(String(255), nullable=False)
    )
    avatar: str = Field(
        default=DEFAULT_AVATAR_URL,
        sa_column=Column(String(512), nullable=False),
    )
    bio: str = Field(
        default="", sa_column=Column(Text, nullable=False, server_default=text("''"))
    )
    cover_image: str | None = Field(
        default=None, sa_column=Column(String(512), nullable=True)
    )
    date_of_birth: date | None = Field(
        default=None, sa_column=Column(Date, nullable=True)
    )
    gender: str | None = Field(
        default=None, sa_column=Column(String(10), nullable=True)
    )
    role: str = Field(
        default=UserRole.USER.value,
        sa_column=Column(String(10), nullable=False, server_default=text("'user'")),
    )
    is_verified: bool = Field(
        default=False,
        sa_column=Column(Boolean, nullable=False, server_default=text("false")),
    )
    # Bumped to invalidate every outstanding refresh token.
    token_version: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, server_default=text("0")),
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(
            DateTime(timezone=True), server_default=func.now(), nullable=False
        ),
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(
            DateTime(timezone=True),
            server_default=func.now(),
            onupdate=utc_now,
            nullable=False,
        ),
    )

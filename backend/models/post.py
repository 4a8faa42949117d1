"""Post domain model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text, func
from sqlmodel import Field, SQLModel

from .timestamps import utc_now


class Post(SQLModel, table=True):
    """A user post with an optional image and geocoded address."""

    __tablename__ = "posts"

    id: int | None = Field(
        default=None,
        sa_column=Column(Integer, primary_key=True, autoincrement=True),
    )
    creator_id: str = Field(
        sa_column=Column(
            String(36),
            ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    description: str = Field(sa_column=Column(Text, nullable=False))
    image: str | None = Field(
        default=None, sa_column=Column(String(512), nullable=True)
    )
    address: str | None = Field(
        default=None, sa_column=Column(String(255), nullable=True)
    )
    lat: float | None = Field(default=None, sa_column=Column(Float, nullable=True))
    lng: float | None = Field(default=None, sa_column=Column(Float, nullable=True))
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

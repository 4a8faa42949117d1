"""User payload models shared by the auth and users routers."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from models import User
from services.accounts import load_follow_ids


class UserPublic(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    username: str
    avatar: str
    bio: str = ""
    cover_image: str | None = Field(default=None, serialization_alias="coverImage")
    gender: str | None = None
    role: str
    followers: list[str] = Field(default_factory=list)
    following: list[str] = Field(default_factory=list)
    created_at: datetime = Field(serialization_alias="createdAt")


class UserPrivate(UserPublic):
    email: str
    date_of_birth: date | None = Field(default=None, serialization_alias="dateOfBirth")
    is_verified: bool = Field(serialization_alias="isVerified")


def _fields(user: User, followers: list[str], following: list[str]) -> dict[str, object]:
    return {
        "id": user.id,
        "username": user.username,
        "avatar": user.avatar,
        "bio": user.bio,
        "cover_image": user.cover_image,
        "gender": user.gender,
        "role": user.role,
        "followers": followers,
        "following": following,
        "created_at": user.created_at,
    }


async def build_public_user(session: AsyncSession, user: User) -> dict[str, object]:
    followers, following = await load_follow_ids(session, user.id)
    return UserPublic(**_fields(user, followers, following)).model_dump(mode="json", by_alias=True)


async def build_private_user(session: AsyncSession, user: User) -> dict[str, object]:
    followers, following = await load_follow_ids(session, user.id)
    return UserPrivate(
        **_fields(user, followers, following),
        email=user.email,
        date_of_birth=user.date_of_birth,
        is_verified=user.is_verified,
    ).model_dump(mode="json", by_alias=True)

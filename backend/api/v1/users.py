"""User profile and follow endpoints."""

from __future__ import annotations

from datetime import date
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_user, get_db, get_image_uploader, get_settings
from core import Settings
from core.responses import on_fetch
from models import User
from services import ImageHost
from services.accounts import (
    delete_user,
    find_user_by_id,
    follow_user,
    list_followers,
    list_following,
    unfollow_user,
    update_user,
)
from services.auth import clear_refresh_cookie
from .pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, set_next_offset_header
from .user_views import build_private_user, build_public_user

router = APIRouter(prefix="/users", tags=["users"])

MAX_PROFILE_BIO_LENGTH = 500


@router.get("/me")
async def get_me(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> JSONResponse:
    return on_fetch("User fetched successfully", await build_private_user(session, current_user))


@router.patch("/me")
async def update_me(
    username: Annotated[str | None, Form(min_length=3, max_length=30)] = None,
    bio: Annotated[str | None, Form(max_length=MAX_PROFILE_BIO_LENGTH)] = None,
    date_of_birth: Annotated[date | None, Form(alias="dateOfBirth")] = None,
    gender: Annotated[Literal["male", "female", "other"] | None, Form()] = None,
    avatar: Annotated[UploadFile | None, File()] = None,
    cover_image: Annotated[UploadFile | None, File(alias="coverImage")] = None,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
    uploader: ImageHost = Depends(get_image_uploader),
) -> JSONResponse:
    updates: dict[str, object] = {}
    if username is not None:
        updates["username"] = username
    if bio is not None:
        updates["bio"] = bio.strip()
    if date_of_birth is not None:
        updates["date_of_birth"] = date_of_birth
    if gender is not None:
        updates["gender"] = gender
    previous = {"avatar": current_user.avatar, "cover_image": current_user.cover_image}
    files = {"avatar": (avatar, "avatars"), "cover_image": (cover_image, "covers")}
    uploaded: dict[str, str] = {}
    try:
        for field, (upload, folder) in files.items():
            if upload is not None:
                uploaded[field] = await uploader.upload(upload, folder=f"{folder}/{current_user.id}")
        updates.update(uploaded)
        user = await update_user(session, current_user, updates)
    except Exception:
        for url in uploaded.values():
            await uploader.discard(url)
        raise

    for field, url in uploaded.items():
        if previous[field] != url:
            await uploader.discard(previous[field])
    return on_fetch("User updated successfully", await build_private_user(session, user))


@router.delete("/me")
async def delete_me(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    await delete_user(session, current_user)
    response = on_fetch("User deleted successfully")
    clear_refresh_cookie(response, settings=settings)
    return response


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> JSONResponse:
    user = await find_user_by_id(session, user_id)
    return on_fetch("User fetched successfully", await build_public_user(session, user))


@router.post("/{user_id}/follow")
async def follow(
    user_id: str,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> JSONResponse:
    await follow_user(session, target_id=user_id, acting_user_id=current_user.id)
    return on_fetch("User followed successfully", await build_private_user(session, current_user))


@router.delete("/{user_id}/follow")
async def unfollow(
    user_id: str,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> JSONResponse:
    await unfollow_user(session, target_id=user_id, acting_user_id=current_user.id)
    return on_fetch("User unfollowed successfully", await build_private_user(session, current_user))


@router.get("/{user_id}/followers")
async def get_followers(
    user_id: str,
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> JSONResponse:
    users = await list_followers(session, user_id=user_id, limit=limit + 1, offset=offset)
    response = on_fetch(
        "Followers fetched successfully",
        [await build_public_user(session, user) for user in users[:limit]],
    )
    set_next_offset_header(response, offset=offset, limit=limit, has_more=len(users) > limit)
    return response


@router.get("/{user_id}/following")
async def get_following(
    user_id: str,
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> JSONResponse:
    users = await list_following(session, user_id=user_id, limit=limit + 1, offset=offset)
    response = on_fetch(
        "Following fetched successfully",
        [await build_public_user(session, user) for user in users[:limit]],
    )
    set_next_offset_header(response, offset=offset, limit=limit, has_more=len(users) > limit)
    return response

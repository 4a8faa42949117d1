"""Post endpoints: CRUD, likes and top-level comments."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_user, get_db, get_geocoder, get_image_uploader
from core.responses import on_create, on_fetch
from models import MAX_COMMENT_LENGTH, User
from services import Geocoder, ImageHost
from services.comments import create_comment, list_comments
from services.posts import (
    create_post,
    delete_post,
    get_owned_post,
    get_post,
    like_post,
    list_posts,
    unlike_post,
    update_post,
)
from .pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, set_next_offset_header
from .post_views import (
    build_comment_payload,
    build_comment_payloads,
    build_post_payload,
    build_post_payloads,
)

router = APIRouter(prefix="/posts", tags=["posts"])

MAX_DESCRIPTION_LENGTH = 2200
MAX_ADDRESS_LENGTH = 255


class CommentCreate(BaseModel):
    content: str = Field(min_length=1, max_length=MAX_COMMENT_LENGTH)


@router.get("")
async def get_posts(
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    creator: str | None = Query(None),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> JSONResponse:
    posts = await list_posts(session, limit=limit + 1, offset=offset, creator_id=creator)
    response = on_fetch(
        "Posts fetched successfully",
        await build_post_payloads(session, posts[:limit]),
    )
    set_next_offset_header(response, offset=offset, limit=limit, has_more=len(posts) > limit)
    return response


@router.post("", status_code=201)
async def create(
    description: Annotated[str, Form(min_length=1, max_length=MAX_DESCRIPTION_LENGTH)],
    address: Annotated[str | None, Form(max_length=MAX_ADDRESS_LENGTH)] = None,
    image: Annotated[UploadFile | None, File()] = None,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
    geocoder: Geocoder = Depends(get_geocoder),
    uploader: ImageHost = Depends(get_image_uploader),
) -> JSONResponse:
    image_url = None
    if image is not None:
        image_url = await uploader.upload(image, folder=f"posts/{current_user.id}")

    try:
        post = await create_post(
            session,
            user_id=current_user.id,
            description=description.strip(),
            image=image_url,
            address=(address or "").strip() or None,
            geocoder=geocoder,
        )
    except Exception:
        await uploader.discard(image_url)
        raise
    return on_create("Post created successfully", await build_post_payload(session, post))


@router.get("/{post_id}")
async def get_one(
    post_id: int,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> JSONResponse:
    post = await get_post(session, post_id)
    return on_fetch("Post fetched successfully", await build_post_payload(session, post))


@router.patch("/{post_id}")
async def update(
    post_id: int,
    description: Annotated[str | None, Form(min_length=1, max_length=MAX_DESCRIPTION_LENGTH)] = None,
    address: Annotated[str | None, Form(max_length=MAX_ADDRESS_LENGTH)] = None,
    image: Annotated[UploadFile | None, File()] = None,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
    geocoder: Geocoder = Depends(get_geocoder),
    uploader: ImageHost = Depends(get_image_uploader),
) -> JSONResponse:
    updates: dict[str, object] = {}
    if description is not None:
        updates["description"] = description.strip()
    if address is not None:
        updates["address"] = address.strip()
    previous_image = None
    uploaded = None
    if image is not None:
        # Ownership is checked before anything is uploaded.
        owned = await get_owned_post(session, post_id, current_user.id)
        previous_image = owned.image
        uploaded = await uploader.upload(image, folder=f"posts/{current_user.id}")
        updates["image"] = uploaded

    try:
        post = await update_post(
            session,
            post_id=post_id,
            user_id=current_user.id,
            updates=updates,
            geocoder=geocoder,
        )
    except Exception:
        await uploader.discard(uploaded)
        raise
    if uploaded is not None and previous_image != uploaded:
        await uploader.discard(previous_image)
    return on_fetch("Post updated successfully", await build_post_payload(session, post))


@router.delete("/{post_id}")
async def delete(
    post_id: int,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
    uploader: ImageHost = Depends(get_image_uploader),
) -> JSONResponse:
    image_url = await delete_post(session, post_id=post_id, user_id=current_user.id)
    await uploader.discard(image_url)
    return on_fetch("Post deleted successfully")


@router.post("/{post_id}/likes")
async def like(
    post_id: int,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> JSONResponse:
    await like_post(session, post_id=post_id, user_id=current_user.id)
    post = await get_post(session, post_id)
    return on_fetch("Post liked successfully", await build_post_payload(session, post))


@router.delete("/{post_id}/likes")
async def unlike(
    post_id: int,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> JSONResponse:
    await unlike_post(session, post_id=post_id, user_id=current_user.id)
    post = await get_post(session, post_id)
    return on_fetch("Post unliked successfully", await build_post_payload(session, post))


@router.get("/{post_id}/comments")
async def get_comments(
    post_id: int,
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> JSONResponse:
    comments = await list_comments(session, post_id=post_id, limit=limit + 1, offset=offset)
    response = on_fetch(
        "Comments fetched successfully",
        await build_comment_payloads(session, comments[:limit]),
    )
    set_next_offset_header(response, offset=offset, limit=limit, has_more=len(comments) > limit)
    return response


@router.post("/{post_id}/comments", status_code=201)
async def add_comment(
    post_id: int,
    payload: CommentCreate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> JSONResponse:
    comment = await create_comment(
        session,
        post_id=post_id,
        user_id=current_user.id,
        content=payload.content.strip(),
    )
    return on_create("Comment created successfully", await build_comment_payload(session, comment))

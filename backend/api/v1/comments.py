"""Comment and reply endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_user, get_db
from core.responses import on_create, on_fetch
from models import MAX_COMMENT_LENGTH, User
from services.comments import (
    create_reply,
    delete_comment,
    delete_reply,
    get_comment,
    get_reply,
    like_comment,
    like_reply,
    list_replies,
    unlike_comment,
    unlike_reply,
)
from .pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, set_next_offset_header
from .post_views import build_comment_payload, build_reply_payload, build_reply_payloads

router = APIRouter(tags=["comments"])


class ReplyCreate(BaseModel):
    content: str = Field(min_length=1, max_length=MAX_COMMENT_LENGTH)


@router.delete("/comments/{comment_id}")
async def remove_comment(
    comment_id: int,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> JSONResponse:
    await delete_comment(session, comment_id=comment_id, user_id=current_user.id)
    return on_fetch("Comment deleted successfully")


@router.post("/comments/{comment_id}/likes")
async def like_one_comment(
    comment_id: int,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> JSONResponse:
    await like_comment(session, comment_id=comment_id, user_id=current_user.id)
    comment = await get_comment(session, comment_id)
    return on_fetch("Comment liked successfully", await build_comment_payload(session, comment))


@router.delete("/comments/{comment_id}/likes")
async def unlike_one_comment(
    comment_id: int,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> JSONResponse:
    await unlike_comment(session, comment_id=comment_id, user_id=current_user.id)
    comment = await get_comment(session, comment_id)
    return on_fetch("Comment unliked successfully", await build_comment_payload(session, comment))


@router.get("/comments/{comment_id}/replies")
async def get_replies(
    comment_id: int,
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> JSONResponse:
    replies = await list_replies(session, comment_id=comment_id, limit=limit + 1, offset=offset)
    response = on_fetch(
        "Replies fetched successfully",
        await build_reply_payloads(session, replies[:limit]),
    )
    set_next_offset_header(response, offset=offset, limit=limit, has_more=len(replies) > limit)
    return response


@router.post("/comments/{comment_id}/replies", status_code=201)
async def add_reply(
    comment_id: int,
    payload: ReplyCreate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> JSONResponse:
    reply = await create_reply(
        session,
        comment_id=comment_id,
        user_id=current_user.id,
        content=payload.content.strip(),
    )
    return on_create("Reply created successfully", await build_reply_payload(session, reply))


@router.delete("/comments/{comment_id}/replies/{reply_id}")
async def remove_reply(
    comment_id: int,
    reply_id: int,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> JSONResponse:
    await delete_reply(
        session,
        comment_id=comment_id,
        reply_id=reply_id,
        user_id=current_user.id,
    )
    return on_fetch("Reply deleted successfully")


@router.post("/replies/{reply_id}/likes")
async def like_one_reply(
    reply_id: int,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> JSONResponse:
    await like_reply(session, reply_id=reply_id, user_id=current_user.id)
    reply = await get_reply(session, reply_id)
    return on_fetch("Reply liked successfully", await build_reply_payload(session, reply))


@router.delete("/replies/{reply_id}/likes")
async def unlike_one_reply(
    reply_id: int,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> JSONResponse:
    await unlike_reply(session, reply_id=reply_id, user_id=current_user.id)
    reply = await get_reply(session, reply_id)
    return on_fetch("Reply unliked successfully", await build_reply_payload(session, reply))

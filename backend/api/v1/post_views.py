"""Shared post, comment and reply payload models and query helpers."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from datetime import datetime
from typing import Any, cast

from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from models import Comment, CommentLike, Post, PostLike, Reply, ReplyLike


def _in(column: Any, values: Sequence[Any]) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column.in_(values))


def _asc(column: Any) -> Any:
    return cast(Any, column).asc()


class Location(BaseModel):
    lat: float
    lng: float


class PostResponse(BaseModel):
    id: int
    creator: str
    description: str
    image: str | None = None
    address: str | None = None
    location: Location | None = None
    likes: list[str] = Field(default_factory=list)
    comments: list[int] = Field(default_factory=list)
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime = Field(serialization_alias="updatedAt")


class ReplyResponse(BaseModel):
    id: int
    comment: int
    author: str
    content: str
    likes: list[str] = Field(default_factory=list)
    created_at: datetime = Field(serialization_alias="createdAt")


class CommentResponse(BaseModel):
    id: int
    post: int
    author: str
    content: str
    likes: list[str] = Field(default_factory=list)
    replies: list[int] = Field(default_factory=list)
    created_at: datetime = Field(serialization_alias="createdAt")


async def _group_ids(
    session: AsyncSession,
    key_column: Any,
    value_column: Any,
    keys: Sequence[int],
    *order_by: Any,
) -> dict[int, list[Any]]:
    grouped: dict[int, list[Any]] = defaultdict(list)
    if not keys:
        return grouped
    result = await session.execute(
        select(key_column, value_column).where(_in(key_column, keys)).order_by(*order_by)
    )
    for key, value in result.all():
        grouped[key].append(value)
    return grouped


async def build_post_payloads(
    session: AsyncSession,
    posts: Sequence[Post],
) -> list[dict[str, Any]]:
    post_ids = [cast(int, post.id) for post in posts]
    likes = await _group_ids(
        session,
        PostLike.post_id,
        PostLike.user_id,
        post_ids,
        _asc(PostLike.created_at),
    )
    comments = await _group_ids(
        session,
        Comment.post_id,
        Comment.id,
        post_ids,
        _asc(Comment.created_at),
        _asc(Comment.id),
    )

    payloads: list[dict[str, Any]] = []
    for post in posts:
        post_id = cast(int, post.id)
        location = None
        if post.lat is not None and post.lng is not None:
            location = Location(lat=post.lat, lng=post.lng)
        payloads.append(
            PostResponse(
                id=post_id,
                creator=post.creator_id,
                description=post.description,
                image=post.image,
                address=post.address,
                location=location,
                likes=likes.get(post_id, []),
                comments=comments.get(post_id, []),
                created_at=post.created_at,
                updated_at=post.updated_at,
            ).model_dump(mode="json", by_alias=True)
        )
    return payloads


async def build_post_payload(session: AsyncSession, post: Post) -> dict[str, Any]:
    return (await build_post_payloads(session, [post]))[0]


async def build_comment_payloads(
    session: AsyncSession,
    comments: Sequence[Comment],
) -> list[dict[str, Any]]:
    comment_ids = [cast(int, comment.id) for comment in comments]
    likes = await _group_ids(
        session,
        CommentLike.comment_id,
        CommentLike.user_id,
        comment_ids,
        _asc(CommentLike.created_at),
    )
    replies = await _group_ids(
        session,
        Reply.comment_id,
        Reply.id,
        comment_ids,
        _asc(Reply.created_at),
        _asc(Reply.id),
    )
    return [
        CommentResponse(
            id=cast(int, comment.id),
            post=comment.post_id,
            author=comment.author_id,
            content=comment.content,
            likes=likes.get(cast(int, comment.id), []),
            replies=replies.get(cast(int, comment.id), []),
            created_at=comment.created_at,
        ).model_dump(mode="json", by_alias=True)
        for comment in comments
    ]


async def build_comment_payload(session: AsyncSession, comment: Comment) -> dict[str, Any]:
    return (await build_comment_payloads(session, [comment]))[0]


async def build_reply_payloads(
    session: AsyncSession,
    replies: Sequence[Reply],
) -> list[dict[str, Any]]:
    reply_ids = [cast(int, reply.id) for reply in replies]
    likes = await _group_ids(
        session,
        ReplyLike.reply_id,
        ReplyLike.user_id,
        reply_ids,
        _asc(ReplyLike.created_at),
    )
    return [
        ReplyResponse(
            id=cast(int, reply.id),
            comment=reply.comment_id,
            author=reply.author_id,
            content=reply.content,
            likes=likes.get(cast(int, reply.id), []),
            created_at=reply.created_at,
        ).model_dump(mode="json", by_alias=True)
        for reply in replies
    ]


async def build_reply_payload(session: AsyncSession, reply: Reply) -> dict[str, Any]:
    return (await build_reply_payloads(session, [reply]))[0]

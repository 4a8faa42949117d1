"""Comments on posts, replies to comments, and their likes."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, cast

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement, Select

from core import AppError, ErrorKind
from models import Comment, CommentLike, Post, Reply, ReplyLike
from .relations import add_to_set, remove_from_set

NOT_ALLOWED_MESSAGE = "You are not allowed to do that"
POST_NOT_FOUND_MESSAGE = "Post not found"
COMMENT_NOT_FOUND_MESSAGE = "Comment not found"
REPLY_NOT_FOUND_MESSAGE = "Reply not found"


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def _in(column: Any, values: Sequence[Any] | Select[Any]) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column.in_(values))


def _asc(column: Any) -> Any:
    return cast(Any, column).asc()


async def delete_comment_tree(
    session: AsyncSession,
    comment_ids: Sequence[int] | Select[Any],
) -> None:
    """Delete comments with their replies and every like beneath them.

    Runs inside the caller's transaction; nothing is committed here.
    """
    reply_ids = select(Reply.id).where(_in(Reply.comment_id, comment_ids))
    await session.execute(delete(ReplyLike).where(_in(ReplyLike.reply_id, reply_ids)))
    await session.execute(delete(Reply).where(_in(Reply.comment_id, comment_ids)))
    await session.execute(delete(CommentLike).where(_in(CommentLike.comment_id, comment_ids)))
    await session.execute(delete(Comment).where(_in(Comment.id, comment_ids)))


async def _require_post(session: AsyncSession, post_id: int) -> Post:
    post = await session.get(Post, post_id)
    if post is None:
        raise AppError(ErrorKind.NOT_FOUND, POST_NOT_FOUND_MESSAGE)
    return post


async def get_comment(session: AsyncSession, comment_id: int) -> Comment:
    comment = await session.get(Comment, comment_id)
    if comment is None:
        raise AppError(ErrorKind.NOT_FOUND, COMMENT_NOT_FOUND_MESSAGE)
    return comment


async def create_comment(
    session: AsyncSession,
    *,
    post_id: int,
    user_id: str,
    content: str,
) -> Comment:
    await _require_post(session, post_id)
    comment = Comment(post_id=post_id, author_id=user_id, content=content)
    session.add(comment)
    await session.commit()
    await session.refresh(comment)
    return comment


async def list_comments(
    session: AsyncSession,
    *,
    post_id: int,
    limit: int,
    offset: int,
) -> list[Comment]:
    """Return a post's comments oldest first."""
    await _require_post(session, post_id)
    result = await session.execute(
        select(Comment)
        .where(_eq(Comment.post_id, post_id))
        .order_by(_asc(Comment.created_at), _asc(Comment.id))
        .offset(offset)
        .limit(limit)
    )
    return list(result.scalars().all())


async def delete_comment(
    session: AsyncSession,
    *,
    comment_id: int,
    user_id: str,
) -> None:
    comment = await get_comment(session, comment_id)
    if comment.author_id != user_id:
        raise AppError(ErrorKind.FORBIDDEN, NOT_ALLOWED_MESSAGE)
    await delete_comment_tree(session, [comment_id])
    await session.commit()


async def like_comment(session: AsyncSession, *, comment_id: int, user_id: str) -> None:
    await get_comment(session, comment_id)
    if not await add_to_set(session, CommentLike, user_id=user_id, comment_id=comment_id):
        raise AppError(ErrorKind.BAD_REQUEST, "You have already liked this comment")


async def unlike_comment(session: AsyncSession, *, comment_id: int, user_id: str) -> None:
    await get_comment(session, comment_id)
    if not await remove_from_set(session, CommentLike, user_id=user_id, comment_id=comment_id):
        raise AppError(ErrorKind.BAD_REQUEST, "You have not liked this comment")


async def get_reply(session: AsyncSession, reply_id: int) -> Reply:
    reply = await session.get(Reply, reply_id)
    if reply is None:
        raise AppError(ErrorKind.NOT_FOUND, REPLY_NOT_FOUND_MESSAGE)
    return reply


async def create_reply(
    session: AsyncSession,
    *,
    comment_id: int,
    user_id: str,
    content: str,
) -> Reply:
    await get_comment(session, comment_id)
    reply = Reply(comment_id=comment_id, author_id=user_id, content=content)
    session.add(reply)
    await session.commit()
    await session.refresh(reply)
    return reply


async def list_replies(
    session: AsyncSession,
    *,
    comment_id: int,
    limit: int,
    offset: int,
) -> list[Reply]:
    await get_comment(session, comment_id)
    result = await session.execute(
        select(Reply)
        .where(_eq(Reply.comment_id, comment_id))
        .order_by(_asc(Reply.created_at), _asc(Reply.id))
        .offset(offset)
        .limit(limit)
    )
    return list(result.scalars().all())


async def delete_reply(
    session: AsyncSession,
    *,
    comment_id: int,
    reply_id: int,
    user_id: str,
) -> None:
    reply = await get_reply(session, reply_id)
    if reply.comment_id != comment_id:
        raise AppError(ErrorKind.NOT_FOUND, REPLY_NOT_FOUND_MESSAGE)
    if reply.author_id != user_id:
        raise AppError(ErrorKind.FORBIDDEN, NOT_ALLOWED_MESSAGE)
    await session.execute(delete(ReplyLike).where(_eq(ReplyLike.reply_id, reply_id)))
    await session.execute(delete(Reply).where(_eq(Reply.id, reply_id)))
    await session.commit()


async def like_reply(session: AsyncSession, *, reply_id: int, user_id: str) -> None:
    await get_reply(session, reply_id)
    if not await add_to_set(session, ReplyLike, user_id=user_id, reply_id=reply_id):
        raise AppError(ErrorKind.BAD_REQUEST, "You have already liked this reply")


async def unlike_reply(session: AsyncSession, *, reply_id: int, user_id: str) -> None:
    await get_reply(session, reply_id)
    if not await remove_from_set(session, ReplyLike, user_id=user_id, reply_id=reply_id):
        raise AppError(ErrorKind.BAD_REQUEST, "You have not liked this reply")

"""Post lifecycle with ownership checks and strict like transitions."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, cast

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement, Select

from core import AppError, ErrorKind
from models import Comment, Post, PostLike
from .comments import NOT_ALLOWED_MESSAGE, POST_NOT_FOUND_MESSAGE, delete_comment_tree
from .geocoding import Geocoder
from .relations import add_to_set, remove_from_set, update_fields

ALREADY_LIKED_MESSAGE = "You have already liked this post"
NOT_LIKED_MESSAGE = "You have not liked this post"
UPDATABLE_POST_FIELDS = frozenset({"description", "image", "address"})


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def _in(column: Any, values: Sequence[Any] | Select[Any]) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column.in_(values))


def _desc(column: Any) -> Any:
    return cast(Any, column).desc()


async def delete_post_tree(
    session: AsyncSession,
    post_ids: Sequence[int] | Select[Any],
) -> None:
    """Delete posts together with their likes, comments and replies.

    Runs inside the caller's transaction; nothing is committed here.
    """
    await delete_comment_tree(
        session,
        select(Comment.id).where(_in(Comment.post_id, post_ids)),
    )
    await session.execute(delete(PostLike).where(_in(PostLike.post_id, post_ids)))
    await session.execute(delete(Post).where(_in(Post.id, post_ids)))


async def get_post(session: AsyncSession, post_id: int) -> Post:
    post = await session.get(Post, post_id)
    if post is None:
        raise AppError(ErrorKind.NOT_FOUND, POST_NOT_FOUND_MESSAGE)
    return post


async def get_owned_post(session: AsyncSession, post_id: int, user_id: str) -> Post:
    post = await get_post(session, post_id)
    if post.creator_id != user_id:
        raise AppError(ErrorKind.FORBIDDEN, NOT_ALLOWED_MESSAGE)
    return post


async def create_post(
    session: AsyncSession,
    *,
    user_id: str,
    description: str,
    image: str | None = None,
    address: str | None = None,
    geocoder: Geocoder,
) -> Post:
    post = Post(creator_id=user_id, description=description, image=image)
    if address:
        coordinates = await geocoder.resolve(address)
        post.address = address
        post.lat = coordinates.lat
        post.lng = coordinates.lng

    session.add(post)
    await session.commit()
    await session.refresh(post)
    return post


async def list_posts(
    session: AsyncSession,
    *,
    limit: int,
    offset: int,
    creator_id: str | None = None,
) -> list[Post]:
    """Return posts newest first, optionally restricted to one creator."""
    stmt = select(Post)
    if creator_id is not None:
        stmt = stmt.where(_eq(Post.creator_id, creator_id))
    result = await session.execute(
        stmt.order_by(_desc(Post.created_at), _desc(Post.id)).offset(offset).limit(limit)
    )
    return list(result.scalars().all())


async def update_post(
    session: AsyncSession,
    *,
    post_id: int,
    user_id: str,
    updates: Mapping[str, Any],
    geocoder: Geocoder,
) -> Post:
    """Apply ``updates`` to a post owned by ``user_id``.

    The address is geocoded only when it is present and differs from the
    stored one; an empty address clears the location.
    """
    post = await get_owned_post(session, post_id, user_id)
    changes = {key: value for key, value in updates.items() if key in UPDATABLE_POST_FIELDS}

    if "address" in changes:
        address = changes["address"] or None
        if address == post.address:
            changes.pop("address")
        elif address is None:
            changes.update(address=None, lat=None, lng=None)
        else:
            coordinates = await geocoder.resolve(address)
            changes.update(address=address, lat=coordinates.lat, lng=coordinates.lng)

    await update_fields(session, post, changes)
    return post


async def delete_post(session: AsyncSession, *, post_id: int, user_id: str) -> str | None:
    """Delete the post with its comments and likes, returning its image URL."""
    post = await get_owned_post(session, post_id, user_id)
    image = post.image
    await delete_post_tree(session, [post_id])
    await session.commit()
    return image


async def like_post(session: AsyncSession, *, post_id: int, user_id: str) -> None:
    await get_post(session, post_id)
    if not await add_to_set(session, PostLike, user_id=user_id, post_id=post_id):
        raise AppError(ErrorKind.BAD_REQUEST, ALREADY_LIKED_MESSAGE)


async def unlike_post(session: AsyncSession, *, post_id: int, user_id: str) -> None:
    await get_post(session, post_id)
    if not await remove_from_set(session, PostLike, user_id=user_id, post_id=post_id):
        raise AppError(ErrorKind.BAD_REQUEST, NOT_LIKED_MESSAGE)

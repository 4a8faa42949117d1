"""User accounts: signup, lookups, follows, profile changes and email flows."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from typing import Any, cast

from sqlalchemy import delete, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from core import AppError, ErrorKind, duplicate_key_error, hash_password
from db.errors import is_unique_violation, unique_violation_fields
from models import (
    Comment,
    CommentLike,
    Follow,
    OneTimeToken,
    Post,
    PostLike,
    Reply,
    ReplyLike,
    TokenPurpose,
    User,
)
from .auth.identity_resolution import authenticate, normalize_email
from .comments import delete_comment_tree
from .mailer import AccountMailer
from .one_time_tokens import consume_one_time_token, get_or_create_one_time_token
from .posts import delete_post_tree
from .relations import add_to_set, remove_from_set, update_fields

logger = logging.getLogger(__name__)

USER_NOT_FOUND_MESSAGE = "User not found"
UPDATABLE_PROFILE_FIELDS = frozenset(
    {"username", "bio", "avatar", "cover_image", "date_of_birth", "gender"}
)

__all__ = [
    "NewUser",
    "authenticate",
    "create_user",
    "delete_user",
    "find_user_by_email",
    "find_user_by_id",
    "find_user_by_username",
    "follow_user",
    "list_followers",
    "list_following",
    "load_follow_ids",
    "request_password_reset",
    "resend_verification",
    "reset_password",
    "start_email_verification",
    "unfollow_user",
    "update_user",
    "verify_email",
]


@dataclass(frozen=True, slots=True)
class NewUser:
    username: str
    email: str
    password: str
    date_of_birth: date | None = None
    gender: str | None = None


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def _ne(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column != value)


def _in(column: Any, values: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column.in_(values))


def _desc(column: Any) -> Any:
    return cast(Any, column).desc()


async def _taken_fields(
    session: AsyncSession,
    *,
    username: str | None = None,
    email: str | None = None,
    exclude_user_id: str | None = None,
) -> list[str]:
    conditions: list[ColumnElement[bool]] = []
    if username is not None:
        conditions.append(_eq(User.username, username))
    if email is not None:
        conditions.append(_eq(User.email, email))
    if not conditions:
        return []

    stmt = select(User.username, User.email).where(or_(*conditions))
    if exclude_user_id is not None:
        stmt = stmt.where(_ne(User.id, exclude_user_id))
    rows = (await session.execute(stmt)).all()

    taken: list[str] = []
    if username is not None and any(row.username == username for row in rows):
        taken.append("username")
    if email is not None and any(row.email == email for row in rows):
        taken.append("email")
    return taken


async def _duplicate_from_integrity_error(
    session: AsyncSession,
    exc: IntegrityError,
    *,
    username: str | None,
    email: str | None,
    exclude_user_id: str | None = None,
) -> AppError:
    fields = unique_violation_fields(exc) or await _taken_fields(
        session,
        username=username,
        email=email,
        exclude_user_id=exclude_user_id,
    )
    return duplicate_key_error(fields or ["username"])


async def create_user(session: AsyncSession, data: NewUser) -> User:
    """Persist a new, unverified user with a hashed password."""
    email = normalize_email(data.email)
    username = data.username.strip()

    taken = await _taken_fields(session, username=username, email=email)
    if taken:
        raise duplicate_key_error(taken)

    user = User(
        username=username,
        email=email,
        password_hash=hash_password(data.password),
        date_of_birth=data.date_of_birth,
        gender=data.gender,
    )
    session.add(user)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        if not is_unique_violation(exc):
            raise
        raise await _duplicate_from_integrity_error(
            session, exc, username=username, email=email
        ) from exc
    await session.refresh(user)
    return user


async def find_user_by_id(session: AsyncSession, user_id: str) -> User:
    user = await session.get(User, user_id)
    if user is None:
        raise AppError(ErrorKind.NOT_FOUND, USER_NOT_FOUND_MESSAGE)
    return user


async def find_user_by_email(session: AsyncSession, email: str) -> User:
    result = await session.execute(
        select(User).where(_eq(User.email, normalize_email(email))).limit(1)
    )
    user = result.scalar_one_or_none()
    if user is None:
        raise AppError(ErrorKind.NOT_FOUND, USER_NOT_FOUND_MESSAGE)
    return user


async def find_user_by_username(session: AsyncSession, username: str) -> User:
    result = await session.execute(
        select(User).where(_eq(User.username, username.strip())).limit(1)
    )
    user = result.scalar_one_or_none()
    if user is None:
        raise AppError(ErrorKind.NOT_FOUND, USER_NOT_FOUND_MESSAGE)
    return user


async def follow_user(
    session: AsyncSession,
    *,
    target_id: str,
    acting_user_id: str,
) -> None:
    """Record that ``acting_user_id`` follows ``target_id``.

    The single ``Follow`` row is both sides of the relation.
    """
    if target_id == acting_user_id:
        raise AppError(ErrorKind.BAD_REQUEST, "You cannot follow yourself")
    await find_user_by_id(session, target_id)
    if not await add_to_set(
        session,
        Follow,
        follower_id=acting_user_id,
        followee_id=target_id,
    ):
        raise AppError(ErrorKind.BAD_REQUEST, "You already follow this user")


async def unfollow_user(
    session: AsyncSession,
    *,
    target_id: str,
    acting_user_id: str,
) -> None:
    if target_id == acting_user_id:
        raise AppError(ErrorKind.BAD_REQUEST, "You cannot unfollow yourself")
    await find_user_by_id(session, target_id)
    if not await remove_from_set(
        session,
        Follow,
        follower_id=acting_user_id,
        followee_id=target_id,
    ):
        raise AppError(ErrorKind.BAD_REQUEST, "You do not follow this user")


async def list_followers(
    session: AsyncSession,
    *,
    user_id: str,
    limit: int,
    offset: int,
) -> list[User]:
    await find_user_by_id(session, user_id)
    result = await session.execute(
        select(User)
        .join(Follow, _eq(Follow.follower_id, User.id))
        .where(_eq(Follow.followee_id, user_id))
        .order_by(_desc(Follow.created_at), User.id)
        .offset(offset)
        .limit(limit)
    )
    return list(result.scalars().all())


async def list_following(
    session: AsyncSession,
    *,
    user_id: str,
    limit: int,
    offset: int,
) -> list[User]:
    await find_user_by_id(session, user_id)
    result = await session.execute(
        select(User)
        .join(Follow, _eq(Follow.followee_id, User.id))
        .where(_eq(Follow.follower_id, user_id))
        .order_by(_desc(Follow.created_at), User.id)
        .offset(offset)
        .limit(limit)
    )
    return list(result.scalars().all())


async def load_follow_ids(session: AsyncSession, user_id: str) -> tuple[list[str], list[str]]:
    """Return ``(followers, following)`` id lists for one user."""
    follower_rows = await session.execute(
        select(Follow.follower_id).where(_eq(Follow.followee_id, user_id))
    )
    following_rows = await session.execute(
        select(Follow.followee_id).where(_eq(Follow.follower_id, user_id))
    )
    return list(follower_rows.scalars().all()), list(following_rows.scalars().all())


async def update_user(
    session: AsyncSession,
    user: User,
    updates: Mapping[str, Any],
) -> User:
    """Apply profile changes; identity and credential fields are ignored."""
    user_id = user.id
    changes = {key: value for key, value in updates.items() if key in UPDATABLE_PROFILE_FIELDS}
    if "username" in changes:
        username = str(changes["username"]).strip()
        changes["username"] = username
        if username != user.username and await _taken_fields(
            session, username=username, exclude_user_id=user_id
        ):
            raise duplicate_key_error(["username"])

    try:
        await update_fields(session, user, changes)
    except IntegrityError as exc:
        await session.rollback()
        if not is_unique_violation(exc):
            raise
        raise await _duplicate_from_integrity_error(
            session,
            exc,
            username=changes.get("username"),
            email=None,
            exclude_user_id=user_id,
        ) from exc
    return user


async def delete_user(session: AsyncSession, user: User) -> None:
    """Delete an account and everything it owns in one transaction."""
    user_id = user.id
    await delete_post_tree(session, select(Post.id).where(_eq(Post.creator_id, user_id)))
    await delete_comment_tree(session, select(Comment.id).where(_eq(Comment.author_id, user_id)))
    await session.execute(delete(ReplyLike).where(_eq(ReplyLike.user_id, user_id)))
    await session.execute(
        delete(ReplyLike).where(
            _in(ReplyLike.reply_id, select(Reply.id).where(_eq(Reply.author_id, user_id)))
        )
    )
    await session.execute(delete(Reply).where(_eq(Reply.author_id, user_id)))
    await session.execute(delete(CommentLike).where(_eq(CommentLike.user_id, user_id)))
    await session.execute(delete(PostLike).where(_eq(PostLike.user_id, user_id)))
    await session.execute(
        delete(Follow).where(
            or_(_eq(Follow.follower_id, user_id), _eq(Follow.followee_id, user_id))
        )
    )
    await session.execute(delete(OneTimeToken).where(_eq(OneTimeToken.user_id, user_id)))
    await session.delete(user)
    await session.commit()
    logger.info("Deleted account", extra={"user_id": user_id})


async def start_email_verification(
    session: AsyncSession,
    user: User,
    *,
    mailer: AccountMailer,
) -> None:
    token = await get_or_create_one_time_token(
        session,
        user_id=user.id,
        purpose=TokenPurpose.VERIFY_EMAIL,
    )
    await mailer.send_verification_email(user, token.token)


async def resend_verification(
    session: AsyncSession,
    *,
    email: str,
    mailer: AccountMailer,
) -> User:
    user = await find_user_by_email(session, email)
    if user.is_verified:
        raise AppError(ErrorKind.BAD_REQUEST, "User is already verified")
    await start_email_verification(session, user, mailer=mailer)
    return user


async def verify_email(session: AsyncSession, *, user_id: str, token: str) -> User:
    """Consume a verification token and mark the account verified."""
    user = await find_user_by_id(session, user_id)
    await consume_one_time_token(
        session,
        user_id=user.id,
        token=token,
        purpose=TokenPurpose.VERIFY_EMAIL,
    )
    user.is_verified = True
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


async def request_password_reset(
    session: AsyncSession,
    *,
    email: str,
    mailer: AccountMailer,
) -> User:
    user = await find_user_by_email(session, email)
    token = await get_or_create_one_time_token(
        session,
        user_id=user.id,
        purpose=TokenPurpose.RESET_PASSWORD,
    )
    await mailer.send_reset_password_email(user, token.token)
    return user


async def reset_password(
    session: AsyncSession,
    *,
    user_id: str,
    token: str,
    new_password: str,
) -> User:
    """Consume a reset token, store the new password and revoke sessions."""
    user = await find_user_by_id(session, user_id)
    await consume_one_time_token(
        session,
        user_id=user.id,
        token=token,
        purpose=TokenPurpose.RESET_PASSWORD,
    )
    user.password_hash = hash_password(new_password)
    user.token_version = user.token_version + 1
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user

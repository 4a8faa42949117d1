"""Tests for profile endpoints and account deletion."""

from datetime import datetime, timezone

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core import AppError
from models import (
    Comment,
    CommentLike,
    Follow,
    OneTimeToken,
    Post,
    PostLike,
    Reply,
    ReplyLike,
    User,
)
from services import accounts
from services.accounts import NewUser, create_user, find_user_by_username, update_user


async def _count(session: AsyncSession, model) -> int:
    result = await session.execute(select(func.count()).select_from(model))
    return int(result.scalar_one())


@pytest.mark.asyncio
async def test_get_me_returns_private_profile(async_client: AsyncClient, create_account):
    account = await create_account("me")
    response = await async_client.get("/api/v1/users/me", headers=account.headers)
    payload = response.json()["payload"]
    assert payload["email"] == account.email
    assert payload["role"] == "user"
    assert payload["bio"] == ""
    assert payload["avatar"].startswith("https://")
    assert payload["followers"] == payload["following"] == []


@pytest.mark.asyncio
async def test_update_profile_fields_and_avatar(
    async_client: AsyncClient,
    create_account,
    uploader,
):
    account = await create_account("profile")
    response = await async_client.patch(
        "/api/v1/users/me",
        data={"bio": "  Traveller  ", "gender": "other", "dateOfBirth": "1990-05-17"},
        files={"avatar": ("me.png", b"fake-bytes", "image/png")},
        headers=account.headers,
    )
    assert response.status_code == 200
    payload = response.json()["payload"]
    assert payload["bio"] == "Traveller"
    assert payload["gender"] == "other"
    assert payload["dateOfBirth"] == "1990-05-17"
    assert payload["avatar"].startswith(f"https://media.test/avatars/{account.id}/")
    assert uploader.uploads == [(f"avatars/{account.id}", b"fake-bytes")]


@pytest.mark.asyncio
async def test_update_username_conflict(async_client: AsyncClient, create_account):
    first = await create_account("first")
    second = await create_account("second")

    response = await async_client.patch(
        "/api/v1/users/me",
        data={"username": first.username},
        headers=second.headers,
    )
    assert response.status_code == 400
    assert response.json()["errors"] == {"username": "username is already taken"}


@pytest.mark.asyncio
async def test_update_username_conflict_found_at_commit(
    monkeypatch,
    async_client: AsyncClient,
    create_account,
):
    first = await create_account("first")
    second = await create_account("second")

    async def nothing_taken(*args, **kwargs):
        return []

    monkeypatch.setattr(accounts, "_taken_fields", nothing_taken)

    response = await async_client.patch(
        "/api/v1/users/me",
        data={"username": first.username},
        headers=second.headers,
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Duplicate key error"
    assert response.json()["errors"] == {"username": "username is already taken"}

    me = await async_client.get("/api/v1/users/me", headers=second.headers)
    assert me.json()["payload"]["username"] == second.username


@pytest.mark.asyncio
async def test_rejected_profile_update_discards_uploaded_images(
    async_client: AsyncClient,
    create_account,
    uploader,
):
    first = await create_account("first")
    second = await create_account("second")

    response = await async_client.patch(
        "/api/v1/users/me",
        data={"username": first.username},
        files={
            "avatar": ("me.png", b"avatar-bytes", "image/png"),
            "coverImage": ("cover.png", b"cover-bytes", "image/png"),
        },
        headers=second.headers,
    )
    assert response.status_code == 400
    assert uploader.discarded == [
        f"https://media.test/avatars/{second.id}/1.png",
        f"https://media.test/covers/{second.id}/2.png",
    ]


@pytest.mark.asyncio
async def test_replacing_avatar_discards_previous_upload(
    async_client: AsyncClient,
    create_account,
    uploader,
):
    account = await create_account("profile")
    first = await async_client.patch(
        "/api/v1/users/me",
        files={"avatar": ("one.png", b"one", "image/png")},
        headers=account.headers,
    )
    old_avatar = first.json()["payload"]["avatar"]
    uploader.discarded.clear()

    second = await async_client.patch(
        "/api/v1/users/me",
        files={"avatar": ("two.png", b"two", "image/png")},
        headers=account.headers,
    )
    assert second.status_code == 200
    assert second.json()["payload"]["avatar"] == f"https://media.test/avatars/{account.id}/2.png"
    assert uploader.discarded == [old_avatar]


@pytest.mark.asyncio
async def test_update_user_ignores_credential_fields(create_account, db_session: AsyncSession):
    account = await create_account("safe", login=False)
    user = await db_session.get(User, account.id)
    original_hash = user.password_hash

    await update_user(
        db_session,
        user,
        {"password_hash": "x", "is_verified": False, "role": "admin", "bio": "hi"},
    )
    refreshed = await db_session.get(User, account.id)
    assert refreshed.password_hash == original_hash
    assert refreshed.is_verified is True
    assert refreshed.role == "user"
    assert refreshed.bio == "hi"


@pytest.mark.asyncio
async def test_get_unknown_user(async_client: AsyncClient, create_account):
    account = await create_account("seeker")
    response = await async_client.get("/api/v1/users/nobody", headers=account.headers)
    assert response.status_code == 404
    assert response.json()["message"] == "User not found"


@pytest.mark.asyncio
async def test_service_lookups_and_duplicate_detection(db_session: AsyncSession):
    user = await create_user(
        db_session,
        NewUser(username="lookup", email=" Lookup@Wander.io ", password="secret1"),
    )
    assert user.email == "lookup@wander.io"
    assert user.is_verified is False
    assert (await find_user_by_username(db_session, "lookup")).id == user.id

    with pytest.raises(AppError) as excinfo:
        await create_user(
            db_session,
            NewUser(username="other", email="lookup@wander.io", password="secret1"),
        )
    assert excinfo.value.errors == {"email": "email is already taken"}

    with pytest.raises(AppError) as missing:
        await find_user_by_username(db_session, "ghost")
    assert missing.value.status_code == 404


@pytest.mark.asyncio
async def test_delete_account_removes_owned_rows(
    async_client: AsyncClient,
    create_account,
    db_session: AsyncSession,
):
    leaving = await create_account("leaving")
    staying = await create_account("staying")

    own_post = await async_client.post(
        "/api/v1/posts",
        data={"description": "mine"},
        headers=leaving.headers,
    )
    other_post = await async_client.post(
        "/api/v1/posts",
        data={"description": "theirs"},
        headers=staying.headers,
    )
    other_post_id = other_post.json()["payload"]["id"]
    own_post_id = own_post.json()["payload"]["id"]

    await async_client.post(f"/api/v1/posts/{own_post_id}/likes", headers=staying.headers)
    await async_client.post(f"/api/v1/posts/{other_post_id}/likes", headers=leaving.headers)
    staying_comment = await async_client.post(
        f"/api/v1/posts/{other_post_id}/comments",
        json={"content": "stays"},
        headers=staying.headers,
    )
    staying_comment_id = staying_comment.json()["payload"]["id"]
    await async_client.post(f"/api/v1/comments/{staying_comment_id}/likes", headers=leaving.headers)
    leaving_reply = await async_client.post(
        f"/api/v1/comments/{staying_comment_id}/replies",
        json={"content": "goes"},
        headers=leaving.headers,
    )
    await async_client.post(
        f"/api/v1/replies/{leaving_reply.json()['payload']['id']}/likes",
        headers=staying.headers,
    )
    await async_client.post(
        f"/api/v1/posts/{other_post_id}/comments",
        json={"content": "goes too"},
        headers=leaving.headers,
    )
    await async_client.post(f"/api/v1/users/{staying.id}/follow", headers=leaving.headers)
    await async_client.post(f"/api/v1/users/{leaving.id}/follow", headers=staying.headers)

    response = await async_client.delete("/api/v1/users/me", headers=leaving.headers)
    assert response.status_code == 200

    assert await db_session.get(User, leaving.id) is None
    assert await _count(db_session, Post) == 1
    assert await _count(db_session, PostLike) == 0
    assert await _count(db_session, Comment) == 1
    assert await _count(db_session, CommentLike) == 0
    assert await _count(db_session, Reply) == 0
    assert await _count(db_session, ReplyLike) == 0
    assert await _count(db_session, Follow) == 0
    assert await _count(db_session, OneTimeToken) == 0

    after = await async_client.get("/api/v1/users/me", headers=leaving.headers)
    assert after.status_code == 403


def test_utc_timestamps_are_aware():
    user = User(username="tz", email="tz@wander.io", password_hash="x")
    assert user.created_at.tzinfo is timezone.utc
    assert user.created_at <= datetime.now(timezone.utc)

"""Tests for follow/unfollow endpoints."""

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core import AppError
from models import Follow
from services.accounts import follow_user, load_follow_ids, unfollow_user


@pytest.mark.asyncio
async def test_follow_and_unfollow(async_client: AsyncClient, create_account, db_session: AsyncSession):
    alice = await create_account("alice")
    bob = await create_account("bob")

    response = await async_client.post(f"/api/v1/users/{bob.id}/follow", headers=alice.headers)
    assert response.status_code == 200
    assert response.json()["payload"]["following"] == [bob.id]

    bob_profile = await async_client.get(f"/api/v1/users/{bob.id}", headers=alice.headers)
    assert bob_profile.json()["payload"]["followers"] == [alice.id]
    assert "email" not in bob_profile.json()["payload"]

    result = await db_session.execute(select(Follow))
    assert len(result.scalars().all()) == 1

    again = await async_client.post(f"/api/v1/users/{bob.id}/follow", headers=alice.headers)
    assert again.status_code == 400
    assert again.json()["message"] == "You already follow this user"

    unfollow = await async_client.delete(f"/api/v1/users/{bob.id}/follow", headers=alice.headers)
    assert unfollow.status_code == 200
    assert unfollow.json()["payload"]["following"] == []

    unfollow_again = await async_client.delete(f"/api/v1/users/{bob.id}/follow", headers=alice.headers)
    assert unfollow_again.status_code == 400
    assert unfollow_again.json()["message"] == "You do not follow this user"


@pytest.mark.asyncio
async def test_cannot_follow_self(async_client: AsyncClient, create_account):
    alice = await create_account("self")

    follow = await async_client.post(f"/api/v1/users/{alice.id}/follow", headers=alice.headers)
    unfollow = await async_client.delete(f"/api/v1/users/{alice.id}/follow", headers=alice.headers)
    assert follow.status_code == 400
    assert unfollow.status_code == 400


@pytest.mark.asyncio
async def test_follow_unknown_user(async_client: AsyncClient, create_account):
    alice = await create_account("alice")
    response = await async_client.post("/api/v1/users/unknown-user/follow", headers=alice.headers)
    assert response.status_code == 404
    assert response.json()["message"] == "User not found"


@pytest.mark.asyncio
async def test_followers_and_following_lists_paginate(async_client: AsyncClient, create_account):
    target = await create_account("star")
    fans = [await create_account(f"fan{index}") for index in range(3)]
    for fan in fans:
        response = await async_client.post(f"/api/v1/users/{target.id}/follow", headers=fan.headers)
        assert response.status_code == 200

    first_page = await async_client.get(
        f"/api/v1/users/{target.id}/followers",
        params={"limit": 2},
        headers=target.headers,
    )
    assert first_page.status_code == 200
    assert len(first_page.json()["payload"]) == 2
    assert first_page.headers["X-Next-Offset"] == "2"

    second_page = await async_client.get(
        f"/api/v1/users/{target.id}/followers",
        params={"limit": 2, "offset": 2},
        headers=target.headers,
    )
    assert len(second_page.json()["payload"]) == 1
    assert "X-Next-Offset" not in second_page.headers

    ids = {item["id"] for item in first_page.json()["payload"] + second_page.json()["payload"]}
    assert ids == {fan.id for fan in fans}

    following = await async_client.get(
        f"/api/v1/users/{fans[0].id}/following",
        headers=target.headers,
    )
    assert [item["id"] for item in following.json()["payload"]] == [target.id]


@pytest.mark.asyncio
async def test_follow_relation_is_consistent_in_both_directions(
    create_account,
    db_session: AsyncSession,
):
    alice = await create_account("alice", login=False)
    bob = await create_account("bob", login=False)

    await follow_user(db_session, target_id=bob.id, acting_user_id=alice.id)
    alice_followers, alice_following = await load_follow_ids(db_session, alice.id)
    bob_followers, bob_following = await load_follow_ids(db_session, bob.id)
    assert alice_following == [bob.id]
    assert bob_followers == [alice.id]
    assert alice_followers == bob_following == []

    with pytest.raises(AppError) as excinfo:
        await follow_user(db_session, target_id=alice.id, acting_user_id=alice.id)
    assert excinfo.value.status_code == 400

    await unfollow_user(db_session, target_id=bob.id, acting_user_id=alice.id)
    assert await load_follow_ids(db_session, bob.id) == ([], [])

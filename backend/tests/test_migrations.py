"""Tests for the Alembic schema."""

from pathlib import Path

import pytest
from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import create_async_engine
from sqlmodel import SQLModel

import models  # noqa: F401

EXPECTED_TABLES = {
    "users",
    "follows",
    "posts",
    "post_likes",
    "comments",
    "comment_likes",
    "replies",
    "reply_likes",
    "one_time_tokens",
}


@pytest.mark.asyncio
async def test_migrated_schema_matches_models(migrated_template: Path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{migrated_template}")
    try:
        async with engine.connect() as connection:
            tables, columns_by_table, unique_user_indexes = await connection.run_sync(
                _describe_schema
            )
    finally:
        await engine.dispose()

    assert EXPECTED_TABLES <= tables
    for table in SQLModel.metadata.sorted_tables:
        assert set(table.columns.keys()) == columns_by_table[table.name], table.name
    assert {"ix_users_username", "ix_users_email"} <= unique_user_indexes


def _describe_schema(sync_connection):
    inspector = inspect(sync_connection)
    tables = set(inspector.get_table_names())
    columns_by_table = {
        name: {column["name"] for column in inspector.get_columns(name)} for name in tables
    }
    unique_user_indexes = {
        index["name"] for index in inspector.get_indexes("users") if index.get("unique")
    }
    return tables, columns_by_table, unique_user_indexes

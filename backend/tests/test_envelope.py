"""Tests for the response envelope and exception translation."""

import json

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import IntegrityError

from api.error_handlers import register_exception_handlers, validation_errors_map
from core import AppError, ErrorKind
from core.errors import kind_for_status
from core.responses import on_create, on_fetch
from db.errors import is_unique_violation, unique_violation_fields


def _body(response) -> dict:
    return json.loads(response.body)


def test_success_envelope_omits_empty_keys():
    body = _body(on_fetch("Fetched"))
    assert body == {"status": 1, "statusCode": 200, "message": "Fetched"}

    created = on_create("Created", {"id": 1}, description="details")
    assert created.status_code == 201
    assert _body(created) == {
        "status": 1,
        "statusCode": 201,
        "message": "Created",
        "description": "details",
        "payload": {"id": 1},
    }


def test_empty_list_payload_is_kept():
    assert _body(on_fetch("Nothing yet", []))["payload"] == []


@pytest.mark.parametrize(
    ("status_code", "kind"),
    [
        (400, ErrorKind.BAD_REQUEST),
        (404, ErrorKind.NOT_FOUND),
        (405, ErrorKind.BAD_REQUEST),
        (422, ErrorKind.UNPROCESSABLE_ENTITY),
        (502, ErrorKind.SERVER_ERROR),
    ],
)
def test_kind_for_status(status_code, kind):
    assert kind_for_status(status_code) is kind


def test_validation_errors_map_keeps_first_message_per_field():
    errors = [
        {"loc": ("body", "email"), "msg": "value is not a valid email address"},
        {"loc": ("body", "email"), "msg": "second message"},
        {"loc": ("query", "limit"), "msg": "Input should be greater than 0"},
        {"loc": ("body",), "msg": "Field required"},
    ]
    assert validation_errors_map(errors) == {
        "email": "value is not a valid email address",
        "limit": "Input should be greater than 0",
        "request": "Field required",
    }


class FakeDriverError(Exception):
    def __init__(self, message: str, sqlstate: str | None = None):
        super().__init__(message)
        self.sqlstate = sqlstate


def _integrity_error(message: str, sqlstate: str | None = None) -> IntegrityError:
    return IntegrityError("INSERT", {}, FakeDriverError(message, sqlstate))


def test_unique_violation_fields_from_sqlite_message():
    error = _integrity_error("UNIQUE constraint failed: users.username, users.email")
    assert is_unique_violation(error) is True
    assert unique_violation_fields(error) == ["username", "email"]


def test_unique_violation_fields_from_postgres_message():
    error = _integrity_error(
        'duplicate key value violates unique constraint "ix_users_email"\n'
        "DETAIL:  Key (email)=(a@wander.io) already exists."
    )
    assert is_unique_violation(error) is True
    assert unique_violation_fields(error) == ["email"]


def test_postgres_sqlstate_marks_unique_violation():
    error = _integrity_error("conflict", sqlstate="23505")
    assert is_unique_violation(error) is True
    assert unique_violation_fields(error) == []


def test_foreign_key_failure_is_not_a_unique_violation():
    error = _integrity_error("FOREIGN KEY constraint failed")
    assert is_unique_violation(error) is False
    assert unique_violation_fields(error) == []


@pytest.fixture()
def failing_app() -> FastAPI:
    application = FastAPI()
    register_exception_handlers(application)

    @application.get("/app-error")
    async def app_error():
        raise AppError(ErrorKind.CONFLICT, "Taken", description="try another")

    @application.get("/duplicate")
    async def duplicate():
        raise _integrity_error("UNIQUE constraint failed: users.email")

    @application.get("/boom")
    async def boom():
        raise RuntimeError("unexpected")

    @application.get("/numbers/{number}")
    async def numbers(number: int):
        return {"number": number}

    return application


@pytest.mark.asyncio
async def test_exception_handlers_use_envelope(failing_app: FastAPI):
    transport = ASGITransport(app=failing_app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        conflict = await client.get("/app-error")
        assert conflict.status_code == 409
        assert conflict.json() == {
            "status": 0,
            "statusCode": 409,
            "message": "Taken",
            "description": "try another",
            "error": "Conflict",
        }

        duplicate = await client.get("/duplicate")
        assert duplicate.status_code == 400
        assert duplicate.json()["errors"] == {"email": "email is already taken"}

        invalid = await client.get("/numbers/abc")
        assert invalid.status_code == 400
        assert invalid.json()["message"] == "Schema validation error"
        assert "number" in invalid.json()["errors"]

        missing = await client.get("/nowhere")
        assert missing.status_code == 404
        assert missing.json()["error"] == "NotFound"

        crash = await client.get("/boom")
        assert crash.status_code == 500
        assert crash.json()["message"] == "Something went wrong"

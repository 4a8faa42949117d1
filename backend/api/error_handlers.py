"""Translate every failure into the uniform response envelope."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from core import AppError, ErrorKind, duplicate_key_error
from core.errors import DEFAULT_MESSAGES, kind_for_status
from core.responses import on_app_error, on_client_error, on_server_error
from db.errors import is_unique_violation, unique_violation_fields

logger = logging.getLogger(__name__)

SCHEMA_VALIDATION_MESSAGE = "Schema validation error"
REQUEST_SOURCES = frozenset({"body", "query", "path", "header", "cookie"})


def _field_name(location: Sequence[Any]) -> str:
    parts = [str(part) for part in location if str(part) not in REQUEST_SOURCES]
    return ".".join(parts) or "request"


def validation_errors_map(errors: Sequence[Any]) -> dict[str, str]:
    """Collapse pydantic error entries into ``{field: first message}``."""
    mapped: dict[str, str] = {}
    for error in errors:
        field = _field_name(error.get("loc", ()))
        mapped.setdefault(field, str(error.get("msg", "Invalid value")))
    return mapped


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
        if exc.kind is ErrorKind.SERVER_ERROR:
            logger.error(
                "Request failed: %s",
                exc.message,
                extra={"path": request.url.path},
            )
        return on_app_error(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        return on_client_error(
            400,
            ErrorKind.BAD_REQUEST.value,
            SCHEMA_VALIDATION_MESSAGE,
            errors=validation_errors_map(exc.errors()),
        )

    @app.exception_handler(IntegrityError)
    async def handle_integrity_error(request: Request, exc: IntegrityError) -> JSONResponse:
        if is_unique_violation(exc):
            return on_app_error(duplicate_key_error(unique_violation_fields(exc)))
        logger.exception("Integrity error", extra={"path": request.url.path})
        return on_server_error(
            ErrorKind.SERVER_ERROR.value,
            DEFAULT_MESSAGES[ErrorKind.SERVER_ERROR],
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(
        request: Request,
        exc: StarletteHTTPException,
    ) -> JSONResponse:
        kind = kind_for_status(exc.status_code)
        message = exc.detail if isinstance(exc.detail, str) else DEFAULT_MESSAGES[kind]
        if exc.status_code >= 500:
            return on_server_error(kind.value, message)
        return on_client_error(exc.status_code, kind.value, message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error", extra={"path": request.url.path})
        return on_server_error(
            ErrorKind.SERVER_ERROR.value,
            DEFAULT_MESSAGES[ErrorKind.SERVER_ERROR],
        )

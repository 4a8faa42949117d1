"""Uniform response envelope shared by every endpoint."""

from __future__ import annotations

from typing import Any, Literal

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from .errors import AppError, ErrorKind, STATUS_BY_KIND


class ResponseEnvelope(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: Literal[0, 1]
    status_code: int = Field(alias="statusCode")
    message: str
    description: str | None = None
    payload: Any = None
    error: str | None = None
    errors: dict[str, str] | None = None


def envelope_response(envelope: ResponseEnvelope) -> JSONResponse:
    data = envelope.model_dump(mode="json", by_alias=True)
    content = {key: value for key, value in data.items() if value is not None}
    return JSONResponse(status_code=envelope.status_code, content=content)


def _success(
    status_code: int,
    message: str,
    payload: Any = None,
    description: str | None = None,
) -> JSONResponse:
    return envelope_response(
        ResponseEnvelope(
            status=1,
            statusCode=status_code,
            message=message or "successful",
            description=description or None,
            payload=jsonable_encoder(payload) if payload is not None else None,
        )
    )


def on_create(message: str, payload: Any = None, description: str | None = None) -> JSONResponse:
    return _success(201, message, payload, description)


def on_fetch(message: str, payload: Any = None, description: str | None = None) -> JSONResponse:
    return _success(200, message, payload, description)


def on_client_error(
    status_code: int,
    error: str,
    message: str,
    description: str | None = None,
    errors: dict[str, str] | None = None,
) -> JSONResponse:
    return envelope_response(
        ResponseEnvelope(
            status=0,
            statusCode=status_code or 400,
            message=message,
            description=description,
            error=error,
            errors=errors,
        )
    )


def on_server_error(error: str, message: str, description: str | None = None) -> JSONResponse:
    return envelope_response(
        ResponseEnvelope(
            status=0,
            statusCode=STATUS_BY_KIND[ErrorKind.SERVER_ERROR],
            message=message,
            description=description,
            error=error,
        )
    )


def on_app_error(exc: AppError) -> JSONResponse:
    if exc.kind is ErrorKind.SERVER_ERROR:
        return on_server_error(exc.kind.value, exc.message, exc.description)
    return on_client_error(
        exc.status_code,
        exc.kind.value,
        exc.message,
        exc.description,
        exc.errors,
    )

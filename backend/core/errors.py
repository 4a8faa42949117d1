"""Application error kinds and the single exception type services raise."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    BAD_REQUEST = "BadRequest"
    UNAUTHORIZED = "Unauthorized"
    FORBIDDEN = "Forbidden"
    NOT_FOUND = "NotFound"
    CONFLICT = "Conflict"
    UNPROCESSABLE_ENTITY = "UnprocessableEntity"
    SERVER_ERROR = "ServerError"


STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.BAD_REQUEST: 400,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.UNPROCESSABLE_ENTITY: 422,
    ErrorKind.SERVER_ERROR: 500,
}

DEFAULT_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.BAD_REQUEST: "Bad Request",
    ErrorKind.UNAUTHORIZED: "Unauthorized",
    ErrorKind.FORBIDDEN: "Forbidden",
    ErrorKind.NOT_FOUND: "Not found",
    ErrorKind.CONFLICT: "Conflict",
    ErrorKind.UNPROCESSABLE_ENTITY: "Unprocessable Entity",
    ErrorKind.SERVER_ERROR: "Something went wrong",
}


def kind_for_status(status_code: int) -> ErrorKind:
    """Return the error kind for an HTTP status, falling back to ServerError."""
    for kind, code in STATUS_BY_KIND.items():
        if code == status_code:
            return kind
    if 400 <= status_code < 500:
        return ErrorKind.BAD_REQUEST
    return ErrorKind.SERVER_ERROR


class AppError(Exception):
    """A classified failure that propagates unchanged to the HTTP boundary."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str | None = None,
        *,
        description: str | None = None,
        errors: dict[str, str] | None = None,
    ) -> None:
        self.kind = kind
        self.message = message or DEFAULT_MESSAGES[kind]
        self.description = description
        self.errors = errors
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]

    def __repr__(self) -> str:
        return f"AppError(kind={self.kind.value!r}, message={self.message!r})"


def duplicate_key_error(fields: list[str]) -> AppError:
    """Build the BadRequest raised when unique fields collide."""
    return AppError(
        ErrorKind.BAD_REQUEST,
        "Duplicate key error",
        errors={field: f"{field} is already taken" for field in fields},
    )

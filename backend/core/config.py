"""Application settings loaded from the environment."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEVELOPMENT_SECRET = "dev-only-secret-change-me"
DEFAULT_AVATAR_URL = (
    "https://www.pngitem.com/pimgs/m/150-1503945_transparent-user-png-default-user-image-png-png.png"
)


class Settings(BaseSettings):
    """Immutable process configuration, assembled once at startup."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    app_env: Literal["development", "test", "local", "production"] = "development"
    log_level: str = "INFO"

    database_url: str = "sqlite+aiosqlite:///./wander.db"

    access_token_secret: str = DEVELOPMENT_SECRET
    refresh_token_secret: str = DEVELOPMENT_SECRET + "-refresh"
    access_token_expire_minutes: int = Field(default=15, ge=1)
    refresh_token_expire_minutes: int = Field(default=60 * 24 * 7, ge=1)

    frontend_url: str = "http://localhost:3000"

    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_username: str | None = None
    smtp_password: str | None = None
    smtp_use_tls: bool = True
    email_from: str = "no-reply@wander.local"

    geocoding_url: str = "https://geocode.search.hereapi.com/v1/geocode"
    geocoding_api_key: str = ""
    geocoding_timeout_seconds: float = Field(default=5.0, gt=0)

    minio_endpoint: str = "localhost:9000"
    minio_access_key: str = "minioadmin"
    minio_secret_key: str = "minioadmin"
    minio_bucket: str = "wander"
    minio_secure: bool = False
    media_public_base_url: str = "http://localhost:9000"
    upload_max_bytes: int = Field(default=500_000, ge=1)

    @model_validator(mode="after")
    def _reject_development_secrets_in_production(self) -> "Settings":
        if self.app_env != "production":
            return self
        secrets = (
            self.access_token_secret,
            self.refresh_token_secret,
        )
        if any(secret.startswith(DEVELOPMENT_SECRET) for secret in secrets):
            raise ValueError("Token secrets must be configured in production")
        if len(set(secrets)) != len(secrets):
            raise ValueError("Access and refresh secrets must differ")
        return self

    @property
    def is_development(self) -> bool:
        return self.app_env in {"development", "local", "test"}


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()

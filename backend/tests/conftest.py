"""Pytest fixtures for the Wander backend."""

import os

os.environ.setdefault("APP_ENV", "test")

import shutil
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field
from pathlib import Path
from uuid import uuid4

from alembic import command
from alembic.config import Config
import pytest
import pytest_asyncio
from fastapi import FastAPI, UploadFile
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from api.deps import get_db, get_geocoder, get_image_uploader, get_mailer
from app import create_app
from core import AppError, ErrorKind
from models import User
from services.geocoding import LOCATION_NOT_FOUND_MESSAGE, Coordinates

DEFAULT_PASSWORD = "secret1"


def run_alembic_migrations(database_url: str) -> None:
    """Apply Alembic migrations to the given database URL."""
    backend_dir = Path(__file__).resolve().parents[1]
    alembic_cfg = Config(str(backend_dir / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(backend_dir / "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", database_url)
    alembic_cfg.attributes["configure_logger"] = False
    command.upgrade(alembic_cfg, "head")


@pytest.fixture(scope="session")
def migrated_template(tmp_path_factory) -> Path:
    """Migrate one SQLite file per session; tests copy it."""
    db_path = tmp_path_factory.mktemp("sqlite") / "template.db"
    run_alembic_migrations(f"sqlite+aiosqlite:///{db_path}")
    return db_path


@pytest.fixture()
def test_database_url(migrated_template: Path, tmp_path: Path) -> str:
    db_path = tmp_path / "wander-test.db"
    shutil.copyfile(migrated_template, db_path)
    return f"sqlite+aiosqlite:///{db_path}"


@pytest_asyncio.fixture()
async def test_engine(test_database_url: str) -> AsyncIterator[AsyncEngine]:
    engine = create_async_engine(
        test_database_url,
        connect_args={"check_same_thread": False},
    )
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_maker(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(test_engine, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db_session(session_maker) -> AsyncIterator[AsyncSession]:
    """Provide a raw database session to tests."""
    async with session_maker() as session:
        yield session


@dataclass
class FakeMailer:
    verification: list[tuple[str, str]] = field(default_factory=list)
    reset: list[tuple[str, str]] = field(default_factory=list)

    async def send_verification_email(self, user: User, token: str) -> None:
        self.verification.append((user.id, token))

    async def send_reset_password_email(self, user: User, token: str) -> None:
        self.reset.append((user.id, token))

    def last_verification_token(self, user_id: str) -> str:
        return [token for owner, token in self.verification if owner == user_id][-1]

    def last_reset_token(self, user_id: str) -> str:
        return [token for owner, token in self.reset if owner == user_id][-1]


@dataclass
class FakeGeocoder:
    known: dict[str, Coordinates] = field(default_factory=dict)
    calls: list[str] = field(default_factory=list)

    async def resolve(self, address: str) -> Coordinates:
        self.calls.append(address)
        coordinates = self.known.get(address)
        if coordinates is None:
            raise AppError(ErrorKind.UNPROCESSABLE_ENTITY, LOCATION_NOT_FOUND_MESSAGE)
        return coordinates


@dataclass
class FakeUploader:
    uploads: list[tuple[str, bytes]] = field(default_factory=list)
    discarded: list[str] = field(default_factory=list)

    async def upload(self, upload: UploadFile, *, folder: str) -> str:
        data = await upload.read()
        self.uploads.append((folder, data))
        return f"https://media.test/{folder}/{len(self.uploads)}.png"

    async def discard(self, url: str | None) -> None:
        if url is not None:
            self.discarded.append(url)


@pytest.fixture()
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture()
def geocoder() -> FakeGeocoder:
    return FakeGeocoder(
        known={
            "Eiffel Tower": Coordinates(lat=48.8584, lng=2.2945),
            "Colosseum": Coordinates(lat=41.8902, lng=12.4922),
        }
    )


@pytest.fixture()
def uploader() -> FakeUploader:
    return FakeUploader()


@pytest.fixture()
def app(session_maker, mailer, geocoder, uploader) -> FastAPI:
    """Create the FastAPI app with test dependency overrides."""
    application = create_app()

    async def override_get_db() -> AsyncIterator[AsyncSession]:
        async with session_maker() as session:
            yield session

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_mailer] = lambda: mailer
    application.dependency_overrides[get_geocoder] = lambda: geocoder
    application.dependency_overrides[get_image_uploader] = lambda: uploader
    return application


@pytest_asyncio.fixture()
async def async_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """Return an HTTPX async client bound to the FastAPI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@dataclass
class Account:
    id: str
    username: str
    email: str
    password: str
    access_token: str | None = None

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token}"}


def make_user_payload(prefix: str, password: str = DEFAULT_PASSWORD) -> dict[str, str]:
    suffix = uuid4().hex[:6]
    return {
        "username": f"{prefix}_{suffix}",
        "email": f"{prefix}_{suffix}@wander.io",
        "password": password,
        "passwordConfirmation": password,
    }


AccountFactory = Callable[..., Awaitable[Account]]


@pytest.fixture()
def create_account(async_client: AsyncClient, mailer: FakeMailer) -> AccountFactory:
    """Sign up, optionally verify, and optionally log in a fresh user."""

    async def factory(prefix: str = "user", *, verify: bool = True, login: bool = True) -> Account:
        payload = make_user_payload(prefix)
        response = await async_client.post("/api/v1/auth/signup", json=payload)
        assert response.status_code == 201, response.text
        user_id = response.json()["payload"]["id"]
        account = Account(
            id=user_id,
            username=payload["username"],
            email=payload["email"],
            password=payload["password"],
        )
        if not verify:
            return account

        token = mailer.last_verification_token(user_id)
        verify_response = await async_client.post(f"/api/v1/auth/verify-email/{user_id}/{token}")
        assert verify_response.status_code == 200, verify_response.text
        if not login:
            return account

        login_response = await async_client.post(
            "/api/v1/auth/login",
            json={"email": account.email, "password": account.password},
        )
        assert login_response.status_code == 200, login_response.text
        account.access_token = login_response.json()["payload"]["access_token"]
        return account

    return factory

"""
Pytest configuration and shared fixtures.

Tests run against an in-memory SQLite database (aiosqlite) created fresh for
every test, and a fake media uploader that never touches the network.
"""

import os
import tempfile
from collections.abc import AsyncGenerator
from pathlib import Path

# Settings are read at import time, so the environment must be set first
os.environ.setdefault("ACCESS_TOKEN_SECRET", "test-access-token-secret")
os.environ.setdefault("REFRESH_TOKEN_SECRET", "test-refresh-token-secret")
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["COOKIE_SECURE"] = "false"
os.environ["ENVIRONMENT"] = "development"
os.environ["UPLOAD_TEMP_DIR"] = tempfile.mkdtemp(prefix="channel-accounts-tests-")

import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402

from app import models  # noqa: E402, F401
from app.core.database import get_db  # noqa: E402
from app.core.security import create_access_token  # noqa: E402
from app.main import app as main_app  # noqa: E402
from app.models.user import Users  # noqa: E402
from app.services.media import MediaUploader, get_media_uploader  # noqa: E402
from app.services.users import UserStore  # noqa: E402

TEST_PASSWORD = "secret123"


class FakeMediaUploader(MediaUploader):
    """
    Uploader standing in for the media host.

    Records every uploaded path and honours the same contract as the real
    uploader: the local file is gone when ``upload`` returns.
    """

    def __init__(self) -> None:
        super().__init__(cloud_name="test", api_key="key", api_secret="secret")
        self.fail = False
        self.uploaded: list[Path] = []
        self.existed_at_upload: list[bool] = []

    async def upload(self, local_path: Path | str | None) -> str | None:
        if not local_path:
            return None
        path = Path(local_path)
        self.existed_at_upload.append(path.exists())
        self.uploaded.append(path)
        path.unlink(missing_ok=True)
        if self.fail:
            return None
        return f"https://media.example.com/{path.name}"


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory database with all tables created."""
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with async_session_maker() as session:
        yield session


@pytest.fixture
def media_uploader() -> FakeMediaUploader:
    return FakeMediaUploader()


@pytest.fixture
def app(db_session: AsyncSession, media_uploader: FakeMediaUploader) -> FastAPI:
    """
    FastAPI app wired to the test database session and fake uploader.
    """

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    main_app.dependency_overrides[get_db] = override_get_db
    main_app.dependency_overrides[get_media_uploader] = lambda: media_uploader

    yield main_app

    main_app.dependency_overrides.clear()


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """
    Async HTTP client for testing API endpoints.

    Usage:
        async def test_endpoint(client):
            response = await client.get("/api/v1/users/current-user")
    """
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def user_store(db_session: AsyncSession) -> UserStore:
    return UserStore(db_session)


@pytest.fixture
async def test_user(user_store: UserStore) -> Users:
    """Registered user 'alice' with password TEST_PASSWORD."""
    return await user_store.create(
        username="alice",
        email="a@x.com",
        full_name="Alice Example",
        password=TEST_PASSWORD,
        avatar="https://media.example.com/alice.png",
    )


@pytest.fixture
async def other_user(user_store: UserStore) -> Users:
    return await user_store.create(
        username="bob",
        email="b@x.com",
        full_name="Bob Example",
        password=TEST_PASSWORD,
        avatar="https://media.example.com/bob.png",
        cover_image="https://media.example.com/bob-cover.png",
    )


@pytest.fixture
def auth_headers(test_user: Users) -> dict[str, str]:
    """Authorization header carrying a valid access token for test_user."""
    assert test_user.id is not None
    return {"Authorization": f"Bearer {create_access_token(test_user.id)}"}

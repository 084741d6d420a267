"""
Pytest configuration for Crewboard tests.

Every test gets a fresh in-memory SQLite database. The app's ``get_db`` and
``get_redis`` dependencies are overridden so API tests never need Postgres
or Redis.
"""

import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-crewboard-0123456789")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import uuid
from collections.abc import AsyncIterator, Awaitable, Callable

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from crewboard.core.database import get_db
from crewboard.core.dependencies import get_redis
from crewboard.core.documents import Role, UserDocument
from crewboard.core.security import hash_password
from crewboard.main import app
from crewboard.models import Base
from crewboard.repositories import DocumentRepository
from tests.helpers import PASSWORD

PASSWORD_HASH = hash_password(PASSWORD)


def pytest_configure(config):
    """Configure pytest-asyncio mode."""
    config.addinivalue_line(
        "markers", "asyncio: mark test as async"
    )


class FakeRedis:
    """The two calls the token blacklist makes, backed by a dict."""

    def __init__(self) -> None:
        self.store: dict[str, tuple[str, int]] = {}

    async def setex(self, key: str, ttl: int, value: str) -> None:
        self.store[key] = (value, ttl)

    async def exists(self, key: str) -> int:
        return int(key in self.store)


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def repository(session_factory) -> AsyncIterator[DocumentRepository]:
    async with session_factory() as session:
        yield DocumentRepository(session)


@pytest.fixture
def read(session_factory) -> Callable[..., Awaitable]:
    """Run one repository read in a fresh session: ``await read("get_team", team_id)``."""

    async def _read(method: str, *args, **kwargs):
        async with session_factory() as session:
            return await getattr(DocumentRepository(session), method)(*args, **kwargs)

    return _read


# ---------------------------------------------------------------------------
# Users and tokens
# ---------------------------------------------------------------------------

@pytest.fixture
def make_user(session_factory) -> Callable[..., Awaitable[UserDocument]]:
    async def _make_user(role: Role = Role.employee, name: str = "Test User") -> UserDocument:
        async with session_factory() as session:
            return await DocumentRepository(session).create_user(
                name=name,
                email=f"{role.value}_{uuid.uuid4().hex[:8]}@example.com",
                password_hash=PASSWORD_HASH,
                designation="Engineer",
                role=role,
            )

    return _make_user


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------

@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
async def client(session_factory, fake_redis) -> AsyncIterator[httpx.AsyncClient]:
    async def override_get_db() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    async def override_get_redis() -> FakeRedis:
        return fake_redis

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()

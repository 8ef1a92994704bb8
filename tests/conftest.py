from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from flexben.api.deps import get_today
from flexben.db import get_session
from flexben.main import app
from flexben.models import SQLModel

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.ext.asyncio import AsyncEngine

# In-memory SQLite keeps every test on a fresh schema without a Postgres server.
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class FixedClock:
    """Business date served to the API in place of ``date.today()``."""

    def __init__(self, today: date) -> None:
        self.today = today


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    """Create a per-test in-memory engine with all tables."""
    _engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    await _engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    """Yield a database session bound to the per-test engine."""
    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(date(2025, 12, 15))


@pytest.fixture
async def async_client(db_session: AsyncSession, clock: FixedClock) -> AsyncIterator[AsyncClient]:
    """Async HTTP client with the session and business date overridden."""

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_session] = _override_get_session
    app.dependency_overrides[get_today] = lambda: clock.today
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()

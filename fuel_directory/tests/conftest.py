"""Shared fixtures: in-memory database, HTTP client and a fake station store."""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from fuel_directory.database import get_db_session
from fuel_directory.main import app
from fuel_directory.models.base import Base
from fuel_directory.tests.helpers import FakeStationRepository


@pytest_asyncio.fixture
async def test_db():
    """In-memory SQLite session with all tables created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture
async def client(test_db: AsyncSession):
    """HTTP client bound to the app, sharing the test database session."""

    async def _override_session():
        yield test_db

    app.dependency_overrides[get_db_session] = _override_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http
    app.dependency_overrides.clear()


@pytest.fixture
def fake_repository() -> FakeStationRepository:
    return FakeStationRepository()

"""
Superhero Registry Backend — Test Configuration (conftest.py)
==============================================================

What:  Shared pytest fixtures for the test suite.
How:   The environment is pointed at SQLite before any `app` module is
       imported, because app.config builds its settings at import time.

Fixtures:
    mock_db_session: AsyncMock standing in for AsyncSession (call-shape tests)
    db_engine:       fresh in-memory SQLite engine with the schema created
    db_session:      AsyncSession bound to db_engine
    clock:           deterministic clock; each call is one second later
    store:           SuperheroService on db_session + clock
    test_client:     HTTPX AsyncClient talking to a fresh app on db_engine
    hero_payload:    factory for valid create payloads (camelCase, as the frontend sends)
"""

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_REQUESTS"] = "100000"

from datetime import datetime, timedelta, timezone  # noqa: E402
from typing import AsyncGenerator  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from fastapi import Depends  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.database import Base, get_db_session  # noqa: E402
from app.models.superhero import Superhero  # noqa: E402,F401
from app.services.superhero_service import SuperheroService, get_superhero_service  # noqa: E402


class StepClock:
    """Returns strictly increasing timestamps, one second apart."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture
def mock_db_session():
    """
    Mock async database session.

    Usage:
        mock_db_session.execute.return_value.scalar_one_or_none.return_value = hero
        await SuperheroService(mock_db_session).find_one(hero.id)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def clock():
    return StepClock()


@pytest_asyncio.fixture
async def db_engine():
    # StaticPool: every session shares the one in-memory database
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest.fixture
def store(db_session, clock):
    return SuperheroService(db_session, clock=clock)


@pytest.fixture
def hero_payload():
    """Builds a valid create payload; keyword overrides use camelCase keys."""

    def build(nickname: str = "Superman", **overrides):
        payload = {
            "nickname": nickname,
            "realName": "Clark Kent",
            "originDescription": "Born on Krypton, raised in Smallville.",
            "superpowers": ["flight", "heat vision"],
            "catchPhrase": "Look, up in the sky!",
            "images": [],
        }
        payload.update(overrides)
        return payload

    return build


@pytest_asyncio.fixture
async def test_client(db_engine, clock):
    """
    HTTPX AsyncClient routed straight into a fresh app instance.

    The session dependency is swapped for one bound to the test engine (same
    commit/rollback behaviour as production), and the service gets the
    deterministic clock so newest-first ordering is stable.
    """
    from app.main import create_app

    app = create_app()
    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def override_service(
        db: AsyncSession = Depends(get_db_session),
    ) -> SuperheroService:
        return SuperheroService(db, clock=clock)

    app.dependency_overrides[get_db_session] = override_db_session
    app.dependency_overrides[get_superhero_service] = override_service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

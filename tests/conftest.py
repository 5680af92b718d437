"""
Shared test fixtures for stm_core.

Every test gets its own SQLite database file (aiosqlite, no pooling) with
freshly created tables. ``seed_data`` inserts the reference projects and
tasks, ``test_client`` talks to the app through the real request pipeline.
"""

import os
from datetime import timedelta

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-tests")

from stm_core.db.base import Base  # noqa: E402
import stm_core.models  # noqa: E402,F401 register models with metadata
from stm_core.main import app  # noqa: E402


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path):
    """Async engine on a database file private to the test."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'stm_test.db'}",
        poolclass=NullPool,
        echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_factory(test_engine):
    return async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def seed_data(db_session):
    """Insert the reference data (projects 1 and 2, tasks 1 to 6)."""
    from stm_core.bootstrap import ensure_dummy_data

    inserted = await ensure_dummy_data(db_session)
    assert inserted
    return db_session


@pytest_asyncio.fixture(scope="function")
async def services(seed_data):
    """(permission, task, project) services bound to the seeded session."""
    from stm_core.services import build_services

    return build_services(seed_data)


# ---------------------------------------------------------------------------
# Test client
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(scope="function")
async def test_client(session_factory):
    from stm_core.db.session import get_session_factory

    app.dependency_overrides[get_session_factory] = lambda: session_factory

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Token helpers
# ---------------------------------------------------------------------------

def make_token(user: str, lifetime: timedelta = timedelta(minutes=10)) -> str:
    from stm_core.api.helpers.authentication import create_token
    from stm_core.config import settings

    return create_token(user, settings.secret_key, lifetime)


def auth_headers_for(user: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user)}"}


@pytest_asyncio.fixture(scope="function")
async def auth_headers():
    """Factory for the Authorization header of a given user."""
    return auth_headers_for

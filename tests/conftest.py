"""
Shared fixtures: a throwaway SQLite database per test and an HTTP client
wired to it through the ``get_db`` dependency.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from postboard.database import build_engine, build_sessionmaker, get_db, init_models
from postboard.main import app


@pytest_asyncio.fixture
async def engine(tmp_path):
    """Create a file-backed SQLite engine with the tables in place."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'postboard.db'}")
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_sessionmaker(engine)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    """HTTP client for the app, one session per request like production."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()

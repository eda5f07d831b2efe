"""Shared fixtures: a fresh SQLite store per test and an HTTP client bound to it.

Environment is set before any app import because app.core.config reads it
at import time.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from httpx import ASGITransport, AsyncClient

from app.core import config
from app.core.database.engine import create_store, get_store, init_db
from app.main import app


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'permissions.db'}"


@pytest.fixture
async def store(database_url):
    store = create_store(database_url, timeout=5)
    await init_db(store, config.PERMISSIONS_COLLECTION)
    yield store
    await store.close()


@pytest.fixture
async def client(store):
    """HTTP client with the store dependency pointed at the test database."""
    app.dependency_overrides[get_store] = lambda: store

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()

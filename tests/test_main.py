import json

import pytest

from app.core import config
from app.core.database.store import DocumentStore
from app.core.errors import StoreError
from app.main import app, lifespan, rate_limit_exceeded_handler


async def test_lifespan_creates_store_and_collection(monkeypatch, database_url):
    monkeypatch.setattr(config, "SQLALCHEMY_DATABASE_URL", database_url)

    async with lifespan(app):
        store = app.state.store
        assert isinstance(store, DocumentStore)
        assert await store.find_one(config.PERMISSIONS_COLLECTION, {"email": "a@x.com"}) is None


async def test_lifespan_refuses_to_start_without_database(monkeypatch, tmp_path):
    missing = tmp_path / "missing" / "permissions.db"
    monkeypatch.setattr(config, "SQLALCHEMY_DATABASE_URL", f"sqlite+aiosqlite:///{missing}")

    with pytest.raises(StoreError):
        async with lifespan(app):
            pass


def test_rate_limit_handler():
    response = rate_limit_exceeded_handler(None, None)

    assert response.status_code == 429
    assert json.loads(response.body) == {"error": "You are going too fast"}

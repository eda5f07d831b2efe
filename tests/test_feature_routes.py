import pytest

from app.core.database.engine import get_store
from app.core.errors import StoreError
from app.features.permissions.validators import INVALID_BOTH, INVALID_EMAIL, INVALID_FEATURE_NAME
from app.main import app


PAYLOAD = {"featureName": "add", "email": "a@x.com", "enable": True}


class BrokenStore:
    """Store double whose every call fails the way an unreachable database does."""

    async def find_one(self, collection, criteria):
        raise StoreError("connection refused", "find_one")

    async def upsert(self, collection, criteria, update):
        raise StoreError("connection refused", "upsert")

    async def health_check(self):
        return False


@pytest.fixture
async def broken_client(client):
    app.dependency_overrides[get_store] = BrokenStore
    yield client


async def test_root(client):
    response = await client.get("/")

    assert response.status_code == 200
    assert response.json() == {"title": "Feature Access API"}


async def test_get_without_record_is_404(client):
    response = await client.get("/feature", params={"email": "a@x.com", "featureName": "add"})

    assert response.status_code == 404
    assert response.content == b""


async def test_post_then_get(client):
    post = await client.post("/feature", json=PAYLOAD)
    get = await client.get("/feature", params={"email": "a@x.com", "featureName": "add"})

    assert post.status_code == 200
    assert post.content == b""
    assert get.status_code == 200
    assert get.json() == {"canAccess": True}


async def test_repeated_post_is_not_modified(client):
    first = await client.post("/feature", json=PAYLOAD)
    second = await client.post("/feature", json=PAYLOAD)

    assert first.status_code == 200
    assert second.status_code == 304


async def test_flipping_flag_is_a_change_each_time(client):
    disable = await client.post("/feature", json={**PAYLOAD, "enable": False})
    after_disable = await client.get("/feature", params={"email": "a@x.com", "featureName": "add"})
    enable = await client.post("/feature", json={**PAYLOAD, "enable": True})
    after_enable = await client.get("/feature", params={"email": "a@x.com", "featureName": "add"})

    assert disable.status_code == 200
    assert after_disable.json() == {"canAccess": False}
    assert enable.status_code == 200
    assert after_enable.json() == {"canAccess": True}


async def test_post_accepts_enabled_field(client):
    response = await client.post("/feature", json={"featureName": "add", "email": "a@x.com", "enabled": True})
    repeat = await client.post("/feature", json=PAYLOAD)

    assert response.status_code == 200
    assert repeat.status_code == 304


@pytest.mark.parametrize(
    "params, message",
    [
        ({"email": "xxx", "featureName": "add"}, INVALID_EMAIL),
        ({"email": "xxx@hotmail.com", "featureName": "123"}, INVALID_FEATURE_NAME),
        ({"email": "xxx", "featureName": "123"}, INVALID_BOTH),
        ({}, INVALID_BOTH),
        ({"email": "xxx@hotmail.com"}, INVALID_FEATURE_NAME),
    ],
)
async def test_get_with_invalid_params_is_400(client, params, message):
    response = await client.get("/feature", params=params)

    assert response.status_code == 400
    assert response.json() == {"detail": message}


@pytest.mark.parametrize(
    "body",
    [
        {"featureName": "add", "email": "xxxx", "enable": True},
        {"featureName": "add", "email": "a@x.com", "enable": "yes"},
        {"featureName": "add", "email": "a@x.com"},
        {"email": "a@x.com", "enable": True},
        ["add", "a@x.com", True],
    ],
)
async def test_post_with_invalid_body_is_400(client, body):
    response = await client.post("/feature", json=body)

    assert response.status_code == 400
    assert response.content == b""


async def test_post_with_malformed_json_is_400(client):
    response = await client.post(
        "/feature", content=b"{not json", headers={"content-type": "application/json"},
    )

    assert response.status_code == 400
    assert response.content == b""


async def test_post_without_body_is_400(client):
    response = await client.post("/feature")

    assert response.status_code == 400


async def test_store_failure_on_get_is_500(broken_client):
    response = await broken_client.get("/feature", params={"email": "a@x.com", "featureName": "add"})

    assert response.status_code == 500
    assert response.content == b""


async def test_store_failure_on_post_is_500(broken_client):
    response = await broken_client.post("/feature", json=PAYLOAD)

    assert response.status_code == 500
    assert response.content == b""


async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


async def test_health_with_unreachable_store(broken_client):
    response = await broken_client.get("/health")

    assert response.status_code == 503
    assert response.json() == {"status": "unavailable"}

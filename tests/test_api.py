"""
Tests for the aiohttp API.

Tests cover:
- Status codes and bodies for every route
- Origin policy: allowed origins get CORS headers, others are served without
"""
import pytest
import pytest_asyncio
from aiohttp import test_utils

from securevault.handlers import create_app
from securevault.vault import VaultConfig

ALLOWED = "http://localhost:5000"


@pytest_asyncio.fixture
async def client(service):
    config = VaultConfig(allowed_origins=[ALLOWED])
    client = test_utils.TestClient(test_utils.TestServer(create_app(service, config)))
    await client.start_server()
    yield client
    await client.close()


@pytest.fixture
def new_secret():
    return {
        "id": "test-id-1",
        "title": "Test Secret",
        "value": "test-value",
        "category": "password",
        "notes": "Test notes",
        "createdAt": 1700000000000,
        "updatedAt": 1700000000000,
    }


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/api/health")
    assert resp.status == 200
    assert await resp.json() == {
        "status": "ok",
        "service": "SecureVault Backend",
        "storage": "keyring",
    }


@pytest.mark.asyncio
async def test_create_secret(client, new_secret):
    resp = await client.post("/api/secrets", json=new_secret)
    assert resp.status == 201
    body = await resp.json()
    assert body["id"] == "test-id-1"
    assert body["value"] == "test-value"
    assert body["createdAt"] == 1700000000000


@pytest.mark.asyncio
async def test_create_missing_fields(client):
    resp = await client.post("/api/secrets", json={"title": "Incomplete"})
    assert resp.status == 400
    assert "error" in await resp.json()


@pytest.mark.asyncio
async def test_create_invalid_json(client):
    resp = await client.post(
        "/api/secrets", data="{broken", headers={"Content-Type": "application/json"},
    )
    assert resp.status == 400
    assert (await resp.json())["error"] == "Invalid JSON body"


@pytest.mark.asyncio
async def test_create_duplicate(client, new_secret):
    await client.post("/api/secrets", json=new_secret)
    resp = await client.post("/api/secrets", json=dict(new_secret, value="other"))
    assert resp.status == 409
    assert (await resp.json())["error"] == "Secret with this ID already exists"


@pytest.mark.asyncio
async def test_create_persist_failure(client, new_secret, metadata_file):
    metadata_file.fail_saves = 1
    resp = await client.post("/api/secrets", json=new_secret)
    assert resp.status == 500
    assert (await resp.json())["error"] == "Failed to create secret"


@pytest.mark.asyncio
async def test_list_secrets(client, new_secret):
    await client.post("/api/secrets", json=new_secret)
    resp = await client.get("/api/secrets")
    assert resp.status == 200
    body = await resp.json()
    assert [s["id"] for s in body] == ["test-id-1"]
    assert body[0]["value"] == "test-value"


@pytest.mark.asyncio
async def test_update_preserves_omitted_fields(client, new_secret):
    await client.post("/api/secrets", json=new_secret)
    resp = await client.put("/api/secrets/test-id-1", json={"title": "Updated Title"})
    assert resp.status == 200
    body = await resp.json()
    assert body["title"] == "Updated Title"
    assert body["category"] == "password"
    assert body["notes"] == "Test notes"
    assert body["value"] == "test-value"


@pytest.mark.asyncio
async def test_update_empty_value(client, new_secret):
    await client.post("/api/secrets", json=new_secret)
    resp = await client.put("/api/secrets/test-id-1", json={"value": ""})
    assert resp.status == 400
    assert "Secret value cannot be empty" in (await resp.json())["error"]


@pytest.mark.asyncio
async def test_update_not_found(client):
    resp = await client.put(
        "/api/secrets/non-existent",
        json={"title": "Test", "value": "test", "category": "password"},
    )
    assert resp.status == 404


@pytest.mark.asyncio
async def test_delete_secret(client, new_secret, fake_keyring):
    await client.post("/api/secrets", json=new_secret)
    resp = await client.delete("/api/secrets/test-id-1")
    assert resp.status == 204
    assert fake_keyring.value("test-id-1") is None
    assert await (await client.get("/api/secrets")).json() == []


@pytest.mark.asyncio
async def test_delete_not_found(client):
    resp = await client.delete("/api/secrets/non-existent")
    assert resp.status == 404


@pytest.mark.asyncio
async def test_allowed_origin_gets_cors_headers(client):
    resp = await client.get("/api/health", headers={"Origin": ALLOWED})
    assert resp.headers["Access-Control-Allow-Origin"] == ALLOWED


@pytest.mark.asyncio
async def test_other_origin_served_without_cors_headers(client):
    resp = await client.get("/api/health", headers={"Origin": "http://evil.example"})
    assert resp.status == 200
    assert "Access-Control-Allow-Origin" not in resp.headers


@pytest.mark.asyncio
async def test_preflight_for_allowed_origin(client):
    resp = await client.options(
        "/api/secrets",
        headers={"Origin": ALLOWED, "Access-Control-Request-Method": "POST"},
    )
    assert resp.status == 204
    assert resp.headers["Access-Control-Allow-Origin"] == ALLOWED
    assert "PUT" in resp.headers["Access-Control-Allow-Methods"]

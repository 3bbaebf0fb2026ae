import os
import time

import httpx
import pytest


@pytest.fixture(scope="session")
def base_url():
    url = os.getenv("API_BASE_URL")
    if not url:
        pytest.skip("integration env missing: API_BASE_URL")
    return url


@pytest.mark.integration
@pytest.mark.anyio
async def test_health_endpoint(base_url):
    async with httpx.AsyncClient(base_url=base_url) as client:
        resp = await client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "Healthy"


@pytest.mark.integration
@pytest.mark.anyio
async def test_crud_roundtrip(base_url):
    title = f"Integration-{int(time.time())}"
    payload = {"title": title, "author": "Bot", "year": 2024, "genre": "Test", "price": 1.23}

    async with httpx.AsyncClient(base_url=base_url) as client:
        created = await client.post("/api/books", json=payload)
        assert created.status_code == 201, created.text
        book_id = created.json()["id"]

        fetched = await client.get(f"/api/books/{book_id}")
        assert fetched.status_code == 200
        assert fetched.json()["title"] == title

        deleted = await client.delete(f"/api/books/{book_id}")
        assert deleted.status_code == 204

        missing = await client.get(f"/api/books/{book_id}")
        assert missing.status_code == 404

"""Tests for the assets HTTP API."""

import httpx
import pytest
import pytest_asyncio
from fastapi import Depends, FastAPI
from sqlalchemy.ext.asyncio import AsyncSession

from assetdepot.api.router import api_router
from assetdepot.core.db import get_session
from assetdepot.modules.assets.router import svc
from assetdepot.modules.assets.service import AssetService


@pytest_asyncio.fixture
async def client(sessionmaker, transports, staging):
    app = FastAPI()
    app.include_router(api_router, prefix="/api/v1")

    async def session_override():
        async with sessionmaker() as session:
            yield session

    def svc_override(session: AsyncSession = Depends(get_session)) -> AssetService:
        return AssetService(session, transports=transports, staging=staging)

    app.dependency_overrides[get_session] = session_override
    app.dependency_overrides[svc] = svc_override

    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as c:
        yield c


@pytest.mark.asyncio
async def test_health(client) -> None:
    res = await client.get("/api/v1/health")
    assert res.status_code == 200
    assert res.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_upload_get_delete(client, store_dir) -> None:
    res = await client.post("/api/v1/assets/upload", files={"file": ("photo.png", b"0123456789", "image/png")})
    assert res.status_code == 201
    body = res.json()
    assert body["name"] == "photo.png"
    assert body["url"].startswith("file://")
    assert (store_dir / body["hash"]).read_bytes() == b"0123456789"

    res = await client.get(f"/api/v1/assets/{body['id']}")
    assert res.status_code == 200
    assert res.json()["hash"] == body["hash"]

    res = await client.get("/api/v1/assets")
    assert [a["id"] for a in res.json()] == [body["id"]]

    res = await client.delete(f"/api/v1/assets/{body['id']}")
    assert res.status_code == 204
    assert not (store_dir / body["hash"]).exists()

    res = await client.get(f"/api/v1/assets/{body['id']}")
    assert res.status_code == 404


@pytest.mark.asyncio
async def test_from_url_rejects_invalid_link(client) -> None:
    res = await client.post("/api/v1/assets/from-url", json={"link": "not a url"})
    assert res.status_code == 422


@pytest.mark.asyncio
async def test_delete_unknown_asset(client) -> None:
    res = await client.delete("/api/v1/assets/00000000-0000-0000-0000-000000000000")
    assert res.status_code == 404

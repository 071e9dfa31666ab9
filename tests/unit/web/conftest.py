"""Shared fixtures for web route tests.

ASGITransport does not run the application lifespan, so the app fixture
connects an in-memory Database itself and stores it on ``app.state``.
Route tests therefore exercise the real repository and seeded reference
data without touching the filesystem.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Awaitable, Callable

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI

from WebGL_Preflight.config import AppConfig
from WebGL_Preflight.data.database import Database
from WebGL_Preflight.web.app import create_app

OWNER = "dev@example.com"

SubmitBuild = Callable[..., Awaitable[httpx.Response]]


@pytest.fixture()
def config() -> AppConfig:
    """Small upload ceiling so oversize tests stay cheap."""
    return AppConfig(db_path=":memory:", max_upload_mb=1, free_fix_pack_limit=3)


@pytest_asyncio.fixture()
async def database() -> AsyncGenerator[Database]:
    db = Database(db_path=":memory:")
    await db.connect()
    yield db
    await db.close()


@pytest.fixture()
def app(config: AppConfig, database: Database) -> FastAPI:
    test_app = create_app(config)
    test_app.state.database = database
    return test_app


@pytest_asyncio.fixture()
async def client(app: FastAPI) -> AsyncGenerator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)  # type: ignore[arg-type]
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client


@pytest.fixture()
def submit_build(client: httpx.AsyncClient, brotli_build_zip: bytes) -> SubmitBuild:
    """POST a build zip to /api/scan/ and return the response."""

    async def _submit(
        *,
        archive: bytes | None = None,
        email: str = OWNER,
        project_name: str = "Space Game",
        version_label: str | None = "v1.0",
    ) -> httpx.Response:
        form = {"email": email, "project_name": project_name}
        if version_label is not None:
            form["version_label"] = version_label
        payload = archive if archive is not None else brotli_build_zip
        return await client.post(
            "/api/scan/",
            files={"archive": ("space-game.zip", payload, "application/zip")},
            data=form,
        )

    return _submit

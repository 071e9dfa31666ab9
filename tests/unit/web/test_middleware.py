"""Tests for domain exception handlers and request logging middleware."""

import logging

import httpx
import pytest
from fastapi import FastAPI

from WebGL_Preflight.utils.exceptions import (
    ArchiveTooLargeError,
    BuildRootNotFoundError,
    BuildScanError,
    InvalidArchiveError,
)
from WebGL_Preflight.web.middleware import RequestLoggingMiddleware, register_exception_handlers


def _app_raising(exc: Exception) -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)
    app.add_middleware(RequestLoggingMiddleware)

    @app.get("/boom")
    async def boom() -> None:
        raise exc

    @app.get("/api/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


async def _get(app: FastAPI, path: str) -> httpx.Response:
    transport = httpx.ASGITransport(app=app)  # type: ignore[arg-type]
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.get(path)


class TestExceptionHandlers:
    @pytest.mark.asyncio
    async def test_invalid_archive_is_422(self) -> None:
        response = await _get(_app_raising(InvalidArchiveError("Not a readable zip")), "/boom")
        assert response.status_code == 422
        assert response.json() == {"detail": "Not a readable zip"}

    @pytest.mark.asyncio
    async def test_build_root_not_found_is_422(self) -> None:
        response = await _get(_app_raising(BuildRootNotFoundError("No Build folder")), "/boom")
        assert response.status_code == 422
        assert response.json()["detail"] == "No Build folder"

    @pytest.mark.asyncio
    async def test_archive_too_large_is_413(self) -> None:
        exc = ArchiveTooLargeError("Too big", size_bytes=2048, limit_bytes=1024)
        response = await _get(_app_raising(exc), "/boom")
        assert response.status_code == 413
        assert response.json() == {"detail": "Too big", "limit_bytes": 1024}

    @pytest.mark.asyncio
    async def test_base_scan_error_is_400(self) -> None:
        response = await _get(_app_raising(BuildScanError("Something odd")), "/boom")
        assert response.status_code == 400
        assert response.json() == {"detail": "Something odd"}


class TestRequestLogging:
    @pytest.mark.asyncio
    async def test_logs_method_path_status(self, caplog: pytest.LogCaptureFixture) -> None:
        app = _app_raising(InvalidArchiveError("bad"))
        with caplog.at_level(logging.INFO, logger="WebGL_Preflight.web.middleware"):
            await _get(app, "/boom")
        assert any("GET /boom -> 422" in record.getMessage() for record in caplog.records)

    @pytest.mark.asyncio
    async def test_health_logged_at_debug(self, caplog: pytest.LogCaptureFixture) -> None:
        app = _app_raising(InvalidArchiveError("bad"))
        with caplog.at_level(logging.DEBUG, logger="WebGL_Preflight.web.middleware"):
            await _get(app, "/api/health")
        records = [r for r in caplog.records if "/api/health" in r.getMessage()]
        assert records
        assert all(r.levelno == logging.DEBUG for r in records)

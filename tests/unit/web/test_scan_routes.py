"""Tests for the /api/scan endpoints.

Uses httpx.AsyncClient with ASGITransport against an in-memory database.
"""

import datetime
import io

import httpx
import pytest
from fastapi import UploadFile

from WebGL_Preflight.config import AppConfig
from WebGL_Preflight.data.database import Database
from WebGL_Preflight.data.repository import Repository
from WebGL_Preflight.utils.exceptions import ArchiveTooLargeError
from WebGL_Preflight.web.routes.scan import _read_upload

OWNER = "dev@example.com"


def _upload(payload: bytes, name: str = "build.zip") -> dict[str, tuple[str, bytes, str]]:
    return {"archive": (name, payload, "application/zip")}


def _imported_scan(**overrides: object) -> dict[str, object]:
    scan: dict[str, object] = {
        "kind": "webgl_build_scan",
        "quick_score": 70,
        "compression": {"brotli_present": False, "gzip_present": True},
        "scanned_at": datetime.datetime(2025, 2, 1, tzinfo=datetime.UTC).isoformat(),
        "memory_settings_detected_bytes": [],
        "files": [],
        "hosting_checks": [],
    }
    scan.update(overrides)
    return scan


class TestPreviewScan:
    """POST /api/scan/preview — inspect without saving."""

    @pytest.mark.asyncio
    async def test_returns_scan(self, client: httpx.AsyncClient, brotli_build_zip: bytes) -> None:
        response = await client.post("/api/scan/preview", files=_upload(brotli_build_zip))
        assert response.status_code == 200
        body = response.json()
        assert body["kind"] == "webgl_build_scan"
        assert body["quick_score"] == 85
        assert body["compression"] == {"brotli_present": True, "gzip_present": False}
        assert body["build_dir"] == "MyGame/Build"
        assert body["memory_settings_detected_bytes"] == [268435456]

    @pytest.mark.asyncio
    async def test_nothing_saved(
        self, client: httpx.AsyncClient, brotli_build_zip: bytes, database: Database
    ) -> None:
        await client.post("/api/scan/preview", files=_upload(brotli_build_zip))
        assert await Repository(database).list_history(OWNER) == []

    @pytest.mark.asyncio
    async def test_garbage_upload_is_422(self, client: httpx.AsyncClient) -> None:
        response = await client.post("/api/scan/preview", files=_upload(b"definitely not a zip"))
        assert response.status_code == 422
        assert "zip" in response.json()["detail"].lower()

    @pytest.mark.asyncio
    async def test_oversized_upload_is_413(
        self, client: httpx.AsyncClient, config: AppConfig
    ) -> None:
        payload = b"\x00" * (config.max_upload_bytes + 1)
        response = await client.post("/api/scan/preview", files=_upload(payload))
        assert response.status_code == 413
        assert response.json()["limit_bytes"] == config.max_upload_bytes

    @pytest.mark.asyncio
    async def test_strict_build_root(
        self, client: httpx.AsyncClient, app, config: AppConfig, make_zip
    ) -> None:
        app.state.config = config.model_copy(update={"require_build_root": True})
        archive = make_zip({"index.html": "<html></html>"})
        response = await client.post("/api/scan/preview", files=_upload(archive))
        assert response.status_code == 422
        assert "Build" in response.json()["detail"]

    @pytest.mark.asyncio
    async def test_missing_file_is_422(self, client: httpx.AsyncClient) -> None:
        response = await client.post("/api/scan/preview")
        assert response.status_code == 422


class TestSubmitScan:
    """POST /api/scan/ — inspect and save."""

    @pytest.mark.asyncio
    async def test_creates_build(self, submit_build, database: Database) -> None:
        response = await submit_build()
        assert response.status_code == 201
        body = response.json()
        assert body["scan"]["quick_score"] == 85

        build = await Repository(database).get_build(body["build_id"])
        assert build is not None
        assert build.project_id == body["project_id"]
        assert build.owner_email == OWNER
        assert build.version_label == "v1.0"
        assert build.quick_score == 85
        assert build.brotli_present is True
        assert build.gzip_present is False
        assert build.scan_result == body["scan"]

    @pytest.mark.asyncio
    async def test_same_project_reused(self, submit_build) -> None:
        first = (await submit_build()).json()
        second = (await submit_build(version_label="v1.1")).json()
        assert first["project_id"] == second["project_id"]
        assert first["build_id"] != second["build_id"]

    @pytest.mark.asyncio
    async def test_email_normalized(self, submit_build, database: Database) -> None:
        body = (await submit_build(email="  Dev@Example.COM")).json()
        account = await Repository(database).get_account(OWNER)
        assert account is not None
        build = await Repository(database).get_build(body["build_id"])
        assert build is not None
        assert build.owner_email == OWNER

    @pytest.mark.asyncio
    async def test_version_label_optional(self, submit_build) -> None:
        response = await submit_build(version_label=None)
        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_invalid_email_is_422(self, submit_build) -> None:
        response = await submit_build(email="not-an-email")
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_empty_project_name_is_422(self, submit_build) -> None:
        response = await submit_build(project_name="")
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_invalid_archive_saves_nothing(self, submit_build, database: Database) -> None:
        response = await submit_build(archive=b"garbage")
        assert response.status_code == 422
        assert await Repository(database).list_history(OWNER) == []


class TestImportScan:
    """POST /api/scan/import — save a scan produced elsewhere."""

    @pytest.mark.asyncio
    async def test_imports_and_stores_untouched(
        self, client: httpx.AsyncClient, database: Database
    ) -> None:
        scan = _imported_scan(summary={"totalBytes": 5_000_000}, clientVersion="2.3.1")
        response = await client.post(
            "/api/scan/import",
            json={"email": OWNER, "project_name": "Imported", "scan": scan},
        )
        assert response.status_code == 201
        build = await Repository(database).get_build(response.json()["build_id"])
        assert build is not None
        assert build.scan_result == scan
        assert build.quick_score == 70
        assert build.gzip_present is True
        assert build.version_label is None

    @pytest.mark.asyncio
    async def test_wrong_kind_rejected(self, client: httpx.AsyncClient) -> None:
        response = await client.post(
            "/api/scan/import",
            json={"email": OWNER, "project_name": "Imported", "scan": _imported_scan(kind="other")},
        )
        assert response.status_code == 422
        assert response.json()["detail"] == "Invalid scan payload"

    @pytest.mark.asyncio
    async def test_missing_compression_rejected(self, client: httpx.AsyncClient) -> None:
        scan = _imported_scan()
        del scan["compression"]
        response = await client.post(
            "/api/scan/import",
            json={"email": OWNER, "project_name": "Imported", "scan": scan},
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_missing_project_name_is_422(self, client: httpx.AsyncClient) -> None:
        response = await client.post(
            "/api/scan/import", json={"email": OWNER, "scan": _imported_scan()}
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    @pytest.mark.parametrize("quick_score", [-1, 101, 500])
    async def test_out_of_range_quick_score_rejected(
        self, client: httpx.AsyncClient, database: Database, quick_score: int
    ) -> None:
        response = await client.post(
            "/api/scan/import",
            json={
                "email": OWNER,
                "project_name": "Imported",
                "scan": _imported_scan(quick_score=quick_score),
            },
        )
        assert response.status_code == 422
        assert response.json()["detail"] == "Invalid scan payload"
        assert await Repository(database).list_history(OWNER) == []


class TestReadUpload:
    @pytest.mark.asyncio
    async def test_within_limit_returns_bytes(self) -> None:
        upload = UploadFile(file=io.BytesIO(b"x" * 10), filename="small.zip", size=10)
        assert await _read_upload(upload, 10) == b"x" * 10

    @pytest.mark.asyncio
    async def test_declared_size_rejected_before_reading(self) -> None:
        body = io.BytesIO(b"x" * 64)
        upload = UploadFile(file=body, filename="big.zip", size=64)
        with pytest.raises(ArchiveTooLargeError) as exc_info:
            await _read_upload(upload, 16)
        assert body.tell() == 0
        assert exc_info.value.size_bytes == 64
        assert exc_info.value.limit_bytes == 16
        assert exc_info.value.archive_name == "big.zip"

    @pytest.mark.asyncio
    async def test_unknown_size_reads_one_byte_past_limit(self) -> None:
        body = io.BytesIO(b"x" * 64)
        upload = UploadFile(file=body, filename="big.zip")
        with pytest.raises(ArchiveTooLargeError):
            await _read_upload(upload, 16)
        assert body.tell() == 17

"""Scan API routes.

POST /api/scan/preview — Inspect an uploaded zip without saving it.
POST /api/scan/        — Inspect an uploaded zip and save it as a new Build (201).
POST /api/scan/import  — Save a scan produced elsewhere (e.g. in the browser).
"""

import asyncio
import datetime
import logging
from typing import Annotated, Any, Literal

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from WebGL_Preflight.analysis.inspector import inspect_build_zip
from WebGL_Preflight.config import AppConfig
from WebGL_Preflight.data.repository import Repository, new_id
from WebGL_Preflight.models.records import Build
from WebGL_Preflight.models.scan import (
    QUICK_SCORE_MAX,
    QUICK_SCORE_MIN,
    CompressionFlags,
    ScanResult,
)
from WebGL_Preflight.utils.exceptions import ArchiveTooLargeError
from WebGL_Preflight.web.deps import check_email, get_config, get_repository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/scan", tags=["scan"])

# ---------------------------------------------------------------------------
# Request / response models (web-layer schemas)
# ---------------------------------------------------------------------------


class ScanSubmission(BaseModel):
    """Identifiers of the saved build plus the scan that was stored."""

    model_config = ConfigDict(frozen=True)

    project_id: str
    build_id: str
    scan: dict[str, Any]  # dict-ok: persisted scan JSON, echoed as stored


class ImportedScanHeader(BaseModel):
    """Fields an imported scan must carry. Everything else is stored untouched."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["webgl_build_scan"]
    quick_score: int = Field(ge=QUICK_SCORE_MIN, le=QUICK_SCORE_MAX)
    compression: CompressionFlags
    scanned_at: datetime.datetime


class ScanImportRequest(BaseModel):
    """Input schema for importing a pre-scanned build."""

    model_config = ConfigDict(frozen=True)

    email: str
    project_name: str = Field(min_length=1)
    version_label: str | None = None
    scan: dict[str, Any]  # dict-ok: opaque scan document, header validated separately


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _read_upload(archive: UploadFile, limit_bytes: int) -> bytes:
    """Read at most ``limit_bytes`` of the upload, failing fast when it is larger.

    The declared size is checked first; the read itself stops one byte past
    the limit so an oversize body is never held in memory.
    """
    declared = archive.size
    if declared is None or declared <= limit_bytes:
        data = await archive.read(limit_bytes + 1)
        if len(data) <= limit_bytes:
            return data
        declared = max(declared or 0, len(data))
    msg = f"Archive is {declared} bytes, larger than the {limit_bytes}-byte limit."
    raise ArchiveTooLargeError(
        msg,
        size_bytes=declared,
        limit_bytes=limit_bytes,
        archive_name=archive.filename,
    )


async def _inspect_upload(archive: UploadFile, config: AppConfig) -> ScanResult:
    """Read the upload and run the inspector off the event loop."""
    data = await _read_upload(archive, config.max_upload_bytes)
    return await asyncio.to_thread(
        inspect_build_zip,
        data,
        archive_name=archive.filename,
        require_build_root=config.require_build_root,
        max_archive_bytes=config.max_upload_bytes,
    )


async def _save_scan(
    repo: Repository,
    *,
    email: str,
    project_name: str,
    version_label: str | None,
    scan_json: dict[str, Any],
    header: ImportedScanHeader,
) -> ScanSubmission:
    """Persist account, project and build for one scan."""
    await repo.upsert_account(email)
    project = await repo.get_or_create_project(email, project_name)
    build = Build(
        id=new_id(),
        project_id=project.id,
        owner_email=email,
        version_label=version_label,
        created_at=datetime.datetime.now(datetime.UTC),
        scanned_at=header.scanned_at,
        quick_score=header.quick_score,
        brotli_present=header.compression.brotli_present,
        gzip_present=header.compression.gzip_present,
        scan_result=scan_json,
    )
    await repo.save_build(build)
    logger.info("Saved build %s (project=%s, owner=%s)", build.id, project.id, email)
    return ScanSubmission(project_id=project.id, build_id=build.id, scan=scan_json)


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.post("/preview", response_model=ScanResult)
async def preview_scan(
    archive: Annotated[UploadFile, File(description="WebGL build zip")],
    config: Annotated[AppConfig, Depends(get_config)],
) -> ScanResult:
    """Inspect an uploaded build without persisting anything."""
    return await _inspect_upload(archive, config)


@router.post("/", response_model=ScanSubmission, status_code=201)
async def submit_scan(
    archive: Annotated[UploadFile, File(description="WebGL build zip")],
    email: Annotated[str, Form()],
    project_name: Annotated[str, Form(min_length=1)],
    repo: Annotated[Repository, Depends(get_repository)],
    config: Annotated[AppConfig, Depends(get_config)],
    version_label: Annotated[str | None, Form()] = None,
) -> ScanSubmission:
    """Inspect an uploaded build and save it under the owner's project."""
    owner = check_email(email)
    scan = await _inspect_upload(archive, config)
    scan_json = scan.model_dump(mode="json")
    return await _save_scan(
        repo,
        email=owner,
        project_name=project_name,
        version_label=version_label,
        scan_json=scan_json,
        header=ImportedScanHeader.model_validate(scan_json),
    )


@router.post("/import", response_model=ScanSubmission, status_code=201)
async def import_scan(
    request: ScanImportRequest,
    repo: Annotated[Repository, Depends(get_repository)],
) -> ScanSubmission:
    """Save a scan produced by another client.

    Only the header fields are validated; the document is stored as given so
    that the normalizer can read whatever else it carries.
    """
    owner = check_email(request.email)
    try:
        header = ImportedScanHeader.model_validate(request.scan)
    except ValidationError as exc:
        logger.warning("Rejected imported scan for %s: %d error(s)", owner, exc.error_count())
        raise HTTPException(status_code=422, detail="Invalid scan payload") from exc

    return await _save_scan(
        repo,
        email=owner,
        project_name=request.project_name,
        version_label=request.version_label,
        scan_json=request.scan,
        header=header,
    )

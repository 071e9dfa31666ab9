"""Exception handlers and request logging middleware.

Maps domain exceptions from ``WebGL_Preflight.utils.exceptions`` to
appropriate HTTP status codes. Provides request logging middleware that logs
method, path, status code, and duration at INFO level.
"""

import logging
import time

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from WebGL_Preflight.utils.exceptions import (
    ArchiveTooLargeError,
    BuildRootNotFoundError,
    BuildScanError,
    InvalidArchiveError,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Domain exception -> HTTP status handlers
# ---------------------------------------------------------------------------


async def _invalid_archive_handler(request: Request, exc: InvalidArchiveError) -> JSONResponse:
    """Map InvalidArchiveError to HTTP 422."""
    logger.warning("Invalid archive %s: %s", exc.archive_name or "<upload>", exc)
    return JSONResponse(status_code=422, content={"detail": str(exc)})


async def _build_root_not_found_handler(
    request: Request, exc: BuildRootNotFoundError
) -> JSONResponse:
    """Map BuildRootNotFoundError to HTTP 422."""
    logger.warning("No build root in %s", exc.archive_name or "<upload>")
    return JSONResponse(status_code=422, content={"detail": str(exc)})


async def _archive_too_large_handler(request: Request, exc: ArchiveTooLargeError) -> JSONResponse:
    """Map ArchiveTooLargeError to HTTP 413."""
    logger.warning("Archive too large: %d > %d bytes", exc.size_bytes, exc.limit_bytes)
    return JSONResponse(
        status_code=413,
        content={"detail": str(exc), "limit_bytes": exc.limit_bytes},
    )


async def _build_scan_error_handler(request: Request, exc: BuildScanError) -> JSONResponse:
    """Map base BuildScanError to HTTP 400 (catch-all for scan errors)."""
    logger.error("Build scan error: %s", exc)
    return JSONResponse(status_code=400, content={"detail": str(exc)})


def register_exception_handlers(app: FastAPI) -> None:
    """Register all domain exception handlers on the FastAPI application.

    More specific exception types must be registered before their base classes
    so FastAPI matches them correctly.
    """
    app.add_exception_handler(InvalidArchiveError, _invalid_archive_handler)  # type: ignore[arg-type]
    app.add_exception_handler(BuildRootNotFoundError, _build_root_not_found_handler)  # type: ignore[arg-type]
    app.add_exception_handler(ArchiveTooLargeError, _archive_too_large_handler)  # type: ignore[arg-type]
    app.add_exception_handler(BuildScanError, _build_scan_error_handler)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every request with method, path, status code, and duration."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start_time = time.monotonic()
        response = await call_next(request)
        duration_ms = (time.monotonic() - start_time) * 1000

        # Health checks are noisy; keep them at DEBUG.
        log = logger.debug if request.url.path == "/api/health" else logger.info
        log(
            "%s %s -> %d (%.1fms)",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
        )
        return response

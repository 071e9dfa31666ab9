"""Scan normalizer: persisted scan JSON (any vintage) -> NormalizedScan.

Persisted scans have changed shape over time (camelCase vs snake_case keys,
flat vs ``summary``-nested totals, client-side vs server-side compression
flags). Each NormalizedScan field is resolved from an explicit ordered tuple
of accessors; the first accessor whose value parses as the field's type
wins. Nothing here raises: malformed input degrades to the field defaults.
"""

import logging
import math
from collections.abc import Callable, Mapping
from typing import Any, NamedTuple

from WebGL_Preflight.models.launch import NormalizedScan

logger = logging.getLogger(__name__)


class _Sources(NamedTuple):
    """The three places a field can come from."""

    scan: Mapping[str, Any]
    row: Mapping[str, Any]
    row_scan: Mapping[str, Any]


Accessor = Callable[[_Sources], Any]


def _dig(obj: Any, path: tuple[str, ...]) -> Any:
    for key in path:
        if not isinstance(obj, Mapping):
            return None
        obj = obj.get(key)
    return obj


def _scan(*path: str) -> Accessor:
    return lambda sources: _dig(sources.scan, path)


def _row(*path: str) -> Accessor:
    return lambda sources: _dig(sources.row, path)


def _row_scan(*path: str) -> Accessor:
    return lambda sources: _dig(sources.row_scan, path)


def _files_length(sources: _Sources) -> int | None:
    files = sources.scan.get("files")
    return len(files) if isinstance(files, list) else None


# ---------------------------------------------------------------------------
# Accessor chains, in priority order
# ---------------------------------------------------------------------------

TOTAL_BYTES_SOURCES: tuple[Accessor, ...] = (
    _scan("summary", "total_bytes"),
    _scan("summary", "totalBytes"),
    _scan("total_bytes"),
    _scan("totalBytes"),
    _row_scan("summary", "total_bytes"),
    _row_scan("summary", "totalBytes"),
    _row_scan("total_bytes"),
    _row_scan("totalBytes"),
)

FILE_COUNT_SOURCES: tuple[Accessor, ...] = (
    _scan("summary", "file_count"),
    _scan("summary", "fileCount"),
    _scan("file_count"),
    _scan("fileCount"),
    _files_length,
    _row_scan("summary", "file_count"),
    _row_scan("summary", "fileCount"),
    _row_scan("file_count"),
    _row_scan("fileCount"),
)

MAX_SINGLE_FILE_SOURCES: tuple[Accessor, ...] = (
    _scan("summary", "max_single_file_bytes"),
    _scan("summary", "maxFileBytes"),
    _scan("summary", "maxSingleFileBytes"),
    _scan("max_single_file_bytes"),
    _scan("maxSingleFileBytes"),
    _scan("maxFileBytes"),
    _row_scan("summary", "max_single_file_bytes"),
    _row_scan("summary", "maxFileBytes"),
    _row_scan("max_single_file_bytes"),
    _row_scan("maxSingleFileBytes"),
)

INITIAL_DOWNLOAD_SOURCES: tuple[Accessor, ...] = (
    _scan("summary", "initial_download_bytes"),
    _scan("summary", "initialDownloadBytes"),
    _scan("initial_download_bytes"),
    _scan("initialDownloadBytes"),
    _row_scan("summary", "initial_download_bytes"),
    _row_scan("summary", "initialDownloadBytes"),
    _row_scan("initial_download_bytes"),
    _row_scan("initialDownloadBytes"),
)

# Build row columns are written at scan time and are the best source of truth.
HAS_BROTLI_SOURCES: tuple[Accessor, ...] = (
    _row("brotli_present"),
    _row("brotliPresent"),
    _scan("compression", "brotli_present"),
    _scan("compression", "brotliPresent"),
    _scan("compression", "brotli"),
    _scan("brotli_present"),
    _scan("brotliPresent"),
    _scan("summary", "brotli_present"),
    _scan("summary", "brotliPresent"),
)

HAS_GZIP_SOURCES: tuple[Accessor, ...] = (
    _row("gzip_present"),
    _row("gzipPresent"),
    _scan("compression", "gzip_present"),
    _scan("compression", "gzipPresent"),
    _scan("compression", "gzip"),
    _scan("gzip_present"),
    _scan("gzipPresent"),
    _scan("summary", "gzip_present"),
    _scan("summary", "gzipPresent"),
)

SPA_FALLBACK_SOURCES: tuple[Accessor, ...] = (
    _scan("signals", "requires_spa_fallback"),
    _scan("signals", "spaFallbackRequired"),
    _scan("signals", "requiresSpaFallback"),
    _scan("requires_spa_fallback"),
    _scan("requiresSpaFallback"),
)

SDK_DETECTED_SOURCES: tuple[Accessor, ...] = (
    _scan("signals", "sdk_detected"),
    _scan("signals", "sdkDetected"),
    _scan("sdk_detected"),
    _scan("sdkDetected"),
    _scan("summary", "sdk_detected"),
    _scan("summary", "sdkDetected"),
)


# ---------------------------------------------------------------------------
# Value parsers (return None when the value is not usable)
# ---------------------------------------------------------------------------


def _as_int(value: Any) -> int | None:
    """Numbers and numeric strings; bools, NaN and infinities are rejected."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        try:
            parsed = float(value.strip())
        except ValueError:
            return None
        return int(parsed) if math.isfinite(parsed) else None
    return None


def _as_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    return None


def _as_str_list(value: Any) -> list[str] | None:
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return list(value)
    return None


def _first[T](
    sources: _Sources,
    accessors: tuple[Accessor, ...],
    parse: Callable[[Any], T | None],
) -> T | None:
    for accessor in accessors:
        parsed = parse(accessor(sources))
        if parsed is not None:
            return parsed
    return None


def normalize_scan(scan_json: Any, build_row: Mapping[str, Any] | None = None) -> NormalizedScan:
    """Normalize a persisted scan (and optionally its Build row) for scoring.

    Args:
        scan_json: The persisted scan document. Non-mapping values are
            treated as an empty document.
        build_row: The owning Build as a mapping (``Build.model_dump()``),
            used for its compression columns and as a fallback scan source.

    Returns:
        A NormalizedScan. Unknown sizes and counts are ``None`` so the
        corresponding scoring rules are skipped.
    """
    scan = scan_json if isinstance(scan_json, Mapping) else {}
    row = build_row if isinstance(build_row, Mapping) else {}
    row_scan = row.get("scan_result", row.get("scanResult"))
    sources = _Sources(
        scan=scan,
        row=row,
        row_scan=row_scan if isinstance(row_scan, Mapping) else {},
    )

    if not scan:
        logger.debug("Normalizing empty or non-mapping scan (%s)", type(scan_json).__name__)

    total_bytes = _first(sources, TOTAL_BYTES_SOURCES, _as_int)
    has_brotli = _first(sources, HAS_BROTLI_SOURCES, _as_bool)
    has_gzip = _first(sources, HAS_GZIP_SOURCES, _as_bool)

    return NormalizedScan(
        total_bytes=total_bytes if total_bytes is not None else 0,
        initial_download_bytes=_first(sources, INITIAL_DOWNLOAD_SOURCES, _as_int),
        file_count=_first(sources, FILE_COUNT_SOURCES, _as_int),
        max_single_file_bytes=_first(sources, MAX_SINGLE_FILE_SOURCES, _as_int),
        has_brotli=bool(has_brotli),
        has_gzip=bool(has_gzip),
        requires_spa_fallback=_first(sources, SPA_FALLBACK_SOURCES, _as_bool),
        sdk_detected=_first(sources, SDK_DETECTED_SOURCES, _as_str_list),
    )

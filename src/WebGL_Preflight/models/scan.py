"""Scan models: the immutable result of inspecting one build archive.

A ScanResult is produced once per upload and persisted as an opaque JSON
blob on its Build row. Reruns create new results; nothing here is mutated
after construction.
"""

import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator

from WebGL_Preflight.models.enums import Severity

SCAN_RESULT_KIND = "webgl_build_scan"

# --- Validation boundaries ---
QUICK_SCORE_MIN: int = 0
QUICK_SCORE_MAX: int = 100
MEMORY_HINT_FLOOR_BYTES: int = 32 * 1024 * 1024
MEMORY_HINT_CEILING_BYTES: int = 8 * 1024 * 1024 * 1024


class CompressionFlags(BaseModel):
    """Archive-wide presence of pre-compressed artifacts."""

    model_config = ConfigDict(frozen=True)

    brotli_present: bool
    gzip_present: bool


class ScannedFile(BaseModel):
    """One sampled archive entry with its real byte length and short digest."""

    model_config = ConfigDict(frozen=True)

    name: str
    size_bytes: int
    sha256: str


class HostingCheck(BaseModel):
    """Advisory hosting reminder. Not a pass/fail gate."""

    model_config = ConfigDict(frozen=True)

    check: str
    severity: Severity


class ScanSummary(BaseModel):
    """Size totals read from the zip central directory (uncompressed sizes)."""

    model_config = ConfigDict(frozen=True)

    total_bytes: int
    file_count: int
    max_single_file_bytes: int | None = None
    initial_download_bytes: int | None = None


class ScanSignals(BaseModel):
    """Optional signals the fit scorer consumes when present."""

    model_config = ConfigDict(frozen=True)

    sdk_detected: list[str] | None = None
    requires_spa_fallback: bool | None = None


class ScanResult(BaseModel):
    """Output of the archive inspector for a single build zip.

    ``memory_settings_detected_bytes`` is ascending and deduplicated, with every
    value strictly inside (32 MiB, 8 GiB). ``files`` is sorted by size,
    largest first.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["webgl_build_scan"] = SCAN_RESULT_KIND
    quick_score: int
    compression: CompressionFlags
    memory_settings_detected_bytes: list[int]
    files: list[ScannedFile]
    hosting_checks: list[HostingCheck]
    scanned_at: datetime.datetime
    build_dir: str | None = None
    summary: ScanSummary | None = None
    signals: ScanSignals | None = None

    @field_validator("quick_score")
    @classmethod
    def validate_quick_score(cls, value: int) -> int:
        """Quick score must be between 0 and 100."""
        if not QUICK_SCORE_MIN <= value <= QUICK_SCORE_MAX:
            msg = f"quick_score must be between {QUICK_SCORE_MIN} and {QUICK_SCORE_MAX}, got {value}"
            raise ValueError(msg)
        return value

    @field_validator("memory_settings_detected_bytes")
    @classmethod
    def validate_memory_hints(cls, value: list[int]) -> list[int]:
        """Memory hints must be plausible byte counts, sorted and unique."""
        for hint in value:
            if not MEMORY_HINT_FLOOR_BYTES < hint < MEMORY_HINT_CEILING_BYTES:
                msg = f"memory hint {hint} outside ({MEMORY_HINT_FLOOR_BYTES}, {MEMORY_HINT_CEILING_BYTES})"
                raise ValueError(msg)
        if value != sorted(set(value)):
            msg = "memory_settings_detected_bytes must be ascending and deduplicated"
            raise ValueError(msg)
        return value

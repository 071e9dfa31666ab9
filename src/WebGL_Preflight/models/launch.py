"""Launch models: fit-scorer inputs (normalized scan + rule records) and outputs.

PlatformRules and HostRules are administrator-curated reference records,
read-only during scoring. NormalizedScan is the fixed shape the scorer
consumes regardless of how old the persisted scan JSON is.
"""

import json
import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

logger = logging.getLogger(__name__)


class NormalizedScan(BaseModel):
    """Scan fields the fit scorer needs. ``None`` means "unknown, skip the rule"."""

    model_config = ConfigDict(frozen=True)

    total_bytes: int = 0
    initial_download_bytes: int | None = None
    file_count: int | None = None
    max_single_file_bytes: int | None = None
    has_brotli: bool = False
    has_gzip: bool = False
    requires_spa_fallback: bool | None = None
    sdk_detected: list[str] | None = None


class PlatformRules(BaseModel):
    """Constraints a distribution platform imposes on a build."""

    model_config = ConfigDict(frozen=True)

    slug: str
    name: str
    initial_download_max_mb: float | None = None
    total_build_max_mb: float | None = None
    max_file_count: int | None = None
    max_single_file_mb: float | None = None
    requires_compressed_build: bool = False
    accepted_compression: list[str] = []
    requires_sdk_injection: bool = False
    sdk_type: str | None = None
    notes: str = ""

    @field_validator("accepted_compression", mode="before")
    @classmethod
    def parse_accepted_compression(cls, value: Any) -> list[str]:
        """Accept a JSON-serialized list as stored in the reference table.

        Anything that is not a list (or a string encoding one) becomes ``[]``.
        """
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except json.JSONDecodeError:
                logger.warning("Unparsable accepted_compression %r, treating as empty", value)
                return []
        if not isinstance(value, list):
            return []
        return [str(item) for item in value]


class HostRules(BaseModel):
    """Serving capabilities of a hosting provider."""

    model_config = ConfigDict(frozen=True)

    slug: str
    name: str
    supports_brotli: bool = False
    supports_gzip: bool = False
    requires_manual_header_config: bool = False
    default_spa_fallback: bool = False
    edge_network: str | None = None
    notes: str = ""


class Deduction(BaseModel):
    """One triggered rule. ``meta`` carries the raw numbers behind the penalty."""

    model_config = ConfigDict(frozen=True)

    reason: str
    penalty: float
    meta: dict[str, float | int | str] | None = None


class ScoreBreakdown(BaseModel):
    """A 0-100 score with the deductions that explain it."""

    model_config = ConfigDict(frozen=True)

    score: int
    deductions: list[Deduction]


class LaunchScore(BaseModel):
    """Platform fit, host compatibility, and their weighted composite."""

    model_config = ConfigDict(frozen=True)

    platform_fit: ScoreBreakdown
    host_compatibility: ScoreBreakdown
    readiness_score: int


class PlatformComparison(BaseModel):
    """A platform paired with the launch score a build earns there."""

    model_config = ConfigDict(frozen=True)

    platform: PlatformRules
    score: LaunchScore

"""Launch fit scoring: how well a build suits a platform and a host.

Platform fit and host compatibility each start at 100 and subtract additive
penalties, one :class:`Deduction` per triggered rule so callers can show
*why* a score is what it is. Rules whose scan input is unknown (``None``)
are skipped. The readiness composite weights platform fit higher because
platform limits are hard distribution gates while host issues are usually
fixable with configuration.
"""

import logging
import math
from collections.abc import Iterable

from WebGL_Preflight.models.enums import CompressionFormat
from WebGL_Preflight.models.launch import (
    Deduction,
    HostRules,
    LaunchScore,
    NormalizedScan,
    PlatformComparison,
    PlatformRules,
    ScoreBreakdown,
)

logger = logging.getLogger(__name__)

BYTES_PER_MB: int = 1024 * 1024
SCORE_START: float = 100.0
SCORE_MIN: float = 0.0
SCORE_MAX: float = 100.0

# --- Platform fit penalties: (per-unit rate, floor, ceiling) ---
INITIAL_DOWNLOAD_RATE: float = 2.0
INITIAL_DOWNLOAD_FLOOR: float = 5.0
INITIAL_DOWNLOAD_CEILING: float = 35.0

TOTAL_BUILD_RATE: float = 0.5
TOTAL_BUILD_FLOOR: float = 5.0
TOTAL_BUILD_CEILING: float = 30.0

FILE_COUNT_DIVISOR: float = 50.0
FILE_COUNT_FLOOR: float = 3.0
FILE_COUNT_CEILING: float = 20.0

SINGLE_FILE_RATE: float = 0.4
SINGLE_FILE_FLOOR: float = 3.0
SINGLE_FILE_CEILING: float = 20.0

PENALTY_MISSING_COMPRESSION: float = 25.0
PENALTY_MISSING_SDK: float = 15.0

# --- Host compatibility penalties ---
PENALTY_HOST_NO_BROTLI: float = 18.0
PENALTY_HOST_NO_GZIP: float = 12.0
PENALTY_HOST_NO_SPA_FALLBACK: float = 15.0
PENALTY_HOST_MANUAL_HEADERS: float = 6.0

# --- Composite weights ---
WEIGHT_PLATFORM_FIT: float = 0.6
WEIGHT_HOST_COMPATIBILITY: float = 0.4

# --- Deduction reasons ---
REASON_INITIAL_DOWNLOAD: str = "Initial download too large"
REASON_TOTAL_BUILD: str = "Total build too large"
REASON_FILE_COUNT: str = "Too many files"
REASON_SINGLE_FILE: str = "Single file too large"
REASON_MISSING_COMPRESSION: str = "Missing required compression"
REASON_MISSING_SDK: str = "Required SDK not detected"
REASON_HOST_NO_BROTLI: str = "Build uses Brotli but host may not serve it"
REASON_HOST_NO_GZIP: str = "Build uses Gzip but host may not serve it"
REASON_HOST_NO_SPA_FALLBACK: str = "SPA fallback likely required but host default is off"
REASON_HOST_MANUAL_HEADERS: str = "Manual header config needed"


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (``round`` is banker's)."""
    return int(math.floor(value + 0.5))


def _mb(num_bytes: int) -> float:
    return num_bytes / BYTES_PER_MB


def _finalize(deductions: list[Deduction], raw_total: float) -> ScoreBreakdown:
    score = _clamp(SCORE_START - raw_total, SCORE_MIN, SCORE_MAX)
    return ScoreBreakdown(score=_round_half_up(score), deductions=deductions)


def score_platform_fit(scan: NormalizedScan, rules: PlatformRules) -> ScoreBreakdown:
    """Score how well a build meets a distribution platform's constraints.

    Args:
        scan: Normalized scan of the build.
        rules: The platform's limits and requirements.

    Returns:
        Score in [0, 100] and one deduction per violated rule.
    """
    deductions: list[Deduction] = []
    raw_total = 0.0

    if rules.initial_download_max_mb is not None and scan.initial_download_bytes is not None:
        initial_mb = _mb(scan.initial_download_bytes)
        if initial_mb > rules.initial_download_max_mb:
            over = initial_mb - rules.initial_download_max_mb
            penalty = _clamp(
                over * INITIAL_DOWNLOAD_RATE, INITIAL_DOWNLOAD_FLOOR, INITIAL_DOWNLOAD_CEILING
            )
            raw_total += penalty
            deductions.append(
                Deduction(
                    reason=REASON_INITIAL_DOWNLOAD,
                    penalty=round(penalty, 2),
                    meta={"initial_mb": round(initial_mb, 2), "max_mb": rules.initial_download_max_mb},
                )
            )

    if rules.total_build_max_mb is not None:
        total_mb = _mb(scan.total_bytes)
        if total_mb > rules.total_build_max_mb:
            over = total_mb - rules.total_build_max_mb
            penalty = _clamp(over * TOTAL_BUILD_RATE, TOTAL_BUILD_FLOOR, TOTAL_BUILD_CEILING)
            raw_total += penalty
            deductions.append(
                Deduction(
                    reason=REASON_TOTAL_BUILD,
                    penalty=round(penalty, 2),
                    meta={"total_mb": round(total_mb, 2), "max_mb": rules.total_build_max_mb},
                )
            )

    if rules.max_file_count is not None and scan.file_count is not None:
        if scan.file_count > rules.max_file_count:
            over_count = scan.file_count - rules.max_file_count
            penalty = _clamp(over_count / FILE_COUNT_DIVISOR, FILE_COUNT_FLOOR, FILE_COUNT_CEILING)
            raw_total += penalty
            deductions.append(
                Deduction(
                    reason=REASON_FILE_COUNT,
                    penalty=round(penalty, 2),
                    meta={"file_count": scan.file_count, "max": rules.max_file_count},
                )
            )

    if rules.max_single_file_mb is not None and scan.max_single_file_bytes is not None:
        max_single_mb = _mb(scan.max_single_file_bytes)
        if max_single_mb > rules.max_single_file_mb:
            over = max_single_mb - rules.max_single_file_mb
            penalty = _clamp(over * SINGLE_FILE_RATE, SINGLE_FILE_FLOOR, SINGLE_FILE_CEILING)
            raw_total += penalty
            deductions.append(
                Deduction(
                    reason=REASON_SINGLE_FILE,
                    penalty=round(penalty, 2),
                    meta={"max_single_mb": round(max_single_mb, 2), "max_mb": rules.max_single_file_mb},
                )
            )

    if rules.requires_compressed_build and not compression_satisfied(scan, rules):
        raw_total += PENALTY_MISSING_COMPRESSION
        deductions.append(
            Deduction(reason=REASON_MISSING_COMPRESSION, penalty=PENALTY_MISSING_COMPRESSION)
        )

    if rules.requires_sdk_injection and rules.sdk_type:
        detected = scan.sdk_detected or []
        if rules.sdk_type not in detected:
            raw_total += PENALTY_MISSING_SDK
            deductions.append(
                Deduction(
                    reason=REASON_MISSING_SDK,
                    penalty=PENALTY_MISSING_SDK,
                    meta={"sdk_type": rules.sdk_type},
                )
            )

    return _finalize(deductions, raw_total)


def compression_satisfied(scan: NormalizedScan, rules: PlatformRules) -> bool:
    """True when the build ships at least one format the platform accepts."""
    accepted = set(rules.accepted_compression)
    return (CompressionFormat.BROTLI in accepted and scan.has_brotli) or (
        CompressionFormat.GZIP in accepted and scan.has_gzip
    )


def score_host_compatibility(scan: NormalizedScan, host: HostRules) -> ScoreBreakdown:
    """Score how well a hosting provider can serve the build as packaged."""
    deductions: list[Deduction] = []
    raw_total = 0.0

    if scan.has_brotli and not host.supports_brotli:
        raw_total += PENALTY_HOST_NO_BROTLI
        deductions.append(Deduction(reason=REASON_HOST_NO_BROTLI, penalty=PENALTY_HOST_NO_BROTLI))

    if scan.has_gzip and not host.supports_gzip:
        raw_total += PENALTY_HOST_NO_GZIP
        deductions.append(Deduction(reason=REASON_HOST_NO_GZIP, penalty=PENALTY_HOST_NO_GZIP))

    if scan.requires_spa_fallback and not host.default_spa_fallback:
        raw_total += PENALTY_HOST_NO_SPA_FALLBACK
        deductions.append(
            Deduction(reason=REASON_HOST_NO_SPA_FALLBACK, penalty=PENALTY_HOST_NO_SPA_FALLBACK)
        )

    # Header friction is inherent to the host, independent of the build.
    if host.requires_manual_header_config:
        raw_total += PENALTY_HOST_MANUAL_HEADERS
        deductions.append(
            Deduction(reason=REASON_HOST_MANUAL_HEADERS, penalty=PENALTY_HOST_MANUAL_HEADERS)
        )

    return _finalize(deductions, raw_total)


def score_launch(scan: NormalizedScan, platform: PlatformRules, host: HostRules) -> LaunchScore:
    """Combine platform fit and host compatibility into a readiness score."""
    platform_fit = score_platform_fit(scan, platform)
    host_compatibility = score_host_compatibility(scan, host)
    readiness = _round_half_up(
        platform_fit.score * WEIGHT_PLATFORM_FIT
        + host_compatibility.score * WEIGHT_HOST_COMPATIBILITY
    )
    logger.debug(
        "Launch score platform=%s host=%s fit=%d host_compat=%d readiness=%d",
        platform.slug,
        host.slug,
        platform_fit.score,
        host_compatibility.score,
        readiness,
    )
    return LaunchScore(
        platform_fit=platform_fit,
        host_compatibility=host_compatibility,
        readiness_score=readiness,
    )


def rank_platforms(
    scan: NormalizedScan,
    platforms: Iterable[PlatformRules],
    host: HostRules,
) -> list[PlatformComparison]:
    """Score the build on every platform against one host, best first.

    Ties are broken by platform slug so the ordering is stable.
    """
    comparisons = [
        PlatformComparison(platform=platform, score=score_launch(scan, platform, host))
        for platform in platforms
    ]
    comparisons.sort(key=lambda c: (-c.score.readiness_score, c.platform.slug))
    logger.info("Ranked %d platforms against host %s", len(comparisons), host.slug)
    return comparisons

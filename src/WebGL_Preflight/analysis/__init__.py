"""Build inspection, scan normalization, and launch fit scoring.

Re-exports all public functions so consumers can import directly:
    from WebGL_Preflight.analysis import inspect_build_zip, score_launch
"""

from WebGL_Preflight.analysis.inspector import (
    build_hosting_checks,
    compute_quick_score,
    detect_sdks,
    extract_memory_hints,
    find_build_dir,
    inspect_build_zip,
    is_important,
    is_loader_script,
)
from WebGL_Preflight.analysis.normalization import normalize_scan
from WebGL_Preflight.analysis.scoring import (
    compression_satisfied,
    rank_platforms,
    score_host_compatibility,
    score_launch,
    score_platform_fit,
)

__all__ = [
    # Inspector
    "build_hosting_checks",
    "compute_quick_score",
    "detect_sdks",
    "extract_memory_hints",
    "find_build_dir",
    "inspect_build_zip",
    "is_important",
    "is_loader_script",
    # Normalization
    "normalize_scan",
    # Scoring
    "compression_satisfied",
    "rank_platforms",
    "score_host_compatibility",
    "score_launch",
    "score_platform_fit",
]

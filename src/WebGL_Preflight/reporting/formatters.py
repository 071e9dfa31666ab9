"""Shared formatting utilities for terminal output and fix-pack text."""

from __future__ import annotations

from WebGL_Preflight.models.enums import Severity

# --- Score bands (inclusive lower bounds) ---
SCORE_GOOD: int = 70
SCORE_FAIR: int = 50

_BYTE_UNITS: tuple[str, ...] = ("B", "KB", "MB", "GB")


def format_bytes(num_bytes: int | None) -> str:
    """Human-readable binary size, e.g. ``12.5 MB``. ``None`` renders as ``-``."""
    if num_bytes is None:
        return "-"
    size = float(num_bytes)
    for unit in _BYTE_UNITS[:-1]:
        if abs(size) < 1024:
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} {_BYTE_UNITS[-1]}"


def score_color(score: int) -> str:
    """Rich color for a 0-100 score: green good, yellow fair, red poor."""
    if score >= SCORE_GOOD:
        return "green"
    if score >= SCORE_FAIR:
        return "yellow"
    return "red"


def severity_color(severity: Severity) -> str:
    if severity == Severity.HIGH:
        return "red"
    if severity == Severity.MEDIUM:
        return "yellow"
    return "dim"


def format_meta(meta: dict[str, float | int | str] | None) -> str:
    """Compact ``key=value`` rendering of deduction metadata."""
    if not meta:
        return ""
    return ", ".join(f"{key}={value}" for key, value in meta.items())

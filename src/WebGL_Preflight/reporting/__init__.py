"""Reporting module: terminal output, fix-pack generation, and report emails.

Re-exports all public functions so consumers can import directly:
    from WebGL_Preflight.reporting import generate_fix_pack, render_scan_result
"""

from WebGL_Preflight.reporting.email_report import (
    build_report_email,
    render_report_html,
    render_report_text,
    verdict_label,
)
from WebGL_Preflight.reporting.fixpack import (
    build_fix_pack_zip,
    describe_quick_score,
    generate_fix_pack,
    host_label,
    recommend_host,
)
from WebGL_Preflight.reporting.formatters import format_bytes, score_color
from WebGL_Preflight.reporting.terminal import (
    render_history,
    render_hosts,
    render_launch_score,
    render_platform_comparison,
    render_platforms,
    render_scan_result,
)

__all__ = [
    # Report email
    "build_report_email",
    "render_report_html",
    "render_report_text",
    "verdict_label",
    # Fix packs
    "build_fix_pack_zip",
    "describe_quick_score",
    "generate_fix_pack",
    "host_label",
    "recommend_host",
    # Formatters
    "format_bytes",
    "score_color",
    # Terminal
    "render_history",
    "render_hosts",
    "render_launch_score",
    "render_platform_comparison",
    "render_platforms",
    "render_scan_result",
]

"""Rich-based terminal output for scans, launch scores, and reference data.

Uses ``rich.console.Console`` for all output. Color scheme:
green = good, yellow = caution, red = poor.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from WebGL_Preflight.models.launch import (
    HostRules,
    LaunchScore,
    PlatformComparison,
    PlatformRules,
    ScoreBreakdown,
)
from WebGL_Preflight.models.records import ProjectHistory
from WebGL_Preflight.models.scan import ScanResult
from WebGL_Preflight.reporting.fixpack import describe_quick_score, recommend_host
from WebGL_Preflight.reporting.formatters import (
    format_bytes,
    format_meta,
    score_color,
    severity_color,
)

logger = logging.getLogger(__name__)

# Shared console instance for terminal output
console = Console()

COLOR_HEADER: str = "bold cyan"
COLOR_MUTED: str = "dim"


def _score_markup(score: int) -> str:
    color = score_color(score)
    return f"[{color}]{score}[/{color}]"


def render_scan_result(scan: ScanResult, archive_name: str | None = None) -> None:
    """Render a build scan: score, compression, hosting checks, largest files."""
    title = archive_name or "Build scan"
    lines = [
        f"Quick score: {_score_markup(scan.quick_score)}/100",
        describe_quick_score(scan.quick_score),
    ]
    if scan.build_dir is not None:
        lines.append(f"Build folder: {scan.build_dir}")
    console.print()
    console.print(Panel("\n".join(lines), title=title, style=COLOR_HEADER))

    brotli = "yes" if scan.compression.brotli_present else "no"
    gzip = "yes" if scan.compression.gzip_present else "no"
    console.print(f"  Brotli: {brotli}   Gzip: {gzip}")

    if scan.summary is not None:
        console.print(
            f"  Files: {scan.summary.file_count}   "
            f"Total: {format_bytes(scan.summary.total_bytes)}   "
            f"Initial download: {format_bytes(scan.summary.initial_download_bytes)}"
        )

    if scan.memory_settings_detected_bytes:
        hints = ", ".join(format_bytes(b) for b in scan.memory_settings_detected_bytes)
        console.print(f"  Memory settings: {hints}")

    if scan.signals is not None and scan.signals.sdk_detected:
        console.print(f"  SDKs detected: {', '.join(scan.signals.sdk_detected)}")

    recommendation = recommend_host(scan.compression)
    console.print(f"\n  Recommended host: [bold]{recommendation.host.value}[/bold]")
    console.print(f"  [{COLOR_MUTED}]{recommendation.reason}[/{COLOR_MUTED}]")

    console.print("\n[bold]Hosting Checks[/bold]", style=COLOR_HEADER)
    for check in scan.hosting_checks:
        color = severity_color(check.severity)
        tag = escape(f"[{check.severity.value.upper()}]")
        console.print(f"  [{color}]{tag}[/{color}] {check.check}")

    if scan.files:
        console.print()
        table = Table(title="Files", show_lines=False)
        table.add_column("Name", style="bold")
        table.add_column("Size", justify="right")
        table.add_column("SHA-256")
        for item in scan.files:
            table.add_row(item.name, format_bytes(item.size_bytes), item.sha256)
        console.print(table)


def _render_breakdown(title: str, breakdown: ScoreBreakdown) -> None:
    console.print(f"\n[bold]{title}[/bold]: {_score_markup(breakdown.score)}/100")
    if not breakdown.deductions:
        console.print(f"  [{COLOR_MUTED}]No deductions[/{COLOR_MUTED}]")
        return
    for deduction in breakdown.deductions:
        meta = format_meta(deduction.meta)
        suffix = f" [{COLOR_MUTED}]({meta})[/{COLOR_MUTED}]" if meta else ""
        console.print(f"  [red]-{deduction.penalty:g}[/red] {deduction.reason}{suffix}")


def render_launch_score(score: LaunchScore, platform: PlatformRules, host: HostRules) -> None:
    """Render readiness plus both breakdowns for one platform/host pairing."""
    console.print()
    console.print(
        Panel(
            f"Readiness: {_score_markup(score.readiness_score)}/100",
            title=f"{platform.name} on {host.name}",
            style=COLOR_HEADER,
        )
    )
    _render_breakdown("Platform fit", score.platform_fit)
    _render_breakdown("Host compatibility", score.host_compatibility)


def render_platform_comparison(comparisons: list[PlatformComparison], host: HostRules) -> None:
    """Render platforms ranked by readiness against one host."""
    if not comparisons:
        console.print(f"[{COLOR_MUTED}]No platforms configured.[/{COLOR_MUTED}]")
        return

    table = Table(title=f"Platforms on {host.name}", show_lines=True)
    table.add_column("#", justify="right", style="bold")
    table.add_column("Platform", style="bold")
    table.add_column("Readiness", justify="right")
    table.add_column("Fit", justify="right")
    table.add_column("Host", justify="right")
    table.add_column("Top issue")

    for rank, comparison in enumerate(comparisons, start=1):
        score = comparison.score
        deductions = score.platform_fit.deductions + score.host_compatibility.deductions
        top_issue = max(deductions, key=lambda d: d.penalty).reason if deductions else ""
        table.add_row(
            str(rank),
            comparison.platform.name,
            _score_markup(score.readiness_score),
            str(score.platform_fit.score),
            str(score.host_compatibility.score),
            top_issue,
        )
    console.print(table)


def render_platforms(platforms: list[PlatformRules]) -> None:
    table = Table(title="Platforms", show_lines=True)
    table.add_column("Slug", style="bold")
    table.add_column("Name")
    table.add_column("Initial MB", justify="right")
    table.add_column("Total MB", justify="right")
    table.add_column("Max files", justify="right")
    table.add_column("Compression")
    table.add_column("SDK")
    for platform in platforms:
        table.add_row(
            platform.slug,
            platform.name,
            _optional(platform.initial_download_max_mb),
            _optional(platform.total_build_max_mb),
            _optional(platform.max_file_count),
            ", ".join(platform.accepted_compression) if platform.requires_compressed_build else "any",
            platform.sdk_type or "-",
        )
    console.print(table)


def render_hosts(hosts: list[HostRules]) -> None:
    table = Table(title="Hosts", show_lines=True)
    table.add_column("Slug", style="bold")
    table.add_column("Name")
    table.add_column("Brotli")
    table.add_column("Gzip")
    table.add_column("Manual headers")
    table.add_column("SPA fallback")
    for host in hosts:
        table.add_row(
            host.slug,
            host.name,
            _yes_no(host.supports_brotli),
            _yes_no(host.supports_gzip),
            _yes_no(host.requires_manual_header_config),
            _yes_no(host.default_spa_fallback),
        )
    console.print(table)


def render_history(email: str, history: list[ProjectHistory]) -> None:
    """Render an owner's projects and builds, newest first."""
    if not history:
        console.print(f"[{COLOR_MUTED}]No builds recorded for {email}.[/{COLOR_MUTED}]")
        return

    for project in history:
        table = Table(title=project.name, show_lines=False)
        table.add_column("Build", style="bold")
        table.add_column("Version")
        table.add_column("Created")
        table.add_column("Quick", justify="right")
        table.add_column("Readiness", justify="right")
        for build in project.builds:
            readiness = build.launch.readiness_score if build.launch is not None else None
            table.add_row(
                build.id,
                build.version_label or "-",
                build.created_at.strftime("%Y-%m-%d %H:%M"),
                _optional(build.quick_score),
                _optional(readiness),
            )
        console.print(table)


def _optional(value: float | int | None) -> str:
    return "-" if value is None else f"{value:g}"


def _yes_no(value: bool) -> str:
    return "[green]yes[/green]" if value else "[red]no[/red]"

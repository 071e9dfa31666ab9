"""Preflight report email: HTML and plain-text bodies for a list of findings.

The HTML body is rendered from ``templates/preflight_report.html`` with
autoescaping on, so user-supplied titles, hints and file names are always
escaped. The text body is assembled line by line.
"""

from __future__ import annotations

import logging
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from WebGL_Preflight.models.enums import FindingSeverity, Verdict
from WebGL_Preflight.models.report import PreflightFinding, ReportEmail

logger = logging.getLogger(__name__)

_TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
REPORT_TEMPLATE: str = "preflight_report.html"

VERDICT_LABELS: dict[Verdict, str] = {
    Verdict.READY: "🟢 Ready for deployment",
    Verdict.ISSUES: "🟠 Issues detected",
    Verdict.LIKELY_FAIL: "🔴 Deployment likely to fail",
}

FINDING_COLORS: dict[FindingSeverity, str] = {
    FindingSeverity.CRITICAL: "#991b1b",
    FindingSeverity.WARNING: "#92400e",
    FindingSeverity.INFO: "#0f172a",
}

CLOSING_LINE: str = (
    "Reply to this email with your target host or platform and your deadline "
    "if you would like the build deployed and verified online."
)


def verdict_label(verdict: Verdict) -> str:
    return VERDICT_LABELS[verdict]


def finding_color(severity: FindingSeverity) -> str:
    return FINDING_COLORS[severity]


def _environment() -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(_TEMPLATES_DIR)),
        autoescape=select_autoescape(["html"]),
    )
    env.filters["finding_color"] = finding_color
    return env


_ENV = _environment()


def render_report_html(
    file_name: str,
    verdict: Verdict,
    findings: list[PreflightFinding],
    *,
    name: str = "",
) -> str:
    """Render the HTML body of a preflight report."""
    template = _ENV.get_template(REPORT_TEMPLATE)
    return template.render(
        name=name,
        file_name=file_name,
        verdict_label=verdict_label(verdict),
        findings=findings,
        closing=CLOSING_LINE,
    )


def render_report_text(file_name: str, verdict: Verdict, findings: list[PreflightFinding]) -> str:
    """Render the plain-text body of a preflight report."""
    lines: list[str] = [
        "Preflight Report",
        "",
        f"Verdict: {verdict_label(verdict)}",
        f"File: {file_name}",
        "",
        "Findings:",
    ]
    for finding in findings:
        lines.append(f"- [{finding.severity.value}] {finding.title}")
        if finding.description:
            lines.append(f"  {finding.description}")
        if finding.hint:
            lines.append(f"  Tip: {finding.hint}")
    lines.extend(["", CLOSING_LINE])
    return "\n".join(lines)


def build_report_email(
    to: str,
    file_name: str,
    verdict: Verdict,
    findings: list[PreflightFinding],
    *,
    name: str = "",
) -> ReportEmail:
    """Assemble subject and both bodies for one recipient."""
    email = ReportEmail(
        to=to,
        subject=f"Preflight Report: {verdict_label(verdict)} - {file_name}",
        html_body=render_report_html(file_name, verdict, findings, name=name),
        text_body=render_report_text(file_name, verdict, findings),
    )
    logger.debug("Rendered preflight report for %s (%d findings)", file_name, len(findings))
    return email

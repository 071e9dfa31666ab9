"""StrEnum types for the build-scan domain.

Values are lowercase strings so they serialize directly into the persisted
scan JSON and the HTTP API. Use enum members in business logic, never raw
strings.
"""

from enum import StrEnum


class Severity(StrEnum):
    """Severity of an advisory hosting check."""

    INFO = "info"
    MEDIUM = "medium"
    HIGH = "high"


class CompressionFormat(StrEnum):
    """Compression tags used in platform ``accepted_compression`` lists."""

    BROTLI = "brotli"
    GZIP = "gzip"
    NONE = "none"


class HostTarget(StrEnum):
    """Hosting flavours a fix pack can be generated for."""

    VERCEL = "vercel"
    NETLIFY = "netlify"
    NGINX = "nginx"
    APACHE = "apache"
    GENERIC = "generic"


class FindingSeverity(StrEnum):
    """Severity of a finding in an emailed preflight report."""

    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class Verdict(StrEnum):
    """Overall outcome shown at the top of a preflight report."""

    READY = "ready"
    ISSUES = "issues"
    LIKELY_FAIL = "likely_fail"

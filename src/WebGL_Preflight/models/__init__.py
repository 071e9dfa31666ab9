"""Pydantic v2 models, enums, and type definitions.

Re-exports all public models so consumers can import directly:
    from WebGL_Preflight.models import ScanResult, PlatformRules, Severity
"""

from WebGL_Preflight.models.enums import (
    CompressionFormat,
    FindingSeverity,
    HostTarget,
    Severity,
    Verdict,
)
from WebGL_Preflight.models.fixpack import AccountUsage, FixPack, FixPackFile, HostRecommendation
from WebGL_Preflight.models.launch import (
    Deduction,
    HostRules,
    LaunchScore,
    NormalizedScan,
    PlatformComparison,
    PlatformRules,
    ScoreBreakdown,
)
from WebGL_Preflight.models.records import (
    Account,
    Build,
    BuildSummary,
    FixPackRecord,
    LaunchProfile,
    Project,
    ProjectHistory,
)
from WebGL_Preflight.models.report import PreflightFinding, ReportEmail
from WebGL_Preflight.models.scan import (
    CompressionFlags,
    HostingCheck,
    ScannedFile,
    ScanResult,
    ScanSignals,
    ScanSummary,
)

__all__ = [
    # Enums
    "CompressionFormat",
    "FindingSeverity",
    "HostTarget",
    "Severity",
    "Verdict",
    # Fix packs
    "AccountUsage",
    "FixPack",
    "FixPackFile",
    "HostRecommendation",
    # Reports
    "PreflightFinding",
    "ReportEmail",
    # Scan
    "CompressionFlags",
    "HostingCheck",
    "ScanResult",
    "ScanSignals",
    "ScanSummary",
    "ScannedFile",
    # Launch
    "Deduction",
    "HostRules",
    "LaunchScore",
    "NormalizedScan",
    "PlatformComparison",
    "PlatformRules",
    "ScoreBreakdown",
    # Records
    "Account",
    "Build",
    "BuildSummary",
    "FixPackRecord",
    "LaunchProfile",
    "Project",
    "ProjectHistory",
]

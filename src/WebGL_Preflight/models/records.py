"""Persistence records: accounts, projects, builds, launch profiles, fix packs.

Ownership chain: Account (by email) -> Project -> Build. A Build carries the
opaque scan JSON plus denormalized copies of the fields used for listing.
"""

import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict

from WebGL_Preflight.models.enums import HostTarget


class Account(BaseModel):
    """A user identified by email, with fix-pack usage counters."""

    model_config = ConfigDict(frozen=True)

    email: str
    fix_pack_uses: int = 0
    subscription_active: bool = False
    created_at: datetime.datetime


class Project(BaseModel):
    """A named game project. Names are unique per owner."""

    model_config = ConfigDict(frozen=True)

    id: str
    owner_email: str
    name: str
    created_at: datetime.datetime
    updated_at: datetime.datetime


class Build(BaseModel):
    """One uploaded build and its persisted scan.

    ``scan_result`` is stored as-is so that older or imported shapes survive;
    read it through the normalizer rather than validating it as a ScanResult.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    project_id: str
    owner_email: str
    status: str = "scanned"
    version_label: str | None = None
    created_at: datetime.datetime
    scanned_at: datetime.datetime | None = None
    quick_score: int | None = None
    brotli_present: bool | None = None
    gzip_present: bool | None = None
    scan_result: dict[str, Any] | None = None  # dict-ok: opaque persisted scan JSON


class LaunchProfile(BaseModel):
    """Chosen launch target for a build and the scores it earned there."""

    model_config = ConfigDict(frozen=True)

    build_id: str
    target_platform: str | None = None
    target_host: str | None = None
    monetization_intent: str | None = None
    distribution_strategy: str | None = None
    readiness_score: int | None = None
    platform_fit_score: int | None = None
    host_compatibility_score: int | None = None
    recommendations: dict[str, Any] | None = None  # dict-ok: stored JSON snapshot
    updated_at: datetime.datetime


class FixPackRecord(BaseModel):
    """A generated fix pack, recorded against the build it was made for."""

    model_config = ConfigDict(frozen=True)

    id: int
    build_id: str
    host: HostTarget
    created_at: datetime.datetime


class BuildSummary(BaseModel):
    """History listing row for a build."""

    model_config = ConfigDict(frozen=True)

    id: str
    created_at: datetime.datetime
    scanned_at: datetime.datetime | None = None
    quick_score: int | None = None
    brotli_present: bool | None = None
    gzip_present: bool | None = None
    status: str
    version_label: str | None = None
    launch: LaunchProfile | None = None


class ProjectHistory(BaseModel):
    """A project with its builds, newest first."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    builds: list[BuildSummary]

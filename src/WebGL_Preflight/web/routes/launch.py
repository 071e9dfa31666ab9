"""Launch profile API routes.

POST /api/launch-profile/save    — Score a build for one platform + host and save it.
POST /api/launch-profile/compare — Rank every platform for a build on one host.
"""

import datetime
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from WebGL_Preflight.analysis.normalization import normalize_scan
from WebGL_Preflight.analysis.scoring import rank_platforms, score_launch
from WebGL_Preflight.data.repository import Repository
from WebGL_Preflight.models.launch import (
    HostRules,
    LaunchScore,
    NormalizedScan,
    PlatformComparison,
)
from WebGL_Preflight.models.records import LaunchProfile
from WebGL_Preflight.web.deps import get_repository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/launch-profile", tags=["launch"])

# ---------------------------------------------------------------------------
# Request / response models
# ---------------------------------------------------------------------------


class LaunchProfileRequest(BaseModel):
    """Chosen launch target for a build."""

    model_config = ConfigDict(frozen=True)

    build_id: str = Field(min_length=1)
    target_platform: str = Field(min_length=1)
    target_host: str = Field(min_length=1)
    monetization_intent: str | None = None
    distribution_strategy: str | None = None


class LaunchProfileSaved(BaseModel):
    model_config = ConfigDict(frozen=True)

    launch_profile: LaunchProfile
    score: LaunchScore


class CompareRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    build_id: str = Field(min_length=1)
    target_host: str = Field(min_length=1)


class ComparisonResponse(BaseModel):
    """Platforms ranked by readiness for one build on one host."""

    model_config = ConfigDict(frozen=True)

    build_id: str
    host: HostRules
    results: list[PlatformComparison]


async def _load_normalized_scan(repo: Repository, build_id: str) -> NormalizedScan:
    """Fetch a build and normalize its stored scan, or raise 404/400."""
    build = await repo.get_build(build_id)
    if build is None:
        raise HTTPException(status_code=404, detail="Build not found")
    if not build.scan_result:
        raise HTTPException(status_code=400, detail="Build has no scan JSON")
    return normalize_scan(build.scan_result, build.model_dump())


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.post("/save", response_model=LaunchProfileSaved)
async def save_launch_profile(
    request: LaunchProfileRequest,
    repo: Annotated[Repository, Depends(get_repository)],
) -> LaunchProfileSaved:
    """Score the build for the chosen targets and upsert its launch profile."""
    scan = await _load_normalized_scan(repo, request.build_id)

    platform = await repo.get_platform(request.target_platform)
    host = await repo.get_host(request.target_host)
    if platform is None or host is None:
        raise HTTPException(status_code=404, detail="Platform or Host not found")

    score = score_launch(scan, platform, host)
    now = datetime.datetime.now(datetime.UTC)
    profile = LaunchProfile(
        build_id=request.build_id,
        target_platform=platform.slug,
        target_host=host.slug,
        monetization_intent=request.monetization_intent,
        distribution_strategy=request.distribution_strategy,
        readiness_score=score.readiness_score,
        platform_fit_score=score.platform_fit.score,
        host_compatibility_score=score.host_compatibility.score,
        recommendations={
            "platform": {"slug": platform.slug, "name": platform.name},
            "host": {"slug": host.slug, "name": host.name},
            "scores": score.model_dump(mode="json"),
            "generated_at": now.isoformat(),
        },
        updated_at=now,
    )
    await repo.save_launch_profile(profile)
    logger.info(
        "Launch profile for %s: %s on %s readiness=%d",
        request.build_id,
        platform.slug,
        host.slug,
        score.readiness_score,
    )
    return LaunchProfileSaved(launch_profile=profile, score=score)


@router.post("/compare", response_model=ComparisonResponse)
async def compare_platforms(
    request: CompareRequest,
    repo: Annotated[Repository, Depends(get_repository)],
) -> ComparisonResponse:
    """Score the build against every platform for one host, best first."""
    scan = await _load_normalized_scan(repo, request.build_id)

    host = await repo.get_host(request.target_host)
    if host is None:
        raise HTTPException(status_code=404, detail="Host not found")

    platforms = await repo.list_platforms()
    return ComparisonResponse(
        build_id=request.build_id,
        host=host,
        results=rank_platforms(scan, platforms, host),
    )

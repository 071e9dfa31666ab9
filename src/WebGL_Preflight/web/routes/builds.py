"""Build and history API routes.

GET /api/builds/{build_id}?email= — Build detail for its owner.
GET /api/history?email=           — Owner's projects with builds, newest first.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict

from WebGL_Preflight.data.repository import Repository
from WebGL_Preflight.models.records import (
    Build,
    FixPackRecord,
    LaunchProfile,
    Project,
    ProjectHistory,
)
from WebGL_Preflight.web.deps import get_repository, validate_owner_email

logger = logging.getLogger(__name__)

router = APIRouter(tags=["builds"])


class BuildDetail(BaseModel):
    """A build with its project, launch profile, and generated fix packs."""

    model_config = ConfigDict(frozen=True)

    build: Build
    project: Project | None
    launch_profile: LaunchProfile | None
    fix_packs: list[FixPackRecord]


class HistoryResponse(BaseModel):
    """All projects owned by an email."""

    model_config = ConfigDict(frozen=True)

    email: str
    projects: list[ProjectHistory]


@router.get("/builds/{build_id}", response_model=BuildDetail)
async def get_build(
    build_id: str,
    email: Annotated[str, Depends(validate_owner_email)],
    repo: Annotated[Repository, Depends(get_repository)],
) -> BuildDetail:
    """Return a build only to the email that owns it."""
    build = await repo.get_build_for_owner(build_id, email)
    if build is None:
        raise HTTPException(status_code=404, detail="Build not found for this email")

    return BuildDetail(
        build=build,
        project=await repo.get_project(build.project_id),
        launch_profile=await repo.get_launch_profile(build.id),
        fix_packs=await repo.list_fix_packs(build.id),
    )


@router.get("/history", response_model=HistoryResponse)
async def get_history(
    email: Annotated[str, Depends(validate_owner_email)],
    repo: Annotated[Repository, Depends(get_repository)],
) -> HistoryResponse:
    """List the owner's projects. Unknown owners get an empty list."""
    projects = await repo.list_history(email)
    return HistoryResponse(email=email, projects=projects)

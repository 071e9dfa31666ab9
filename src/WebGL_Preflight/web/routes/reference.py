"""Reference data API routes.

GET /api/platforms         — All distribution platforms.
GET /api/platforms/{slug}  — One platform.
GET /api/hosts             — All hosting providers.
GET /api/hosts/{slug}      — One host.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from WebGL_Preflight.data.repository import Repository
from WebGL_Preflight.models.launch import HostRules, PlatformRules
from WebGL_Preflight.web.deps import get_repository

logger = logging.getLogger(__name__)

router = APIRouter(tags=["reference"])


@router.get("/platforms", response_model=list[PlatformRules])
async def list_platforms(
    repo: Annotated[Repository, Depends(get_repository)],
) -> list[PlatformRules]:
    return await repo.list_platforms()


@router.get("/platforms/{slug}", response_model=PlatformRules)
async def get_platform(
    slug: str,
    repo: Annotated[Repository, Depends(get_repository)],
) -> PlatformRules:
    platform = await repo.get_platform(slug)
    if platform is None:
        raise HTTPException(status_code=404, detail=f"Platform '{slug}' not found")
    return platform


@router.get("/hosts", response_model=list[HostRules])
async def list_hosts(
    repo: Annotated[Repository, Depends(get_repository)],
) -> list[HostRules]:
    return await repo.list_hosts()


@router.get("/hosts/{slug}", response_model=HostRules)
async def get_host(
    slug: str,
    repo: Annotated[Repository, Depends(get_repository)],
) -> HostRules:
    host = await repo.get_host(slug)
    if host is None:
        raise HTTPException(status_code=404, detail=f"Host '{slug}' not found")
    return host

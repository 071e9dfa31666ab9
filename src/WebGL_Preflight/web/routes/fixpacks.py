"""Account and fix-pack API routes.

GET  /api/account?email= — Fix-pack usage and remaining free uses.
POST /api/fixpacks       — Generate a fix pack for a build (quota enforced).

Accounts without an active subscription get ``free_fix_pack_limit`` fix
packs; subscribers are never limited and never counted.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict

from WebGL_Preflight.analysis.normalization import normalize_scan
from WebGL_Preflight.config import AppConfig
from WebGL_Preflight.data.repository import Repository
from WebGL_Preflight.models.enums import HostTarget
from WebGL_Preflight.models.fixpack import AccountUsage, FixPack
from WebGL_Preflight.models.records import Account, FixPackRecord
from WebGL_Preflight.models.scan import CompressionFlags
from WebGL_Preflight.reporting.fixpack import generate_fix_pack
from WebGL_Preflight.web.deps import check_email, get_config, get_repository, validate_owner_email

logger = logging.getLogger(__name__)

account_router = APIRouter(prefix="/account", tags=["account"])
router = APIRouter(prefix="/fixpacks", tags=["fixpacks"])


class FixPackRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    build_id: str
    email: str
    host: HostTarget


class FixPackResponse(BaseModel):
    """The generated files, the record of generating them, and updated usage."""

    model_config = ConfigDict(frozen=True)

    record: FixPackRecord
    fix_pack: FixPack
    usage: AccountUsage


def account_usage(account: Account, free_limit: int) -> AccountUsage:
    """Quota view of an account. Subscribers have no remaining-uses cap."""
    remaining = None if account.subscription_active else max(0, free_limit - account.fix_pack_uses)
    return AccountUsage(
        email=account.email,
        fix_pack_uses=account.fix_pack_uses,
        subscription_active=account.subscription_active,
        remaining_free_uses=remaining,
    )


@account_router.get("", response_model=AccountUsage)
async def get_account(
    email: Annotated[str, Depends(validate_owner_email)],
    repo: Annotated[Repository, Depends(get_repository)],
    config: Annotated[AppConfig, Depends(get_config)],
) -> AccountUsage:
    account = await repo.get_account(email)
    if account is None:
        raise HTTPException(status_code=404, detail="Account not found")
    return account_usage(account, config.free_fix_pack_limit)


@router.post("", response_model=FixPackResponse, status_code=201)
async def create_fix_pack(
    request: FixPackRequest,
    repo: Annotated[Repository, Depends(get_repository)],
    config: Annotated[AppConfig, Depends(get_config)],
) -> FixPackResponse:
    """Generate host config files for the owner's build."""
    email = check_email(request.email)
    build = await repo.get_build_for_owner(request.build_id, email)
    if build is None:
        raise HTTPException(status_code=404, detail="Build not found for this email")

    account = await repo.upsert_account(email)
    if not account.subscription_active:
        claimed = await repo.claim_free_fix_pack(email, config.free_fix_pack_limit)
        if claimed is None:
            logger.info("Fix pack refused for %s: free limit reached", email)
            raise HTTPException(
                status_code=403,
                detail={
                    "error": "Free limit reached",
                    "requires_subscription": True,
                    "remaining_free_uses": 0,
                },
            )
        account = claimed

    scan = normalize_scan(build.scan_result, build.model_dump())
    fix_pack = generate_fix_pack(
        CompressionFlags(brotli_present=scan.has_brotli, gzip_present=scan.has_gzip),
        request.host,
    )
    record = await repo.save_fix_pack(build.id, request.host)

    return FixPackResponse(
        record=record,
        fix_pack=fix_pack,
        usage=account_usage(account, config.free_fix_pack_limit),
    )

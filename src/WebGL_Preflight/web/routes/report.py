"""Preflight report email route.

POST /api/preflight-email — Email a rendered preflight report to the user.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from WebGL_Preflight.models.enums import Verdict
from WebGL_Preflight.models.report import PreflightFinding
from WebGL_Preflight.reporting.email_report import build_report_email
from WebGL_Preflight.services.mailer import PostmarkMailer
from WebGL_Preflight.utils.exceptions import ReportDeliveryError
from WebGL_Preflight.web.deps import check_email, get_mailer

logger = logging.getLogger(__name__)

router = APIRouter(tags=["report"])


class PreflightEmailRequest(BaseModel):
    """Findings from a preflight run and who should receive them."""

    model_config = ConfigDict(frozen=True)

    email: str
    name: str = ""
    file_name: str = Field(min_length=1)
    verdict: Verdict
    findings: list[PreflightFinding]


class PreflightEmailSent(BaseModel):
    model_config = ConfigDict(frozen=True)

    ok: bool = True


@router.post("/preflight-email", response_model=PreflightEmailSent)
async def send_preflight_email(
    request: PreflightEmailRequest,
    mailer: Annotated[PostmarkMailer | None, Depends(get_mailer)],
) -> PreflightEmailSent:
    """Render the report and hand it to Postmark."""
    if mailer is None:
        raise HTTPException(
            status_code=500,
            detail="Missing POSTMARK_SERVER_TOKEN or POSTMARK_FROM_EMAIL",
        )

    email = build_report_email(
        check_email(request.email),
        request.file_name,
        request.verdict,
        request.findings,
        name=request.name.strip(),
    )
    try:
        await mailer.send(email)
    except ReportDeliveryError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return PreflightEmailSent()

"""Preflight report models: findings and the email rendered from them."""

from pydantic import BaseModel, ConfigDict, Field

from WebGL_Preflight.models.enums import FindingSeverity


class PreflightFinding(BaseModel):
    """One issue listed in a preflight report."""

    model_config = ConfigDict(frozen=True)

    id: str
    severity: FindingSeverity
    title: str = Field(min_length=1)
    description: str | None = None
    hint: str | None = None


class ReportEmail(BaseModel):
    """A rendered report ready to hand to a mail provider."""

    model_config = ConfigDict(frozen=True)

    to: str
    subject: str
    html_body: str
    text_body: str

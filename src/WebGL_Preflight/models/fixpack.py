"""Fix pack models: generated hosting-configuration files for one host."""

from pydantic import BaseModel, ConfigDict

from WebGL_Preflight.models.enums import HostTarget


class FixPackFile(BaseModel):
    """One generated file, addressed relative to the fix-pack folder."""

    model_config = ConfigDict(frozen=True)

    path: str
    content: str


class FixPack(BaseModel):
    """The files a user drops next to their build for a given host."""

    model_config = ConfigDict(frozen=True)

    host: HostTarget
    files: list[FixPackFile]

    def file_names(self) -> list[str]:
        return [f.path for f in self.files]


class HostRecommendation(BaseModel):
    """Suggested host for a build and a one-line justification."""

    model_config = ConfigDict(frozen=True)

    host: HostTarget
    reason: str


class AccountUsage(BaseModel):
    """Fix-pack quota view of an account.

    ``remaining_free_uses`` is ``None`` for subscribers (no limit).
    """

    model_config = ConfigDict(frozen=True)

    email: str
    fix_pack_uses: int
    subscription_active: bool
    remaining_free_uses: int | None

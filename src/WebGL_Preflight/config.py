"""Application configuration assembled once at startup and injected everywhere.

Business logic never reads the environment directly. ``AppConfig.from_env()``
is called by the CLI and the app factory; the resulting frozen model is passed
down (and stored on ``app.state.config`` for FastAPI dependencies).

Environment variables:
    PREFLIGHT_DB_PATH: SQLite database path (default: data/preflight.db)
    PREFLIGHT_MAX_UPLOAD_MB: Largest accepted archive in MB (default: 200)
    PREFLIGHT_REQUIRE_BUILD_ROOT: Reject archives without a Build/ folder (default: false)
    PREFLIGHT_FREE_FIX_PACKS: Fix packs allowed without a subscription (default: 3)
    POSTMARK_SERVER_TOKEN: Postmark server token for report emails (default: unset)
    POSTMARK_FROM_EMAIL: Sender address for report emails (default: unset)
    LOG_LEVEL: Root log level (default: INFO)
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, field_validator

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH: str = "data/preflight.db"
DEFAULT_MAX_UPLOAD_MB: int = 200
DEFAULT_FREE_FIX_PACK_LIMIT: int = 3
DEFAULT_LOG_LEVEL: str = "INFO"

_TRUTHY: frozenset[str] = frozenset({"1", "true", "yes", "on"})
_FALSY: frozenset[str] = frozenset({"0", "false", "no", "off"})


class AppConfig(BaseModel):
    """Runtime settings for the web app and CLI."""

    model_config = ConfigDict(frozen=True)

    db_path: str = DEFAULT_DB_PATH
    max_upload_mb: int = DEFAULT_MAX_UPLOAD_MB
    require_build_root: bool = False
    free_fix_pack_limit: int = DEFAULT_FREE_FIX_PACK_LIMIT
    log_level: str = DEFAULT_LOG_LEVEL
    postmark_server_token: str | None = None
    postmark_from_email: str | None = None

    @field_validator("max_upload_mb")
    @classmethod
    def validate_max_upload_mb(cls, value: int) -> int:
        """Upload ceiling must be positive."""
        if value <= 0:
            msg = f"max_upload_mb must be positive, got {value}"
            raise ValueError(msg)
        return value

    @field_validator("free_fix_pack_limit")
    @classmethod
    def validate_free_fix_pack_limit(cls, value: int) -> int:
        """Free quota cannot be negative."""
        if value < 0:
            msg = f"free_fix_pack_limit must be >= 0, got {value}"
            raise ValueError(msg)
        return value

    @property
    def max_upload_bytes(self) -> int:
        """Upload ceiling in bytes."""
        return self.max_upload_mb * 1024 * 1024

    @property
    def email_configured(self) -> bool:
        """Both Postmark settings are present."""
        return bool(self.postmark_server_token and self.postmark_from_email)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> AppConfig:
        """Build a config from environment variables, falling back to defaults.

        Unparsable values are logged and replaced by the default rather than
        aborting startup.
        """
        env = os.environ if environ is None else environ
        return cls(
            db_path=env.get("PREFLIGHT_DB_PATH", DEFAULT_DB_PATH),
            max_upload_mb=_env_int(env, "PREFLIGHT_MAX_UPLOAD_MB", DEFAULT_MAX_UPLOAD_MB, 1),
            require_build_root=_env_bool(env, "PREFLIGHT_REQUIRE_BUILD_ROOT", default=False),
            free_fix_pack_limit=_env_int(
                env, "PREFLIGHT_FREE_FIX_PACKS", DEFAULT_FREE_FIX_PACK_LIMIT, 0
            ),
            log_level=env.get("LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
            postmark_server_token=env.get("POSTMARK_SERVER_TOKEN") or None,
            postmark_from_email=env.get("POSTMARK_FROM_EMAIL") or None,
        )


def _env_int(env: Mapping[str, str], key: str, default: int, minimum: int) -> int:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r, using %d", key, raw, default)
        return default
    if value < minimum:
        logger.warning("Ignoring out-of-range %s=%d, using %d", key, value, default)
        return default
    return value


def _env_bool(env: Mapping[str, str], key: str, *, default: bool) -> bool:
    raw = env.get(key)
    if raw is None:
        return default
    lowered = raw.strip().lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    logger.warning("Ignoring unrecognized %s=%r, using %s", key, raw, default)
    return default

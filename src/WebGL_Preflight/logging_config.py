"""Logging setup shared by ``webgl-preflight`` commands, ``serve`` included.

Every module logs through ``logging.getLogger(__name__)``, so one override per
subpackage is enough to turn up a single layer:

    LOG_LEVEL_ANALYSIS   archive inspector, scan normalizer, fit scoring
    LOG_LEVEL_DATA       SQLite database, migrations, repository
    LOG_LEVEL_WEB        API routes, request middleware, app lifespan
    LOG_LEVEL_REPORTING  terminal tables, fix-pack and report-email rendering
    LOG_LEVEL_SERVICES   Postmark mailer

``LOG_LEVEL`` (or ``AppConfig.log_level``) sets everything else.
"""

from __future__ import annotations

import logging
import os

LOG_FORMAT: str = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

PACKAGE_LOGGER: str = "WebGL_Preflight"

MODULE_LOGGERS: dict[str, str] = {
    "ANALYSIS": f"{PACKAGE_LOGGER}.analysis",
    "DATA": f"{PACKAGE_LOGGER}.data",
    "WEB": f"{PACKAGE_LOGGER}.web",
    "REPORTING": f"{PACKAGE_LOGGER}.reporting",
    "SERVICES": f"{PACKAGE_LOGGER}.services",
}

# Third-party loggers that would repeat what our own code already logs
_NOISY_LOGGERS: tuple[str, ...] = ("uvicorn.access", "httpx")


def configure_logging(
    *,
    level: str = "",
    verbose: bool = False,
    quiet: bool = False,
) -> None:
    """Configure root logger with consistent format across CLI and web.

    Priority: verbose > quiet > level param > LOG_LEVEL env > INFO default.
    Uses force=True to override uvicorn's prior root logger config.
    Reads LOG_LEVEL_{MODULE} env vars for per-subpackage overrides.
    """
    if verbose:
        effective = logging.DEBUG
    elif quiet:
        effective = logging.WARNING
    elif level:
        effective = getattr(logging, level.upper(), logging.INFO)
    else:
        env_level = os.environ.get("LOG_LEVEL", "INFO")
        effective = getattr(logging, env_level.upper(), logging.INFO)

    logging.basicConfig(level=effective, format=LOG_FORMAT, force=True)

    # RequestLoggingMiddleware logs each request; PostmarkMailer logs each send
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    for key, logger_name in MODULE_LOGGERS.items():
        module_level = os.environ.get(f"LOG_LEVEL_{key}")
        if module_level:
            resolved = getattr(logging, module_level.upper(), None)
            if resolved is not None:
                logging.getLogger(logger_name).setLevel(resolved)

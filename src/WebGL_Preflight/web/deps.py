"""Dependency injection providers for FastAPI route handlers.

All shared resources (Database, Repository, AppConfig, PostmarkMailer) are
provided via FastAPI's ``Depends()`` mechanism. Route handlers never construct these
directly; they declare dependencies and FastAPI injects them.
"""

import logging
import re
from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, HTTPException, Query, Request

from WebGL_Preflight.config import AppConfig
from WebGL_Preflight.data.database import Database
from WebGL_Preflight.data.repository import Repository, normalize_email
from WebGL_Preflight.services.mailer import PostmarkMailer

logger = logging.getLogger(__name__)

# Deliberately loose: one "@", something on both sides, a dot in the domain.
_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


async def get_database(request: Request) -> AsyncGenerator[Database]:
    """Yield the Database instance from application state.

    The Database is connected during application lifespan startup and stored
    in ``app.state.database``.
    """
    db: Database = request.app.state.database
    yield db


async def get_repository(
    db: Annotated[Database, Depends(get_database)],
) -> Repository:
    """Return a Repository backed by the request-scoped Database."""
    return Repository(db)


async def get_config(request: Request) -> AppConfig:
    """Return the AppConfig the application was created with."""
    config: AppConfig = request.app.state.config
    return config


async def get_mailer(
    config: Annotated[AppConfig, Depends(get_config)],
) -> AsyncGenerator[PostmarkMailer | None]:
    """Yield a Postmark mailer for the request, or None when email is not configured."""
    if not config.email_configured:
        yield None
        return
    async with PostmarkMailer(
        config.postmark_server_token or "", config.postmark_from_email or ""
    ) as mailer:
        yield mailer


def check_email(email: str) -> str:
    """Normalize an owner email or raise HTTP 422."""
    normalized = normalize_email(email)
    if not _EMAIL_PATTERN.match(normalized):
        raise HTTPException(status_code=422, detail=f"Invalid email: '{email}'.")
    return normalized


async def validate_owner_email(
    email: Annotated[str, Query(description="Owner email the build belongs to")],
) -> str:
    """Validate and normalize the ``email`` query parameter."""
    return check_email(email)

"""FastAPI app factory: lifespan-managed database, routers, error handlers."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from WebGL_Preflight.config import AppConfig
from WebGL_Preflight.data.database import Database
from WebGL_Preflight.web.middleware import RequestLoggingMiddleware, register_exception_handlers
from WebGL_Preflight.web.routes import (
    account_router,
    builds_router,
    fixpacks_router,
    launch_router,
    reference_router,
    report_router,
    scan_router,
)

logger = logging.getLogger(__name__)

API_PREFIX = "/api"


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Connect the database on startup and close it on shutdown."""
    config: AppConfig = app.state.config
    database = Database(config.db_path)
    await database.connect()
    app.state.database = database
    try:
        yield
    finally:
        await database.close()


def create_app(config: AppConfig | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Settings to run with. Defaults to ``AppConfig.from_env()``.
    """
    app = FastAPI(title="WebGL Preflight", lifespan=_lifespan)
    app.state.config = config if config is not None else AppConfig.from_env()

    register_exception_handlers(app)
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(scan_router, prefix=API_PREFIX)
    app.include_router(builds_router, prefix=API_PREFIX)
    app.include_router(launch_router, prefix=API_PREFIX)
    app.include_router(reference_router, prefix=API_PREFIX)
    app.include_router(account_router, prefix=API_PREFIX)
    app.include_router(fixpacks_router, prefix=API_PREFIX)
    app.include_router(report_router, prefix=API_PREFIX)

    @app.get("/api/health")
    async def health_check() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    logger.info("WebGL Preflight web app created (db=%s)", app.state.config.db_path)
    return app

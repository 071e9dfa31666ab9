"""FastAPI route modules for WebGL Preflight.

Re-exports all routers so the application factory can import them:
    from WebGL_Preflight.web.routes import scan_router, launch_router
"""

from WebGL_Preflight.web.routes.builds import router as builds_router
from WebGL_Preflight.web.routes.fixpacks import account_router
from WebGL_Preflight.web.routes.fixpacks import router as fixpacks_router
from WebGL_Preflight.web.routes.launch import router as launch_router
from WebGL_Preflight.web.routes.reference import router as reference_router
from WebGL_Preflight.web.routes.report import router as report_router
from WebGL_Preflight.web.routes.scan import router as scan_router

__all__ = [
    "account_router",
    "builds_router",
    "fixpacks_router",
    "launch_router",
    "reference_router",
    "report_router",
    "scan_router",
]

"""FastAPI web layer: HTTP API over the inspector, scorer, and fix-pack generator."""

from WebGL_Preflight.web.app import create_app

__all__ = ["create_app"]

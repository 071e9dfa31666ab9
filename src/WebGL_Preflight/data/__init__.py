"""Persistence layer for WebGL Preflight.

Re-exports the main public API: Database for connection management,
Repository for typed query operations.
"""

from WebGL_Preflight.data.database import Database
from WebGL_Preflight.data.repository import Repository

__all__ = ["Database", "Repository"]

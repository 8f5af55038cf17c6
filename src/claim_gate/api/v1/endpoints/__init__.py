# src/claim_gate/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .actors import router as actors_router
from .admin import router as admin_router
from .claims import router as claims_router
from .system import router as system_router

__all__ = [
    "actors_router",
    "admin_router",
    "claims_router",
    "system_router",
]

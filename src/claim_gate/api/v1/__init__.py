# src/claim_gate/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import actors_router, admin_router, claims_router, system_router

__all__ = [
    "actors_router",
    "admin_router",
    "claims_router",
    "system_router",
]

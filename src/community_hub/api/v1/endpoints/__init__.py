# src/community_hub/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .communities import router as communities_router

__all__ = ["communities_router"]

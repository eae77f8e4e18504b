# src/cadence_fed/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import inbox_router

__all__ = ["inbox_router"]

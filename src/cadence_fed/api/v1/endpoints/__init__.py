# src/cadence_fed/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .inbox import router as inbox_router

__all__ = ["inbox_router"]

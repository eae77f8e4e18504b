# src/cadence_fed/main.py
"""Main entry point for the Cadence federation service."""

from __future__ import annotations

import logging

from fastapi import FastAPI

from cadence_fed.api.v1 import inbox_router
from cadence_fed.core.settings import settings
from cadence_fed.services.inbox import shutdown_inbox_processor

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Federation inbox for the Cadence events platform",
    version=settings.app_version,
)

# Inbox routes live at the actor URLs, outside the versioned API prefix
app.include_router(inbox_router)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    await shutdown_inbox_processor()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the service."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "baseUrl": settings.normalized_base_url,
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("cadence_fed.main:app", host="0.0.0.0", port=8000, reload=settings.debug)

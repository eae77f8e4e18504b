"""Engine and session factory for the federation store.

Inbox requests get a session through ``get_db``; background processing and
maintenance scripts open their own from ``SessionLocal``.
"""

from __future__ import annotations

from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from cadence_fed.core.settings import settings


class Base(DeclarativeBase):
    """Declarative base for federation records."""


# Models must register on Base.metadata before Alembic or tests inspect it.
import cadence_fed.models  # noqa: E402,F401


def _connect_args(url: str) -> dict[str, Any]:
    # Sessions cross from the request thread into background tasks.
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    settings.database_url,
    connect_args=_connect_args(settings.database_url),
    pool_pre_ping=True,
    echo=settings.sql_debug,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Yield a request-scoped session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

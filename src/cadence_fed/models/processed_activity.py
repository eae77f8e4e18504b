# src/cadence_fed/models/processed_activity.py
"""Model backing the inbound activity deduplication ledger."""

from datetime import datetime

from sqlalchemy import DateTime, Index, Text
from sqlalchemy.orm import Mapped, mapped_column

from cadence_fed.db.session import Base


class ProcessedActivity(Base):
    """Record indicating that an inbound activity id has begun processing."""

    __tablename__ = "processed_activity"
    __table_args__ = (Index("ix_processed_activity_expires_at", "expires_at"),)

    # Existence means "already seen"; the primary key is the exactly-once gate.
    activity_id: Mapped[str] = mapped_column(Text, primary_key=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

"""Exactly-once admission of inbound activities.

Remote servers deliver at least once; the ``processed_activity`` primary key
turns that into exactly-once side effects. Admission is committed before the
handler runs, so a failed handler is never retried for the same id.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import delete, insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cadence_fed.core.settings import settings
from cadence_fed.db.time import days_from_now, utcnow
from cadence_fed.models import ProcessedActivity

# Configure logger for this module
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Admission:
    """Result of an admission attempt."""

    activity_id: str
    admitted: bool


class ActivityLedger:
    """Records processed activity ids with an expiry horizon."""

    def __init__(self, ttl_days: int | None = None) -> None:
        self.ttl_days = settings.activity_ttl_days if ttl_days is None else ttl_days

    def admit_once(self, db: Session, activity_id: str) -> Admission:
        """Claim ``activity_id``; ``admitted`` is False when it was already seen.

        Storage errors other than the uniqueness violation propagate.
        """
        try:
            db.execute(
                insert(ProcessedActivity).values(
                    activity_id=activity_id,
                    expires_at=days_from_now(self.ttl_days),
                )
            )
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.info("Activity %s already processed, skipping", activity_id)
            return Admission(activity_id=activity_id, admitted=False)

        return Admission(activity_id=activity_id, admitted=True)

    def purge_expired(self, db: Session, now: datetime | None = None) -> int:
        """Delete ledger rows whose expiry has passed and return how many went."""
        cutoff = now or utcnow()
        result = db.execute(
            delete(ProcessedActivity).where(ProcessedActivity.expires_at < cutoff)
        )
        db.commit()
        removed = result.rowcount or 0
        if removed:
            logger.info("Purged %d expired processed activities", removed)
        return removed

"""Delete expired entries from the processed-activity ledger.

Meant to run periodically (cron, systemd timer). Expired ids fall out of the
deduplication window, so a redelivery after expiry is processed again.
"""
from __future__ import annotations

import argparse
import logging
import sys

from sqlalchemy.exc import SQLAlchemyError

from cadence_fed.core.settings import settings
from cadence_fed.db.session import SessionLocal
from cadence_fed.services.ledger import ActivityLedger

logger = logging.getLogger("cadence_fed.scripts.purge_activities")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Purge expired processed-activity records")
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        help="Logging level (defaults to LOG_LEVEL)",
    )
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    try:
        with SessionLocal() as db:
            removed = ActivityLedger().purge_expired(db)
    except SQLAlchemyError as exc:
        logger.error("Purge failed: %s", exc)
        return 1

    print(f"[purge-activities] removed {removed} expired record(s)")
    return 0


if __name__ == "__main__":
    sys.exit(main())

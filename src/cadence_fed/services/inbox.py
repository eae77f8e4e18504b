"""Top-level inbound activity pipeline.

parse -> ledger admission -> route -> handler. Faults inside a handler are
contained here: the session is rolled back, the fault is logged and the
ledger row stays, so a redelivery of the same id is treated as a duplicate.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any

import httpx
from pydantic import ValidationError
from sqlalchemy.orm import Session

from cadence_fed.schemas.activity import InboundActivity
from cadence_fed.services.actors import ActorResolver
from cadence_fed.services.attendance import AttendanceProtocolHandler
from cadence_fed.services.content_sync import ContentSyncHandler
from cadence_fed.services.delivery import DeliveryGateway, HttpDeliveryGateway
from cadence_fed.services.engagement import EngagementHandler
from cadence_fed.services.follow_protocol import FollowProtocolHandler
from cadence_fed.services.ledger import ActivityLedger
from cadence_fed.services.notifications import LoggingBroadcaster, NotificationBroadcaster
from cadence_fed.services.router import ActivityRouter

# Configure logger for this module
logger = logging.getLogger(__name__)


class ProcessingOutcome(str, Enum):
    """What happened to one inbound activity."""

    PROCESSED = "processed"
    IGNORED = "ignored"
    DUPLICATE = "duplicate"
    INVALID = "invalid"
    FAILED = "failed"


class InboxProcessor:
    """Runs inbound activities through deduplication and routing."""

    def __init__(self, router: ActivityRouter, ledger: ActivityLedger) -> None:
        self.router = router
        self.ledger = ledger
        self._owned: list[Any] = []

    @classmethod
    def build(
        cls,
        *,
        client: httpx.AsyncClient | None = None,
        notifier: NotificationBroadcaster | None = None,
        delivery: DeliveryGateway | None = None,
        ledger: ActivityLedger | None = None,
    ) -> InboxProcessor:
        """Wire the default handler graph around the given collaborators."""
        actors = ActorResolver(client)
        gateway = delivery or HttpDeliveryGateway(client)
        broadcaster = notifier or LoggingBroadcaster()

        router = ActivityRouter(
            follows=FollowProtocolHandler(actors, gateway, broadcaster),
            content=ContentSyncHandler(actors, broadcaster),
            engagement=EngagementHandler(actors, broadcaster),
            attendance=AttendanceProtocolHandler(actors, broadcaster),
        )
        processor = cls(router, ledger or ActivityLedger())
        processor._owned.append(actors)
        if delivery is None:
            processor._owned.append(gateway)
        return processor

    async def handle_activity(
        self, db: Session, payload: Mapping[str, Any] | InboundActivity
    ) -> ProcessingOutcome:
        """Process one inbound activity exactly once."""
        if isinstance(payload, InboundActivity):
            activity = payload
        else:
            try:
                activity = InboundActivity.from_payload(payload)
            except ValidationError as exc:
                logger.warning("Rejecting malformed activity: %s", exc)
                return ProcessingOutcome.INVALID

        admission = self.ledger.admit_once(db, activity.id)
        if not admission.admitted:
            return ProcessingOutcome.DUPLICATE

        logger.info("Processing %s %s from %s", activity.type, activity.id, activity.actor)
        try:
            handled = await self.router.route(db, activity)
        except ValidationError as exc:
            db.rollback()
            logger.warning("Activity %s carries a malformed object: %s", activity.id, exc)
            return ProcessingOutcome.FAILED
        except Exception:
            db.rollback()
            logger.exception("Failed to process activity %s", activity.id)
            return ProcessingOutcome.FAILED

        return ProcessingOutcome.PROCESSED if handled else ProcessingOutcome.IGNORED

    async def close(self) -> None:
        """Close HTTP clients created by :meth:`build`."""
        for resource in self._owned:
            await resource.close()
        self._owned.clear()


class _InboxProcessorSingleton:
    """Singleton wrapper for the application's InboxProcessor."""

    _instance: InboxProcessor | None = None

    @classmethod
    def get_instance(cls) -> InboxProcessor:
        if cls._instance is None:
            cls._instance = InboxProcessor.build()
        return cls._instance

    @classmethod
    async def shutdown(cls) -> None:
        if cls._instance is not None:
            await cls._instance.close()
            cls._instance = None


def get_inbox_processor() -> InboxProcessor:
    """Return the process-wide inbox processor."""
    return _InboxProcessorSingleton.get_instance()


async def shutdown_inbox_processor() -> None:
    """Release the HTTP clients held by the process-wide processor."""
    await _InboxProcessorSingleton.shutdown()

"""Likes on events from remote actors."""

from __future__ import annotations

import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from cadence_fed.models import EventLike
from cadence_fed.schemas.activity import InboundActivity, TypedObject
from cadence_fed.services.actors import ActorResolver
from cadence_fed.services.notifications import BroadcastEvent, NotificationBroadcaster
from cadence_fed.services.payloads import event_summary
from cadence_fed.services.references import find_event

# Configure logger for this module
logger = logging.getLogger(__name__)


def like_count(db: Session, event_id: str) -> int:
    return (
        db.query(func.count())
        .select_from(EventLike)
        .filter(EventLike.event_id == event_id)
        .scalar()
        or 0
    )


class EngagementHandler:
    """Handles Like and Undo(Like)."""

    def __init__(self, actors: ActorResolver, notifier: NotificationBroadcaster) -> None:
        self.actors = actors
        self.notifier = notifier

    async def on_like(self, db: Session, activity: InboundActivity) -> None:
        event = find_event(db, activity.object_id)
        if event is None:
            logger.info("Like %s targets unknown event %s", activity.id, activity.object_id)
            return

        user = await self.actors.resolve(db, activity.actor)
        if user is None:
            logger.warning("Could not resolve liking actor %s", activity.actor)
            return

        if db.get(EventLike, (event.id, user.id)) is not None:
            logger.info("%s already likes event %s", activity.actor, event.id)
            return

        db.add(EventLike(event_id=event.id, user_id=user.id, external_id=activity.id))
        db.commit()
        logger.info("%s liked event %s", activity.actor, event.id)

        await self.notifier.notify(
            BroadcastEvent.LIKE_ADDED,
            {
                "eventId": event.id,
                "event": event_summary(event),
                "user": user.summary(),
                "likeCount": like_count(db, event.id),
            },
        )

    async def on_undo_like(self, db: Session, activity: InboundActivity, like: TypedObject) -> None:
        """Remove a like; actors never seen before cannot have liked anything."""
        if not activity.owns(like):
            logger.warning("%s tried to undo a Like it does not own", activity.actor)
            return

        user = self.actors.find_cached(db, activity.actor)
        if user is None:
            logger.info("Undo(Like) from unknown actor %s, ignoring", activity.actor)
            return

        target = like.inner()
        event = find_event(db, target.id if target is not None else None)
        if event is None:
            logger.info("Undo(Like) from %s targets an unknown event", activity.actor)
            return

        row = db.get(EventLike, (event.id, user.id))
        if row is None:
            logger.info("%s has no like on event %s to undo", activity.actor, event.id)
            return

        db.delete(row)
        db.commit()
        logger.info("%s unliked event %s", activity.actor, event.id)

        await self.notifier.notify(
            BroadcastEvent.LIKE_REMOVED,
            {
                "eventId": event.id,
                "event": event_summary(event),
                "user": user.summary(),
                "likeCount": like_count(db, event.id),
            },
        )

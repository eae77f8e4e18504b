"""RSVPs from remote actors: Accept, TentativeAccept and Reject on events.

The latest RSVP activity wins; an Undo of any of them removes the row.
"""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from cadence_fed.core.constants import AttendanceStatus
from cadence_fed.models import EventAttendance
from cadence_fed.schemas.activity import InboundActivity, TypedObject
from cadence_fed.services.actors import ActorResolver
from cadence_fed.services.notifications import BroadcastEvent, NotificationBroadcaster
from cadence_fed.services.payloads import event_summary
from cadence_fed.services.references import find_event

# Configure logger for this module
logger = logging.getLogger(__name__)


class AttendanceProtocolHandler:
    """Maps RSVP activities onto ``EventAttendance`` rows."""

    def __init__(self, actors: ActorResolver, notifier: NotificationBroadcaster) -> None:
        self.actors = actors
        self.notifier = notifier

    async def on_accept_event(self, db: Session, activity: InboundActivity) -> None:
        await self._set_status(db, activity, AttendanceStatus.ATTENDING)

    async def on_maybe(self, db: Session, activity: InboundActivity) -> None:
        await self._set_status(db, activity, AttendanceStatus.MAYBE)

    async def on_reject(self, db: Session, activity: InboundActivity) -> None:
        await self._set_status(db, activity, AttendanceStatus.NOT_ATTENDING)

    async def on_undo_attendance(
        self, db: Session, activity: InboundActivity, rsvp: TypedObject
    ) -> None:
        """Withdraw an RSVP; only previously cached actors can have one."""
        if not activity.owns(rsvp):
            logger.warning("%s tried to undo an RSVP it does not own", activity.actor)
            return

        user = self.actors.find_cached(db, activity.actor)
        if user is None:
            logger.info("Undo(%s) from unknown actor %s, ignoring", rsvp.kind, activity.actor)
            return

        target = rsvp.inner()
        event = find_event(db, target.id if target is not None else None)
        if event is None:
            logger.info("Undo(%s) from %s targets an unknown event", rsvp.kind, activity.actor)
            return

        row = db.get(EventAttendance, (event.id, user.id))
        if row is None:
            logger.info("%s has no RSVP on event %s to undo", activity.actor, event.id)
            return

        db.delete(row)
        db.commit()
        logger.info("Removed RSVP of %s on event %s", activity.actor, event.id)

        await self.notifier.notify(
            BroadcastEvent.ATTENDANCE_REMOVED,
            {"eventId": event.id, "event": event_summary(event), "user": user.summary()},
        )

    async def _set_status(
        self, db: Session, activity: InboundActivity, status: AttendanceStatus
    ) -> None:
        event = find_event(db, activity.object_id)
        if event is None:
            logger.info("RSVP %s targets unknown event %s", activity.id, activity.object_id)
            return

        user = await self.actors.resolve(db, activity.actor)
        if user is None:
            logger.warning("Could not resolve attendee %s", activity.actor)
            return

        row = db.get(EventAttendance, (event.id, user.id))
        if row is None:
            row = EventAttendance(event_id=event.id, user_id=user.id)
            db.add(row)
        row.status = status
        row.external_id = activity.id
        db.commit()
        logger.info("%s is %s for event %s", activity.actor, status.value, event.id)

        await self.notifier.notify(
            BroadcastEvent.ATTENDANCE_UPDATED,
            {
                "eventId": event.id,
                "event": event_summary(event),
                "user": user.summary(),
                "status": status.value,
            },
        )

"""Dispatch of admitted activities to their semantic handler."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from sqlalchemy.orm import Session

from cadence_fed.core.constants import ActivityType
from cadence_fed.schemas.activity import (
    InboundActivity,
    TypedObject,
    is_event_shaped,
    is_follow_shaped,
)
from cadence_fed.services.attendance import AttendanceProtocolHandler
from cadence_fed.services.content_sync import ContentSyncHandler
from cadence_fed.services.engagement import EngagementHandler
from cadence_fed.services.follow_protocol import FollowProtocolHandler

# Configure logger for this module
logger = logging.getLogger(__name__)

Route = Callable[[Session, InboundActivity], Awaitable[None]]

_RSVP_TYPES = {
    ActivityType.ACCEPT.value,
    ActivityType.TENTATIVE_ACCEPT.value,
    ActivityType.REJECT.value,
}


class ActivityRouter:
    """Selects exactly one handler per activity type and object shape.

    Unknown types are logged and ignored; they are never an error.
    """

    def __init__(
        self,
        follows: FollowProtocolHandler,
        content: ContentSyncHandler,
        engagement: EngagementHandler,
        attendance: AttendanceProtocolHandler,
    ) -> None:
        self.follows = follows
        self.content = content
        self.engagement = engagement
        self.attendance = attendance
        self._routes: dict[str, Route] = {
            ActivityType.FOLLOW.value: follows.on_follow,
            ActivityType.ACCEPT.value: self._accept,
            ActivityType.REJECT.value: self._reject,
            ActivityType.TENTATIVE_ACCEPT.value: attendance.on_maybe,
            ActivityType.CREATE.value: content.on_create,
            ActivityType.UPDATE.value: content.on_update,
            ActivityType.DELETE.value: content.on_delete,
            ActivityType.LIKE.value: engagement.on_like,
            ActivityType.UNDO.value: self._undo,
            ActivityType.ANNOUNCE.value: self._announce,
        }

    async def route(self, db: Session, activity: InboundActivity) -> bool:
        """Run the handler for ``activity``; return False when none applies."""
        handler = self._routes.get(activity.type)
        if handler is None:
            logger.info("Unhandled activity type %s (%s)", activity.type, activity.id)
            return False

        await handler(db, activity)
        return True

    async def _accept(self, db: Session, activity: InboundActivity) -> None:
        # A Follow also carries an id, so its shape must be checked first.
        obj = activity.object
        if is_follow_shaped(obj):
            await self.follows.on_accept_follow(db, activity, obj)
        elif is_event_shaped(obj):
            await self.attendance.on_accept_event(db, activity)
        else:
            logger.info("Accept %s has an unrecognized object, ignoring", activity.id)

    async def _reject(self, db: Session, activity: InboundActivity) -> None:
        obj = activity.object
        if is_follow_shaped(obj):
            await self.follows.on_reject_follow(db, activity, obj)
        else:
            await self.attendance.on_reject(db, activity)

    async def _undo(self, db: Session, activity: InboundActivity) -> None:
        inner = activity.object
        if not isinstance(inner, TypedObject):
            logger.info("Undo %s does not embed the undone activity, ignoring", activity.id)
            return

        if inner.kind == ActivityType.LIKE.value:
            await self.engagement.on_undo_like(db, activity, inner)
        elif inner.kind == ActivityType.FOLLOW.value:
            await self.follows.on_undo_follow(db, activity, inner)
        elif inner.kind in _RSVP_TYPES:
            await self.attendance.on_undo_attendance(db, activity, inner)
        else:
            logger.info("Unhandled Undo of %s (%s)", inner.kind, activity.id)

    async def _announce(self, db: Session, activity: InboundActivity) -> None:
        logger.info("Ignoring Announce %s from %s", activity.id, activity.actor)

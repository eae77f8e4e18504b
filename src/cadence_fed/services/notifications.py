"""Notification side channel for locally connected clients.

Handlers depend only on the narrow :class:`NotificationBroadcaster` protocol;
the real-time fan-out (SSE, websockets) lives outside this package.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Protocol

from cadence_fed.db.time import utcnow

# Configure logger for this module
logger = logging.getLogger(__name__)


class BroadcastEvent(str, Enum):
    """Notification kinds published by the federation engine."""

    EVENT_CREATED = "event:created"
    EVENT_UPDATED = "event:updated"
    EVENT_DELETED = "event:deleted"

    ATTENDANCE_UPDATED = "attendance:updated"
    ATTENDANCE_REMOVED = "attendance:removed"

    LIKE_ADDED = "like:added"
    LIKE_REMOVED = "like:removed"

    COMMENT_ADDED = "comment:added"
    COMMENT_DELETED = "comment:deleted"

    PROFILE_UPDATED = "profile:updated"

    FOLLOWER_ADDED = "follower:added"
    FOLLOWER_REMOVED = "follower:removed"
    FOLLOW_ACCEPTED = "follow:accepted"
    FOLLOW_REJECTED = "follow:rejected"


@dataclass(frozen=True)
class Notification:
    """A published notification.

    ``user_id`` restricts delivery to one local user's clients; None means
    every connected client.
    """

    kind: BroadcastEvent
    payload: Mapping[str, Any]
    user_id: str | None = None
    timestamp: datetime = field(default_factory=utcnow)


class NotificationBroadcaster(Protocol):
    """Capability to publish a notification to local clients."""

    async def notify(
        self,
        kind: BroadcastEvent,
        payload: Mapping[str, Any],
        *,
        user_id: str | None = None,
    ) -> None: ...


class LoggingBroadcaster:
    """Broadcaster that only logs; used when no fan-out is wired."""

    async def notify(
        self,
        kind: BroadcastEvent,
        payload: Mapping[str, Any],
        *,
        user_id: str | None = None,
    ) -> None:
        logger.debug("Notification %s (user=%s): %s", kind.value, user_id, dict(payload))


class InMemoryBroadcaster:
    """Process-local broadcaster keeping history and feeding subscriber queues."""

    def __init__(self) -> None:
        self.sent: list[Notification] = []
        self._subscribers: list[tuple[str | None, asyncio.Queue[Notification]]] = []

    async def notify(
        self,
        kind: BroadcastEvent,
        payload: Mapping[str, Any],
        *,
        user_id: str | None = None,
    ) -> None:
        notification = Notification(kind=kind, payload=dict(payload), user_id=user_id)
        self.sent.append(notification)
        for subscriber_id, queue in self._subscribers:
            if user_id is None or subscriber_id == user_id:
                queue.put_nowait(notification)
        logger.debug("Broadcast %s to %d subscriber(s)", kind.value, len(self._subscribers))

    def subscribe(self, user_id: str | None = None) -> asyncio.Queue[Notification]:
        """Register a client queue; ``user_id`` selects targeted notifications."""
        queue: asyncio.Queue[Notification] = asyncio.Queue()
        self._subscribers.append((user_id, queue))
        return queue

    def unsubscribe(self, queue: asyncio.Queue[Notification]) -> None:
        self._subscribers = [entry for entry in self._subscribers if entry[1] is not queue]

    def of_kind(self, kind: BroadcastEvent) -> list[Notification]:
        return [notification for notification in self.sent if notification.kind is kind]

"""Follow / Accept / Reject / Undo(Follow) handling.

Follow relationships move through an explicit state machine. Both directions
of the social graph share it: ``Follower`` rows (remote actor follows a local
user) and ``Following`` rows (local user follows a remote actor).
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from cadence_fed.models import Follower, FollowStatus, Following, User
from cadence_fed.schemas.activity import FollowObject, InboundActivity, TypedObject
from cadence_fed.services.activity_builder import (
    build_accept_activity,
    build_reject_activity,
    follow_reference,
)
from cadence_fed.services.actors import ActorResolver
from cadence_fed.services.delivery import DeliveryGateway
from cadence_fed.services.http import ActorFetchError
from cadence_fed.services.notifications import BroadcastEvent, NotificationBroadcaster
from cadence_fed.services.references import find_local_user
from cadence_fed.utils.urls import is_local_url, trailing_segment

# Configure logger for this module
logger = logging.getLogger(__name__)


class FollowSignal(Enum):
    """Inputs that drive a follow relationship between states."""

    REQUEST_AUTO = "request_auto"
    REQUEST_MANUAL = "request_manual"
    ACCEPT = "accept"
    REJECT = "reject"


_TRANSITIONS: dict[tuple[FollowStatus | None, FollowSignal], FollowStatus | None] = {
    (None, FollowSignal.REQUEST_AUTO): FollowStatus.ACCEPTED,
    (None, FollowSignal.REQUEST_MANUAL): FollowStatus.PENDING,
    (None, FollowSignal.ACCEPT): None,
    (None, FollowSignal.REJECT): None,
    (FollowStatus.PENDING, FollowSignal.REQUEST_AUTO): FollowStatus.ACCEPTED,
    (FollowStatus.PENDING, FollowSignal.REQUEST_MANUAL): FollowStatus.PENDING,
    (FollowStatus.PENDING, FollowSignal.ACCEPT): FollowStatus.ACCEPTED,
    (FollowStatus.PENDING, FollowSignal.REJECT): FollowStatus.REJECTED,
    (FollowStatus.ACCEPTED, FollowSignal.REQUEST_AUTO): FollowStatus.ACCEPTED,
    (FollowStatus.ACCEPTED, FollowSignal.REQUEST_MANUAL): FollowStatus.ACCEPTED,
    (FollowStatus.ACCEPTED, FollowSignal.ACCEPT): FollowStatus.ACCEPTED,
    (FollowStatus.ACCEPTED, FollowSignal.REJECT): FollowStatus.REJECTED,
    (FollowStatus.REJECTED, FollowSignal.REQUEST_AUTO): FollowStatus.ACCEPTED,
    (FollowStatus.REJECTED, FollowSignal.REQUEST_MANUAL): FollowStatus.PENDING,
    (FollowStatus.REJECTED, FollowSignal.ACCEPT): FollowStatus.ACCEPTED,
    (FollowStatus.REJECTED, FollowSignal.REJECT): FollowStatus.REJECTED,
}


def next_follow_status(current: FollowStatus | None, signal: FollowSignal) -> FollowStatus | None:
    """Return the status after ``signal``; None means no relationship exists."""
    return _TRANSITIONS[(current, signal)]


def accepted_follower_count(db: Session, user_id: str) -> int:
    """Count followers of a local user whose follow was accepted."""
    return (
        db.query(func.count(Follower.id))
        .filter(Follower.user_id == user_id, Follower.status == FollowStatus.ACCEPTED)
        .scalar()
        or 0
    )


class FollowProtocolHandler:
    """Applies follow-graph activities and answers follow requests."""

    def __init__(
        self,
        actors: ActorResolver,
        delivery: DeliveryGateway,
        notifier: NotificationBroadcaster,
    ) -> None:
        self.actors = actors
        self.delivery = delivery
        self.notifier = notifier

    async def on_follow(self, db: Session, activity: InboundActivity) -> None:
        """Record a remote follow request and auto-accept it when allowed."""
        target_url = activity.object_id
        if not target_url or not is_local_url(target_url):
            logger.info("Follow target %s is not local, ignoring", target_url)
            return

        user = find_local_user(db, target_url)
        if user is None:
            logger.info("Follow target %s not found", target_url)
            return

        remote = await self.actors.resolve(db, activity.actor)
        if remote is None:
            logger.warning("Could not resolve follower %s, dropping Follow", activity.actor)
            return

        follower = (
            db.query(Follower)
            .filter(Follower.user_id == user.id, Follower.actor_url == activity.actor)
            .first()
        )
        signal = (
            FollowSignal.REQUEST_AUTO
            if user.accepts_followers_automatically
            else FollowSignal.REQUEST_MANUAL
        )
        status = next_follow_status(follower.status if follower else None, signal)

        if follower is None:
            follower = Follower(user_id=user.id, actor_url=activity.actor)
            db.add(follower)
        follower.username = remote.username
        follower.inbox_url = remote.inbox_url
        follower.shared_inbox_url = remote.shared_inbox_url
        follower.icon_url = remote.profile_image
        follower.follow_activity_id = activity.id
        follower.status = status
        db.commit()
        logger.info("%s follows %s (%s)", activity.actor, user.username, status.value)

        await self.notifier.notify(
            BroadcastEvent.FOLLOWER_ADDED,
            {
                "username": user.username,
                "follower": {
                    "username": remote.username,
                    "actorUrl": activity.actor,
                    "accepted": status is FollowStatus.ACCEPTED,
                },
                "followerCount": accepted_follower_count(db, user.id),
            },
            user_id=user.id,
        )

        if status is FollowStatus.ACCEPTED:
            accept = build_accept_activity(user, activity.as_payload())
            await self._deliver(accept, remote.delivery_inbox, user)

    async def on_accept_follow(
        self, db: Session, activity: InboundActivity, follow: TypedObject
    ) -> None:
        """Mark a local user's outgoing follow as accepted by the remote actor."""
        following = self._answered_following(db, activity, follow)
        if following is None:
            return
        local_user, row = following

        row.status = next_follow_status(row.status, FollowSignal.ACCEPT)
        db.commit()
        logger.info("%s accepted follow from %s", activity.actor, local_user.username)

        await self.notifier.notify(
            BroadcastEvent.FOLLOW_ACCEPTED,
            {
                "username": self._remote_username(db, activity.actor),
                "actorUrl": activity.actor,
                "isAccepted": True,
                "followerCount": await self._remote_follower_count(activity.actor),
            },
            user_id=local_user.id,
        )

    async def on_reject_follow(
        self, db: Session, activity: InboundActivity, follow: TypedObject
    ) -> None:
        """Mark a local user's outgoing follow as rejected; the row is kept."""
        following = self._answered_following(db, activity, follow)
        if following is None:
            return
        local_user, row = following

        row.status = next_follow_status(row.status, FollowSignal.REJECT)
        db.commit()
        logger.info("%s rejected follow from %s", activity.actor, local_user.username)

        await self.notifier.notify(
            BroadcastEvent.FOLLOW_REJECTED,
            {
                "username": self._remote_username(db, activity.actor),
                "actorUrl": activity.actor,
                "isAccepted": False,
            },
            user_id=local_user.id,
        )

    async def on_undo_follow(
        self, db: Session, activity: InboundActivity, follow: TypedObject
    ) -> None:
        """Remove the follower row created by the undone Follow."""
        if not activity.owns(follow):
            logger.warning("%s tried to undo a Follow it does not own", activity.actor)
            return

        target = FollowObject.model_validate(follow.fields).object
        user = find_local_user(db, target)
        if user is None:
            logger.info("Undo(Follow) target %s is not a local user", target)
            return

        deleted = (
            db.query(Follower)
            .filter(Follower.user_id == user.id, Follower.actor_url == activity.actor)
            .delete(synchronize_session=False)
        )
        db.commit()
        if not deleted:
            logger.info("No follower %s on %s to remove", activity.actor, user.username)
            return

        logger.info("%s unfollowed %s", activity.actor, user.username)
        await self.notifier.notify(
            BroadcastEvent.FOLLOWER_REMOVED,
            {
                "username": user.username,
                "follower": {"actorUrl": activity.actor},
                "followerCount": accepted_follower_count(db, user.id),
            },
            user_id=user.id,
        )

    async def approve_follower(self, db: Session, user: User, actor_url: str) -> Follower | None:
        """Accept a pending follow request and notify the remote actor."""
        return await self._answer_request(db, user, actor_url, FollowSignal.ACCEPT)

    async def reject_follower(self, db: Session, user: User, actor_url: str) -> Follower | None:
        """Reject a follow request and notify the remote actor."""
        return await self._answer_request(db, user, actor_url, FollowSignal.REJECT)

    async def _answer_request(
        self, db: Session, user: User, actor_url: str, signal: FollowSignal
    ) -> Follower | None:
        follower = (
            db.query(Follower)
            .filter(Follower.user_id == user.id, Follower.actor_url == actor_url)
            .first()
        )
        if follower is None:
            logger.info("No follow request from %s to %s", actor_url, user.username)
            return None

        follower.status = next_follow_status(follower.status, signal)
        db.commit()

        follow = follow_reference(follower.follow_activity_id, actor_url, user)
        if signal is FollowSignal.ACCEPT:
            response = build_accept_activity(user, follow)
            kind = BroadcastEvent.FOLLOWER_ADDED
        else:
            response = build_reject_activity(user, follow)
            kind = BroadcastEvent.FOLLOWER_REMOVED

        await self.notifier.notify(
            kind,
            {
                "username": user.username,
                "follower": {
                    "username": follower.username,
                    "actorUrl": actor_url,
                    "accepted": follower.accepted,
                },
                "followerCount": accepted_follower_count(db, user.id),
            },
            user_id=user.id,
        )
        await self._deliver(response, follower.shared_inbox_url or follower.inbox_url, user)
        return follower

    def _answered_following(
        self, db: Session, activity: InboundActivity, follow: TypedObject
    ) -> tuple[User, Following] | None:
        """Locate the local Following row an Accept/Reject(Follow) answers."""
        original = FollowObject.model_validate(follow.fields)
        if original.object and original.object != activity.actor:
            logger.warning(
                "%s answered a Follow addressed to %s, ignoring", activity.actor, original.object
            )
            return None

        local_user = find_local_user(db, original.actor)
        if local_user is None:
            logger.info("Follow answered by %s was not sent from a local user", activity.actor)
            return None

        row = (
            db.query(Following)
            .filter(Following.user_id == local_user.id, Following.actor_url == activity.actor)
            .first()
        )
        if row is None:
            logger.info(
                "No follow from %s to %s on record, ignoring answer",
                local_user.username,
                activity.actor,
            )
            return None
        return local_user, row

    def _remote_username(self, db: Session, actor_url: str) -> str:
        cached = self.actors.find_cached(db, actor_url)
        return cached.username if cached is not None else trailing_segment(actor_url)

    async def _remote_follower_count(self, actor_url: str) -> int | None:
        try:
            return await self.actors.fetch_remote_follower_count(actor_url)
        except ActorFetchError as exc:
            logger.warning("Could not fetch follower count of %s: %s", actor_url, exc)
            return None

    async def _deliver(self, activity: dict[str, Any], inbox_url: str | None, sender: User) -> None:
        if not inbox_url:
            logger.warning("No inbox to deliver %s to", activity.get("type"))
            return
        await self.delivery.deliver(activity, inbox_url, sender)

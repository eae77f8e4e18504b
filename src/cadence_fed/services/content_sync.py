"""Mirroring of remote events, comments and profiles.

Create/Update/Delete activities keep local copies of remote content in step
with their origin. Mirrors are owned by the remote actor that published them:
an actor may only overwrite or remove what it is attributed with.
"""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from cadence_fed.core.constants import ObjectType
from cadence_fed.models import Comment, Event, User
from cadence_fed.schemas.activity import (
    InboundActivity,
    RemoteEvent,
    RemoteNote,
    RemotePerson,
    TombstoneObject,
    TypedObject,
)
from cadence_fed.services.actors import ActorResolver, apply_profile
from cadence_fed.services.notifications import BroadcastEvent, NotificationBroadcaster
from cadence_fed.services.payloads import comment_summary, event_summary
from cadence_fed.services.references import find_comment, find_event
from cadence_fed.utils.urls import is_local_url

# Configure logger for this module
logger = logging.getLogger(__name__)


class ContentSyncHandler:
    """Handles Create, Update and Delete activities."""

    def __init__(self, actors: ActorResolver, notifier: NotificationBroadcaster) -> None:
        self.actors = actors
        self.notifier = notifier

    async def on_create(self, db: Session, activity: InboundActivity) -> None:
        obj = activity.object
        if not isinstance(obj, TypedObject):
            logger.info("Create %s carries no embedded object, ignoring", activity.id)
            return

        if obj.kind == ObjectType.EVENT:
            await self._upsert_event(db, activity, obj)
        elif obj.kind == ObjectType.NOTE:
            await self._create_note(db, activity, obj)
        else:
            logger.info("Unsupported Create object type %s", obj.kind)

    async def on_update(self, db: Session, activity: InboundActivity) -> None:
        obj = activity.object
        if not isinstance(obj, TypedObject):
            logger.info("Update %s carries no embedded object, ignoring", activity.id)
            return

        if obj.kind == ObjectType.EVENT:
            await self._upsert_event(db, activity, obj)
        elif obj.kind == ObjectType.PERSON:
            await self._update_person(db, activity, obj)
        else:
            logger.info("Unsupported Update object type %s", obj.kind)

    async def on_delete(self, db: Session, activity: InboundActivity) -> None:
        """Delete a mirrored comment or every mirror of a remote event."""
        object_id = activity.object_id
        if not object_id:
            logger.info("Delete %s has no object id, ignoring", activity.id)
            return

        former_type = None
        if isinstance(activity.object, TypedObject):
            former_type = TombstoneObject.model_validate(activity.object.fields).former_type

        if former_type == ObjectType.NOTE or "/comments/" in object_id:
            comment = find_comment(db, object_id)
            if comment is not None:
                await self._delete_comment(db, activity, comment)
                return

        events = (
            db.query(Event)
            .filter(Event.external_id == object_id, Event.attributed_to == activity.actor)
            .all()
        )
        if not events:
            logger.info("Nothing owned by %s matches deleted object %s", activity.actor, object_id)
            return

        payloads = [event_summary(event) for event in events]
        for event in events:
            db.delete(event)
        db.commit()
        logger.info("Deleted %d mirror(s) of event %s", len(payloads), object_id)

        for payload in payloads:
            await self.notifier.notify(BroadcastEvent.EVENT_DELETED, {"event": payload})

    async def _upsert_event(
        self, db: Session, activity: InboundActivity, obj: TypedObject
    ) -> None:
        remote = RemoteEvent.model_validate(obj.fields)
        if is_local_url(remote.id):
            logger.info("Ignoring remote copy of local event %s", remote.id)
            return

        event = db.query(Event).filter(Event.external_id == remote.id).first()
        if event is not None and event.attributed_to not in (None, activity.actor):
            logger.warning(
                "%s may not overwrite event %s attributed to %s",
                activity.actor,
                remote.id,
                event.attributed_to,
            )
            return

        organizer = await self.actors.resolve(db, activity.actor)
        if organizer is None:
            logger.warning("Could not resolve event organizer %s", activity.actor)
            return

        created = event is None
        if event is None:
            event = Event(external_id=remote.id)
            db.add(event)
        event.title = remote.name
        event.summary = remote.summary_text
        event.location = remote.location_text
        event.start_time = remote.start_time
        event.end_time = remote.end_time
        event.duration = remote.duration
        event.url = remote.url
        event.event_status = remote.event_status
        event.event_attendance_mode = remote.event_attendance_mode
        event.maximum_attendee_capacity = remote.maximum_attendee_capacity
        event.header_image = remote.header_image
        event.attributed_to = activity.actor
        event.user_id = None
        db.commit()
        logger.info("%s remote event %s", "Created" if created else "Updated", remote.id)

        await self.notifier.notify(
            BroadcastEvent.EVENT_CREATED if created else BroadcastEvent.EVENT_UPDATED,
            {
                "event": event_summary(event),
                "organizer": organizer.summary(),
            },
        )

    async def _create_note(self, db: Session, activity: InboundActivity, obj: TypedObject) -> None:
        note = RemoteNote.model_validate(obj.fields)
        if note.attributed_to and note.attributed_to != activity.actor:
            logger.warning("Note %s is not attributed to %s, ignoring", note.id, activity.actor)
            return

        event = find_event(db, note.in_reply_to)
        if event is None:
            logger.info("Note %s does not reply to a known event, dropping", note.id)
            return

        author = await self.actors.resolve(db, activity.actor)
        if author is None:
            logger.warning("Could not resolve comment author %s", activity.actor)
            return

        comment = db.query(Comment).filter(Comment.external_id == note.id).first()
        if comment is not None and comment.author_id != author.id:
            logger.warning("Comment %s belongs to another author, ignoring", note.id)
            return
        if comment is None:
            comment = Comment(external_id=note.id, event_id=event.id, author_id=author.id)
            db.add(comment)
        comment.content = note.content
        db.commit()
        logger.info("Stored comment %s on event %s", note.id, event.id)

        await self.notifier.notify(
            BroadcastEvent.COMMENT_ADDED,
            {"comment": comment_summary(comment, author), "event": event_summary(event)},
        )

    async def _update_person(
        self, db: Session, activity: InboundActivity, obj: TypedObject
    ) -> None:
        person = RemotePerson.model_validate(obj.fields)
        if person.id != activity.actor:
            logger.warning("%s may not update profile %s", activity.actor, person.id)
            return

        user = self.actors.find_cached(db, person.id)
        if user is None:
            logger.info("Profile update for unknown actor %s, ignoring", person.id)
            return

        apply_profile(user, person)
        db.commit()
        logger.info("Updated cached profile of %s", person.id)

        await self.notifier.notify(BroadcastEvent.PROFILE_UPDATED, {"user": user.summary()})

    async def _delete_comment(
        self, db: Session, activity: InboundActivity, comment: Comment
    ) -> None:
        author = db.get(User, comment.author_id)
        if author is None or author.external_actor_url != activity.actor:
            logger.warning("%s may not delete comment %s", activity.actor, comment.id)
            return

        payload = {
            "commentId": comment.id,
            "externalId": comment.external_id,
            "eventId": comment.event_id,
        }
        db.delete(comment)
        db.commit()
        logger.info("Deleted comment %s", payload["commentId"])

        await self.notifier.notify(BroadcastEvent.COMMENT_DELETED, payload)

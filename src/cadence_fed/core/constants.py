"""ActivityPub vocabulary and federation constants."""

from __future__ import annotations

from enum import Enum

ACTIVITYSTREAMS_CONTEXT = "https://www.w3.org/ns/activitystreams"
W3ID_SECURITY_CONTEXT = "https://w3id.org/security/v1"
ACTIVITYPUB_CONTEXTS = (ACTIVITYSTREAMS_CONTEXT, W3ID_SECURITY_CONTEXT)

# Deduplication window for processed activity ids.
ACTIVITY_TTL_DAYS = 30


class ActivityType(str, Enum):
    """Activity types understood (or deliberately ignored) by the inbox."""

    CREATE = "Create"
    UPDATE = "Update"
    DELETE = "Delete"
    FOLLOW = "Follow"
    ACCEPT = "Accept"
    REJECT = "Reject"
    LIKE = "Like"
    UNDO = "Undo"
    ANNOUNCE = "Announce"
    TENTATIVE_ACCEPT = "TentativeAccept"


class ObjectType(str, Enum):
    """Object types carried inside activities."""

    PERSON = "Person"
    EVENT = "Event"
    NOTE = "Note"


class AttendanceStatus(str, Enum):
    """RSVP status of a user on an event."""

    ATTENDING = "attending"
    MAYBE = "maybe"
    NOT_ATTENDING = "not_attending"


class ContentType:
    """Media types used on federation requests."""

    ACTIVITY_JSON = "application/activity+json"

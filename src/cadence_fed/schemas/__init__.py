"""
Pydantic schemas for inbound federation payloads.

These schemas turn untrusted JSON into typed values before any handler runs.
"""

from .activity import (
    FollowObject,
    InboundActivity,
    ObjectRef,
    RemoteEvent,
    RemoteNote,
    RemotePerson,
    TombstoneObject,
    TypedObject,
    parse_object,
)

__all__ = [
    "FollowObject",
    "InboundActivity",
    "ObjectRef", "TypedObject", "parse_object",
    "RemoteEvent", "RemoteNote", "RemotePerson", "TombstoneObject",
]

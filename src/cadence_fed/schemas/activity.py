"""Pydantic models for inbound federation activities.

The ``object`` member of an activity is polymorphic on the wire: either a
bare URL or an embedded object carrying a ``type``. It is parsed once, at
ingestion, into :class:`ObjectRef` or :class:`TypedObject` so handlers never
branch on raw JSON shapes.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from cadence_fed.core.constants import ActivityType, ObjectType


def _id_of(value: Any) -> str | None:
    """Return the identifier of a URL-or-object value."""
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        candidate = value.get("id") or value.get("href")
        return candidate if isinstance(candidate, str) else None
    return None


class ObjectRef(BaseModel):
    """Bare URL reference to a federated object."""

    model_config = ConfigDict(frozen=True)

    url: str

    @property
    def id(self) -> str:
        return self.url

    @property
    def kind(self) -> None:
        return None


class TypedObject(BaseModel):
    """Embedded object; ``fields`` keeps the complete original mapping."""

    model_config = ConfigDict(frozen=True)

    kind: str | None = None
    id: str | None = None
    fields: dict[str, Any] = Field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        return self.fields.get(key, default)

    @property
    def actor(self) -> str | None:
        """Actor of an embedded activity (Follow, Like, Accept, ...)."""
        return _id_of(self.fields.get("actor"))

    def inner(self) -> ObjectRef | TypedObject | None:
        """Parse the ``object`` member of an embedded activity."""
        return parse_object(self.fields.get("object"))


ActivityObject = ObjectRef | TypedObject


def parse_object(value: Any) -> ActivityObject | None:
    """Convert a raw ``object`` value into the tagged union."""
    if value is None:
        return None
    if isinstance(value, ObjectRef | TypedObject):
        return value
    if isinstance(value, str):
        return ObjectRef(url=value)
    if isinstance(value, Mapping):
        kind = value.get("type")
        return TypedObject(
            kind=kind if isinstance(kind, str) else None,
            id=_id_of(value),
            fields=dict(value),
        )
    raise ValueError(f"Unsupported activity object of type {type(value).__name__}")


def is_follow_shaped(obj: ActivityObject | None) -> bool:
    """Return True when ``obj`` is an embedded Follow activity."""
    return isinstance(obj, TypedObject) and obj.kind == ActivityType.FOLLOW


def is_event_shaped(obj: ActivityObject | None) -> bool:
    """Return True when ``obj`` can denote an event (URL, Event, or any id)."""
    if isinstance(obj, ObjectRef):
        return True
    return isinstance(obj, TypedObject) and (obj.kind == ObjectType.EVENT or bool(obj.id))


class InboundActivity(BaseModel):
    """Validated envelope of an activity delivered to an inbox."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Global activity identifier")
    type: str = Field(..., min_length=1, description="Activity type name")
    actor: str = Field(..., min_length=1, description="Actor URL")
    object: ActivityObject | None = None
    raw: dict[str, Any] = Field(default_factory=dict, exclude=True)

    @field_validator("actor", mode="before")
    @classmethod
    def _actor_id(cls, value: Any) -> Any:
        return _id_of(value) if isinstance(value, Mapping) else value

    @field_validator("object", mode="before")
    @classmethod
    def _parse_object(cls, value: Any) -> ActivityObject | None:
        return parse_object(value)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> InboundActivity:
        """Validate a raw JSON activity."""
        data = dict(payload)
        return cls.model_validate(
            {
                "id": data.get("id"),
                "type": data.get("type"),
                "actor": data.get("actor"),
                "object": data.get("object"),
                "raw": data,
            }
        )

    @property
    def object_id(self) -> str | None:
        return self.object.id if self.object is not None else None

    def as_payload(self) -> dict[str, Any]:
        """Return the original JSON, or a minimal reconstruction of it."""
        if self.raw:
            return dict(self.raw)
        payload: dict[str, Any] = {"id": self.id, "type": self.type, "actor": self.actor}
        if isinstance(self.object, ObjectRef):
            payload["object"] = self.object.url
        elif isinstance(self.object, TypedObject):
            payload["object"] = dict(self.object.fields)
        return payload

    def owns(self, embedded: TypedObject) -> bool:
        """Return True unless ``embedded`` names a different actor."""
        return embedded.actor is None or embedded.actor == self.actor


class _RemoteModel(BaseModel):
    """Base for nested ActivityStreams objects (camelCase on the wire)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class Link(_RemoteModel):
    """Image or link attachment; a bare string is treated as its URL."""

    url: str | None = None

    @field_validator("url", mode="before")
    @classmethod
    def _first_url(cls, value: Any) -> Any:
        if isinstance(value, list):
            value = value[0] if value else None
        return _id_of(value) if isinstance(value, Mapping) else value


def _as_link(value: Any) -> Any:
    if isinstance(value, str):
        return {"url": value}
    if isinstance(value, list):
        return _as_link(value[0]) if value else None
    return value


class Place(_RemoteModel):
    name: str | None = None
    address: str | None = None


class RemoteEvent(_RemoteModel):
    """Event object as published by a remote instance."""

    id: str
    name: str | None = None
    summary: str | None = None
    content: str | None = None
    location: str | Place | None = None
    start_time: datetime
    end_time: datetime | None = None
    duration: str | None = None
    url: str | None = None
    event_status: str | None = None
    event_attendance_mode: str | None = None
    maximum_attendee_capacity: int | None = None
    attachment: list[Link] = Field(default_factory=list)

    @field_validator("url", mode="before")
    @classmethod
    def _url(cls, value: Any) -> Any:
        if isinstance(value, list):
            value = value[0] if value else None
        return _id_of(value) if isinstance(value, Mapping) else value

    @field_validator("location", mode="before")
    @classmethod
    def _location(cls, value: Any) -> Any:
        if isinstance(value, list):
            return value[0] if value else None
        return value

    @field_validator("attachment", mode="before")
    @classmethod
    def _attachments(cls, value: Any) -> Any:
        if value is None:
            return []
        if not isinstance(value, list):
            value = [value]
        return [_as_link(item) for item in value]

    @property
    def summary_text(self) -> str | None:
        return self.summary or self.content or None

    @property
    def location_text(self) -> str | None:
        if isinstance(self.location, Place):
            return self.location.name
        return self.location or None

    @property
    def header_image(self) -> str | None:
        return self.attachment[0].url if self.attachment else None


class RemoteNote(_RemoteModel):
    """Note object; remote comments on events."""

    id: str
    content: str = ""
    in_reply_to: str | None = None
    attributed_to: str | None = None

    @field_validator("in_reply_to", "attributed_to", mode="before")
    @classmethod
    def _reference(cls, value: Any) -> Any:
        return _id_of(value) if isinstance(value, Mapping) else value


class Endpoints(_RemoteModel):
    shared_inbox: str | None = None


class PublicKey(_RemoteModel):
    id: str | None = None
    owner: str | None = None
    public_key_pem: str | None = None


class RemotePerson(_RemoteModel):
    """Actor document of a remote user."""

    id: str
    type: str | None = None
    preferred_username: str | None = None
    name: str | None = None
    summary: str | None = None
    inbox: str | None = None
    outbox: str | None = None
    followers: str | None = None
    icon: Link | None = None
    image: Link | None = None
    endpoints: Endpoints | None = None
    public_key: PublicKey | None = None
    display_color: str | None = None

    @field_validator("icon", "image", mode="before")
    @classmethod
    def _link(cls, value: Any) -> Any:
        return _as_link(value)

    @property
    def shared_inbox(self) -> str | None:
        return self.endpoints.shared_inbox if self.endpoints else None

    @property
    def icon_url(self) -> str | None:
        return self.icon.url if self.icon else None

    @property
    def image_url(self) -> str | None:
        return self.image.url if self.image else None

    @property
    def public_key_pem(self) -> str | None:
        return self.public_key.public_key_pem if self.public_key else None


class FollowObject(_RemoteModel):
    """Follow activity embedded in Accept, Reject or Undo."""

    id: str | None = None
    actor: str | None = None
    object: str | None = None

    @field_validator("actor", "object", mode="before")
    @classmethod
    def _reference(cls, value: Any) -> Any:
        return _id_of(value) if isinstance(value, Mapping) else value


class TombstoneObject(_RemoteModel):
    """Deleted object marker; ``formerType`` tells comments from events."""

    id: str | None = None
    type: str | None = None
    former_type: str | None = None

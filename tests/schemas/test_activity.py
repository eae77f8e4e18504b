import pytest
from pydantic import ValidationError

from cadence_fed.schemas.activity import (
    FollowObject,
    InboundActivity,
    ObjectRef,
    RemoteEvent,
    RemotePerson,
    TypedObject,
    is_event_shaped,
    is_follow_shaped,
    parse_object,
)

ACTOR = "https://remote.example/users/bob"


def test_string_object_becomes_reference():
    obj = parse_object("https://remote.example/events/1")

    assert obj == ObjectRef(url="https://remote.example/events/1")
    assert obj.id == "https://remote.example/events/1"
    assert obj.kind is None


def test_embedded_object_keeps_its_fields():
    obj = parse_object({"id": "https://remote.example/events/1", "type": "Event", "name": "Meetup"})

    assert isinstance(obj, TypedObject)
    assert obj.kind == "Event"
    assert obj.get("name") == "Meetup"


def test_follow_shape_wins_over_id():
    follow = parse_object({"id": "https://x.example/f/1", "type": "Follow", "actor": ACTOR})

    assert is_follow_shaped(follow)
    assert is_event_shaped(follow)
    assert not is_follow_shaped(parse_object("https://x.example/f/1"))


def test_object_without_type_or_id_is_not_event_shaped():
    assert not is_event_shaped(parse_object({"type": "Note"}))
    assert not is_event_shaped(None)


def test_actor_given_as_object_is_reduced_to_its_id():
    activity = InboundActivity.from_payload(
        {"id": "https://remote.example/a/1", "type": "Like", "actor": {"id": ACTOR, "type": "Person"}}
    )

    assert activity.actor == ACTOR
    assert activity.object is None


def test_ownership_of_embedded_activity():
    activity = InboundActivity.from_payload(
        {
            "id": "https://remote.example/a/2",
            "type": "Undo",
            "actor": ACTOR,
            "object": {"type": "Like", "actor": "https://remote.example/users/eve"},
        }
    )

    assert activity.owns(activity.object) is False
    assert activity.owns(TypedObject(kind="Like")) is True


def test_as_payload_returns_original_document():
    raw = {"@context": "ctx", "id": "https://remote.example/a/3", "type": "Follow", "actor": ACTOR, "object": "u"}

    assert InboundActivity.from_payload(raw).as_payload() == raw


def test_inner_object_of_embedded_activity():
    obj = parse_object({"type": "Like", "object": "https://remote.example/events/1"})

    assert obj.inner() == ObjectRef(url="https://remote.example/events/1")


def test_empty_actor_is_invalid():
    with pytest.raises(ValidationError):
        InboundActivity.from_payload({"id": "a", "type": "Like", "actor": ""})


def test_remote_event_accepts_camel_case_and_list_values():
    event = RemoteEvent.model_validate(
        {
            "id": "https://remote.example/events/1",
            "type": "Event",
            "name": "Meetup",
            "startTime": "2026-11-01T18:00:00+00:00",
            "location": [{"type": "Place", "name": "Hall", "address": "Main st"}],
            "attachment": {"type": "Image", "url": "https://remote.example/a.jpg"},
            "url": [{"type": "Link", "href": "https://remote.example/@bob/events/1"}],
            "unknownField": True,
        }
    )

    assert event.location_text == "Hall"
    assert event.header_image == "https://remote.example/a.jpg"
    assert event.url == "https://remote.example/@bob/events/1"


def test_remote_event_requires_start_time():
    with pytest.raises(ValidationError):
        RemoteEvent.model_validate({"id": "https://remote.example/events/1"})


def test_remote_person_exposes_nested_fields():
    person = RemotePerson.model_validate(
        {
            "id": ACTOR,
            "preferredUsername": "bob",
            "icon": "https://remote.example/bob.png",
            "endpoints": {"sharedInbox": "https://remote.example/inbox"},
        }
    )

    assert person.icon_url == "https://remote.example/bob.png"
    assert person.shared_inbox == "https://remote.example/inbox"
    assert person.public_key_pem is None


def test_follow_object_normalizes_references():
    follow = FollowObject.model_validate({"actor": {"id": ACTOR}, "object": "https://cadence.test/users/alice"})

    assert follow.actor == ACTOR
    assert follow.object == "https://cadence.test/users/alice"

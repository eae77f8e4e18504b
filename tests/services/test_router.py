from unittest.mock import AsyncMock

import pytest

from cadence_fed.schemas.activity import InboundActivity, ObjectRef, TypedObject
from cadence_fed.services.attendance import AttendanceProtocolHandler
from cadence_fed.services.content_sync import ContentSyncHandler
from cadence_fed.services.engagement import EngagementHandler
from cadence_fed.services.follow_protocol import FollowProtocolHandler
from cadence_fed.services.router import ActivityRouter

ACTOR = "https://remote.example/users/bob"
LOCAL = "https://cadence.test/users/alice"
EVENT = "https://cadence.test/events/1234"


@pytest.fixture
def handlers():
    return {
        "follows": AsyncMock(spec=FollowProtocolHandler),
        "content": AsyncMock(spec=ContentSyncHandler),
        "engagement": AsyncMock(spec=EngagementHandler),
        "attendance": AsyncMock(spec=AttendanceProtocolHandler),
    }


@pytest.fixture
def router(handlers):
    return ActivityRouter(**handlers)


def activity(type_, obj=None):
    return InboundActivity.from_payload(
        {"id": f"{ACTOR}/activities/{type_}", "type": type_, "actor": ACTOR, "object": obj}
    )


def follow_object():
    return {"id": f"{LOCAL}/follows/1", "type": "Follow", "actor": LOCAL, "object": ACTOR}


@pytest.mark.asyncio
async def test_accept_of_follow_goes_to_follow_protocol(router, handlers):
    # The Follow object carries an id and must still not be treated as an event.
    inbound = activity("Accept", follow_object())

    assert await router.route(None, inbound) is True

    handlers["follows"].on_accept_follow.assert_awaited_once()
    _, _, follow = handlers["follows"].on_accept_follow.await_args.args
    assert isinstance(follow, TypedObject)
    assert follow.kind == "Follow"
    handlers["attendance"].on_accept_event.assert_not_awaited()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "obj",
    [
        EVENT,
        {"id": EVENT, "type": "Event"},
        {"id": EVENT},
    ],
)
async def test_accept_of_event_shapes_goes_to_attendance(router, handlers, obj):
    await router.route(None, activity("Accept", obj))

    handlers["attendance"].on_accept_event.assert_awaited_once()
    handlers["follows"].on_accept_follow.assert_not_awaited()


@pytest.mark.asyncio
async def test_accept_of_unrecognized_object_is_ignored(router, handlers):
    await router.route(None, activity("Accept", {"type": "Note"}))

    handlers["attendance"].on_accept_event.assert_not_awaited()
    handlers["follows"].on_accept_follow.assert_not_awaited()


@pytest.mark.asyncio
async def test_reject_disambiguates_follow_from_event(router, handlers):
    await router.route(None, activity("Reject", follow_object()))
    await router.route(None, activity("Reject", EVENT))

    handlers["follows"].on_reject_follow.assert_awaited_once()
    handlers["attendance"].on_reject.assert_awaited_once()


@pytest.mark.asyncio
async def test_tentative_accept_goes_to_maybe(router, handlers):
    await router.route(None, activity("TentativeAccept", EVENT))

    handlers["attendance"].on_maybe.assert_awaited_once()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("type_", "handler", "method"),
    [
        ("Follow", "follows", "on_follow"),
        ("Create", "content", "on_create"),
        ("Update", "content", "on_update"),
        ("Delete", "content", "on_delete"),
        ("Like", "engagement", "on_like"),
    ],
)
async def test_simple_types_dispatch_to_one_handler(router, handlers, type_, handler, method):
    await router.route(None, activity(type_, EVENT))

    getattr(handlers[handler], method).assert_awaited_once()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("inner_type", "handler", "method"),
    [
        ("Like", "engagement", "on_undo_like"),
        ("Follow", "follows", "on_undo_follow"),
        ("Accept", "attendance", "on_undo_attendance"),
        ("TentativeAccept", "attendance", "on_undo_attendance"),
        ("Reject", "attendance", "on_undo_attendance"),
    ],
)
async def test_undo_dispatches_on_inner_type(router, handlers, inner_type, handler, method):
    inner = {"id": f"{ACTOR}/activities/inner", "type": inner_type, "actor": ACTOR, "object": EVENT}

    await router.route(None, activity("Undo", inner))

    getattr(handlers[handler], method).assert_awaited_once()


@pytest.mark.asyncio
async def test_undo_of_a_bare_url_is_ignored(router, handlers):
    assert await router.route(None, activity("Undo", f"{ACTOR}/activities/9")) is True

    for mock in handlers.values():
        assert not any(method.await_count for method in _async_methods(mock))


@pytest.mark.asyncio
@pytest.mark.parametrize("type_", ["Arrive", "Move", "Announce"])
async def test_unknown_and_reserved_types_touch_no_handler(router, handlers, type_):
    await router.route(None, activity(type_, EVENT))

    for mock in handlers.values():
        assert not any(method.await_count for method in _async_methods(mock))


@pytest.mark.asyncio
async def test_route_reports_unknown_types(router):
    assert await router.route(None, activity("Arrive", EVENT)) is False
    assert await router.route(None, activity("Announce", EVENT)) is True


def test_object_is_parsed_into_tagged_union():
    assert isinstance(activity("Like", EVENT).object, ObjectRef)
    assert isinstance(activity("Like", {"id": EVENT, "type": "Event"}).object, TypedObject)


def _async_methods(mock):
    names = [
        "on_follow", "on_accept_follow", "on_reject_follow", "on_undo_follow",
        "on_create", "on_update", "on_delete",
        "on_like", "on_undo_like",
        "on_accept_event", "on_maybe", "on_reject", "on_undo_attendance",
    ]
    return [getattr(mock, name) for name in names if hasattr(mock, name)]

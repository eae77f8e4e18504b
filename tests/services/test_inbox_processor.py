from unittest.mock import AsyncMock

import pytest

from cadence_fed.models import EventLike, Follower, ProcessedActivity, User
from cadence_fed.services.delivery import HttpDeliveryGateway
from cadence_fed.services.inbox import InboxProcessor, ProcessingOutcome
from cadence_fed.services.notifications import BroadcastEvent


@pytest.mark.asyncio
async def test_redelivered_activity_has_effect_once(
    db_session, processor, fediverse, broadcaster, activities, make_remote_event
):
    bob = fediverse.add_actor("bob")
    carol = fediverse.add_actor("carol")
    event = make_remote_event(bob)
    like = activities.make("Like", carol, event.external_id)

    first = await processor.handle_activity(db_session, like)
    second = await processor.handle_activity(db_session, dict(like))

    assert first is ProcessingOutcome.PROCESSED
    assert second is ProcessingOutcome.DUPLICATE
    assert db_session.query(EventLike).count() == 1
    assert len(broadcaster.of_kind(BroadcastEvent.LIKE_ADDED)) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"type": "Like", "actor": "https://remote.example/users/bob"},
        {"id": "https://remote.example/a/1", "actor": "https://remote.example/users/bob"},
        {"id": "https://remote.example/a/1", "type": "Like"},
        {"id": "https://remote.example/a/1", "type": "Like", "actor": "x", "object": 7},
    ],
)
async def test_malformed_payload_is_rejected_before_the_ledger(db_session, processor, payload):
    outcome = await processor.handle_activity(db_session, payload)

    assert outcome is ProcessingOutcome.INVALID
    assert db_session.query(ProcessedActivity).count() == 0


@pytest.mark.asyncio
async def test_unknown_type_is_recorded_and_ignored(
    db_session, processor, fediverse, broadcaster, activities
):
    bob = fediverse.add_actor("bob")
    arrive = activities.make("Arrive", bob, "https://remote.example/places/1")

    outcome = await processor.handle_activity(db_session, arrive)

    assert outcome is ProcessingOutcome.IGNORED
    assert db_session.get(ProcessedActivity, arrive["id"]) is not None
    assert db_session.query(User).count() == 0
    assert broadcaster.sent == []
    assert fediverse.requests == []


@pytest.mark.asyncio
async def test_handler_fault_keeps_ledger_row(db_session, processor, activities, mocker):
    mocker.patch.object(processor.router, "route", side_effect=RuntimeError("boom"))
    like = activities.make("Like", "https://remote.example/users/bob", "https://remote.example/e/1")

    first = await processor.handle_activity(db_session, like)
    second = await processor.handle_activity(db_session, like)

    assert first is ProcessingOutcome.FAILED
    assert second is ProcessingOutcome.DUPLICATE
    assert db_session.get(ProcessedActivity, like["id"]) is not None


@pytest.mark.asyncio
async def test_handler_fault_rolls_back_partial_writes(db_session, processor, activities, mocker):
    async def _partial_write(db, activity):
        db.add(User(username="half-written", is_remote=True))
        db.flush()
        raise RuntimeError("storage went away")

    mocker.patch.object(processor.router, "route", side_effect=_partial_write)
    like = activities.make("Like", "https://remote.example/users/bob", "https://remote.example/e/1")

    outcome = await processor.handle_activity(db_session, like)

    assert outcome is ProcessingOutcome.FAILED
    assert db_session.query(User).filter(User.username == "half-written").count() == 0
    assert db_session.query(ProcessedActivity).count() == 1


@pytest.mark.asyncio
async def test_injected_delivery_gateway_receives_accept(
    db_session, http_client, fediverse, broadcaster, activities, make_local_user
):
    gateway = AsyncMock(spec=HttpDeliveryGateway)
    gateway.deliver.return_value = True
    processor = InboxProcessor.build(client=http_client, notifier=broadcaster, delivery=gateway)
    alice = make_local_user("alice")
    bob = fediverse.add_actor("bob")

    await processor.handle_activity(db_session, activities.follow(bob, "alice"))

    gateway.deliver.assert_awaited_once()
    accept, inbox, sender = gateway.deliver.await_args.args
    assert accept["type"] == "Accept"
    assert inbox == "https://remote.example/inbox"
    assert sender.id == alice.id
    assert db_session.query(Follower).count() == 1
    assert fediverse.deliveries == []


@pytest.mark.asyncio
async def test_close_releases_only_owned_clients(http_client, broadcaster):
    gateway = AsyncMock(spec=HttpDeliveryGateway)
    processor = InboxProcessor.build(client=http_client, notifier=broadcaster, delivery=gateway)

    await processor.close()

    gateway.close.assert_not_awaited()
    assert not http_client.is_closed

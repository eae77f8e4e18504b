from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from cadence_fed.api.v1.endpoints.inbox import get_session_factory
from cadence_fed.db.session import get_db
from cadence_fed.main import app
from cadence_fed.models import Follower, ProcessedActivity
from cadence_fed.services.inbox import get_inbox_processor


@pytest.fixture
def client(db_session, session_factory, processor) -> Iterator[TestClient]:
    def _get_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_inbox_processor] = lambda: processor
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_user_inbox_accepts_and_processes_follow(
    client, db_session, fediverse, activities, make_local_user
):
    make_local_user("alice")
    bob = fediverse.add_actor("bob")

    response = client.post(
        "/users/alice/inbox",
        json=activities.follow(bob, "alice"),
        headers={"Content-Type": "application/activity+json"},
    )

    assert response.status_code == 202
    assert response.json() == {"status": "accepted"}
    db_session.expire_all()
    assert db_session.query(Follower).count() == 1
    assert [body["type"] for _, body in fediverse.deliveries] == ["Accept"]


def test_user_inbox_for_unknown_user_is_404(client, fediverse, activities):
    bob = fediverse.add_actor("bob")

    response = client.post("/users/nobody/inbox", json=activities.follow(bob, "nobody"))

    assert response.status_code == 404


def test_shared_inbox_accepts_unknown_types(client, db_session, activities):
    arrive = activities.make("Arrive", "https://remote.example/users/bob", "https://remote.example/p/1")

    response = client.post("/inbox", json=arrive)

    assert response.status_code == 202
    db_session.expire_all()
    assert db_session.get(ProcessedActivity, arrive["id"]) is not None


@pytest.mark.parametrize(
    "body",
    [
        b"not json",
        b"[1, 2, 3]",
        b'{"type": "Like", "actor": "https://remote.example/users/bob"}',
    ],
)
def test_shared_inbox_rejects_malformed_bodies(client, db_session, body):
    response = client.post("/inbox", content=body, headers={"Content-Type": "application/json"})

    assert response.status_code == 400
    assert db_session.query(ProcessedActivity).count() == 0

# tests/conftest.py
from __future__ import annotations

import json
import os
from collections.abc import Iterator
from datetime import UTC, datetime
from itertools import count
from typing import Any

import httpx
import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("BASE_URL", "https://cadence.test")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from cadence_fed.core.constants import ACTIVITYSTREAMS_CONTEXT
from cadence_fed.core.settings import settings
from cadence_fed.db.session import Base
from cadence_fed.models import Event, User
from cadence_fed.services.actors import ActorResolver
from cadence_fed.services.delivery import HttpDeliveryGateway
from cadence_fed.services.inbox import InboxProcessor
from cadence_fed.services.notifications import InMemoryBroadcaster

REMOTE = "https://remote.example"
TEST_DB_URL = "sqlite://"
START_TIME = datetime(2026, 11, 1, 18, 0, tzinfo=UTC)


class FakeFediverse:
    """Remote instances reachable through ``httpx.MockTransport``."""

    def __init__(self) -> None:
        self.actors: dict[str, dict[str, Any]] = {}
        self.follower_counts: dict[str, int] = {}
        self.deliveries: list[tuple[str, dict[str, Any]]] = []
        self.requests: list[httpx.Request] = []
        self.reject_deliveries = False

    def add_actor(self, handle: str, **fields: Any) -> str:
        url = f"{REMOTE}/users/{handle}"
        document: dict[str, Any] = {
            "@context": [ACTIVITYSTREAMS_CONTEXT],
            "id": url,
            "type": "Person",
            "preferredUsername": handle,
            "name": handle.title(),
            "summary": f"{handle} on remote.example",
            "inbox": f"{url}/inbox",
            "outbox": f"{url}/outbox",
            "followers": f"{url}/followers",
            "endpoints": {"sharedInbox": f"{REMOTE}/inbox"},
            "icon": {"type": "Image", "url": f"{REMOTE}/media/{handle}.png"},
            "publicKey": {
                "id": f"{url}#main-key",
                "owner": url,
                "publicKeyPem": "-----BEGIN PUBLIC KEY-----\nMIIB\n-----END PUBLIC KEY-----",
            },
        }
        document.update(fields)
        self.actors[url] = document
        return url

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)

        if request.method == "POST":
            if self.reject_deliveries:
                return httpx.Response(500)
            self.deliveries.append((url, json.loads(request.content)))
            return httpx.Response(202)

        if url in self.actors:
            return httpx.Response(200, json=self.actors[url])
        if url.endswith("/followers"):
            actor_url = url[: -len("/followers")]
            if actor_url in self.follower_counts:
                return httpx.Response(
                    200,
                    json={"type": "OrderedCollection", "totalItems": self.follower_counts[actor_url]},
                )
        return httpx.Response(404)

    def fetches_of(self, url: str) -> int:
        return sum(1 for request in self.requests if request.method == "GET" and str(request.url) == url)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


class ActivityFactory:
    """Builds inbound activity payloads with unique ids."""

    def __init__(self) -> None:
        self._ids = count(1)

    def next_id(self, actor: str) -> str:
        return f"{actor}/activities/{next(self._ids)}"

    def make(self, type_: str, actor: str, obj: Any = None, **extra: Any) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "@context": ACTIVITYSTREAMS_CONTEXT,
            "id": self.next_id(actor),
            "type": type_,
            "actor": actor,
        }
        if obj is not None:
            payload["object"] = obj
        payload.update(extra)
        return payload

    def follow(self, actor: str, username: str) -> dict[str, Any]:
        return self.make("Follow", actor, local_actor(username))

    def undo(self, actor: str, inner: dict[str, Any]) -> dict[str, Any]:
        embedded = {key: value for key, value in inner.items() if key != "@context"}
        return self.make("Undo", actor, embedded)

    def event(self, actor: str, slug: str = "meetup", **fields: Any) -> dict[str, Any]:
        event = {
            "id": f"{REMOTE}/events/{slug}",
            "type": "Event",
            "name": "Remote meetup",
            "summary": "Monthly meetup",
            "startTime": "2026-11-01T18:00:00Z",
            "endTime": "2026-11-01T20:00:00Z",
            "location": {"type": "Place", "name": "Community hall"},
            "attributedTo": actor,
        }
        event.update(fields)
        return event


def local_actor(username: str) -> str:
    return f"{settings.normalized_base_url}/users/{username}"


@pytest.fixture()
def engine() -> Iterator[Engine]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def db_session(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def fediverse() -> FakeFediverse:
    return FakeFediverse()


@pytest.fixture()
def http_client(fediverse: FakeFediverse) -> httpx.AsyncClient:
    return fediverse.client()


@pytest.fixture()
def broadcaster() -> InMemoryBroadcaster:
    return InMemoryBroadcaster()


@pytest.fixture()
def resolver(http_client: httpx.AsyncClient) -> ActorResolver:
    return ActorResolver(http_client, cache_ttl_seconds=3600)


@pytest.fixture()
def gateway(http_client: httpx.AsyncClient) -> HttpDeliveryGateway:
    return HttpDeliveryGateway(http_client)


@pytest.fixture()
def processor(http_client: httpx.AsyncClient, broadcaster: InMemoryBroadcaster) -> InboxProcessor:
    return InboxProcessor.build(client=http_client, notifier=broadcaster)


@pytest.fixture()
def activities() -> ActivityFactory:
    return ActivityFactory()


@pytest.fixture()
def make_local_user(db_session: Session):
    def _make(username: str = "alice", auto_accept: bool | None = None) -> User:
        user = User(username=username, name=username.title(), auto_accept_followers=auto_accept)
        db_session.add(user)
        db_session.commit()
        return user

    return _make


@pytest.fixture()
def make_remote_event(db_session: Session):
    def _make(organizer: str, slug: str = "meetup") -> Event:
        event = Event(
            external_id=f"{REMOTE}/events/{slug}",
            title="Remote meetup",
            start_time=START_TIME,
            attributed_to=organizer,
        )
        db_session.add(event)
        db_session.commit()
        return event

    return _make

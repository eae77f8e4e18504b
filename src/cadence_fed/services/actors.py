"""Remote actor resolution and caching.

Remote actors are mirrored as ``User`` rows with ``is_remote = True`` keyed by
their canonical actor URL. ``ActorResolver.resolve`` is the single
fetch-or-return-cached entry point used by the inbox handlers.
"""

from __future__ import annotations

import logging
from datetime import timedelta

import httpx
from pydantic import ValidationError
from sqlalchemy.orm import Session

from cadence_fed.core.settings import settings
from cadence_fed.db.time import as_utc, utcnow
from cadence_fed.models import User
from cadence_fed.schemas.activity import RemotePerson
from cadence_fed.services.http import ActorFetchError, FederationHttp
from cadence_fed.utils.urls import hostname, trailing_segment

# Configure logger for this module
logger = logging.getLogger(__name__)


class ActorResolver:
    """Fetches remote actor documents and keeps the local mirror current."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        cache_ttl_seconds: int | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            client: Optional HTTP client. If None, one is created on first use.
            cache_ttl_seconds: How long a cached actor is served without a
                refetch. Defaults to ``settings.actor_cache_ttl_seconds``.
        """
        self.http = FederationHttp(client)
        self.cache_ttl_seconds = (
            settings.actor_cache_ttl_seconds if cache_ttl_seconds is None else cache_ttl_seconds
        )

    async def fetch_actor(self, actor_url: str) -> RemotePerson | None:
        """Fetch and validate an actor document, or return None."""
        try:
            payload = await self.http.get_json(actor_url)
        except ActorFetchError as exc:
            logger.warning("Error fetching actor %s: %s", actor_url, exc)
            return None

        try:
            person = RemotePerson.model_validate(payload)
        except ValidationError as exc:
            logger.warning("Actor document at %s is malformed: %s", actor_url, exc)
            return None

        if person.id != actor_url:
            logger.warning("Actor document id %s does not match %s", person.id, actor_url)
            return None
        return person

    def find_cached(self, db: Session, actor_url: str) -> User | None:
        """Return the cached remote user for ``actor_url`` without fetching."""
        return db.query(User).filter(User.external_actor_url == actor_url).first()

    async def resolve(self, db: Session, actor_url: str) -> User | None:
        """Return a mirrored user for ``actor_url``, fetching when stale or unseen."""
        cached = self.find_cached(db, actor_url)
        if cached is not None and self._is_fresh(cached):
            return cached

        person = await self.fetch_actor(actor_url)
        if person is None:
            if cached is not None:
                logger.info("Serving stale cached actor %s", actor_url)
            return cached

        return self.cache_remote_user(db, person)

    def cache_remote_user(self, db: Session, person: RemotePerson) -> User:
        """Insert or refresh the mirrored ``User`` row for ``person``."""
        user = self.find_cached(db, person.id)
        handle = person.preferred_username or trailing_segment(person.id)
        if user is None:
            user = User(
                username=f"{handle}@{hostname(person.id)}",
                external_actor_url=person.id,
                is_remote=True,
            )
            db.add(user)
            logger.info("Caching new remote actor %s", person.id)

        user.name = person.name or handle
        user.inbox_url = person.inbox
        user.shared_inbox_url = person.shared_inbox
        user.public_key_pem = person.public_key_pem
        apply_profile(user, person)
        user.actor_fetched_at = utcnow()
        db.flush()
        return user

    async def fetch_remote_follower_count(self, actor_url: str) -> int | None:
        """Read ``totalItems`` from the actor's followers collection.

        Raises:
            ActorFetchError: If the collection cannot be retrieved.
        """
        collection = await self.http.get_json(f"{actor_url.rstrip('/')}/followers")
        total = collection.get("totalItems")
        if total is None:
            return None
        try:
            return int(total)
        except (TypeError, ValueError):
            logger.warning("Followers collection of %s has invalid totalItems %r", actor_url, total)
            return None

    async def close(self) -> None:
        await self.http.close()

    def _is_fresh(self, user: User) -> bool:
        if user.actor_fetched_at is None or self.cache_ttl_seconds <= 0:
            return False
        age = utcnow() - as_utc(user.actor_fetched_at)
        return age < timedelta(seconds=self.cache_ttl_seconds)


def apply_profile(user: User, person: RemotePerson) -> None:
    """Copy display fields from an actor document onto the cached user."""
    user.name = person.name or user.name
    user.bio = person.summary
    user.profile_image = person.icon_url
    user.header_image = person.image_url
    user.display_color = person.display_color or settings.default_display_color

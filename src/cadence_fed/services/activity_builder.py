"""Construction of outbound activities sent in reaction to inbound ones."""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from typing import Any

from cadence_fed.core.constants import ACTIVITYPUB_CONTEXTS, ActivityType
from cadence_fed.core.settings import settings
from cadence_fed.db.time import utcnow
from cadence_fed.models import User


def local_actor_url(user: User) -> str:
    """Return the actor URL of a local user."""
    return f"{settings.normalized_base_url}/users/{user.username}"


def follow_reference(
    follow_activity_id: str | None,
    follower_actor_url: str,
    followed: User,
) -> dict[str, Any]:
    """Rebuild the Follow a remote actor sent to ``followed``."""
    follow: dict[str, Any] = {
        "type": ActivityType.FOLLOW.value,
        "actor": follower_actor_url,
        "object": local_actor_url(followed),
    }
    if follow_activity_id:
        follow["id"] = follow_activity_id
    return follow


def _build_response(
    kind: ActivityType,
    user: User,
    follow: Mapping[str, Any] | str,
    path: str,
) -> dict[str, Any]:
    actor_url = local_actor_url(user)
    return {
        "@context": list(ACTIVITYPUB_CONTEXTS),
        "id": f"{actor_url}/{path}/{uuid.uuid4()}",
        "type": kind.value,
        "actor": actor_url,
        "object": follow if isinstance(follow, str) else dict(follow),
        "published": utcnow().isoformat().replace("+00:00", "Z"),
    }


def build_accept_activity(user: User, follow: Mapping[str, Any] | str) -> dict[str, Any]:
    """Build an Accept(Follow) from ``user`` echoing the original Follow."""
    return _build_response(ActivityType.ACCEPT, user, follow, "accepts")


def build_reject_activity(user: User, follow: Mapping[str, Any] | str) -> dict[str, Any]:
    """Build a Reject(Follow) from ``user``."""
    return _build_response(ActivityType.REJECT, user, follow, "rejects")

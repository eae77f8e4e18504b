"""Outbound delivery of locally generated activities to remote inboxes."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Protocol

import httpx

from cadence_fed.models import User
from cadence_fed.services.http import DeliveryError, FederationHttp

# Configure logger for this module
logger = logging.getLogger(__name__)


class DeliveryGateway(Protocol):
    """Capability to push an activity to a remote inbox on behalf of a local user."""

    async def deliver(
        self,
        activity: Mapping[str, Any],
        inbox_url: str,
        sender: User,
    ) -> bool: ...


class HttpDeliveryGateway:
    """Delivers activities with a plain HTTP POST.

    Request signing and transport-level retries belong to the HTTP client
    handed in by the host application.
    """

    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        self.http = FederationHttp(client)

    async def deliver(
        self,
        activity: Mapping[str, Any],
        inbox_url: str,
        sender: User,
    ) -> bool:
        """POST ``activity`` to ``inbox_url``; return True when accepted."""
        try:
            await self.http.post_activity(inbox_url, dict(activity))
        except DeliveryError as exc:
            logger.error(
                "Failed to deliver %s from %s to %s: %s",
                activity.get("type"),
                sender.username,
                inbox_url,
                exc,
            )
            return False

        logger.info("Delivered %s to %s", activity.get("type"), inbox_url)
        return True

    async def close(self) -> None:
        await self.http.close()

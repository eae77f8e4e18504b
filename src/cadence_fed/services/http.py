"""Shared HTTP plumbing for talking to remote instances.

Actor fetches, collection lookups and inbox delivery all go through an
``httpx.AsyncClient`` configured here. Signing is applied by the transport
collaborator, not by this module.
"""

from __future__ import annotations

import asyncio
from typing import Any

import httpx

from cadence_fed.core.constants import ContentType
from cadence_fed.core.settings import settings
from cadence_fed.utils.urls import is_url_safe

HTTP_OK = 200
HTTP_MULTIPLE_CHOICES = 300


class FederationError(RuntimeError):
    """Base exception raised for federation transport failures."""


class ActorFetchError(FederationError):
    """Raised when a remote actor or collection cannot be retrieved."""


class DeliveryError(FederationError):
    """Raised when an outbound activity is not accepted by a remote inbox."""


def build_federation_client(timeout_seconds: float | None = None) -> httpx.AsyncClient:
    """Create an ``AsyncClient`` with federation defaults."""
    timeout = (
        settings.federation_http_timeout_seconds if timeout_seconds is None else timeout_seconds
    )
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout),
        follow_redirects=True,
        headers={"User-Agent": settings.federation_user_agent},
    )


class FederationHttp:
    """Lazily constructed, optionally injected ``httpx.AsyncClient`` holder."""

    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        self._client = client
        self._owns_client = client is None
        self._client_lock = asyncio.Lock()

    async def client(self) -> httpx.AsyncClient:
        async with self._client_lock:
            if self._client is None:
                self._client = build_federation_client()
        return self._client

    async def get_json(self, url: str) -> dict[str, Any]:
        """GET an ActivityStreams document, raising ``ActorFetchError`` on failure."""
        if not is_url_safe(url):
            raise ActorFetchError(f"Refusing to fetch unsafe URL {url}")
        client = await self.client()
        try:
            response = await client.get(url, headers={"Accept": ContentType.ACTIVITY_JSON})
        except httpx.HTTPError as exc:
            raise ActorFetchError(f"GET {url} failed: {exc}") from exc

        if not HTTP_OK <= response.status_code < HTTP_MULTIPLE_CHOICES:
            raise ActorFetchError(f"GET {url} responded with {response.status_code}")
        try:
            payload = response.json()
        except ValueError as exc:
            raise ActorFetchError(f"GET {url} returned invalid JSON") from exc
        if not isinstance(payload, dict):
            raise ActorFetchError(f"GET {url} returned a non-object document")
        return payload

    async def post_activity(self, url: str, activity: dict[str, Any]) -> httpx.Response:
        """POST an activity, raising ``DeliveryError`` for transport or HTTP errors."""
        if not is_url_safe(url):
            raise DeliveryError(f"Refusing to deliver to unsafe URL {url}")
        client = await self.client()
        try:
            response = await client.post(
                url,
                json=activity,
                headers={
                    "Content-Type": ContentType.ACTIVITY_JSON,
                    "Accept": ContentType.ACTIVITY_JSON,
                },
            )
        except httpx.HTTPError as exc:
            raise DeliveryError(f"POST {url} failed: {exc}") from exc

        if not HTTP_OK <= response.status_code < HTTP_MULTIPLE_CHOICES:
            raise DeliveryError(f"POST {url} responded with {response.status_code}")
        return response

    async def close(self) -> None:
        """Close the underlying client if this holder created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

# src/cadence_fed/utils/urls.py
"""Helpers for classifying federation URLs."""

from __future__ import annotations

import ipaddress
from urllib.parse import urlsplit

from cadence_fed.core.settings import settings


def trailing_segment(url: str) -> str:
    """Return the last non-empty path segment of ``url``.

    Bare identifiers (no slash) are returned unchanged.
    """
    path = urlsplit(url).path if "://" in url else url
    segments = [segment for segment in path.split("/") if segment]
    return segments[-1] if segments else ""


def is_local_url(url: str, base_url: str | None = None) -> bool:
    """Return True when ``url`` lives under this instance's origin."""
    base = urlsplit((base_url or settings.base_url).rstrip("/"))
    candidate = urlsplit(url)
    if (candidate.scheme, candidate.netloc) != (base.scheme, base.netloc):
        return False
    return candidate.path == base.path or candidate.path.startswith(base.path + "/")


def local_username(url: str | None, base_url: str | None = None) -> str | None:
    """Extract the username from a local actor URL such as ``{base}/users/alice``."""
    if not url or not is_local_url(url, base_url):
        return None
    username = trailing_segment(url).lstrip("@")
    return username or None


def hostname(url: str) -> str:
    """Return the host (with non-default port) of ``url``."""
    return urlsplit(url).netloc


_ALLOWED_SCHEMES = ("http", "https")


def is_url_safe(url: str, allow_private: bool | None = None) -> bool:
    """Return True when ``url`` may be fetched or posted to.

    Only http(s) is allowed. Loopback, private, link-local and other
    non-public addresses are refused, as are ``localhost`` and ``*.local``
    names, unless ``allow_private`` (default ``FEDERATION_ALLOW_PRIVATE_HOSTS``)
    is set for local development.
    """
    if allow_private is None:
        allow_private = settings.federation_allow_private_hosts
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    if parts.scheme not in _ALLOWED_SCHEMES or not parts.hostname:
        return False
    if allow_private:
        return True

    host = parts.hostname.rstrip(".")
    if host == "localhost" or host.endswith((".localhost", ".local")):
        return False
    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        return True
    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped is not None:
        address = address.ipv4_mapped
    return address.is_global and not address.is_multicast

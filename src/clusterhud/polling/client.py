"""HTTP transport for the cluster status endpoint."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.parse import urlparse
from urllib.request import Request, urlopen

from clusterhud.contracts.error import PolicyError, TransportError
from clusterhud.metrics.constants import AUTH_HEADER, JSON_CONTENT_TYPE, TOKEN_ENV_VAR
from clusterhud.metrics.snapshot import MetricsSnapshot

logger = logging.getLogger(__name__)

_CLIENT_USER_AGENT = "ClusterHUD/1.0"
_MAX_RESPONSE_BYTES = 1024 * 1024  # the status document is a few hundred bytes
ALLOWED_ENDPOINT_SCHEMES = {"http", "https"}


def validated_endpoint(endpoint: str) -> str:
    parsed = urlparse(endpoint)
    if parsed.scheme.lower() not in ALLOWED_ENDPOINT_SCHEMES:
        raise PolicyError(
            f"Unsupported endpoint scheme '{parsed.scheme}' (allowed: http, https)",
            hint="Pass a full URL such as http://coordinator:8080/v1/cluster",
        )
    if not parsed.netloc:
        raise PolicyError("Endpoint must include a host")
    return endpoint


def _content_type_allows_json(content_type: str) -> bool:
    """Return ``True`` if the response ``Content-Type`` is JSON or plain text."""

    if not content_type:
        return True
    lowered = content_type.lower()
    return "json" in lowered or lowered.startswith("text/")


def _build_headers(accept: str) -> dict[str, str]:
    headers = {"Accept": accept, "User-Agent": _CLIENT_USER_AGENT}
    token = os.getenv(TOKEN_ENV_VAR)
    if token:
        headers[AUTH_HEADER] = f"Bearer {token}"
    return headers


def fetch_cluster_status(endpoint: str, timeout: float = 5.0) -> dict[str, Any] | None:
    """Return the decoded cluster status document or ``None`` on any failure."""

    request = Request(endpoint, headers=_build_headers(JSON_CONTENT_TYPE))  # noqa: S310
    try:
        with urlopen(request, timeout=timeout) as response:  # nosec B310  # noqa: S310
            headers = getattr(response, "headers", None)
            content_type = headers.get("Content-Type", "") if headers is not None else ""
            if not _content_type_allows_json(content_type or ""):
                logger.debug("Rejecting %s response from %s", content_type, endpoint)
                return None
            payload = response.read(_MAX_RESPONSE_BYTES + 1)
            charset = headers.get_content_charset() if headers is not None else None
    except (HTTPError, URLError, TimeoutError, ConnectionError, OSError) as exc:
        logger.debug("Network fetch failed: %s", exc)
        return None
    if not isinstance(payload, bytes | bytearray) or len(payload) > _MAX_RESPONSE_BYTES:
        return None
    try:
        data = json.loads(bytes(payload).decode(charset or "utf-8"))
    except (UnicodeDecodeError, LookupError, json.JSONDecodeError):
        return None
    return data if isinstance(data, dict) else None


class ClusterStatusClient:
    """Async facade over :func:`fetch_cluster_status` for the poll loop."""

    def __init__(self, endpoint: str, timeout: float = 5.0) -> None:
        self.endpoint = validated_endpoint(endpoint)
        self.timeout = timeout

    async def fetch(self) -> MetricsSnapshot:
        """Fetch and parse one snapshot.

        The urllib call cannot be interrupted. When this coroutine is cancelled
        (a scheduler timeout, for instance) it still waits for the worker
        thread to return before propagating, so the caller never starts a new
        request while the previous one is outstanding.
        """

        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(None, fetch_cluster_status, self.endpoint, self.timeout)
        try:
            payload = await asyncio.shield(future)
        except asyncio.CancelledError:
            await asyncio.wait({future})
            raise
        if payload is None:
            raise TransportError(f"No cluster status from {self.endpoint}")
        return MetricsSnapshot.from_payload(payload)


__all__ = [
    "ALLOWED_ENDPOINT_SCHEMES",
    "ClusterStatusClient",
    "fetch_cluster_status",
    "validated_endpoint",
]

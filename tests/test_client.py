from __future__ import annotations

import asyncio
import json
import threading
import time
from email.message import Message
from typing import Any
from unittest.mock import MagicMock, patch
from urllib.error import URLError

import pytest

from clusterhud.contracts.error import PolicyError, SnapshotParseError, TransportError
from clusterhud.polling import client
from clusterhud.polling.client import (
    ClusterStatusClient,
    fetch_cluster_status,
    validated_endpoint,
)
from clusterhud.polling.scheduler import PollScheduler


class DummyResponse:
    def __init__(self, payload: bytes, content_type: str = "application/json") -> None:
        self._payload = payload
        self.headers = Message()
        self.headers["Content-Type"] = content_type

    def __enter__(self) -> "DummyResponse":
        return self

    def __exit__(self, *_: Any) -> None:
        return None

    def read(self, size: int = -1) -> bytes:
        return self._payload if size < 0 else self._payload[:size]


def _respond(payload: bytes, content_type: str = "application/json") -> MagicMock:
    return MagicMock(return_value=DummyResponse(payload, content_type))


def test_fetch_decodes_json_document(base_payload: dict) -> None:
    body = json.dumps(base_payload).encode("utf-8")
    with patch("clusterhud.polling.client.urlopen", _respond(body)):
        assert fetch_cluster_status("http://example.com/v1/cluster") == base_payload


@pytest.mark.parametrize(
    ("body", "content_type"),
    [
        (b"not json", "application/json"),
        (b"[1, 2]", "application/json"),
        (b"{}", "image/png"),
    ],
)
def test_fetch_returns_none_on_bad_payload(body: bytes, content_type: str) -> None:
    with patch("clusterhud.polling.client.urlopen", _respond(body, content_type)):
        assert fetch_cluster_status("http://example.com/v1/cluster") is None


def test_fetch_returns_none_on_network_error() -> None:
    with patch("clusterhud.polling.client.urlopen", MagicMock(side_effect=URLError("down"))):
        assert fetch_cluster_status("http://example.com/v1/cluster") is None


def test_oversized_body_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(client, "_MAX_RESPONSE_BYTES", 8)
    with patch("clusterhud.polling.client.urlopen", _respond(b'{"a": "0123456789"}')):
        assert fetch_cluster_status("http://example.com/v1/cluster") is None


def test_bearer_token_is_sent(monkeypatch: pytest.MonkeyPatch, base_payload: dict) -> None:
    monkeypatch.setenv("CLUSTERHUD_TOKEN", "s3cret")
    opener = _respond(json.dumps(base_payload).encode("utf-8"))
    with patch("clusterhud.polling.client.urlopen", opener):
        fetch_cluster_status("http://example.com/v1/cluster")
    request = opener.call_args.args[0]
    assert request.get_header("Authorization") == "Bearer s3cret"


@pytest.mark.parametrize("endpoint", ["file:///etc/passwd", "ftp://host/x", "http://"])
def test_validated_endpoint_rejects_non_http(endpoint: str) -> None:
    with pytest.raises(PolicyError):
        validated_endpoint(endpoint)


def test_client_fetch_returns_snapshot(base_payload: dict) -> None:
    body = json.dumps(base_payload).encode("utf-8")
    with patch("clusterhud.polling.client.urlopen", _respond(body)):
        snapshot = asyncio.run(ClusterStatusClient("http://example.com/v1/cluster").fetch())
    assert snapshot.running_queries == 3


def test_client_fetch_raises_transport_error_when_unreachable() -> None:
    with patch("clusterhud.polling.client.urlopen", MagicMock(side_effect=URLError("down"))):
        with pytest.raises(TransportError):
            asyncio.run(ClusterStatusClient("http://example.com/v1/cluster").fetch())


def test_client_fetch_raises_parse_error_on_contract_mismatch() -> None:
    with patch("clusterhud.polling.client.urlopen", _respond(b'{"runningQueries": 1}')):
        with pytest.raises(SnapshotParseError):
            asyncio.run(ClusterStatusClient("http://example.com/v1/cluster").fetch())


def test_timed_out_fetch_holds_the_slot_until_urlopen_returns(base_payload: dict) -> None:
    body = json.dumps(base_payload).encode("utf-8")
    lock = threading.Lock()
    state = {"inflight": 0, "peak": 0}

    def slow_urlopen(*_args: Any, **_kwargs: Any) -> DummyResponse:
        with lock:
            state["inflight"] += 1
            state["peak"] = max(state["peak"], state["inflight"])
        time.sleep(0.2)
        with lock:
            state["inflight"] -= 1
        return DummyResponse(body)

    async def scenario() -> PollScheduler:
        fetch = ClusterStatusClient("http://example.com/v1/cluster").fetch
        scheduler = PollScheduler(fetch, interval_ms=10, timeout_s=0.05)
        scheduler.start()
        deadline = time.monotonic() + 5
        while scheduler.polls_failed < 2 and time.monotonic() < deadline:
            await asyncio.sleep(0.01)
        scheduler.stop()
        return scheduler

    with patch("clusterhud.polling.client.urlopen", slow_urlopen):
        scheduler = asyncio.run(scenario())
    assert state["peak"] == 1
    assert scheduler.polls_failed >= 2
    assert isinstance(scheduler.last_error, TimeoutError)

"""Trailing, failure-tolerant poll loop that feeds the aggregation store."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from enum import Enum

from clusterhud.contracts.error import InvariantError, PolicyError
from clusterhud.metrics.aggregate import ClusterHistory, apply_snapshot
from clusterhud.metrics.constants import DEFAULT_FETCH_TIMEOUT_S, DEFAULT_POLL_INTERVAL_MS
from clusterhud.metrics.snapshot import MetricsSnapshot

logger = logging.getLogger(__name__)

Fetcher = Callable[[], Awaitable[MetricsSnapshot]]
UpdateSink = Callable[[ClusterHistory], None]
Clock = Callable[[], float]


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class PollPhase(Enum):
    IDLE = "idle"
    WAITING = "waiting"


class CancellationToken:
    """One-way flag shared between a scheduler and whoever tears it down."""

    __slots__ = ("_cancelled",)

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


class PollScheduler:
    """Fetch, fold, wait, repeat.

    The scheduler is ``IDLE`` before :meth:`start` and after :meth:`stop`, and
    ``WAITING`` otherwise (either a fetch is in flight or the continuation timer
    is pending). The next fetch is scheduled only once the previous one has
    completed, so at most one request is ever outstanding. Failures leave the
    history untouched and are retried after the same delay, forever.

    A snapshot that arrives after :meth:`stop` is discarded.

    On timeout the fetch is cancelled and awaited before the next one is
    scheduled. A fetcher backed by a worker thread must not settle until that
    thread has returned; :class:`~clusterhud.polling.client.ClusterStatusClient`
    does this.
    """

    def __init__(
        self,
        fetch: Fetcher,
        on_update: UpdateSink | None = None,
        *,
        history: ClusterHistory | None = None,
        interval_ms: float = DEFAULT_POLL_INTERVAL_MS,
        timeout_s: float | None = DEFAULT_FETCH_TIMEOUT_S,
        clock: Clock = monotonic_ms,
        token: CancellationToken | None = None,
    ) -> None:
        if interval_ms <= 0:
            raise InvariantError(f"Poll interval must be > 0 ms; got {interval_ms}")
        if timeout_s is not None and timeout_s <= 0:
            raise InvariantError(f"Fetch timeout must be > 0 s when set; got {timeout_s}")
        self._fetch = fetch
        self._on_update = on_update
        self._history = history if history is not None else ClusterHistory.empty()
        self._interval_ms = interval_ms
        self._timeout_s = timeout_s
        self._clock = clock
        self._token = token if token is not None else CancellationToken()
        self._phase = PollPhase.IDLE
        self._loop: asyncio.AbstractEventLoop | None = None
        self._timer: asyncio.TimerHandle | None = None
        self._inflight: asyncio.Task[None] | None = None
        self.fetches_started = 0
        self.polls_ok = 0
        self.polls_failed = 0
        self.last_error: BaseException | None = None

    @property
    def phase(self) -> PollPhase:
        return self._phase

    @property
    def history(self) -> ClusterHistory:
        return self._history

    @property
    def token(self) -> CancellationToken:
        return self._token

    @property
    def timer_pending(self) -> bool:
        return self._timer is not None

    def start(self) -> None:
        """Issue the first fetch immediately. Must be called from a running loop."""

        if self._token.cancelled:
            raise PolicyError("Poll scheduler was stopped; create a new one to resume polling")
        if self._phase is PollPhase.WAITING:
            return
        self._loop = asyncio.get_running_loop()
        self._phase = PollPhase.WAITING
        logger.debug("Poll loop started (interval %.0f ms)", self._interval_ms)
        self._issue_fetch()

    def stop(self) -> None:
        """Cancel the pending timer and any in-flight fetch; no further updates."""

        self._token.cancel()
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()
        self._inflight = None
        if self._phase is not PollPhase.IDLE:
            logger.debug("Poll loop stopped after %d fetches", self.fetches_started)
        self._phase = PollPhase.IDLE

    def _issue_fetch(self) -> None:
        self._timer = None
        if self._token.cancelled or self._loop is None:
            return
        self.fetches_started += 1
        self._inflight = self._loop.create_task(self._poll_once())

    async def _poll_once(self) -> None:
        try:
            if self._timeout_s is None:
                snapshot = await self._fetch()
            else:
                snapshot = await asyncio.wait_for(self._fetch(), self._timeout_s)
        except Exception as exc:  # noqa: BLE001 - every failure is retried
            if self._token.cancelled:
                return
            self.polls_failed += 1
            self.last_error = exc
            logger.warning(
                "Cluster poll failed (%d so far): %s: %s",
                self.polls_failed,
                type(exc).__name__,
                exc,
            )
        else:
            if self._token.cancelled:
                logger.debug("Discarding snapshot that arrived after stop()")
                return
            self._accept(snapshot)
        self._inflight = None
        self._schedule_next()

    def _accept(self, snapshot: MetricsSnapshot) -> None:
        self._history = apply_snapshot(self._history, snapshot, self._clock())
        self.polls_ok += 1
        if self._on_update is None:
            return
        try:
            self._on_update(self._history)
        except Exception:  # noqa: BLE001 - a broken view must not kill polling
            logger.exception("Update sink raised; continuing to poll")

    def _schedule_next(self) -> None:
        if self._token.cancelled or self._loop is None:
            return
        if self._timer is not None:
            self._timer.cancel()
        self._timer = self._loop.call_later(self._interval_ms / 1000.0, self._issue_fetch)


__all__ = [
    "CancellationToken",
    "Clock",
    "Fetcher",
    "PollPhase",
    "PollScheduler",
    "UpdateSink",
    "monotonic_ms",
]

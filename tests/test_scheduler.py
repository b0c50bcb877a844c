from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

import pytest

from clusterhud.contracts.error import InvariantError, PolicyError, TransportError
from clusterhud.metrics.aggregate import ClusterHistory
from clusterhud.polling.scheduler import CancellationToken, PollPhase, PollScheduler


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    async def _spin() -> None:
        while not predicate():
            await asyncio.sleep(0.001)

    await asyncio.wait_for(_spin(), timeout)


def test_fetches_never_overlap(snapshot_factory) -> None:
    state = {"inflight": 0, "peak": 0}

    async def fetch():
        state["inflight"] += 1
        state["peak"] = max(state["peak"], state["inflight"])
        await asyncio.sleep(0.005)
        state["inflight"] -= 1
        return snapshot_factory()

    async def scenario() -> PollScheduler:
        scheduler = PollScheduler(fetch, interval_ms=1, timeout_s=1)
        scheduler.start()
        await wait_until(lambda: scheduler.polls_ok >= 4)
        scheduler.stop()
        return scheduler

    scheduler = asyncio.run(scenario())
    assert state["peak"] == 1
    assert scheduler.fetches_started >= 4


def test_failed_poll_is_skipped_and_rates_diff_against_last_success(snapshot_factory) -> None:
    responses = [
        snapshot_factory(totalInputRows=1000),
        TransportError("connection refused"),
        snapshot_factory(totalInputRows=1500),
    ]
    clock_values = iter([0.0, 2000.0])

    async def fetch():
        item = responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    async def scenario() -> PollScheduler:
        scheduler = PollScheduler(
            fetch, interval_ms=1, timeout_s=1, clock=lambda: next(clock_values)
        )
        scheduler.start()
        await wait_until(lambda: scheduler.polls_ok == 2)
        scheduler.stop()
        return scheduler

    scheduler = asyncio.run(scenario())
    assert scheduler.polls_failed == 1
    assert isinstance(scheduler.last_error, TransportError)
    assert scheduler.history.series["row_input_rate"].values == (250.0,)
    assert len(scheduler.history.series["running_queries"]) == 2


def test_stop_discards_the_in_flight_response(snapshot_factory) -> None:
    updates: list[ClusterHistory] = []

    async def scenario() -> PollScheduler:
        release = asyncio.Event()

        async def fetch():
            await release.wait()
            return snapshot_factory()

        scheduler = PollScheduler(fetch, updates.append, interval_ms=1, timeout_s=1)
        scheduler.start()
        await asyncio.sleep(0.01)
        scheduler.stop()
        release.set()
        await asyncio.sleep(0.01)
        return scheduler

    scheduler = asyncio.run(scenario())
    assert updates == []
    assert scheduler.polls_ok == 0
    assert scheduler.polls_failed == 0
    assert scheduler.phase is PollPhase.IDLE
    assert not scheduler.timer_pending
    assert scheduler.token.cancelled
    assert len(scheduler.history.series["running_queries"]) == 0


def test_one_timer_is_pending_between_polls(snapshot_factory) -> None:
    async def fetch():
        return snapshot_factory()

    async def scenario() -> tuple[bool, bool, PollPhase]:
        scheduler = PollScheduler(fetch, interval_ms=10_000, timeout_s=1)
        scheduler.start()
        await wait_until(lambda: scheduler.polls_ok == 1)
        pending = scheduler.timer_pending
        phase = scheduler.phase
        scheduler.stop()
        return pending, scheduler.timer_pending, phase

    pending, after_stop, phase = asyncio.run(scenario())
    assert pending is True
    assert after_stop is False
    assert phase is PollPhase.WAITING


def test_sink_exception_does_not_stop_polling(snapshot_factory) -> None:
    calls = {"n": 0}

    def broken_sink(_history: ClusterHistory) -> None:
        calls["n"] += 1
        raise RuntimeError("widget gone")

    async def fetch():
        return snapshot_factory()

    async def scenario() -> PollScheduler:
        scheduler = PollScheduler(fetch, broken_sink, interval_ms=1, timeout_s=1)
        scheduler.start()
        await wait_until(lambda: calls["n"] >= 3)
        scheduler.stop()
        return scheduler

    scheduler = asyncio.run(scenario())
    assert scheduler.polls_ok >= 3
    assert scheduler.polls_failed == 0


def test_slow_fetch_times_out_and_counts_as_failure(snapshot_factory) -> None:
    messages: list[str] = []

    class _Collect(logging.Handler):
        def emit(self, record: logging.LogRecord) -> None:
            messages.append(record.getMessage())

    collector = _Collect(level=logging.WARNING)
    scheduler_log = logging.getLogger("clusterhud.polling.scheduler")
    scheduler_log.addHandler(collector)

    async def fetch():
        await asyncio.sleep(10)
        return snapshot_factory()

    async def scenario() -> PollScheduler:
        scheduler = PollScheduler(fetch, interval_ms=1, timeout_s=0.01)
        scheduler.start()
        await wait_until(lambda: scheduler.polls_failed >= 1)
        scheduler.stop()
        return scheduler

    try:
        scheduler = asyncio.run(scenario())
    finally:
        scheduler_log.removeHandler(collector)
    assert isinstance(scheduler.last_error, TimeoutError)
    assert scheduler.polls_ok == 0
    assert "TimeoutError" in messages[0]


def test_start_is_idempotent_while_running(snapshot_factory) -> None:
    async def fetch():
        return snapshot_factory()

    async def scenario() -> int:
        scheduler = PollScheduler(fetch, interval_ms=10_000, timeout_s=1)
        scheduler.start()
        scheduler.start()
        started = scheduler.fetches_started
        scheduler.stop()
        return started

    assert asyncio.run(scenario()) == 1


def test_start_after_stop_is_rejected(snapshot_factory) -> None:
    async def fetch():
        return snapshot_factory()

    async def scenario() -> None:
        token = CancellationToken()
        scheduler = PollScheduler(fetch, interval_ms=10, timeout_s=1, token=token)
        scheduler.start()
        scheduler.stop()
        with pytest.raises(PolicyError):
            scheduler.start()

    asyncio.run(scenario())


def test_stop_before_start_is_harmless(snapshot_factory) -> None:
    async def fetch():
        return snapshot_factory()

    scheduler = PollScheduler(fetch)
    scheduler.stop()
    assert scheduler.phase is PollPhase.IDLE
    assert scheduler.fetches_started == 0


@pytest.mark.parametrize(("interval_ms", "timeout_s"), [(0, 1.0), (-5, 1.0), (100, 0.0)])
def test_invalid_timing_fails_fast(interval_ms: float, timeout_s: float) -> None:
    async def fetch():
        raise AssertionError("never called")

    with pytest.raises(InvariantError):
        PollScheduler(fetch, interval_ms=interval_ms, timeout_s=timeout_s)

"""Boundary between the aggregation core and whatever draws it."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from typing import Protocol

from clusterhud.metrics.aggregate import ClusterHistory, SeriesSnapshot
from clusterhud.metrics.constants import (
    ACTIVE_WORKERS,
    BLOCKED_QUERIES,
    BYTE_INPUT_RATE,
    PER_WORKER_CPU_RATE,
    QUEUED_QUERIES,
    RESERVED_MEMORY_BYTES,
    ROW_INPUT_RATE,
    RUNNING_DRIVERS,
    RUNNING_QUERIES,
)
from clusterhud.polling.scheduler import Clock, monotonic_ms

from .formatting import MISSING, format_count, format_data_size_bytes
from .throttle import RenderThrottle

logger = logging.getLogger(__name__)


def _format_whole(value: float | None) -> str:
    if value is None or not math.isfinite(value):
        return MISSING
    return str(int(value))


# Series name -> (title, tooltip, text formatter), in dashboard order.
SERIES_LABELS: dict[str, tuple[str, str, Callable[[float | None], str]]] = {
    RUNNING_QUERIES: (
        "Running queries",
        "Total number of queries currently running",
        _format_whole,
    ),
    ACTIVE_WORKERS: ("Active workers", "Total number of active worker nodes", _format_whole),
    ROW_INPUT_RATE: (
        "Rows/sec",
        "Moving average of input rows processed per second",
        format_count,
    ),
    QUEUED_QUERIES: (
        "Queued queries",
        "Total number of queries currently queued and awaiting execution",
        _format_whole,
    ),
    RUNNING_DRIVERS: ("Runnable drivers", "Moving average of total running drivers", format_count),
    BYTE_INPUT_RATE: (
        "Bytes/sec",
        "Moving average of input bytes processed per second",
        format_data_size_bytes,
    ),
    BLOCKED_QUERIES: (
        "Blocked queries",
        "Total number of queries currently blocked and unable to make progress",
        _format_whole,
    ),
    RESERVED_MEMORY_BYTES: (
        "Reserved memory",
        "Total amount of memory reserved by all running queries",
        format_data_size_bytes,
    ),
    PER_WORKER_CPU_RATE: (
        "Worker parallelism",
        "Moving average of CPU time utilized per second per worker",
        format_count,
    ),
}


def format_latest(series: SeriesSnapshot) -> dict[str, str]:
    """Formatted most-recent value for every known series."""

    out: dict[str, str] = {}
    for name, (_title, _tooltip, formatter) in SERIES_LABELS.items():
        view = series.get(name)
        out[name] = formatter(view.latest if view is not None else None)
    return out


class RenderSink(Protocol):
    """Expensive redraw of every chart from a consistent series snapshot."""

    def render(self, series: SeriesSnapshot) -> None: ...


class LabelSink(Protocol):
    """Cheap refresh of the numeric labels; called on every update."""

    def show_latest(self, series: SeriesSnapshot) -> None: ...


class HudPresenter:
    """Update sink for :class:`~clusterhud.polling.PollScheduler`.

    Labels are refreshed on every poll; charts at most once per throttle
    interval.
    """

    def __init__(
        self,
        charts: RenderSink,
        labels: LabelSink | None = None,
        *,
        throttle: RenderThrottle | None = None,
        clock: Clock = monotonic_ms,
    ) -> None:
        self._charts = charts
        self._labels = labels
        self._throttle = throttle if throttle is not None else RenderThrottle()
        self._clock = clock
        self.renders = 0
        self.skipped = 0

    def __call__(self, history: ClusterHistory) -> None:
        view = history.view()
        if self._labels is not None:
            self._labels.show_latest(view)
        if self._throttle.try_acquire(self._clock()):
            self._charts.render(view)
            self.renders += 1
        else:
            self.skipped += 1


class LogSink:
    """Headless sink: one log line per chart render."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log if log is not None else logger
        self.lines: int = 0

    def render(self, series: SeriesSnapshot) -> None:
        latest = format_latest(series)
        parts = [f"{SERIES_LABELS[name][0]}={text}" for name, text in latest.items()]
        self._log.info("%s", " | ".join(parts))
        self.lines += 1


__all__ = [
    "HudPresenter",
    "LabelSink",
    "LogSink",
    "RenderSink",
    "SERIES_LABELS",
    "format_latest",
]

"""Aggregation store: poll baseline plus one history per displayed series."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from .constants import (
    ALL_SERIES,
    BYTE_INPUT_RATE,
    DEFAULT_EWMA_ALPHA,
    DEFAULT_HISTORY_SIZE,
    PER_WORKER_CPU_RATE,
    RATE_SERIES,
    RAW_SERIES,
    ROW_INPUT_RATE,
)
from .history import ExponentiallyWeighted, HistorySeries, Raw, append, latest
from .rates import InputRates, compute_rates
from .snapshot import MetricsSnapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PollState:
    previous_snapshot: MetricsSnapshot | None = None
    previous_timestamp_ms: float | None = None


@dataclass(frozen=True, slots=True)
class SeriesView:
    """What the presentation layer gets for one series."""

    name: str
    values: tuple[float, ...]
    latest: float | None


SeriesSnapshot = Mapping[str, SeriesView]


@dataclass(frozen=True, slots=True)
class ClusterHistory:
    poll_state: PollState = field(default_factory=PollState)
    series: Mapping[str, HistorySeries] = field(default_factory=dict)

    @classmethod
    def empty(
        cls, max_length: int = DEFAULT_HISTORY_SIZE, alpha: float = DEFAULT_EWMA_ALPHA
    ) -> ClusterHistory:
        """Create the nine empty series with their fixed smoothing modes."""

        smoothed = ExponentiallyWeighted(alpha)
        series = {
            name: HistorySeries(
                max_length=max_length, smoothing=Raw() if name in RAW_SERIES else smoothed
            )
            for name in ALL_SERIES
        }
        return cls(poll_state=PollState(), series=MappingProxyType(series))

    def view(self) -> SeriesSnapshot:
        return MappingProxyType(
            {
                name: SeriesView(name=name, values=hist.values, latest=latest(hist))
                for name, hist in self.series.items()
            }
        )


def _rate_samples(rates: InputRates | None) -> dict[str, float]:
    if rates is None:
        return {}
    samples = {ROW_INPUT_RATE: rates.row_rate, BYTE_INPUT_RATE: rates.byte_rate}
    if rates.per_worker_cpu_rate is not None:
        samples[PER_WORKER_CPU_RATE] = rates.per_worker_cpu_rate
    return samples


def apply_snapshot(
    history: ClusterHistory, snapshot: MetricsSnapshot, timestamp_ms: float
) -> ClusterHistory:
    """Fold one successful poll into ``history`` and return the new state.

    Every point-in-time series gets one sample. A rate series is only appended
    to when its rate could be computed this tick.
    """

    state = history.poll_state
    rates = compute_rates(
        state.previous_snapshot, state.previous_timestamp_ms, snapshot, timestamp_ms
    )
    samples: dict[str, float] = {**snapshot.gauges(), **_rate_samples(rates)}
    skipped = [name for name in RATE_SERIES if name not in samples]
    if skipped:
        logger.debug("No rate sample this tick for %s", ", ".join(skipped))

    series = dict(history.series)
    for name, value in samples.items():
        series[name] = append(series[name], value)
    return ClusterHistory(
        poll_state=PollState(previous_snapshot=snapshot, previous_timestamp_ms=timestamp_ms),
        series=MappingProxyType(series),
    )


__all__ = [
    "PollState",
    "SeriesView",
    "SeriesSnapshot",
    "ClusterHistory",
    "apply_snapshot",
]

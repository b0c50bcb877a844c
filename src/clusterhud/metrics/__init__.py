"""Aggregation core: snapshots, bounded histories and derived rates."""

from .aggregate import ClusterHistory, PollState, SeriesSnapshot, SeriesView, apply_snapshot
from .constants import (
    ALL_SERIES,
    CLUSTER_ENDPOINT_PATH,
    DEFAULT_ENDPOINT,
    DEFAULT_EWMA_ALPHA,
    DEFAULT_FETCH_TIMEOUT_S,
    DEFAULT_HISTORY_SIZE,
    DEFAULT_POLL_INTERVAL_MS,
    DEFAULT_RENDER_INTERVAL_MS,
    GAUGE_SERIES,
    RATE_SERIES,
)
from .history import ExponentiallyWeighted, HistorySeries, Raw, Smoothing, append, latest
from .rates import InputRates, compute_rates
from .snapshot import MetricsSnapshot

__all__ = [
    "ALL_SERIES",
    "CLUSTER_ENDPOINT_PATH",
    "DEFAULT_ENDPOINT",
    "DEFAULT_EWMA_ALPHA",
    "DEFAULT_FETCH_TIMEOUT_S",
    "DEFAULT_HISTORY_SIZE",
    "DEFAULT_POLL_INTERVAL_MS",
    "DEFAULT_RENDER_INTERVAL_MS",
    "GAUGE_SERIES",
    "RATE_SERIES",
    "ClusterHistory",
    "ExponentiallyWeighted",
    "HistorySeries",
    "InputRates",
    "MetricsSnapshot",
    "PollState",
    "Raw",
    "SeriesSnapshot",
    "SeriesView",
    "Smoothing",
    "append",
    "apply_snapshot",
    "compute_rates",
    "latest",
]

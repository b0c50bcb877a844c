"""Bounded, optionally smoothed sample histories for the HUD series."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from clusterhud.contracts.error import InvariantError


@dataclass(frozen=True, slots=True)
class Raw:
    """Append samples as-is."""


@dataclass(frozen=True, slots=True)
class ExponentiallyWeighted:
    """Blend each sample with the previous smoothed value at weight ``alpha``."""

    alpha: float

    def __post_init__(self) -> None:
        if not 0.0 < self.alpha <= 1.0:
            raise InvariantError(f"EWMA alpha must be in (0, 1]; got {self.alpha}")


Smoothing = Raw | ExponentiallyWeighted


@dataclass(frozen=True, slots=True)
class HistorySeries:
    """Immutable rolling window of at most ``max_length`` samples."""

    max_length: int
    smoothing: Smoothing = field(default_factory=Raw)
    values: tuple[float, ...] = ()

    def __post_init__(self) -> None:
        if self.max_length <= 0:
            raise InvariantError(f"History max_length must be > 0; got {self.max_length}")
        if len(self.values) > self.max_length:
            raise InvariantError(
                f"History holds {len(self.values)} samples but max_length is {self.max_length}"
            )

    def __len__(self) -> int:
        return len(self.values)


def _smoothed(smoothing: Smoothing, raw: float, previous: tuple[float, ...]) -> float:
    if isinstance(smoothing, Raw) or math.isnan(raw):
        return raw
    if not previous or math.isnan(previous[-1]):
        # Nothing (valid) to blend with: seed from the raw value.
        return raw
    alpha = smoothing.alpha
    return alpha * raw + (1.0 - alpha) * previous[-1]


def append(series: HistorySeries, raw_value: float | None) -> HistorySeries:
    """Return a new series with ``raw_value`` appended and the window trimmed.

    ``None`` and NaN are stored as a NaN "no data" sample.
    """

    raw = math.nan if raw_value is None else float(raw_value)
    sample = _smoothed(series.smoothing, raw, series.values)
    values = (*series.values, sample)[-series.max_length :]
    return HistorySeries(max_length=series.max_length, smoothing=series.smoothing, values=values)


def latest(series: HistorySeries) -> float | None:
    """Most recent sample, or ``None`` for an empty series."""

    return series.values[-1] if series.values else None


__all__ = [
    "Raw",
    "ExponentiallyWeighted",
    "Smoothing",
    "HistorySeries",
    "append",
    "latest",
]

from __future__ import annotations

import math

import pytest
from hypothesis import given, strategies as st

from clusterhud.contracts.error import InvariantError
from clusterhud.metrics.history import (
    ExponentiallyWeighted,
    HistorySeries,
    Raw,
    append,
    latest,
)

finite = st.floats(min_value=-1e9, max_value=1e9, allow_nan=False, allow_infinity=False)


@given(st.lists(finite, max_size=60), st.integers(min_value=1, max_value=25))
def test_raw_history_keeps_the_last_max_length_samples(values: list[float], cap: int) -> None:
    series = HistorySeries(max_length=cap, smoothing=Raw())
    for value in values:
        series = append(series, value)
    assert len(series) == min(len(values), cap)
    assert list(series.values) == values[-cap:]


@given(finite, st.floats(min_value=0.01, max_value=1.0))
def test_ewma_first_sample_is_unsmoothed(value: float, alpha: float) -> None:
    series = append(HistorySeries(max_length=10, smoothing=ExponentiallyWeighted(alpha)), value)
    assert series.values == (value,)


@given(finite, finite, st.floats(min_value=0.001, max_value=1.0))
def test_ewma_step_stays_between_previous_and_raw(
    previous: float, value: float, alpha: float
) -> None:
    series = HistorySeries(
        max_length=5, smoothing=ExponentiallyWeighted(alpha), values=(previous,)
    )
    sample = latest(append(series, value))
    assert sample is not None
    tolerance = 1e-9 * max(1.0, abs(previous), abs(value))
    assert min(previous, value) - tolerance <= sample <= max(previous, value) + tolerance


def test_ewma_compounds_on_the_smoothed_value() -> None:
    series = HistorySeries(max_length=10, smoothing=ExponentiallyWeighted(0.5))
    for value in (0.0, 100.0, 100.0):
        series = append(series, value)
    # 0 -> 0.5*100 + 0.5*0 = 50 -> 0.5*100 + 0.5*50 = 75
    assert series.values == (0.0, 50.0, 75.0)


def test_ewma_history_is_trimmed_too() -> None:
    series = HistorySeries(max_length=2, smoothing=ExponentiallyWeighted(1.0))
    for value in (1.0, 2.0, 3.0):
        series = append(series, value)
    assert series.values == (2.0, 3.0)


def test_append_never_mutates_its_argument() -> None:
    original = HistorySeries(max_length=3, values=(1.0, 2.0, 3.0))
    updated = append(original, 4.0)
    assert original.values == (1.0, 2.0, 3.0)
    assert updated.values == (2.0, 3.0, 4.0)
    assert updated is not original


@pytest.mark.parametrize("missing", [None, math.nan])
def test_missing_values_become_nan_sentinels(missing: float | None) -> None:
    series = append(HistorySeries(max_length=4, smoothing=Raw(), values=(1.0,)), missing)
    assert len(series) == 2
    assert math.isnan(series.values[-1])


def test_ewma_reseeds_after_a_gap() -> None:
    series = HistorySeries(max_length=5, smoothing=ExponentiallyWeighted(0.2), values=(10.0,))
    series = append(series, None)
    series = append(series, 40.0)
    assert series.values[0] == 10.0
    assert math.isnan(series.values[1])
    assert series.values[2] == 40.0


def test_latest_on_empty_and_filled_series() -> None:
    empty = HistorySeries(max_length=3)
    assert latest(empty) is None
    assert latest(append(empty, 7)) == 7.0


@pytest.mark.parametrize("cap", [0, -5])
def test_non_positive_capacity_fails_fast(cap: int) -> None:
    with pytest.raises(InvariantError):
        HistorySeries(max_length=cap)


@pytest.mark.parametrize("alpha", [0.0, -0.1, 1.5])
def test_alpha_outside_unit_interval_fails_fast(alpha: float) -> None:
    with pytest.raises(InvariantError):
        ExponentiallyWeighted(alpha)


def test_constructing_an_overfull_series_is_rejected() -> None:
    with pytest.raises(InvariantError):
        HistorySeries(max_length=1, values=(1.0, 2.0))

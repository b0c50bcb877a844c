"""Humanisers for the numbers shown next to each sparkline."""

from __future__ import annotations

import math

_COUNT_UNITS = ("K", "M", "B", "T", "Q")
_BYTE_UNITS = ("KB", "MB", "GB", "TB", "PB")
MISSING = "n/a"


def precision_round(value: float | None) -> str:
    """Two decimals below 10, one below 100, none above."""

    if value is None or math.isnan(value):
        return MISSING
    if math.isinf(value):
        return "∞" if value > 0 else "-∞"
    if abs(value) < 10:
        return f"{value:.2f}"
    if abs(value) < 100:
        return f"{value:.1f}"
    return str(round(value))


# Counts move to the next unit strictly above the base, byte sizes at it.
def _scaled(
    value: float, base: float, units: tuple[str, ...], unit: str, *, carry_at_base: bool
) -> str:
    for candidate in units:
        magnitude = abs(value)
        if magnitude < base or (magnitude == base and not carry_at_base):
            break
        value /= base
        unit = candidate
    return precision_round(value) + unit


def format_count(value: float | None) -> str:
    if value is None or not math.isfinite(value):
        return precision_round(value)
    return _scaled(value, 1000.0, _COUNT_UNITS, "", carry_at_base=False)


def format_data_size_bytes(value: float | None) -> str:
    if value is None or not math.isfinite(value):
        return precision_round(value)
    if value == 0:
        return "0B"
    return _scaled(value, 1024.0, _BYTE_UNITS, "B", carry_at_base=True)


__all__ = ["MISSING", "format_count", "format_data_size_bytes", "precision_round"]

"""Per-second rates derived from consecutive cumulative counter snapshots."""

from __future__ import annotations

from dataclasses import dataclass

from .snapshot import MetricsSnapshot


@dataclass(frozen=True, slots=True)
class InputRates:
    row_rate: float
    byte_rate: float
    per_worker_cpu_rate: float | None


def compute_rates(
    previous: MetricsSnapshot | None,
    previous_timestamp_ms: float | None,
    current: MetricsSnapshot,
    current_timestamp_ms: float,
) -> InputRates | None:
    """Diff two snapshots into row, byte and per-worker CPU rates.

    Returns ``None`` on the first poll and when no time has elapsed. With zero
    active workers only ``per_worker_cpu_rate`` is ``None``. Counter resets
    produce negative rates; they are passed through unclamped.
    """

    if previous is None or previous_timestamp_ms is None:
        return None
    elapsed_s = (current_timestamp_ms - previous_timestamp_ms) / 1000.0
    if elapsed_s <= 0:
        return None

    row_rate = (current.total_input_rows - previous.total_input_rows) / elapsed_s
    byte_rate = (current.total_input_bytes - previous.total_input_bytes) / elapsed_s

    cpu_rate: float | None = None
    if current.active_workers != 0:
        cpu_delta = current.total_cpu_time_secs - previous.total_cpu_time_secs
        cpu_rate = (cpu_delta / current.active_workers) / elapsed_s

    return InputRates(row_rate=row_rate, byte_rate=byte_rate, per_worker_cpu_rate=cpu_rate)


__all__ = ["InputRates", "compute_rates"]

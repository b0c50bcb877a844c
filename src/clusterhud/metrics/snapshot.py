"""Cluster status snapshot contract and parser."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from functools import lru_cache
from importlib import resources
from typing import Any

from jsonschema import Draft202012Validator

from clusterhud.contracts.error import SnapshotParseError

from .constants import (
    ACTIVE_WORKERS,
    BLOCKED_QUERIES,
    QUEUED_QUERIES,
    RESERVED_MEMORY_BYTES,
    RUNNING_DRIVERS,
    RUNNING_QUERIES,
)

# Wire name -> attribute name. ``reservedMemory`` is what coordinators actually emit.
_WIRE_FIELDS: dict[str, str] = {
    "runningQueries": "running_queries",
    "queuedQueries": "queued_queries",
    "blockedQueries": "blocked_queries",
    "activeWorkers": "active_workers",
    "runningDrivers": "running_drivers",
    "reservedMemoryBytes": "reserved_memory_bytes",
    "totalInputRows": "total_input_rows",
    "totalInputBytes": "total_input_bytes",
    "totalCpuTimeSecs": "total_cpu_time_secs",
}
_WIRE_ALIASES: dict[str, str] = {"reservedMemoryBytes": "reservedMemory"}


@lru_cache(maxsize=1)
def _validator() -> Draft202012Validator:
    schema_resource = resources.files("clusterhud.contracts") / "cluster_schema.json"
    with schema_resource.open(encoding="utf-8") as stream:
        schema = json.load(stream)
    return Draft202012Validator(schema)


def _as_number(value: Any) -> float:
    """Map JSON ``null`` onto the NaN "no data" sentinel."""

    if value is None:
        return math.nan
    return float(value)


@dataclass(frozen=True, slots=True)
class MetricsSnapshot:
    """One poll of the cluster status endpoint.

    The four query/worker counts and the two gauges are point-in-time values;
    the ``total_*`` fields are cumulative counters used for rate derivation.
    Any field may be NaN when the coordinator reported ``null``.
    """

    running_queries: float
    queued_queries: float
    blocked_queries: float
    active_workers: float
    running_drivers: float
    reserved_memory_bytes: float
    total_input_rows: float
    total_input_bytes: float
    total_cpu_time_secs: float

    @classmethod
    def from_payload(cls, payload: Any) -> MetricsSnapshot:
        """Validate a decoded ``/v1/cluster`` document and build a snapshot.

        Unknown fields are ignored. Missing, negative or non-numeric consumed
        fields raise :class:`SnapshotParseError`.
        """

        if not isinstance(payload, dict):
            raise SnapshotParseError(
                f"Cluster status payload must be a JSON object; got {type(payload).__name__}"
            )
        errors = sorted(_validator().iter_errors(payload), key=lambda err: list(err.path))
        if errors:
            details = "; ".join(
                f"{err.message} @ {'/'.join(str(p) for p in err.path) or '<root>'}"
                for err in errors
            )
            raise SnapshotParseError(f"Malformed cluster status payload: {details}")

        values: dict[str, float] = {}
        for wire_name, attr in _WIRE_FIELDS.items():
            key = wire_name if wire_name in payload else _WIRE_ALIASES[wire_name]
            values[attr] = _as_number(payload[key])
        return cls(**values)

    def gauges(self) -> dict[str, float]:
        """Return the point-in-time values keyed by series name."""

        return {
            RUNNING_QUERIES: self.running_queries,
            QUEUED_QUERIES: self.queued_queries,
            BLOCKED_QUERIES: self.blocked_queries,
            ACTIVE_WORKERS: self.active_workers,
            RUNNING_DRIVERS: self.running_drivers,
            RESERVED_MEMORY_BYTES: self.reserved_memory_bytes,
        }


__all__ = ["MetricsSnapshot"]

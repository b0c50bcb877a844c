"""Shared constants for the Cluster HUD metrics subsystem."""

from __future__ import annotations

CLUSTER_ENDPOINT_PATH = "/v1/cluster"
DEFAULT_ENDPOINT = f"http://127.0.0.1:8080{CLUSTER_ENDPOINT_PATH}"

DEFAULT_POLL_INTERVAL_MS = 1000
DEFAULT_RENDER_INTERVAL_MS = 1000
DEFAULT_FETCH_TIMEOUT_S = 5.0
DEFAULT_HISTORY_SIZE = 300
DEFAULT_EWMA_ALPHA = 0.2

TOKEN_ENV_VAR = "CLUSTERHUD_TOKEN"
AUTH_HEADER = "Authorization"
JSON_CONTENT_TYPE = "application/json"

# Point-in-time series, in snapshot field order.
RUNNING_QUERIES = "running_queries"
QUEUED_QUERIES = "queued_queries"
BLOCKED_QUERIES = "blocked_queries"
ACTIVE_WORKERS = "active_workers"
RUNNING_DRIVERS = "running_drivers"
RESERVED_MEMORY_BYTES = "reserved_memory_bytes"

# Derived rate series.
ROW_INPUT_RATE = "row_input_rate"
BYTE_INPUT_RATE = "byte_input_rate"
PER_WORKER_CPU_RATE = "per_worker_cpu_rate"

RAW_SERIES = (RUNNING_QUERIES, QUEUED_QUERIES, BLOCKED_QUERIES, ACTIVE_WORKERS)
SMOOTHED_GAUGE_SERIES = (RUNNING_DRIVERS, RESERVED_MEMORY_BYTES)
GAUGE_SERIES = RAW_SERIES + SMOOTHED_GAUGE_SERIES
RATE_SERIES = (ROW_INPUT_RATE, BYTE_INPUT_RATE, PER_WORKER_CPU_RATE)
ALL_SERIES = GAUGE_SERIES + RATE_SERIES

__all__ = [
    "CLUSTER_ENDPOINT_PATH",
    "DEFAULT_ENDPOINT",
    "DEFAULT_POLL_INTERVAL_MS",
    "DEFAULT_RENDER_INTERVAL_MS",
    "DEFAULT_FETCH_TIMEOUT_S",
    "DEFAULT_HISTORY_SIZE",
    "DEFAULT_EWMA_ALPHA",
    "TOKEN_ENV_VAR",
    "AUTH_HEADER",
    "JSON_CONTENT_TYPE",
    "RUNNING_QUERIES",
    "QUEUED_QUERIES",
    "BLOCKED_QUERIES",
    "ACTIVE_WORKERS",
    "RUNNING_DRIVERS",
    "RESERVED_MEMORY_BYTES",
    "ROW_INPUT_RATE",
    "BYTE_INPUT_RATE",
    "PER_WORKER_CPU_RATE",
    "RAW_SERIES",
    "SMOOTHED_GAUGE_SERIES",
    "GAUGE_SERIES",
    "RATE_SERIES",
    "ALL_SERIES",
]

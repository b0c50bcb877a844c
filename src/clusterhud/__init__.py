"""Cluster status HUD: polling, aggregation and presentation of cluster telemetry."""

from . import config, contracts, metrics, polling, render

__all__ = [
    "config",
    "contracts",
    "metrics",
    "polling",
    "render",
]

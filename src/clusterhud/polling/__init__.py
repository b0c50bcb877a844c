"""Poll loop and transport for the cluster status endpoint."""

from .client import ClusterStatusClient, fetch_cluster_status, validated_endpoint
from .scheduler import CancellationToken, PollPhase, PollScheduler, monotonic_ms

__all__ = [
    "CancellationToken",
    "ClusterStatusClient",
    "PollPhase",
    "PollScheduler",
    "fetch_cluster_status",
    "monotonic_ms",
    "validated_endpoint",
]

"""Terminal dashboard for the Cluster HUD."""

from .app import ClusterHudApp, run_tui

__all__ = [
    "ClusterHudApp",
    "run_tui",
]

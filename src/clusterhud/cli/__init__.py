"""Cluster HUD CLI package."""

from .app import JsonFormatter, build_parser, configure_logging, console_main, main
from .commands import (
    CLIContext,
    apply_cli_overrides,
    fetch_once,
    register_subcommands,
    run_watch,
)

__all__ = [
    "CLIContext",
    "JsonFormatter",
    "apply_cli_overrides",
    "build_parser",
    "configure_logging",
    "console_main",
    "fetch_once",
    "main",
    "register_subcommands",
    "run_watch",
]

"""CLI command registration and handlers for the Cluster HUD."""

from __future__ import annotations

import argparse
import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

from clusterhud.config import HudConfig
from clusterhud.contracts.error import BadInputError, TransportError
from clusterhud.metrics.aggregate import ClusterHistory, apply_snapshot
from clusterhud.polling.client import ClusterStatusClient
from clusterhud.polling.scheduler import Fetcher, PollScheduler, monotonic_ms
from clusterhud.render.sink import HudPresenter, LogSink
from clusterhud.render.throttle import RenderThrottle

Handler = Callable[[argparse.Namespace], int]


@dataclass(frozen=True)
class CLIContext:
    """Runtime hooks supplied by the top-level CLI entrypoint."""

    logger: logging.Logger
    load_config: Callable[[argparse.Namespace], HudConfig]
    guard: Callable[[Handler], Handler]


def register_subcommands(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
    ctx: CLIContext,
) -> dict[str, Handler]:
    """Define CLI subcommands and return their handlers."""

    handlers: dict[str, Handler] = {}

    def _register(
        name: str, help_text: str, configure: Callable[[argparse.ArgumentParser], Handler]
    ) -> None:
        parser = subparsers.add_parser(name, help=help_text)
        _add_override_flags(parser)
        handlers[name] = ctx.guard(configure(parser))

    _register("tui", "Open the interactive cluster dashboard.", lambda p: _configure_tui(p, ctx))
    _register(
        "watch",
        "Poll the cluster headlessly and log one summary line per render interval.",
        lambda p: _configure_watch(p, ctx),
    )
    return handlers


def _add_override_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--endpoint", default=None, help="Cluster status URL (…/v1/cluster)")
    parser.add_argument("--poll-interval-ms", type=int, default=None, help="Delay between polls")
    parser.add_argument(
        "--render-interval-ms", type=int, default=None, help="Minimum time between chart redraws"
    )
    parser.add_argument("--history-size", type=int, default=None, help="Samples kept per series")
    parser.add_argument("--alpha", type=float, default=None, help="EWMA weight in (0, 1]")
    parser.add_argument("--timeout", type=float, default=None, help="Per-fetch timeout (s)")


def apply_cli_overrides(cfg: HudConfig, args: argparse.Namespace) -> HudConfig:
    """Flags win over file and environment values."""

    overrides = (
        ("endpoint", cfg.polling, "endpoint"),
        ("poll_interval_ms", cfg.polling, "interval_ms"),
        ("timeout", cfg.polling, "timeout_s"),
        ("history_size", cfg.history, "max_length"),
        ("alpha", cfg.history, "alpha"),
        ("render_interval_ms", cfg.render, "interval_ms"),
    )
    for arg_name, section, attr in overrides:
        value = getattr(args, arg_name, None)
        if value is not None:
            setattr(section, attr, value)
    cfg.validate()
    return cfg


def _configure_tui(parser: argparse.ArgumentParser, ctx: CLIContext) -> Handler:
    def handler(args: argparse.Namespace) -> int:
        from clusterhud.tui.app import run_tui

        cfg = apply_cli_overrides(ctx.load_config(args), args)
        ctx.logger.info("Opening dashboard for %s", cfg.polling.endpoint)
        run_tui(cfg)
        return 0

    return handler


async def run_watch(
    cfg: HudConfig,
    *,
    count: int | None = None,
    fetch: Fetcher | None = None,
    log: logging.Logger | None = None,
) -> PollScheduler:
    """Run the poll loop with a :class:`LogSink` until ``count`` renders (or forever)."""

    if fetch is None:
        fetch = ClusterStatusClient(cfg.polling.endpoint, timeout=cfg.polling.timeout_s).fetch
    sink = LogSink(log)
    presenter = HudPresenter(sink, throttle=RenderThrottle(cfg.render.interval_ms))
    done = asyncio.Event()

    def on_update(history: ClusterHistory) -> None:
        presenter(history)
        if count is not None and sink.lines >= count:
            done.set()

    scheduler = PollScheduler(
        fetch,
        on_update,
        history=ClusterHistory.empty(cfg.history.max_length, cfg.history.alpha),
        interval_ms=cfg.polling.interval_ms,
        timeout_s=cfg.polling.timeout_s,
    )
    scheduler.start()
    try:
        await done.wait()
    finally:
        scheduler.stop()
    return scheduler


async def fetch_once(
    cfg: HudConfig,
    *,
    fetch: Fetcher | None = None,
    log: logging.Logger | None = None,
) -> ClusterHistory:
    """Single fetch without the retry loop; failures propagate to the caller."""

    if fetch is None:
        fetch = ClusterStatusClient(cfg.polling.endpoint, timeout=cfg.polling.timeout_s).fetch
    try:
        snapshot = await asyncio.wait_for(fetch(), cfg.polling.timeout_s)
    except TimeoutError as exc:
        raise TransportError(
            f"No cluster status from {cfg.polling.endpoint} within {cfg.polling.timeout_s}s"
        ) from exc
    history = apply_snapshot(
        ClusterHistory.empty(cfg.history.max_length, cfg.history.alpha), snapshot, monotonic_ms()
    )
    LogSink(log).render(history.view())
    return history


def _configure_watch(parser: argparse.ArgumentParser, ctx: CLIContext) -> Handler:
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--count", type=int, default=None, help="Stop after this many rendered summaries"
    )
    mode.add_argument(
        "--once",
        action="store_true",
        help="Fetch a single snapshot and exit non-zero if the endpoint is unreachable",
    )

    def handler(args: argparse.Namespace) -> int:
        if args.count is not None and args.count <= 0:
            raise BadInputError("--count must be > 0")
        cfg = apply_cli_overrides(ctx.load_config(args), args)
        if args.once:
            asyncio.run(fetch_once(cfg, log=ctx.logger))
            return 0
        ctx.logger.info("Watching %s", cfg.polling.endpoint)
        try:
            scheduler = asyncio.run(run_watch(cfg, count=args.count, log=ctx.logger))
        except KeyboardInterrupt:
            ctx.logger.info("Interrupted")
            return 0
        ctx.logger.info(
            "Done: %d ok / %d failed polls", scheduler.polls_ok, scheduler.polls_failed
        )
        return 0

    return handler


__all__ = [
    "CLIContext",
    "Handler",
    "apply_cli_overrides",
    "fetch_once",
    "register_subcommands",
    "run_watch",
]

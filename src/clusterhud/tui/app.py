"""Textual dashboard for the cluster status HUD."""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from typing import Any, Protocol

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Grid, Vertical
from textual.widgets import Footer, Header, Sparkline, Static

from clusterhud.config import HudConfig
from clusterhud.metrics.aggregate import ClusterHistory, SeriesSnapshot
from clusterhud.polling.client import ClusterStatusClient
from clusterhud.polling.scheduler import Clock, Fetcher, PollScheduler, monotonic_ms
from clusterhud.render.formatting import MISSING
from clusterhud.render.sink import SERIES_LABELS, HudPresenter, format_latest
from clusterhud.render.throttle import RenderThrottle

logger = logging.getLogger(__name__)


class _Text(Protocol):
    def update(self, content: Any = "") -> None: ...


class _Chart(Protocol):
    data: Sequence[float]


def chartable(values: Sequence[float]) -> list[float]:
    """Sparklines cannot scale around NaN gaps; drop them."""

    return [v for v in values if math.isfinite(v)]


class TileBoard:
    """Render and label sink over the nine stat tiles."""

    def __init__(self, labels: Mapping[str, _Text], charts: Mapping[str, _Chart]) -> None:
        self._labels = labels
        self._charts = charts

    def show_latest(self, series: SeriesSnapshot) -> None:
        for name, text in format_latest(series).items():
            label = self._labels.get(name)
            if label is not None:
                label.update(text)

    def render(self, series: SeriesSnapshot) -> None:
        for name, chart in self._charts.items():
            view = series.get(name)
            if view is not None:
                chart.data = chartable(view.values)


class StatTile(Vertical):
    def __init__(self, series_name: str) -> None:
        super().__init__(id=f"tile-{series_name}", classes="tile")
        self.series_name = series_name

    def compose(self) -> ComposeResult:
        title, tooltip, _fmt = SERIES_LABELS[self.series_name]
        heading = Static(title, classes="stat-title")
        heading.tooltip = tooltip
        yield heading
        yield Static(MISSING, id=f"value-{self.series_name}", classes="stat-value")
        yield Sparkline([], summary_function=max, id=f"chart-{self.series_name}")


class ClusterHudApp(App[None]):
    """Nine-tile cluster HUD; numbers update every poll, charts at most once per interval."""

    CSS = """
    Screen { layout: vertical; }
    #status { padding: 0 2; background: #1f2937; color: #e5e7eb; }
    #tiles { grid-size: 3 3; grid-gutter: 1 2; padding: 1 2; }
    .tile { height: auto; border: round #3F4552; padding: 0 1; }
    .stat-title { color: #94a3b8; }
    .stat-value { text-style: bold; color: #1EDCFF; }
    Sparkline { height: 3; }
    Sparkline > .sparkline--max-color { color: #1EDCFF; }
    Sparkline > .sparkline--min-color { color: #747F96; }
    """

    BINDINGS = [Binding("q", "quit", "Quit")]

    def __init__(
        self,
        config: HudConfig | None = None,
        fetch: Fetcher | None = None,
        clock: Clock = monotonic_ms,
    ) -> None:
        super().__init__()
        self.config = config if config is not None else HudConfig()
        if fetch is None:
            fetch = ClusterStatusClient(
                self.config.polling.endpoint, timeout=self.config.polling.timeout_s
            ).fetch
        self._fetch = fetch
        self._clock = clock
        self.scheduler: PollScheduler | None = None
        self.presenter: HudPresenter | None = None

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        yield Static(f"Waiting for metrics at {self.config.polling.endpoint}…", id="status")
        with Grid(id="tiles"):
            for name in SERIES_LABELS:
                yield StatTile(name)
        yield Footer()

    def on_mount(self) -> None:
        self._status = self.query_one("#status", Static)
        labels = {name: self.query_one(f"#value-{name}", Static) for name in SERIES_LABELS}
        charts = {name: self.query_one(f"#chart-{name}", Sparkline) for name in SERIES_LABELS}
        board = TileBoard(labels, charts)
        self.presenter = HudPresenter(
            board,
            board,
            throttle=RenderThrottle(self.config.render.interval_ms),
            clock=self._clock,
        )
        self.scheduler = PollScheduler(
            self._fetch,
            self.handle_update,
            history=ClusterHistory.empty(
                self.config.history.max_length, self.config.history.alpha
            ),
            interval_ms=self.config.polling.interval_ms,
            timeout_s=self.config.polling.timeout_s,
            clock=self._clock,
        )
        self.scheduler.start()

    def on_unmount(self) -> None:
        if self.scheduler is not None:
            self.scheduler.stop()

    def handle_update(self, history: ClusterHistory) -> None:
        if self.presenter is not None:
            self.presenter(history)
        now = datetime.now(tz=UTC)
        self._status.update(
            f"Last update: {now.strftime('%H:%M:%S')} • Source: {self.config.polling.endpoint}"
        )


def run_tui(config: HudConfig | None = None) -> None:
    """Launch the Textual dashboard against the configured endpoint."""

    app = ClusterHudApp(config=config)
    app.run()


__all__ = ["ClusterHudApp", "StatTile", "TileBoard", "chartable", "run_tui"]

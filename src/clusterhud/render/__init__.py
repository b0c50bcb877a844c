"""Presentation boundary: throttling, formatting and render sinks."""

from .formatting import format_count, format_data_size_bytes, precision_round
from .sink import SERIES_LABELS, HudPresenter, LabelSink, LogSink, RenderSink, format_latest
from .throttle import RenderThrottle, should_render

__all__ = [
    "HudPresenter",
    "LabelSink",
    "LogSink",
    "RenderSink",
    "RenderThrottle",
    "SERIES_LABELS",
    "format_count",
    "format_data_size_bytes",
    "format_latest",
    "precision_round",
    "should_render",
]

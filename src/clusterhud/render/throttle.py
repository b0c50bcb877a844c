"""Rate limiter for the expensive chart redraw."""

from __future__ import annotations

from clusterhud.contracts.error import InvariantError
from clusterhud.metrics.constants import DEFAULT_RENDER_INTERVAL_MS


def should_render(
    last_render_ms: float | None, now_ms: float, interval_ms: float = DEFAULT_RENDER_INTERVAL_MS
) -> bool:
    if last_render_ms is None:
        return True
    return now_ms - last_render_ms >= interval_ms


class RenderThrottle:
    """Stateful wrapper around :func:`should_render`.

    Only gates chart redraws; callers keep their numeric labels fresh on every
    update regardless of what this returns.
    """

    __slots__ = ("interval_ms", "last_render_ms")

    def __init__(self, interval_ms: float = DEFAULT_RENDER_INTERVAL_MS) -> None:
        if interval_ms < 0:
            raise InvariantError(f"Render interval must be >= 0 ms; got {interval_ms}")
        self.interval_ms = interval_ms
        self.last_render_ms: float | None = None

    def try_acquire(self, now_ms: float) -> bool:
        """Return ``True`` and record ``now_ms`` when a redraw is allowed."""

        if not should_render(self.last_render_ms, now_ms, self.interval_ms):
            return False
        self.last_render_ms = now_ms
        return True


__all__ = ["RenderThrottle", "should_render"]

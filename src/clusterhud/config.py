"""Typed configuration loader for the Cluster HUD."""

from __future__ import annotations

import os
import tomllib
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from .contracts.error import BadInputError
from .metrics.constants import (
    DEFAULT_ENDPOINT,
    DEFAULT_EWMA_ALPHA,
    DEFAULT_FETCH_TIMEOUT_S,
    DEFAULT_HISTORY_SIZE,
    DEFAULT_POLL_INTERVAL_MS,
    DEFAULT_RENDER_INTERVAL_MS,
)

CONFIG_ENV_VAR = "CLUSTERHUD_CONFIG"


@dataclass
class PollingPolicy:
    endpoint: str = DEFAULT_ENDPOINT
    interval_ms: int = DEFAULT_POLL_INTERVAL_MS
    timeout_s: float = DEFAULT_FETCH_TIMEOUT_S

    def validate(self) -> None:
        if not self.endpoint.strip():
            raise BadInputError("polling.endpoint must be a non-empty URL")
        if self.interval_ms <= 0:
            raise BadInputError("polling.interval_ms must be > 0")
        if self.timeout_s <= 0:
            raise BadInputError("polling.timeout_s must be > 0")


@dataclass
class HistoryPolicy:
    max_length: int = DEFAULT_HISTORY_SIZE
    alpha: float = DEFAULT_EWMA_ALPHA

    def validate(self) -> None:
        if self.max_length <= 0:
            raise BadInputError("history.max_length must be > 0")
        if not 0.0 < self.alpha <= 1.0:
            raise BadInputError("history.alpha must be in (0, 1]")


@dataclass
class RenderPolicy:
    interval_ms: int = DEFAULT_RENDER_INTERVAL_MS

    def validate(self) -> None:
        if self.interval_ms < 0:
            raise BadInputError("render.interval_ms must be >= 0")


def _section(data: Mapping[str, Any], name: str, cls: type[Any]) -> Any:
    raw = data.get(name, {})
    if not isinstance(raw, dict):
        raise BadInputError(f"[{name}] section must be a table")
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise BadInputError(
            f"Unknown key(s) in [{name}]: {', '.join(unknown)}",
            hint=f"Allowed keys: {', '.join(sorted(known))}",
        )
    return cls(**raw)


@dataclass
class HudConfig:
    polling: PollingPolicy = field(default_factory=PollingPolicy)
    history: HistoryPolicy = field(default_factory=HistoryPolicy)
    render: RenderPolicy = field(default_factory=RenderPolicy)

    @classmethod
    def load(cls, path: Path | None) -> HudConfig:
        if path is None:
            cfg = cls()
        else:
            try:
                data = tomllib.loads(path.read_text(encoding="utf-8"))
            except FileNotFoundError as exc:
                raise BadInputError(f"Config file not found: {path}") from exc
            except tomllib.TOMLDecodeError as exc:
                raise BadInputError(f"Invalid TOML: {exc}") from exc
            cfg = cls.from_dict(data)
        cfg.apply_env_overrides(os.environ)
        cfg.validate()
        return cfg

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HudConfig:
        try:
            return cls(
                polling=_section(data, "polling", PollingPolicy),
                history=_section(data, "history", HistoryPolicy),
                render=_section(data, "render", RenderPolicy),
            )
        except TypeError as exc:
            raise BadInputError(f"Invalid config: {exc}") from exc

    def apply_env_overrides(self, env: Mapping[str, str]) -> None:
        mapping: dict[str, tuple[object, str, Callable[[str], Any]]] = {
            "CLUSTERHUD_ENDPOINT": (self.polling, "endpoint", str),
            "CLUSTERHUD_POLL_INTERVAL_MS": (self.polling, "interval_ms", int),
            "CLUSTERHUD_TIMEOUT_S": (self.polling, "timeout_s", float),
            "CLUSTERHUD_HISTORY_SIZE": (self.history, "max_length", int),
            "CLUSTERHUD_ALPHA": (self.history, "alpha", float),
            "CLUSTERHUD_RENDER_INTERVAL_MS": (self.render, "interval_ms", int),
        }
        for key, (target, attr, caster) in mapping.items():
            raw_value = env.get(key)
            if raw_value is None:
                continue
            try:
                value = caster(raw_value)
            except ValueError as exc:
                raise BadInputError(f"Invalid env override {key}={raw_value!r}") from exc
            setattr(target, attr, value)

    def validate(self) -> None:
        for section in (self.polling, self.history, self.render):
            for f in fields(section):
                value = getattr(section, f.name)
                expected = str if f.name == "endpoint" else (int, float)
                if isinstance(value, bool) or not isinstance(value, expected):
                    raise BadInputError(
                        f"{type(section).__name__}.{f.name} has invalid type "
                        f"{type(value).__name__}"
                    )
        self.polling.validate()
        self.history.validate()
        self.render.validate()


DEFAULT_CONFIG = HudConfig()


def load_hud_config(path: str | None) -> HudConfig:
    config_path = Path(path) if path else None
    return HudConfig.load(config_path)


__all__ = [
    "CONFIG_ENV_VAR",
    "DEFAULT_CONFIG",
    "HistoryPolicy",
    "HudConfig",
    "PollingPolicy",
    "RenderPolicy",
    "load_hud_config",
]

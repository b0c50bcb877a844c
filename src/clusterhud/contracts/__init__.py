"""Contract helpers for the Cluster HUD."""

from .error import (
    BadInputError,
    EnvelopeError,
    ErrorEnvelope,
    Exit,
    InvariantError,
    PolicyError,
    SnapshotParseError,
    TransportError,
    die,
    guard_cli,
)

__all__ = [
    "Exit",
    "ErrorEnvelope",
    "EnvelopeError",
    "BadInputError",
    "SnapshotParseError",
    "InvariantError",
    "PolicyError",
    "TransportError",
    "guard_cli",
    "die",
]

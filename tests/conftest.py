import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
if SRC.exists():
    sys.path.insert(0, str(SRC))

# Register shared Hypothesis profiles for deterministic CI runs and fast local loops.
from tests.util import hypothesis_profiles  # noqa: E402,F401  pylint: disable=unused-import

from clusterhud.metrics.snapshot import MetricsSnapshot  # noqa: E402

BASE_PAYLOAD = {
    "runningQueries": 3,
    "queuedQueries": 1,
    "blockedQueries": 0,
    "activeWorkers": 2,
    "runningDrivers": 12.0,
    "reservedMemory": 1048576.0,
    "totalInputRows": 1000,
    "totalInputBytes": 500000,
    "totalCpuTimeSecs": 10.0,
}


def make_snapshot(**overrides: float) -> MetricsSnapshot:
    """Snapshot from the base payload with wire-name overrides."""

    return MetricsSnapshot.from_payload({**BASE_PAYLOAD, **overrides})


@pytest.fixture(name="snapshot_factory")
def _snapshot_factory_fixture():
    return make_snapshot


@pytest.fixture(name="base_payload")
def _base_payload_fixture() -> dict:
    return dict(BASE_PAYLOAD)

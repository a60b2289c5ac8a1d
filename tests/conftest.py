"""
Shared pytest fixtures and configuration for virtual-time tests.

This module provides:
- A fresh clock pinned to a known start instant
- A callback recorder that captures (state, fire time) pairs
- Auto-marking of unit/integration tests by location

Usage:
    def test_something(clock, recorder):
        clock.create_timer(recorder, "a", timedelta(seconds=1), INFINITE)
        clock.advance(timedelta(seconds=1))
        assert recorder.states == ["a"]
"""

import sys
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest

# Ensure virtual_time package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from virtual_time import VirtualClock


START = datetime(2001, 2, 3, 4, 5, 6, tzinfo=UTC)


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)
        if "integration" in str(test_path):
            item.add_marker(pytest.mark.integration)

        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Clock Fixtures
# =============================================================================


@pytest.fixture
def clock() -> VirtualClock:
    """Clock starting at 2001-02-03T04:05:06Z with no auto-advance."""
    return VirtualClock(START)


@dataclass
class CallbackRecorder:
    """Timer callback that records each fire together with the clock time."""

    clock: VirtualClock
    calls: list[tuple[Any, datetime]] = field(default_factory=list)

    def __call__(self, state: Any) -> None:
        self.calls.append((state, self.clock.now()))

    @property
    def states(self) -> list[Any]:
        return [state for state, _ in self.calls]

    @property
    def times(self) -> list[datetime]:
        return [when for _, when in self.calls]


@pytest.fixture
def recorder(clock: VirtualClock) -> CallbackRecorder:
    return CallbackRecorder(clock)

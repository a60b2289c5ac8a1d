"""
Tick arithmetic and duration validation (stdlib-only).

The clock keeps time as an integer count of microsecond ticks so that
ordering and period arithmetic are exact. This module converts between
that representation and the ``datetime``/``timedelta`` values callers use.

Duration encoding:
    - ``timedelta(0)``: fire immediately
    - ``INFINITE`` (``timedelta(milliseconds=-1)``): never fire / one-shot
    - anything else must lie in ``[0, MAX_SUPPORTED_DURATION]``

Plain ``int``/``float`` values are accepted as seconds.

Tags:
    ticks, timedelta, validation, virtual-time, stdlib-only

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import math
from datetime import UTC, datetime, timedelta
from typing import Union

from .errors import InvalidDurationError, InvalidInstantError

Duration = Union[timedelta, int, float]

TICKS_PER_SECOND = 1_000_000
TICK = timedelta(microseconds=1)

INFINITE = timedelta(milliseconds=-1)
MAX_SUPPORTED_DURATION = timedelta(milliseconds=0xFFFFFFFE)

INFINITE_TICKS = INFINITE // TICK
MAX_SUPPORTED_TICKS = MAX_SUPPORTED_DURATION // TICK

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
MIN_TICKS = (datetime.min.replace(tzinfo=UTC) - EPOCH) // TICK
MAX_TICKS = (datetime.max.replace(tzinfo=UTC) - EPOCH) // TICK


def to_ticks(value: Duration, field: str = "duration") -> int:
    """Convert a duration to whole ticks without validating its range.

    Raises:
        TypeError: value is neither a timedelta nor a number of seconds
        InvalidDurationError: value is a NaN or infinite float
    """
    if isinstance(value, timedelta):
        return value // TICK
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"duration must be a timedelta or seconds, got {type(value).__name__}")
    scaled = value * TICKS_PER_SECOND
    if isinstance(scaled, float) and not math.isfinite(scaled):
        raise InvalidDurationError(field, value, constraint="finite number of seconds")
    return round(scaled)


def to_timedelta(ticks: int) -> timedelta:
    return ticks * TICK


def validate_timer_duration(value: Duration, field: str) -> int:
    """
    Validate a timer ``due_time`` or ``period`` and return it in ticks.

    Returns ``INFINITE_TICKS`` for the infinite sentinel.

    Raises:
        InvalidDurationError: value is negative (and not INFINITE) or too large
    """
    ticks = to_ticks(value, field)
    if ticks == INFINITE_TICKS:
        return ticks
    if ticks < 0 or ticks > MAX_SUPPORTED_TICKS:
        raise InvalidDurationError(field, value)
    return ticks


def validate_non_negative(value: Duration, field: str) -> int:
    """Validate a duration that only has to be ``>= 0`` (no upper bound, no sentinel)."""
    ticks = to_ticks(value, field)
    if ticks < 0:
        raise InvalidDurationError(field, value, constraint="duration >= 0")
    return ticks


def instant_to_ticks(value: datetime, field: str = "value") -> int:
    """Convert an aware datetime to ticks since the Unix epoch."""
    if not isinstance(value, datetime) or value.tzinfo is None or value.utcoffset() is None:
        raise InvalidInstantError(field, value)
    return (value - EPOCH) // TICK


def ticks_to_instant(ticks: int) -> datetime:
    """Convert ticks since the Unix epoch to an aware UTC datetime."""
    return EPOCH + ticks * TICK


__all__ = [
    "Duration",
    "TICKS_PER_SECOND",
    "TICK",
    "INFINITE",
    "MAX_SUPPORTED_DURATION",
    "INFINITE_TICKS",
    "MAX_SUPPORTED_TICKS",
    "MIN_TICKS",
    "MAX_TICKS",
    "to_ticks",
    "to_timedelta",
    "validate_timer_duration",
    "validate_non_negative",
    "instant_to_ticks",
    "ticks_to_instant",
]

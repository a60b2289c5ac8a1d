"""virtual-time -- deterministic virtual clock and cooperative timers.

Architecture::

    errors.py      Structured error hierarchy (VirtualTimeError, InvalidDurationError)
    durations.py   Tick arithmetic, INFINITE sentinel, duration validation
    registry.py    Waiter + WaiterRegistry (slot map, selection, rescheduling)
    engine.py      WakeEngine (gate-protected drain loop)
    timer.py       Timer handle (change / dispose / context manager)
    clock.py       VirtualClock (now / set_now / advance / create_timer)
    aio.py         asyncio sleep / wait_for driven by virtual time
    settings.py    ClockSettings (pydantic-settings, VIRTUAL_TIME_* env vars)
    logging.py     structlog configuration + get_logger

Quick start::

    from datetime import timedelta
    from virtual_time import INFINITE, VirtualClock

    clock = VirtualClock()
    fired = []
    clock.create_timer(fired.append, "ping", timedelta(seconds=1), INFINITE)
    clock.advance(timedelta(seconds=1))
    assert fired == ["ping"]
"""

from .aio import sleep, wait_for
from .clock import VirtualClock
from .durations import INFINITE, MAX_SUPPORTED_DURATION, TICKS_PER_SECOND
from .errors import (
    ErrorCategory,
    ErrorContext,
    InvalidDurationError,
    InvalidInstantError,
    OutOfOrderTimeError,
    ValidationError,
    VirtualTimeError,
    WaitTimeoutError,
)
from .logging import configure_logging, get_logger
from .settings import ClockSettings
from .timer import Timer

__version__ = "0.1.0"

__all__ = [
    "VirtualClock",
    "Timer",
    "INFINITE",
    "MAX_SUPPORTED_DURATION",
    "TICKS_PER_SECOND",
    "sleep",
    "wait_for",
    "ClockSettings",
    "configure_logging",
    "get_logger",
    "ErrorCategory",
    "ErrorContext",
    "VirtualTimeError",
    "ValidationError",
    "InvalidDurationError",
    "InvalidInstantError",
    "OutOfOrderTimeError",
    "WaitTimeoutError",
]

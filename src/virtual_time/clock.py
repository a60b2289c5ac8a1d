"""
Deterministic virtual clock with cooperative timers.

``VirtualClock`` is an in-memory substitute for wall-clock time that only
moves when told to. Timers created from it fire synchronously, on the stack
of whichever call moved time, in a reproducible order.

Manifesto:
    Time-dependent logic (timeouts, retries, periodic polling) is only
    testable when the test owns time. Sleeping in tests is slow and flaky;
    patching ``time.time`` does not fire timers. This module provides:

    - **Explicit time:** ``advance`` / ``set_now`` are the only ways forward
    - **Synchronous timers:** Due callbacks run inside the call that moved time
    - **Catch-up firing:** A large jump fires a periodic timer once per period
    - **Deterministic order:** Ties broken by last (re)arm instant, then age

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                       VirtualClock                            │
        │   _now (ticks) ─┐                                             │
        │                 │ guarded by registry.lock                    │
        │   WaiterRegistry ◄──────── Timer handles (hold waiter ids)    │
        │        │                                                      │
        │   WakeEngine (gate) ◄── now() / set_now() / advance() /       │
        │                         adjust_time() / Timer.change()        │
        └──────────────────────────────────────────────────────────────┘

Examples:
    One-shot timer:

    >>> clock = VirtualClock()
    >>> fired = []
    >>> timer = clock.create_timer(fired.append, "a", timedelta(seconds=1), INFINITE)
    >>> clock.advance(timedelta(milliseconds=500)); fired
    []
    >>> clock.advance(timedelta(milliseconds=500)); fired
    ['a']

    Periodic timer with catch-up:

    >>> ticks = []
    >>> t = clock.create_timer(ticks.append, None, timedelta(0), timedelta(seconds=1))
    >>> clock.advance(timedelta(seconds=2.5)); len(ticks)
    3

Guardrails:
    ❌ DON'T: Expect callbacks to run on a background thread
    ✅ DO: Expect them to run inside ``advance`` / ``set_now`` / ``create_timer``

    ❌ DON'T: Move time backwards
    ✅ DO: Create a new clock per test

Tags:
    virtual-time, fake-clock, timers, testing, deterministic, scheduler

Doc-Types:
    - API Reference
    - Testing Guide
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, tzinfo
from typing import Any

from .durations import (
    MAX_TICKS,
    TICKS_PER_SECOND,
    Duration,
    instant_to_ticks,
    ticks_to_instant,
    to_timedelta,
    validate_non_negative,
)
from .engine import WakeEngine
from .errors import InvalidDurationError, OutOfOrderTimeError
from .logging import debug_enabled, get_logger
from .registry import WaiterRegistry
from .settings import DEFAULT_START, ClockSettings
from .timer import Timer, TimerCallback

logger = get_logger(__name__)


class VirtualClock:
    """Monotonic virtual time source that owns a timer registry.

    Args:
        start: Initial instant (aware datetime). Defaults to 2000-01-01T00:00:00Z.
        auto_advance: Amount added to the current time after every read.
        local_timezone: Value reported by ``local_timezone``; stored as-is.
    """

    def __init__(
        self,
        start: datetime | None = None,
        *,
        auto_advance: Duration = timedelta(0),
        local_timezone: tzinfo = UTC,
    ) -> None:
        self._now = instant_to_ticks(start if start is not None else DEFAULT_START, "start")
        self._start = ticks_to_instant(self._now)
        self._auto_advance = validate_non_negative(auto_advance, "auto_advance")
        self._local_timezone = local_timezone
        self._registry = WaiterRegistry()
        self._engine = WakeEngine(self._registry, lambda: self._now)

    @classmethod
    def from_settings(cls, settings: ClockSettings | None = None) -> VirtualClock:
        """Build a clock from :class:`ClockSettings` (read from the environment if omitted)."""
        if settings is None:
            settings = ClockSettings()
        return cls(settings.start, auto_advance=settings.auto_advance)

    # ── Reading time ────────────────────────────────────────────

    @property
    def start(self) -> datetime:
        """The instant this clock was created at."""
        return self._start

    @property
    def frequency(self) -> int:
        """Ticks per second of :meth:`monotonic_ticks`."""
        return TICKS_PER_SECOND

    def now(self) -> datetime:
        """Return the current instant, then move forward by ``auto_advance``."""
        return ticks_to_instant(self._read())

    def monotonic_ticks(self) -> int:
        """Current time in ticks since the Unix epoch (``auto_advance`` applies)."""
        return self._read()

    def get_elapsed_time(self, start_ticks: int, end_ticks: int | None = None) -> timedelta:
        """Time between two :meth:`monotonic_ticks` readings.

        ``end_ticks`` defaults to a fresh reading, which auto-advances.
        """
        if end_ticks is None:
            end_ticks = self.monotonic_ticks()
        return to_timedelta(end_ticks - start_ticks)

    def _read(self) -> int:
        with self._registry.lock:
            result = self._now
            self._now += self._auto_advance
        self._engine.wake()
        return result

    # ── Moving time ─────────────────────────────────────────────

    def set_now(self, value: datetime) -> None:
        """Jump to ``value`` and fire everything that became due.

        Raises:
            OutOfOrderTimeError: ``value`` is earlier than the current time
            InvalidInstantError: ``value`` is naive
        """
        ticks = instant_to_ticks(value, "value")
        with self._registry.lock:
            if ticks < self._now:
                current = ticks_to_instant(self._now)
                raise OutOfOrderTimeError(current, value).with_context(clock_time=current.isoformat())
            self._now = ticks
        if debug_enabled(__name__):
            logger.debug("clock_set", now=ticks)
        self._engine.wake()

    def advance(self, delta: Duration) -> None:
        """Move forward by ``delta``; due callbacks run before this returns.

        Raises:
            InvalidDurationError: ``delta`` is negative or would overflow ``datetime.max``
        """
        delta_ticks = validate_non_negative(delta, "delta")
        with self._registry.lock:
            if self._now + delta_ticks > MAX_TICKS:
                raise InvalidDurationError(
                    "delta", delta, constraint="now + delta <= datetime.max"
                ).with_context(clock_time=ticks_to_instant(self._now).isoformat())
            self._now += delta_ticks
            now = self._now
        if debug_enabled(__name__):
            logger.debug("clock_advanced", delta=delta_ticks, now=now)
        self._engine.wake()

    def adjust_time(self, value: datetime) -> None:
        """Move the reported time forward to ``value`` without making timers due.

        Simulates the system clock being changed: pending timers are shifted by
        the same amount, so each keeps the wait it had left.

        Raises:
            OutOfOrderTimeError: ``value`` is earlier than the current time
        """
        ticks = instant_to_ticks(value, "value")
        with self._registry.lock:
            if ticks < self._now:
                current = ticks_to_instant(self._now)
                raise OutOfOrderTimeError(current, value).with_context(clock_time=current.isoformat())
            self._registry.shift(ticks - self._now)
            self._now = ticks
        if debug_enabled(__name__):
            logger.debug("clock_adjusted", now=ticks)
        self._engine.wake()

    @property
    def auto_advance(self) -> timedelta:
        return to_timedelta(self._auto_advance)

    @auto_advance.setter
    def auto_advance(self, value: Duration) -> None:
        ticks = validate_non_negative(value, "auto_advance")
        with self._registry.lock:
            self._auto_advance = ticks

    # ── Time zone (pass-through) ────────────────────────────────

    @property
    def local_timezone(self) -> tzinfo:
        return self._local_timezone

    def set_local_timezone(self, tz: tzinfo) -> None:
        if not isinstance(tz, tzinfo):
            raise TypeError("tz must be a tzinfo instance")
        self._local_timezone = tz

    def local_now(self) -> datetime:
        """:meth:`now` expressed in ``local_timezone``."""
        return self.now().astimezone(self._local_timezone)

    # ── Timers ──────────────────────────────────────────────────

    def create_timer(
        self,
        callback: TimerCallback,
        state: Any,
        due_time: Duration,
        period: Duration,
    ) -> Timer:
        """Create and arm a timer.

        Args:
            callback: Invoked as ``callback(state)`` on every fire
            state: Opaque value handed back to ``callback``
            due_time: Delay until the first fire; zero fires before this returns
            period: Delay between fires; zero or ``INFINITE`` for one-shot

        Raises:
            InvalidDurationError: ``due_time`` or ``period`` out of range
        """
        timer = Timer(self, callback, state)
        timer.change(due_time, period)
        return timer

    @property
    def pending_timers(self) -> int:
        """Number of waiters currently held by the registry."""
        with self._registry.lock:
            return len(self._registry)

    def reclaim_abandoned(self) -> int:
        """Drop waiters whose ``Timer`` handle no longer exists.

        Nothing calls this implicitly; disposal is expected to be explicit.

        Returns:
            Number of waiters removed
        """
        with self._registry.lock:
            orphans = self._registry.abandoned()
            for waiter_id in orphans:
                self._registry.remove(waiter_id)
        return len(orphans)

    def __str__(self) -> str:
        return self.now().replace(tzinfo=None).isoformat(timespec="milliseconds")

    def __repr__(self) -> str:
        return f"VirtualClock(now={ticks_to_instant(self._now).isoformat()}, pending={len(self._registry)})"

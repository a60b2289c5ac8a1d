"""Timer handles returned by :meth:`VirtualClock.create_timer`.

A ``Timer`` references at most one waiter at a time, by id, in its clock's
registry. ``change`` replaces that waiter, ``dispose`` removes it. Both are
safe to call from inside the timer's own callback.

Example:
    >>> clock = VirtualClock()
    >>> fired = []
    >>> with clock.create_timer(fired.append, "tick", timedelta(seconds=1), INFINITE):
    ...     clock.advance(timedelta(seconds=1))
    >>> fired
    ['tick']
"""

from __future__ import annotations

import weakref
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from .durations import Duration, validate_timer_duration
from .errors import InvalidDurationError
from .logging import debug_enabled, get_logger
from .registry import Waiter

if TYPE_CHECKING:
    from .clock import VirtualClock

logger = get_logger(__name__)

TimerCallback = Callable[[Any], object]


class Timer:
    """Handle over one (re)armable timer registration.

    A freshly constructed handle is unarmed; :meth:`change` arms it.
    :meth:`VirtualClock.create_timer` does both in one step.

    Args:
        clock: The clock the timer is scheduled against
        callback: Invoked as ``callback(state)`` each time the timer fires
        state: Opaque value passed back to ``callback``
    """

    def __init__(self, clock: VirtualClock, callback: TimerCallback, state: Any = None) -> None:
        if not callable(callback):
            raise TypeError("callback must be callable")
        self._clock: VirtualClock | None = clock
        self._callback = callback
        self._state = state
        self._waiter_id: int | None = None

    @property
    def disposed(self) -> bool:
        return self._clock is None

    @property
    def waiter_id(self) -> int | None:
        """Id of the current waiter in the clock's registry, if armed."""
        return self._waiter_id

    def change(self, due_time: Duration, period: Duration) -> bool:
        """Re-arm the timer relative to the clock's current time.

        Any pending fire of the previous configuration is discarded. When
        ``due_time`` is zero the callback fires before this method returns.

        Args:
            due_time: Delay until the first fire, or ``INFINITE`` to stay idle
            period: Delay between subsequent fires; zero or ``INFINITE`` for one-shot

        Returns:
            False if the timer was already disposed, True otherwise

        Raises:
            InvalidDurationError: ``due_time`` or ``period`` out of range
        """
        try:
            due_ticks = validate_timer_duration(due_time, "due_time")
            period_ticks = validate_timer_duration(period, "period")
        except InvalidDurationError as exc:
            raise exc.with_context(timer_id=self._waiter_id)

        clock = self._clock
        if clock is None:
            return False

        callback, state = self._callback, self._state
        waiter = Waiter(callback=lambda: callback(state), period=period_ticks, owner=weakref.ref(self))

        registry = clock._registry
        with registry.lock:
            if self._clock is None:
                return False
            registry.remove(self._waiter_id)
            self._waiter_id = registry.insert(waiter, due_ticks, clock._now)

        if debug_enabled(__name__):
            logger.debug(
                "timer_armed",
                timer_id=waiter.id,
                wakeup=waiter.wakeup,
                period=period_ticks,
            )
        clock._engine.wake()
        return True

    def dispose(self) -> None:
        """Cancel the timer; no further fires. Idempotent."""
        clock = self._clock
        if clock is None:
            return
        with clock._registry.lock:
            clock._registry.remove(self._waiter_id)
            waiter_id, self._waiter_id = self._waiter_id, None
            self._clock = None
        if debug_enabled(__name__):
            logger.debug("timer_disposed", timer_id=waiter_id)

    def __enter__(self) -> Timer:
        return self

    def __exit__(self, *args: Any) -> None:
        self.dispose()

    def __repr__(self) -> str:
        state = "disposed" if self.disposed else f"waiter={self._waiter_id}"
        return f"Timer({state})"

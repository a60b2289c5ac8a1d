"""asyncio helpers whose waiting is driven by a :class:`VirtualClock`.

The clock never suspends anything itself. These helpers park a coroutine on
an ``asyncio.Future`` and let a one-shot timer resolve it. Resolution is
delivered to the owning event loop with ``call_soon_threadsafe``, so the
waiting task resumes on its next loop iteration after the timer fired,
whichever thread advanced the clock.

Example:
    >>> async def poll(clock):
    ...     await sleep(clock, timedelta(seconds=5))
    ...     return "done"
    >>> task = asyncio.create_task(poll(clock))
    >>> clock.advance(timedelta(seconds=5))
    >>> await task
    'done'
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TYPE_CHECKING, Any, TypeVar

from .durations import INFINITE, INFINITE_TICKS, Duration, validate_timer_duration
from .errors import WaitTimeoutError

if TYPE_CHECKING:
    from .clock import VirtualClock

T = TypeVar("T")


def _resolver(loop: asyncio.AbstractEventLoop, future: asyncio.Future, result: Any):
    def _set() -> None:
        if not future.done():
            future.set_result(result)

    def _fire(_state: Any) -> None:
        loop.call_soon_threadsafe(_set)

    return _fire


async def sleep(clock: VirtualClock, delay: Duration, result: T = None) -> T:
    """Suspend until ``clock`` has moved ``delay`` past the current time.

    ``INFINITE`` sleeps until the awaiting task is cancelled.

    Raises:
        InvalidDurationError: ``delay`` out of range
    """
    validate_timer_duration(delay, "delay")
    loop = asyncio.get_running_loop()
    future: asyncio.Future = loop.create_future()
    timer = clock.create_timer(_resolver(loop, future, result), None, delay, INFINITE)
    try:
        return await future
    finally:
        timer.dispose()


async def wait_for(aw: Awaitable[T], timeout: Duration, clock: VirtualClock) -> T:
    """Await ``aw``, failing once ``clock`` moves ``timeout`` past the current time.

    On expiry the inner task is cancelled and awaited, then
    :class:`WaitTimeoutError` is raised. ``INFINITE`` waits without a deadline.
    A coroutine rejected by timeout validation is closed, never scheduled.

    Raises:
        InvalidDurationError: ``timeout`` out of range
        WaitTimeoutError: virtual time ran out first
    """
    try:
        timeout_ticks = validate_timer_duration(timeout, "timeout")
    except (TypeError, ValueError):
        if asyncio.iscoroutine(aw):
            aw.close()
        raise

    task = asyncio.ensure_future(aw)
    if timeout_ticks == INFINITE_TICKS:
        return await task

    loop = asyncio.get_running_loop()
    expired: asyncio.Future = loop.create_future()
    timer = clock.create_timer(_resolver(loop, expired, None), None, timeout, INFINITE)
    try:
        await asyncio.wait({task, expired}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        task.cancel()
        await asyncio.wait({task})
        raise
    finally:
        timer.dispose()
        expired.cancel()

    if not task.done():
        task.cancel()
        await asyncio.wait({task})
        if task.cancelled():
            raise WaitTimeoutError(f"Timed out after {timeout!r} of virtual time")
    return task.result()


__all__ = ["sleep", "wait_for"]

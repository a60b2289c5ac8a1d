"""Waiter registry: the set of pending timer registrations of one clock.

The registry is a slot map keyed by stable integer ids. A ``Timer`` handle
holds only the id of its current waiter, never the waiter itself, so a
waiter has exactly one owner (the registry) and removal by id is idempotent.

Every method that touches the map expects ``lock`` to be held by the caller.
The lock also guards the owning clock's current time, which is why the
wake engine can run selection and compare against "now" in one critical
section.

Selection::

    due       = { w | w.wakeup is not None and w.wakeup <= now }
    selected  = min(due, key=(wakeup, scheduled_on, id))

``scheduled_on`` is the instant the waiter was last (re)armed, so a waiter
that was just rescheduled yields to one that has been waiting longer for
the same wake-up instant. ``id`` is assigned in insertion order and makes
the order total.
"""

from __future__ import annotations

import threading
import weakref
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Any

from .durations import INFINITE_TICKS
from .errors import ErrorCategory, VirtualTimeError


@dataclass(eq=False)
class Waiter:
    """One pending timer registration.

    Attributes:
        callback: Zero-argument closure over the user's callback and state
        period: Ticks between fires; 0 or INFINITE_TICKS means one-shot
        wakeup: Absolute ticks of the next fire, or None for "never"
        scheduled_on: Absolute ticks of the last (re)arm
        id: Slot id assigned by the registry on insert
        owner: Weak reference to the handle that armed this waiter
    """

    callback: Callable[[], Any]
    period: int
    wakeup: int | None = None
    scheduled_on: int = 0
    id: int = -1
    owner: weakref.ref | None = field(default=None, repr=False)

    @property
    def is_periodic(self) -> bool:
        return self.period not in (0, INFINITE_TICKS)

    def invoke(self) -> None:
        self.callback()


class WaiterRegistry:
    """Unordered collection of live waiters guarded by a single exclusive lock."""

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self._waiters: dict[int, Waiter] = {}
        self._next_id = 0

    def __len__(self) -> int:
        return len(self._waiters)

    def __contains__(self, waiter_id: object) -> bool:
        return waiter_id in self._waiters

    def __iter__(self) -> Iterator[Waiter]:
        return iter(list(self._waiters.values()))

    def get(self, waiter_id: int) -> Waiter | None:
        return self._waiters.get(waiter_id)

    def insert(self, waiter: Waiter, due_ticks: int, now_ticks: int) -> int:
        """Arm ``waiter`` relative to ``now_ticks`` and add it to the map.

        Args:
            waiter: Fresh waiter (its id is assigned here)
            due_ticks: Ticks from now until the first fire, or INFINITE_TICKS
            now_ticks: Current clock time

        Returns:
            The waiter's slot id
        """
        waiter.id = self._next_id
        self._next_id += 1
        waiter.scheduled_on = now_ticks
        waiter.wakeup = None if due_ticks == INFINITE_TICKS else now_ticks + due_ticks
        self._waiters[waiter.id] = waiter
        return waiter.id

    def remove(self, waiter_id: int | None) -> Waiter | None:
        """Remove a waiter by id; unknown or ``None`` ids are ignored."""
        if waiter_id is None:
            return None
        waiter = self._waiters.pop(waiter_id, None)
        if waiter is not None:
            waiter.wakeup = None
        return waiter

    def select_due(self, now_ticks: int) -> Waiter | None:
        """Return the earliest-due waiter at ``now_ticks``, or None."""
        candidate: Waiter | None = None
        for waiter in self._waiters.values():
            if waiter.wakeup is None or waiter.wakeup > now_ticks:
                continue
            if candidate is None or (waiter.wakeup, waiter.scheduled_on, waiter.id) < (
                candidate.wakeup,
                candidate.scheduled_on,
                candidate.id,
            ):
                candidate = waiter
        return candidate

    def reschedule(self, waiter: Waiter, before: int, after: int) -> bool:
        """Update a waiter that has just fired.

        One-shot waiters are removed. Periodic waiters are re-armed one period
        after their previous wake-up, or one period after ``after`` when the
        callback itself moved the clock.

        A waiter that left the map while its callback ran (disposed, or
        replaced through ``change``) is left alone.

        Returns:
            True if the waiter is still armed afterwards
        """
        if self._waiters.get(waiter.id) is not waiter:
            return False
        if not waiter.is_periodic:
            self.remove(waiter.id)
            return False
        if waiter.wakeup is None:
            raise VirtualTimeError(
                "Rescheduled a waiter that was never armed",
                category=ErrorCategory.INTERNAL,
            ).with_context(timer_id=waiter.id)
        waiter.scheduled_on = after
        if after != before:
            waiter.wakeup = after + waiter.period
        else:
            waiter.wakeup += waiter.period
        return True

    def shift(self, delta_ticks: int) -> None:
        """Move every armed waiter by ``delta_ticks``, preserving remaining waits."""
        for waiter in self._waiters.values():
            waiter.scheduled_on += delta_ticks
            if waiter.wakeup is not None:
                waiter.wakeup += delta_ticks

    def abandoned(self) -> list[int]:
        """Ids of waiters whose owning handle no longer exists."""
        return [
            waiter.id
            for waiter in self._waiters.values()
            if waiter.owner is not None and waiter.owner() is None
        ]

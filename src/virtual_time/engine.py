"""Wake engine: the reentrancy-safe loop that fires due waiters.

┌──────────────────────────────────────────────────────────────────────────────┐
│  WAKE LOOP                                                                    │
│                                                                               │
│   wake()                                                                      │
│     │                                                                         │
│     ▼                                                                         │
│   gate.acquire(blocking=False) ──── already held ───► return (no-op)          │
│     │                                                                         │
│     ▼                                                                         │
│   ┌─────────────────────────────────────────────────────────┐                 │
│   │  with registry.lock:                                    │                 │
│   │      waiter = select_due(now)                           │                 │
│   │      if waiter is None:                                 │                 │
│   │          on_gate_opening()                              │                 │
│   │          gate.release()  ◄── still under the lock       │                 │
│   │          return                                         │                 │
│   │  before = now                                           │                 │
│   │  waiter.invoke()          ◄── no lock held              │                 │
│   │  after = now                                            │                 │
│   │  with registry.lock:                                    │                 │
│   │      reschedule(waiter, before, after)                  │                 │
│   └──────────────────────── loop ───────────────────────────┘                 │
│                                                                               │
│  Invariants:                                                                  │
│  1. At most one loop holds the gate; nested wake() calls from inside a        │
│     callback return immediately and are observed by the next iteration.      │
│  2. The gate is released under the registry lock, so a waiter inserted by    │
│     another thread is either seen by this loop or finds the gate open.       │
│  3. A fired waiter is rescheduled or removed even if its callback raises,    │
│     and the gate is always released before the exception propagates.        │
└──────────────────────────────────────────────────────────────────────────────┘

Catch-up firing falls out of the loop: a periodic waiter that is several
periods behind is selected again on each iteration until its wake-up time
passes the current time.
"""

from __future__ import annotations

import threading
from collections.abc import Callable

from .logging import debug_enabled, get_logger
from .registry import WaiterRegistry

logger = get_logger(__name__)


class WakeEngine:
    """Drains due waiters of one registry against one time source.

    Args:
        registry: The clock's waiter registry (its lock also guards time)
        read_ticks: Returns the clock's current ticks without side effects
    """

    def __init__(self, registry: WaiterRegistry, read_ticks: Callable[[], int]) -> None:
        self._registry = registry
        self._read_ticks = read_ticks
        self._gate = threading.Lock()
        # Called under the registry lock right before the gate opens.
        self._on_gate_opening: Callable[[], None] | None = None

    @property
    def active(self) -> bool:
        """True while a drain loop holds the gate."""
        return self._gate.locked()

    def wake(self) -> None:
        """Fire every waiter that is due, including ones made due by the callbacks."""
        if not self._gate.acquire(blocking=False):
            return

        released = False
        try:
            while True:
                with self._registry.lock:
                    waiter = self._registry.select_due(self._read_ticks())
                    if waiter is None:
                        if self._on_gate_opening is not None:
                            self._on_gate_opening()
                        self._gate.release()
                        released = True
                        return

                trace = debug_enabled(__name__)
                before = self._read_ticks()
                if trace:
                    logger.debug("timer_fired", timer_id=waiter.id, wakeup=waiter.wakeup, now=before)
                try:
                    waiter.invoke()
                finally:
                    after = self._read_ticks()
                    with self._registry.lock:
                        armed = self._registry.reschedule(waiter, before, after)
                    if trace and armed:
                        logger.debug("timer_rescheduled", timer_id=waiter.id, wakeup=waiter.wakeup)
                    elif trace:
                        logger.debug("timer_removed", timer_id=waiter.id)
        finally:
            if not released:
                self._gate.release()

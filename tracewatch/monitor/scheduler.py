"""Tick scheduling for the poll loop.

The loop never sleeps directly; it asks a timer to wait for the next tick.
Tests substitute a timer that returns immediately.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Protocol


class TickTimer(Protocol):
    def wait(self) -> bool:
        """Block until the next tick. Return False once stopped."""

    def stop(self) -> None:
        ...


@dataclass
class IntervalTimer:
    """Fixed-rate ticker.

    Ticks are scheduled ``interval`` seconds apart from the first call to
    :meth:`wait`. A tick that overruns its slot causes the missed slots to
    be skipped rather than fired back-to-back.

    Attributes:
        interval: Seconds between tick starts.
        clock: Monotonic time source.
    """

    interval: float
    clock: Callable[[], float] = time.monotonic
    _stop_event: threading.Event = field(default_factory=threading.Event)
    _next_deadline: float | None = None

    def wait(self) -> bool:
        now = self.clock()
        if self._next_deadline is None:
            self._next_deadline = now + self.interval
        elif self._next_deadline <= now:
            missed = int((now - self._next_deadline) // self.interval) + 1
            self._next_deadline += missed * self.interval

        remaining = max(self._next_deadline - now, 0.0)
        if self._stop_event.wait(remaining):
            return False
        self._next_deadline += self.interval
        return True

    def stop(self) -> None:
        self._stop_event.set()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

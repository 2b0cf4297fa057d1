"""
Virtual-time timer queue for the simulation.

Every delayed effect in the game (mana regeneration, per-cast combo decay,
target respawn) is a timer on this queue. The session advances the clock
once per frame, so tests can step time deterministically instead of
sleeping on wall-clock timers.
"""

import heapq
import itertools
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class TimerHandle:
    """Handle returned by Scheduler.call_later / call_every."""

    __slots__ = ("fire_at", "seq", "callback", "args", "interval", "name", "cancelled")

    def __init__(self, fire_at: float, seq: int, callback: Callable, args: tuple,
                 interval: Optional[float] = None, name: str = ""):
        self.fire_at = fire_at
        self.seq = seq
        self.callback = callback
        self.args = args
        self.interval = interval
        self.name = name
        self.cancelled = False

    def __lt__(self, other: "TimerHandle") -> bool:
        # Same fire time: first scheduled fires first
        return (self.fire_at, self.seq) < (other.fire_at, other.seq)

    def __repr__(self):
        state = "cancelled" if self.cancelled else f"at={self.fire_at:.0f}ms"
        return f"TimerHandle({self.name or self.callback.__name__}, {state})"

    def cancel(self):
        self.cancelled = True


class Scheduler:
    """Priority queue of timers keyed by fire time, in milliseconds."""

    def __init__(self, start_ms: float = 0.0):
        self._now = start_ms
        self._heap = []
        self._seq = itertools.count()

    @property
    def now(self) -> float:
        return self._now

    @property
    def pending(self) -> int:
        """Number of live (not cancelled) timers."""
        return sum(1 for t in self._heap if not t.cancelled)

    def call_later(self, delay_ms: float, callback: Callable, *args, name: str = "") -> TimerHandle:
        """Run callback(*args) once, delay_ms after the current time."""
        handle = TimerHandle(self._now + max(0.0, delay_ms), next(self._seq),
                             callback, args, name=name)
        heapq.heappush(self._heap, handle)
        return handle

    def call_every(self, interval_ms: float, callback: Callable, *args, name: str = "") -> TimerHandle:
        """Run callback(*args) every interval_ms, first firing one interval from now."""
        if interval_ms <= 0:
            raise ValueError(f"interval must be positive, got {interval_ms}")
        handle = TimerHandle(self._now + interval_ms, next(self._seq),
                             callback, args, interval=interval_ms, name=name)
        heapq.heappush(self._heap, handle)
        return handle

    def advance(self, delta_ms: float) -> int:
        """Move the clock forward by delta_ms. Returns number of timers fired."""
        return self.advance_to(self._now + max(0.0, delta_ms))

    def advance_to(self, target_ms: float) -> int:
        """Fire every timer due at or before target_ms, in fire-time order.

        Timers scheduled by a callback fire in the same call if they are
        already due. The clock reads each timer's fire time while its
        callback runs.
        """
        fired = 0
        while self._heap and self._heap[0].fire_at <= target_ms:
            handle = heapq.heappop(self._heap)
            if handle.cancelled:
                continue
            self._now = max(self._now, handle.fire_at)
            if handle.interval is not None:
                handle.fire_at += handle.interval
                handle.seq = next(self._seq)
                heapq.heappush(self._heap, handle)
            handle.callback(*handle.args)
            fired += 1
        self._now = max(self._now, target_ms)
        return fired

    def cancel_all(self):
        """Drop every pending timer."""
        count = self.pending
        for handle in self._heap:
            handle.cancel()
        self._heap.clear()
        if count:
            logger.debug("Cancelled %d pending timers", count)

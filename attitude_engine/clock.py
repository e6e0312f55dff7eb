from __future__ import annotations

import heapq
import itertools
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable


@dataclass(eq=False)
class TimerHandle:
    """
    A scheduled callback. Owned by the clock that created it.

    interval_ms is None for one-shot timers.
    """

    due_ms: float
    callback: Callable[[], None]
    interval_ms: float | None = None
    cancelled: bool = field(default=False, init=False)

    def cancel(self) -> None:
        self.cancelled = True


class Clock(ABC):
    """
    Monotonic time source plus timer scheduling (milliseconds).

    Everything that compares times or schedules work goes through a Clock,
    so tests can move time by hand instead of sleeping.
    """

    def __init__(self) -> None:
        self._queue: list[tuple[float, int, TimerHandle]] = []
        self._order = itertools.count()

    @abstractmethod
    def now(self) -> float: ...

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(due_ms=self.now() + max(0.0, float(delay_ms)), callback=callback)
        self._push(handle)
        return handle

    def call_every(self, interval_ms: float, callback: Callable[[], None]) -> TimerHandle:
        interval = float(interval_ms)
        if interval <= 0:
            raise ValueError("interval_ms must be > 0")
        handle = TimerHandle(due_ms=self.now() + interval, callback=callback, interval_ms=interval)
        self._push(handle)
        return handle

    def pending(self) -> int:
        """Number of live (not cancelled) timers."""
        return sum(1 for _, _, h in self._queue if not h.cancelled)

    def next_deadline(self) -> float | None:
        self._drop_cancelled()
        if not self._queue:
            return None
        return self._queue[0][0]

    def _push(self, handle: TimerHandle) -> None:
        heapq.heappush(self._queue, (handle.due_ms, next(self._order), handle))

    def _drop_cancelled(self) -> None:
        while self._queue and self._queue[0][2].cancelled:
            heapq.heappop(self._queue)

    def _pop_due(self, limit_ms: float) -> TimerHandle | None:
        self._drop_cancelled()
        if not self._queue or self._queue[0][0] > limit_ms:
            return None
        _, _, handle = heapq.heappop(self._queue)
        return handle

    def _fire(self, handle: TimerHandle) -> None:
        # Reschedule before running so the callback may cancel its own timer.
        if handle.interval_ms is not None:
            handle.due_ms += handle.interval_ms
            self._push(handle)
        handle.callback()


class ManualClock(Clock):
    """
    Simulated clock for tests and replays.
    Time only moves when advance()/advance_to() is called.
    """

    def __init__(self, start_ms: float = 0.0) -> None:
        super().__init__()
        self._now = float(start_ms)

    def now(self) -> float:
        return self._now

    def advance(self, ms: float) -> None:
        if ms < 0:
            raise ValueError("cannot move a monotonic clock backwards")
        self.advance_to(self._now + float(ms))

    def advance_to(self, target_ms: float) -> None:
        """
        Move time forward to target_ms, firing every timer that falls due on the way.

        Timers run in due-time order (ties: scheduling order) with now() set to
        their due time. Timers scheduled while advancing also fire if they fall
        due inside the window.
        """
        target = float(target_ms)
        if target < self._now:
            raise ValueError("cannot move a monotonic clock backwards")
        while True:
            handle = self._pop_due(target)
            if handle is None:
                break
            self._now = max(self._now, handle.due_ms)
            self._fire(handle)
        self._now = target


class MonotonicClock(Clock):
    """
    Wall-clock backed source (time.monotonic), relative to construction time.

    Timers are cooperative: the owning loop calls run_pending() to fire
    whatever is due.
    """

    def __init__(self) -> None:
        super().__init__()
        self._origin = time.monotonic()

    def now(self) -> float:
        return (time.monotonic() - self._origin) * 1000.0

    def run_pending(self) -> int:
        fired = 0
        limit = self.now()
        while True:
            handle = self._pop_due(limit)
            if handle is None:
                return fired
            self._fire(handle)
            fired += 1

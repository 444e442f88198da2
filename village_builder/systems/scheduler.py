"""Simulated clock with cancellable one-shot and recurring timers."""

import heapq
import logging
import math
from typing import Callable

logger = logging.getLogger(__name__)

Callback = Callable[[], None]


class TimerHandle:
    """A scheduled callback. Cancelling more than once is a no-op."""

    def __init__(
        self,
        name: str,
        callback: Callback,
        origin: float,
        delay: float,
        interval: float | None = None,
    ) -> None:
        self.name = name
        self.interval = interval
        self._callback = callback
        self._origin = origin
        self._delay = delay
        self._fires = 0
        self._cancelled = False

    @property
    def due(self) -> float:
        # Recurring due times are computed from the origin so they never drift
        if self.interval is None:
            return self._origin + self._delay
        return self._origin + self._delay + self._fires * self.interval

    @property
    def active(self) -> bool:
        return not self._cancelled

    @property
    def fire_count(self) -> int:
        return self._fires

    def cancel(self) -> bool:
        """Cancel the timer. Returns False if it was already cancelled."""
        if self._cancelled:
            return False
        self._cancelled = True
        return True

    def _fire(self) -> None:
        self._fires += 1
        if self.interval is None:
            self._cancelled = True
        self._callback()

    def __repr__(self) -> str:
        state = "active" if self.active else "cancelled"
        return f"TimerHandle({self.name!r}, due={self.due:g}, {state})"


class Scheduler:
    """
    Single event queue driven by a simulated clock.

    Nothing fires on its own: the host calls :meth:`advance` with the
    elapsed time (simulated, or wall-clock in an interactive session) and
    every timer that came due in that window fires in due order. Timers
    due at the same instant fire in the order they were scheduled.
    """

    def __init__(self, start_time: float = 0.0) -> None:
        self._now = start_time
        self._queue: list[tuple[float, int, TimerHandle]] = []
        self._seq = 0

    @property
    def now(self) -> float:
        return self._now

    def _push(self, handle: TimerHandle) -> None:
        heapq.heappush(self._queue, (handle.due, self._seq, handle))
        self._seq += 1

    def call_later(self, delay: float, callback: Callback, name: str = "") -> TimerHandle:
        """Fire ``callback`` once, ``delay`` seconds from now."""
        if delay < 0:
            raise ValueError(f"delay must be >= 0, got {delay}")
        handle = TimerHandle(name or "timer", callback, self._now, delay)
        self._push(handle)
        return handle

    def call_every(
        self, interval: float, callback: Callback, name: str = ""
    ) -> TimerHandle:
        """Fire ``callback`` every ``interval`` seconds until cancelled."""
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        handle = TimerHandle(name or "periodic", callback, self._now, interval, interval)
        self._push(handle)
        return handle

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing due timers. Returns number fired."""
        if not math.isfinite(seconds):
            raise ValueError(f"cannot advance by a non-finite duration ({seconds})")
        if seconds < 0:
            raise ValueError(f"cannot advance by a negative duration ({seconds})")
        return self.advance_to(self._now + seconds)

    def advance_to(self, target: float) -> int:
        """Move the clock to ``target``, firing due timers in order."""
        if not math.isfinite(target):
            raise ValueError(f"cannot move clock to a non-finite time ({target})")
        if target < self._now:
            raise ValueError(f"cannot move clock backwards ({target} < {self._now})")

        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, handle = heapq.heappop(self._queue)
            if not handle.active:
                continue
            self._now = due
            handle._fire()
            fired += 1
            if handle.interval is not None and handle.active:
                self._push(handle)

        self._now = target
        if fired:
            logger.debug("Advanced to t=%.3f, fired %d timer(s)", target, fired)
        return fired

    def pending(self) -> list[TimerHandle]:
        """Active timers in due order."""
        return [h for _, _, h in sorted(self._queue) if h.active]

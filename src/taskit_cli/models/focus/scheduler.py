"""Cooperative one-second tick scheduler for the timer engine."""

import time
from collections.abc import Callable


class TickScheduler:
    """Fires a callback once per interval while ticking.

    Nothing runs in the background: the owner's loop calls ``run_pending``
    and the scheduler fires every tick that has come due since the last call.
    """

    def __init__(
        self,
        interval: float = 1.0,
        clock: Callable[[], float] | None = None,
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = interval
        self._clock = clock or time.monotonic
        self._callback: Callable[[], None] | None = None
        self._next_due = 0.0

    @property
    def is_ticking(self) -> bool:
        return self._callback is not None

    def start_ticking(self, callback: Callable[[], None]) -> None:
        """Schedule ``callback`` every interval, starting one interval from now."""
        self._callback = callback
        self._next_due = self._clock() + self.interval

    def cancel_ticking(self) -> None:
        self._callback = None
        self._next_due = 0.0

    def seconds_until_next(self) -> float | None:
        """Seconds until the next tick, or None when not ticking."""
        if self._callback is None:
            return None
        return max(0.0, self._next_due - self._clock())

    def run_pending(self) -> int:
        """Fire all ticks that are due. Returns how many fired."""
        fired = 0
        now = self._clock()
        while self._callback is not None and now >= self._next_due:
            callback = self._callback
            self._next_due += self.interval
            callback()
            fired += 1
        return fired

"""
Clock helpers for measuring elapsed time.
"""

from typing import Callable, Optional

Clock = Callable[[], float]
"""Returns the current monotonic time in seconds."""


def elapsed_ms(clock: Clock, since: Optional[float]) -> float:
    """Milliseconds (to the microsecond) since `since`, or 0.0 if it is None."""
    if since is None:
        return 0.0
    return round(max(0.0, (clock() - since) * 1000.0), 3)


class ManualClock:
    """
    Monotonic clock that only moves when told to.

    Used by the simulated browser and tests so elapsed times are exact.
    """

    def __init__(self, start: float = 0.0):
        self._now = start

    def __call__(self) -> float:
        return self._now

    def advance_ms(self, ms: float) -> None:
        """Move the clock forward by `ms` milliseconds."""
        if ms < 0:
            raise ValueError("ManualClock cannot move backwards")
        self._now += ms / 1000.0

    @property
    def now_ms(self) -> float:
        """Current time in milliseconds."""
        return self._now * 1000.0

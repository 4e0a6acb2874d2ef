"""
Per-watcher mutable state for one page lifetime.
"""

from dataclasses import dataclass
from typing import Optional

from ..schemas import PermissionState


@dataclass
class WatcherContext:
    """
    State owned by a single watcher.

    `invocation_timestamp` is single-slot: with several requests in flight,
    elapsed times are measured from the most recent invocation.
    """

    pending_count: int = 0
    last_observed_state: PermissionState = PermissionState.UNKNOWN
    deferred_state: Optional[PermissionState] = None
    invocation_timestamp: Optional[float] = None

    @property
    def is_pending(self) -> bool:
        """Whether at least one request is in flight."""
        return self.pending_count > 0

    def begin_request(self, now: float) -> None:
        """Record a new in-flight request started at `now`."""
        self.pending_count += 1
        self.invocation_timestamp = now

    def end_request(self) -> None:
        """Record a resolution; the count never drops below zero."""
        self.pending_count = max(0, self.pending_count - 1)

    def take_deferred(self) -> Optional[PermissionState]:
        """Return the buffered external change and clear it."""
        deferred = self.deferred_state
        self.deferred_state = None
        return deferred

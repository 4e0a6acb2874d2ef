"""
Single entry point for permission requests.

Notifies every watcher of the invocation, calls the request primitive, and
fans its outcome out to every watcher exactly once.
"""

import logging
from typing import Iterable, List, Protocol

from ..browser.interfaces import GeolocationApi
from ..schemas import ErrorCode

logger = logging.getLogger(__name__)


class Watcher(Protocol):
    """What the coordinator needs from a watcher."""

    def record_invocation(self) -> None: ...

    def on_success(self) -> None: ...

    def on_failure(self, error_code: int) -> None: ...

    def on_abandon(self) -> None: ...


class RequestCoordinator:
    """
    Wires the request primitive to the watchers.

    Overlapping initiate() calls are neither retried nor merged; each one is
    tracked by the watchers as its own pending request.
    """

    def __init__(self, geolocation: GeolocationApi, watchers: Iterable[Watcher]):
        """
        Initialize the coordinator.

        Args:
            geolocation: Imperative request API
            watchers: Watchers to notify, in notification order
        """
        self._geolocation = geolocation
        self._watchers: List[Watcher] = list(watchers)
        self._initiated = 0
        self._resolved = 0

    @property
    def in_flight(self) -> int:
        """Requests initiated but not yet resolved."""
        return self._initiated - self._resolved

    def initiate(self) -> None:
        """Start one logical permission request."""
        for watcher in self._watchers:
            watcher.record_invocation()

        request_id = self._initiated
        self._initiated += 1
        resolved = False

        def on_success() -> None:
            nonlocal resolved
            if resolved:
                logger.debug(f"Ignoring repeated resolution of request {request_id}")
                return
            resolved = True
            self._resolved += 1
            for watcher in self._watchers:
                watcher.on_success()

        def on_failure(error_code: int) -> None:
            nonlocal resolved
            if resolved:
                logger.debug(f"Ignoring repeated resolution of request {request_id}")
                return
            resolved = True
            self._resolved += 1
            for watcher in self._watchers:
                watcher.on_failure(error_code)

        try:
            self._geolocation.get_current_position(on_success, on_failure)
        except Exception as e:
            logger.error(f"Permission request {request_id} raised: {e}")
            on_failure(ErrorCode.POSITION_UNAVAILABLE)

    def abandon(self) -> None:
        """Notify every watcher that the page is going away."""
        for watcher in self._watchers:
            watcher.on_abandon()

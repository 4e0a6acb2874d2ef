"""
Normalizes raw permission status objects at the host boundary.
"""

import logging
from typing import Any, Callable

from ..schemas import PermissionState, normalize_state

logger = logging.getLogger(__name__)


class PermissionStatusAdapter:
    """
    Wraps a raw status object so callers only ever see PermissionState.

    Older hosts expose the value as `status` instead of `state`.
    """

    def __init__(self, raw: Any):
        self._raw = raw

    @property
    def state(self) -> PermissionState:
        """Current normalized state of the wrapped status object."""
        if self._raw is None:
            return PermissionState.UNKNOWN
        if hasattr(self._raw, "state"):
            return normalize_state(self._raw.state)
        if hasattr(self._raw, "status"):
            return normalize_state(self._raw.status)
        return PermissionState.UNKNOWN

    @property
    def can_subscribe(self) -> bool:
        return callable(getattr(self._raw, "subscribe", None))

    def subscribe(self, on_change: Callable[[PermissionState], None]) -> bool:
        """
        Register for change notifications.

        Args:
            on_change: Called with the normalized state after each change

        Returns:
            True if the raw object accepted the subscription
        """
        if not self.can_subscribe:
            logger.debug("Status object does not support change notifications")
            return False

        def _notify(*_args: Any) -> None:
            on_change(self.state)

        try:
            self._raw.subscribe(_notify)
        except Exception as e:
            logger.warning(f"Subscribing to permission status changes failed: {e}")
            return False
        return True

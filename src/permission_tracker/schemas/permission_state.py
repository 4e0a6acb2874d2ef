"""
Permission state values and request error codes.
"""

from enum import Enum, IntEnum
from typing import Any


class PermissionState(Enum):
    """Snapshot value of the declarative status API."""

    PROMPT = "prompt"
    GRANTED = "granted"
    DENIED = "denied"
    UNKNOWN = "unknown"


class ErrorCode(IntEnum):
    """Failure codes passed to the request primitive's failure handler."""

    PERMISSION_DENIED = 1
    POSITION_UNAVAILABLE = 2
    TIMEOUT = 3


def normalize_state(value: Any) -> PermissionState:
    """
    Convert a raw state value into a PermissionState.

    Args:
        value: A PermissionState, a state string such as "granted", or None

    Returns:
        Matching PermissionState, or UNKNOWN when the value is not recognized
    """
    if isinstance(value, PermissionState):
        return value
    if isinstance(value, str):
        try:
            return PermissionState(value.strip().lower())
        except ValueError:
            return PermissionState.UNKNOWN
    return PermissionState.UNKNOWN

"""
Timing threshold and permission configuration.

Threshold values are in milliseconds.

Environment Variables:
- PERMISSION_TRACKER_THRESHOLD_MS: Fast/slow response threshold
- PERMISSION_TRACKER_PERMISSION: Permission name passed to status queries
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import find_dotenv, load_dotenv

THRESHOLD_ENV = "PERMISSION_TRACKER_THRESHOLD_MS"
PERMISSION_ENV = "PERMISSION_TRACKER_PERMISSION"


@dataclass
class TrackerConfig:
    """
    Centralized configuration shared by both watchers.
    """

    threshold_ms: float = 5.0
    """Responses at or under this many milliseconds count as automatic"""

    permission_name: str = "geolocation"
    """Permission queried through the declarative status API"""

    def __post_init__(self) -> None:
        if self.threshold_ms <= 0:
            raise ValueError(
                f"threshold_ms must be positive, got {self.threshold_ms}"
            )
        if not self.permission_name:
            raise ValueError("permission_name must not be empty")


# Global instance
DEFAULT_CONFIG = TrackerConfig()


def get_tracker_config() -> TrackerConfig:
    """
    Get the tracker configuration, honoring environment overrides.

    Returns:
        TrackerConfig built from .env / environment values, or the defaults
    """
    load_dotenv(find_dotenv(usecwd=True))

    threshold = os.getenv(THRESHOLD_ENV)
    permission = os.getenv(PERMISSION_ENV)
    if threshold is None and permission is None:
        return DEFAULT_CONFIG

    try:
        threshold_ms = (
            float(threshold) if threshold is not None else DEFAULT_CONFIG.threshold_ms
        )
    except ValueError:
        raise ValueError(f"{THRESHOLD_ENV} must be a number, got {threshold!r}")

    return create_custom_config(threshold_ms=threshold_ms, permission_name=permission)


def create_custom_config(
    threshold_ms: Optional[float] = None,
    permission_name: Optional[str] = None,
) -> TrackerConfig:
    """
    Create a custom tracker configuration.

    Args:
        threshold_ms: Override the fast/slow threshold
        permission_name: Override the queried permission name

    Returns:
        TrackerConfig with custom values
    """
    return TrackerConfig(
        threshold_ms=(
            threshold_ms if threshold_ms is not None else DEFAULT_CONFIG.threshold_ms
        ),
        permission_name=permission_name or DEFAULT_CONFIG.permission_name,
    )

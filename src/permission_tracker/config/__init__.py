"""
Configuration for the permission tracker.
"""

from .tracker_config import (
    DEFAULT_CONFIG,
    TrackerConfig,
    create_custom_config,
    get_tracker_config,
)

__all__ = [
    "DEFAULT_CONFIG",
    "TrackerConfig",
    "create_custom_config",
    "get_tracker_config",
]

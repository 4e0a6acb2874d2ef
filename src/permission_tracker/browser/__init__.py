"""
Host-side interfaces consumed by the watchers, and an in-memory host.
"""

from .interfaces import (
    FailureHandler,
    GeolocationApi,
    PermissionsApi,
    PermissionsHost,
    SuccessHandler,
)
from .adapter import PermissionStatusAdapter
from .simulated import SimulatedBrowser, SimulatedResponse

__all__ = [
    "FailureHandler",
    "GeolocationApi",
    "PermissionsApi",
    "PermissionsHost",
    "SuccessHandler",
    "PermissionStatusAdapter",
    "SimulatedBrowser",
    "SimulatedResponse",
]

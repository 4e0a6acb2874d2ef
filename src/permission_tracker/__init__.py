"""
Dual-watcher permission-state classifier.

Infers how a runtime permission decision came about by reconciling the
imperative request callbacks with the declarative status API.
"""

from .schemas import (
    ApiOutcome,
    CallbackOutcome,
    Capability,
    ErrorCode,
    OutcomeEvent,
    PermissionCapabilities,
    PermissionState,
    ReportSource,
)
from .services import (
    CallbackClassifier,
    PageSession,
    RequestCoordinator,
    StatusWatcher,
    WatcherContext,
)
from .utils.capability_probe import probe
from .utils.timing_gate import Speed, classify

__version__ = "0.1.0"

__all__ = [
    "ApiOutcome",
    "CallbackOutcome",
    "Capability",
    "ErrorCode",
    "OutcomeEvent",
    "PermissionCapabilities",
    "PermissionState",
    "ReportSource",
    "CallbackClassifier",
    "PageSession",
    "RequestCoordinator",
    "StatusWatcher",
    "WatcherContext",
    "probe",
    "Speed",
    "classify",
]

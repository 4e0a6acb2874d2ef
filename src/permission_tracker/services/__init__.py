"""
Watchers, request coordination, reporting and page lifetime.
"""

from .watcher_context import WatcherContext
from .reporter import (
    CompositeReporter,
    ConsoleReporter,
    LoggingReporter,
    RecordingReporter,
    Reporter,
)
from .callback_classifier import CallbackClassifier
from .status_watcher import StatusWatcher
from .request_coordinator import RequestCoordinator
from .page_session import PageSession

__all__ = [
    "WatcherContext",
    "CompositeReporter",
    "ConsoleReporter",
    "LoggingReporter",
    "RecordingReporter",
    "Reporter",
    "CallbackClassifier",
    "StatusWatcher",
    "RequestCoordinator",
    "PageSession",
]

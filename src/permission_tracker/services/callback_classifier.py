"""
Permission tracking from request callbacks and timing alone.

Works whether or not the declarative status API exists: every outcome is
inferred from which callback fired and how long it took.
"""

import logging
import time
from typing import Optional

from ..config import DEFAULT_CONFIG, TrackerConfig
from ..schemas import CallbackOutcome, ErrorCode, ReportSource
from ..utils.clock import Clock, elapsed_ms
from ..utils.timing_gate import Speed, classify
from .reporter import Reporter, safe_report
from .watcher_context import WatcherContext

logger = logging.getLogger(__name__)


class CallbackClassifier:
    """
    Classifies request outcomes as user-driven or automatic by response time.
    """

    source = ReportSource.CALLBACK

    def __init__(
        self,
        reporter: Reporter,
        config: TrackerConfig = DEFAULT_CONFIG,
        clock: Clock = time.monotonic,
        context: Optional[WatcherContext] = None,
    ):
        """
        Initialize the classifier.

        Args:
            reporter: Destination for classified outcomes
            config: Threshold configuration
            clock: Monotonic clock in seconds
            context: Existing context to continue from, or None for a fresh one
        """
        self._reporter = reporter
        self._config = config
        self._clock = clock
        self.context = context or WatcherContext()

    def reset(self) -> None:
        """Page load: nothing is known yet."""
        self._emit(CallbackOutcome.UNKNOWN)

    def record_invocation(self) -> None:
        self._emit(CallbackOutcome.REQUESTED)
        self.context.begin_request(self._clock())

    def on_success(self) -> None:
        elapsed = self._elapsed()
        if self._speed(elapsed) == Speed.SLOW:
            self._emit(CallbackOutcome.USER_GRANTED, elapsed)
        else:
            self._emit(CallbackOutcome.AUTO_GRANTED, elapsed)
        self._finish()

    def on_failure(self, error_code: int) -> None:
        # Elapsed must be read before _finish() clears the timestamp.
        elapsed = self._elapsed()
        permission_failure = error_code == ErrorCode.PERMISSION_DENIED

        if self._speed(elapsed) == Speed.SLOW:
            outcome = (
                CallbackOutcome.USER_DENIED
                if permission_failure
                else CallbackOutcome.USER_FAILED
            )
        else:
            outcome = (
                CallbackOutcome.AUTO_DENIED
                if permission_failure
                else CallbackOutcome.AUTO_FAILED
            )
        self._emit(outcome, elapsed)
        self._finish()

    def on_abandon(self) -> None:
        """
        Page unload while a request is in flight.

        The pending count is left alone since the page is going away.
        """
        if not self.context.is_pending:
            return

        elapsed = self._elapsed()
        if self._speed(elapsed) == Speed.FAST:
            self._emit(CallbackOutcome.FAST_NAVIGATE, elapsed)
        else:
            self._emit(CallbackOutcome.SLOW_NAVIGATE, elapsed)

    def _elapsed(self) -> float:
        return elapsed_ms(self._clock, self.context.invocation_timestamp)

    def _speed(self, elapsed: float) -> Speed:
        return classify(elapsed, self._config.threshold_ms)

    def _finish(self) -> None:
        self.context.invocation_timestamp = None
        self.context.end_request()

    def _emit(self, outcome: CallbackOutcome, elapsed: Optional[float] = None) -> None:
        logger.debug(
            f"Callback tracking: {outcome.value} "
            f"(pending={self.context.pending_count})"
        )
        safe_report(self._reporter, self.source, outcome, elapsed)

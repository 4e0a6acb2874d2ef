"""
Permission tracking through the declarative status API.

The watcher combines three inputs: the initial status snapshot, change
notifications from the status subscription, and the outcome of requests
made through the imperative API. Change notifications that arrive while a
request is in flight are buffered in the context's `deferred_state` so the
resolution is classified against the state from before the change.
"""

import asyncio
import logging
import time
from typing import Any, Coroutine, Optional, Set

from ..browser.adapter import PermissionStatusAdapter
from ..browser.interfaces import PermissionsApi
from ..config import DEFAULT_CONFIG, TrackerConfig
from ..schemas import (
    ApiOutcome,
    ErrorCode,
    PermissionCapabilities,
    PermissionState,
    ReportSource,
)
from ..utils.clock import Clock, elapsed_ms
from ..utils.timing_gate import Speed, classify
from .reporter import Reporter, safe_report, safe_report_capability
from .watcher_context import WatcherContext

logger = logging.getLogger(__name__)

_STARTING_OUTCOMES = {
    PermissionState.GRANTED: ApiOutcome.STARTING_GRANTED,
    PermissionState.DENIED: ApiOutcome.STARTING_DENIED,
    PermissionState.PROMPT: ApiOutcome.NOT_YET_PROMPTED,
}

_ELSEWHERE_OUTCOMES = {
    PermissionState.GRANTED: ApiOutcome.GRANTED_ELSEWHERE,
    PermissionState.DENIED: ApiOutcome.DENIED_ELSEWHERE,
    PermissionState.PROMPT: ApiOutcome.RESET_ELSEWHERE,
}


class StatusWatcher:
    """
    Tracks permission state with the declarative status API.

    When the host has no status query, every operation is a no-op apart
    from a single UNAVAILABLE outcome.
    """

    source = ReportSource.API

    def __init__(
        self,
        permissions: Optional[PermissionsApi],
        capabilities: PermissionCapabilities,
        reporter: Reporter,
        config: TrackerConfig = DEFAULT_CONFIG,
        clock: Clock = time.monotonic,
        context: Optional[WatcherContext] = None,
    ):
        """
        Initialize the watcher.

        Args:
            permissions: Host permissions API, or None when absent
            capabilities: Result of probing the host
            reporter: Destination for classified outcomes
            config: Threshold and permission name
            clock: Monotonic clock in seconds
            context: Existing context to continue from, or None for a fresh one
        """
        self._permissions = permissions
        self._capabilities = capabilities
        self._reporter = reporter
        self._config = config
        self._clock = clock
        self.context = context or WatcherContext()
        self._tasks: Set[asyncio.Task] = set()
        self._subscribed = False
        self._unavailable_reported = False

    @property
    def active(self) -> bool:
        """Whether status snapshots can be queried on this host."""
        return self._permissions is not None and self._capabilities.query_available

    @property
    def subscribed(self) -> bool:
        return self._subscribed

    def report_compat(self) -> None:
        """Report capability support, and UNAVAILABLE when queries are missing."""
        for capability, supported in self._capabilities.as_dict().items():
            safe_report_capability(self._reporter, capability, supported)
        if not self.active:
            self._report_unavailable()

    async def check_initial_state(self) -> None:
        """
        Take the initial snapshot and subscribe to changes.

        Only the first snapshot to resolve while the state is still unknown
        is reported; later or concurrent calls do nothing.
        """
        if not self._guard():
            return
        if self.context.last_observed_state != PermissionState.UNKNOWN:
            return

        status = await self._query()
        if status is None:
            return
        self._ensure_subscribed(status)
        if self.context.last_observed_state != PermissionState.UNKNOWN:
            logger.debug("Initial snapshot already taken by a concurrent check")
            return

        state = status.state
        if state == PermissionState.UNKNOWN:
            logger.warning("Initial permission snapshot had no recognizable state")
            return

        self.context.last_observed_state = state
        self._emit(_STARTING_OUTCOMES[state])

    def on_external_change(self, new_state: PermissionState) -> None:
        """
        Status subscription callback.

        Buffered while a request is in flight, committed immediately otherwise.
        """
        if not self._guard():
            return
        if new_state == PermissionState.UNKNOWN:
            return

        if self.context.is_pending:
            self.context.deferred_state = new_state
            self._emit(ApiOutcome.DEFERRED)
            return

        self._commit_change(new_state)

    def record_invocation(self) -> None:
        if not self._guard():
            return

        self._emit(ApiOutcome.REQUESTED)
        self.context.begin_request(self._clock())

        # The request may have raced ahead of the initial snapshot.
        if self.context.last_observed_state == PermissionState.UNKNOWN:
            self._spawn(self.check_initial_state())

    def on_success(self) -> None:
        if not self._guard():
            return

        elapsed = self._elapsed()
        self.context.end_request()
        if self.context.last_observed_state == PermissionState.PROMPT:
            self._emit(ApiOutcome.USER_GRANTED, elapsed)
        else:
            self._emit(ApiOutcome.GRANTED_FROM_STORAGE, elapsed)

        self.context.deferred_state = None
        self.context.last_observed_state = PermissionState.GRANTED

    def on_failure(self, error_code: int) -> None:
        """
        Request failure; the cause is classified after re-querying the status.
        """
        if not self._guard():
            return

        self.context.end_request()
        elapsed = self._elapsed()
        deferred = self.context.take_deferred()
        self._spawn(self._classify_failure(error_code, elapsed, deferred))

    def on_abandon(self) -> None:
        """Page unload; flushes any buffered change before the navigate outcome."""
        if not self._guard():
            return
        if not self.context.is_pending:
            return

        deferred = self.context.take_deferred()
        if deferred is not None:
            self._commit_change(deferred)

        elapsed = self._elapsed()
        if elapsed < self._config.threshold_ms:
            self._emit(ApiOutcome.FAST_NAVIGATE, elapsed)
        else:
            self._emit(ApiOutcome.SLOW_NAVIGATE, elapsed)

    async def wait_idle(self) -> None:
        """Wait for every scheduled snapshot and re-query to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def _classify_failure(
        self,
        error_code: int,
        elapsed: float,
        deferred: Optional[PermissionState],
    ) -> None:
        status = await self._query()
        if status is not None:
            self._ensure_subscribed(status)
        state = status.state if status is not None else PermissionState.UNKNOWN

        if state == PermissionState.UNKNOWN:
            logger.warning("Could not re-query permission state after failure")
            if deferred is not None:
                self._commit_change(deferred)
            return

        permission_denied = error_code == ErrorCode.PERMISSION_DENIED
        last = self.context.last_observed_state

        if state == PermissionState.PROMPT:
            if self._speed(elapsed) == Speed.SLOW:
                self._emit(ApiOutcome.USER_DISMISSED, elapsed)
            else:
                self._emit(ApiOutcome.BROWSER_BLOCKED, elapsed)
        elif state == PermissionState.GRANTED:
            if deferred == PermissionState.GRANTED and permission_denied:
                # Granted in another context while this prompt was dismissed.
                self._emit(ApiOutcome.GRANTED_ELSEWHERE)
                self._emit(ApiOutcome.USER_DISMISSED, elapsed)
            elif not permission_denied:
                if last == PermissionState.PROMPT:
                    self._emit(ApiOutcome.USER_GRANTED, elapsed)
                else:
                    self._emit(ApiOutcome.GRANTED_FROM_STORAGE, elapsed)
            else:
                self._emit(ApiOutcome.GRANTED_BUT_OS, elapsed)
        elif last == PermissionState.DENIED:
            self._emit(ApiOutcome.DENIED_FROM_STORAGE, elapsed)
        else:
            self._emit(ApiOutcome.USER_DENIED, elapsed)

        self.context.last_observed_state = state

    def _ensure_subscribed(self, status: PermissionStatusAdapter) -> None:
        if not self._subscribed:
            self._subscribed = status.subscribe(self.on_external_change)

    def _commit_change(self, new_state: PermissionState) -> None:
        outcome = _ELSEWHERE_OUTCOMES.get(new_state)
        if outcome is None:
            return
        self.context.last_observed_state = new_state
        self._emit(outcome)

    async def _query(self) -> Optional[PermissionStatusAdapter]:
        try:
            raw = await self._permissions.query(self._config.permission_name)
        except Exception as e:
            logger.warning(
                f"Permission status query for {self._config.permission_name} "
                f"failed: {e}"
            )
            return None
        return PermissionStatusAdapter(raw)

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.error("StatusWatcher needs a running event loop; event dropped")
            coro.close()
            return
        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _guard(self) -> bool:
        if self.active:
            return True
        self._report_unavailable()
        return False

    def _report_unavailable(self) -> None:
        if self._unavailable_reported:
            return
        self._unavailable_reported = True
        self._emit(ApiOutcome.UNAVAILABLE)

    def _elapsed(self) -> float:
        return elapsed_ms(self._clock, self.context.invocation_timestamp)

    def _speed(self, elapsed: float) -> Speed:
        return classify(elapsed, self._config.threshold_ms)

    def _emit(self, outcome: ApiOutcome, elapsed: Optional[float] = None) -> None:
        ctx = self.context
        logger.debug(
            f"API tracking: {outcome.value} "
            f"(pending={ctx.pending_count}, "
            f"last={ctx.last_observed_state.value}, "
            f"deferred={ctx.deferred_state.value if ctx.deferred_state else None})"
        )
        safe_report(self._reporter, self.source, outcome, elapsed)

"""
In-memory host for driving the watchers without a browser.

Time only moves through `advance()`, and scripted responses to position
requests fire when the clock passes their due time.
"""

import asyncio
import heapq
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, Dict, List, Optional

from ..schemas import ErrorCode, PermissionState
from ..utils.clock import ManualClock
from .interfaces import FailureHandler, SuccessHandler

logger = logging.getLogger(__name__)


@dataclass
class SimulatedResponse:
    """
    Scripted answer to one position request.
    """

    delay_ms: float = 0.0
    success: bool = True
    error_code: int = ErrorCode.PERMISSION_DENIED
    state_change: Optional[PermissionState] = None
    """Applied, with change notifications, just before the callback fires"""


@dataclass(order=True)
class _PendingRequest:
    due_ms: float
    order: int
    response: SimulatedResponse = field(compare=False)
    on_success: SuccessHandler = field(compare=False)
    on_failure: FailureHandler = field(compare=False)


class _StatusBase:
    """Live status object; reads the browser's current state."""

    def __init__(self, browser: "SimulatedBrowser", name: str):
        self._browser = browser
        self._name = name

    def _current(self) -> str:
        return self._browser.get_state(self._name).value

    def subscribe(self, callback: Callable[..., None]) -> None:
        self._browser.add_listener(self._name, lambda: callback(self))


class _SimulatedStatus(_StatusBase):
    @property
    def state(self) -> str:
        return self._current()


class _LegacySimulatedStatus(_StatusBase):
    """Status object exposing `status` instead of `state`."""

    @property
    def status(self) -> str:
        return self._current()


class _SimulatedPermissions:
    """Permissions API with only the enabled methods present."""

    def __init__(
        self, browser: "SimulatedBrowser", query: bool, request: bool, revoke: bool
    ):
        if query:
            self.query = browser.query_status
        if request:
            self.request = browser.request_status
        if revoke:
            self.revoke = browser.revoke_status


class _SimulatedGeolocation:
    def __init__(self, browser: "SimulatedBrowser"):
        self._browser = browser

    def get_current_position(
        self, on_success: SuccessHandler, on_failure: FailureHandler
    ) -> None:
        self._browser.schedule_request(on_success, on_failure)


class SimulatedBrowser:
    """
    Scriptable stand-in for a page's permissions and geolocation APIs.
    """

    def __init__(
        self,
        clock: Optional[ManualClock] = None,
        initial_state: PermissionState = PermissionState.PROMPT,
        query: bool = True,
        request: bool = False,
        revoke: bool = True,
        legacy_status_field: bool = False,
        permission_name: str = "geolocation",
    ):
        """
        Initialize the simulated browser.

        Args:
            clock: Clock shared with the watchers
            initial_state: Starting state of `permission_name`
            query: Expose permissions.query
            request: Expose permissions.request
            revoke: Expose permissions.revoke
            legacy_status_field: Status objects use `status` instead of `state`
            permission_name: Permission the position requests act on
        """
        self.clock = clock or ManualClock()
        self.permission_name = permission_name
        self._states: Dict[str, PermissionState] = {permission_name: initial_state}
        self._listeners: Dict[str, List[Callable[[], None]]] = {}
        self._responses: Deque[SimulatedResponse] = deque()
        self._pending: List[_PendingRequest] = []
        self._order = 0
        self._legacy = legacy_status_field
        self.query_count = 0
        self.request_count = 0

        self.permissions: Optional[_SimulatedPermissions] = None
        if query or request or revoke:
            self.permissions = _SimulatedPermissions(self, query, request, revoke)
        self.geolocation = _SimulatedGeolocation(self)

    @property
    def pending_requests(self) -> int:
        return len(self._pending)

    def get_state(self, name: str) -> PermissionState:
        return self._states.get(name, PermissionState.PROMPT)

    def set_state(self, state: PermissionState, name: Optional[str] = None) -> None:
        """
        Change a permission state and notify subscribers if it differs.

        Args:
            state: New state
            name: Permission name, defaults to the tracked permission
        """
        name = name or self.permission_name
        if self.get_state(name) == state:
            return
        self._states[name] = state
        logger.debug(f"Simulated {name} state -> {state.value}")
        for listener in list(self._listeners.get(name, [])):
            listener()

    def add_listener(self, name: str, listener: Callable[[], None]) -> None:
        self._listeners.setdefault(name, []).append(listener)

    def listener_count(self, name: Optional[str] = None) -> int:
        return len(self._listeners.get(name or self.permission_name, []))

    def queue_response(self, response: SimulatedResponse) -> None:
        """Script the answer to the next unanswered position request."""
        self._responses.append(response)

    async def query_status(self, name: str) -> _StatusBase:
        await asyncio.sleep(0)
        self.query_count += 1
        if self._legacy:
            return _LegacySimulatedStatus(self, name)
        return _SimulatedStatus(self, name)

    async def request_status(self, name: str) -> _StatusBase:
        return await self.query_status(name)

    async def revoke_status(self, name: str) -> None:
        await asyncio.sleep(0)
        self.set_state(PermissionState.PROMPT, name)

    def schedule_request(
        self, on_success: SuccessHandler, on_failure: FailureHandler
    ) -> None:
        """
        Register a position request.

        Without a scripted response, a granted or denied permission answers
        immediately and a prompt is left unanswered.
        """
        self.request_count += 1
        if self._responses:
            response = self._responses.popleft()
        else:
            response = self._default_response()
            if response is None:
                logger.debug("Position request left unanswered")
                return

        heapq.heappush(
            self._pending,
            _PendingRequest(
                due_ms=self.clock.now_ms + response.delay_ms,
                order=self._order,
                response=response,
                on_success=on_success,
                on_failure=on_failure,
            ),
        )
        self._order += 1

    async def advance(self, ms: float) -> None:
        """
        Move time forward, firing every response that comes due on the way.
        """
        target = self.clock.now_ms + ms
        while self._pending and self._pending[0].due_ms <= target:
            request = heapq.heappop(self._pending)
            self.clock.advance_ms(max(0.0, request.due_ms - self.clock.now_ms))
            self._resolve(request)
            await asyncio.sleep(0)
        self.clock.advance_ms(max(0.0, target - self.clock.now_ms))

    def _resolve(self, request: _PendingRequest) -> None:
        response = request.response
        if response.state_change is not None:
            self.set_state(response.state_change)
        if response.success:
            request.on_success()
        else:
            request.on_failure(response.error_code)

    def _default_response(self) -> Optional[SimulatedResponse]:
        state = self.get_state(self.permission_name)
        if state == PermissionState.GRANTED:
            return SimulatedResponse(success=True)
        if state == PermissionState.DENIED:
            return SimulatedResponse(
                success=False, error_code=ErrorCode.PERMISSION_DENIED
            )
        return None

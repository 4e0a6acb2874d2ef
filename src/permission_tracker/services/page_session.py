"""
One page lifetime: load, requests, revokes and unload.
"""

import asyncio
import logging
import time
from typing import Set

from ..browser.interfaces import PermissionsHost
from ..config import DEFAULT_CONFIG, TrackerConfig
from ..schemas import PermissionCapabilities
from ..utils.capability_probe import probe
from ..utils.clock import Clock
from .callback_classifier import CallbackClassifier
from .reporter import Reporter
from .request_coordinator import RequestCoordinator
from .status_watcher import StatusWatcher

logger = logging.getLogger(__name__)


class PageSession:
    """
    Owns both watchers and the coordinator for a single page.

    Nothing survives past unload(); a new page needs a new session.
    """

    def __init__(
        self,
        host: PermissionsHost,
        reporter: Reporter,
        config: TrackerConfig = DEFAULT_CONFIG,
        clock: Clock = time.monotonic,
    ):
        self._host = host
        self._config = config
        self.capabilities: PermissionCapabilities = probe(host)
        self.callback_classifier = CallbackClassifier(reporter, config, clock)
        self.status_watcher = StatusWatcher(
            getattr(host, "permissions", None),
            self.capabilities,
            reporter,
            config,
            clock,
        )
        self.coordinator = RequestCoordinator(
            host.geolocation, [self.status_watcher, self.callback_classifier]
        )
        self._revocations: Set["asyncio.Future"] = set()
        self._loaded = False
        self._unloaded = False

    @property
    def unloaded(self) -> bool:
        return self._unloaded

    async def load(self) -> None:
        """Page load: report support and take the initial snapshot."""
        if self._loaded:
            return
        self._loaded = True
        logger.debug(f"Page load, capabilities: {self.capabilities}")

        self.callback_classifier.reset()
        self.status_watcher.report_compat()
        await self.status_watcher.check_initial_state()

    def request(self) -> None:
        """Ask for the permission."""
        if self._unloaded:
            logger.warning("Request after unload ignored")
            return
        self.coordinator.initiate()

    def revoke(self) -> bool:
        """
        Reset the permission through the status API, if the host allows it.

        Returns:
            True if a revoke was issued
        """
        if not self.capabilities.revoke_available:
            logger.info("Revoke is not supported on this host")
            return False

        try:
            result = self._host.permissions.revoke(self._config.permission_name)
        except Exception as e:
            logger.warning(f"Revoke of {self._config.permission_name} failed: {e}")
            return False

        if asyncio.iscoroutine(result):
            try:
                asyncio.get_running_loop()
            except RuntimeError:
                logger.error("Revoke needs a running event loop; revoke dropped")
                result.close()
                return False
        if asyncio.iscoroutine(result) or isinstance(result, asyncio.Future):
            future = asyncio.ensure_future(result)
            self._revocations.add(future)
            future.add_done_callback(self._revocations.discard)
            future.add_done_callback(_log_revoke_failure)
        return True

    def unload(self) -> None:
        """Page unload; only the first call has any effect."""
        if self._unloaded:
            return
        self._unloaded = True
        self.coordinator.abandon()

    async def settle(self) -> None:
        """Wait for outstanding revokes and snapshot queries to finish."""
        if self._revocations:
            await asyncio.gather(*list(self._revocations), return_exceptions=True)
        await self.status_watcher.wait_idle()


def _log_revoke_failure(future: "asyncio.Future") -> None:
    if future.cancelled():
        return
    error = future.exception()
    if error is not None:
        logger.warning(f"Revoke failed: {error}")

"""
Protocols for the host environment.

Any object shaped like these works; `probe()` decides at runtime which
optional parts are present.
"""

from typing import Any, Awaitable, Callable, Optional, Protocol

SuccessHandler = Callable[[], None]
FailureHandler = Callable[[int], None]


class PermissionsApi(Protocol):
    """
    Declarative status API. `request` and `revoke` are optional on real hosts.
    """

    def query(self, name: str) -> Awaitable[Any]:
        """Resolve to a raw status object with a `state` or `status` field."""
        ...

    def revoke(self, name: str) -> Any: ...


class GeolocationApi(Protocol):
    """Imperative request API."""

    def get_current_position(
        self, on_success: SuccessHandler, on_failure: FailureHandler
    ) -> None: ...


class PermissionsHost(Protocol):
    """The page's view of its environment."""

    permissions: Optional[PermissionsApi]
    geolocation: GeolocationApi

"""
Capability detection for the host's permissions API.
"""

from typing import Any

from ..schemas import PermissionCapabilities


def probe(host: Any) -> PermissionCapabilities:
    """
    Detect which parts of the declarative status API the host provides.

    Args:
        host: Object that may expose a `permissions` attribute

    Returns:
        PermissionCapabilities; all False when `permissions` is missing
    """
    permissions = getattr(host, "permissions", None)
    if permissions is None:
        return PermissionCapabilities()

    return PermissionCapabilities(
        query_available=_has_method(permissions, "query"),
        request_available=_has_method(permissions, "request"),
        revoke_available=_has_method(permissions, "revoke"),
    )


def _has_method(obj: Any, name: str) -> bool:
    """
    Test if `obj` exposes a callable attribute `name`.
    """
    return callable(getattr(obj, name, None))

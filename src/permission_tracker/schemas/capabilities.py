"""
Capability flags of the declarative status API.
"""

from typing import Dict

from pydantic import BaseModel, Field

from .outcomes import Capability


class PermissionCapabilities(BaseModel):
    """
    Detected capabilities of the host's permissions API.
    """

    query_available: bool = Field(
        default=False, description="Whether status snapshots can be queried"
    )
    request_available: bool = Field(
        default=False, description="Whether permissions can be requested directly"
    )
    revoke_available: bool = Field(
        default=False, description="Whether permissions can be revoked"
    )

    def as_dict(self) -> Dict[Capability, bool]:
        """Capability flags keyed by Capability."""
        return {
            Capability.QUERY: self.query_available,
            Capability.REQUEST: self.request_available,
            Capability.REVOKE: self.revoke_available,
        }

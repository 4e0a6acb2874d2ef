"""
Enums and pydantic schemas shared by the watchers and reporters.
"""

from .permission_state import ErrorCode, PermissionState, normalize_state
from .outcomes import (
    ApiOutcome,
    CallbackOutcome,
    Capability,
    OutcomeEvent,
    ReportSource,
)
from .capabilities import PermissionCapabilities
from .scenario import (
    CapabilityFlags,
    ResponseSpec,
    Scenario,
    ScenarioExpectation,
    ScenarioStep,
)

__all__ = [
    "ErrorCode",
    "PermissionState",
    "normalize_state",
    "ApiOutcome",
    "CallbackOutcome",
    "Capability",
    "OutcomeEvent",
    "ReportSource",
    "PermissionCapabilities",
    "CapabilityFlags",
    "ResponseSpec",
    "Scenario",
    "ScenarioExpectation",
    "ScenarioStep",
]

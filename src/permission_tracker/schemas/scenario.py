"""
Pydantic schemas for scripted scenario files.
"""

from typing import Any, List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from .outcomes import ApiOutcome, CallbackOutcome
from .permission_state import ErrorCode, PermissionState

StepAction = Literal[
    "load", "request", "external_change", "advance", "revoke", "unload"
]


class ResponseSpec(BaseModel):
    """
    Scripted answer to one position request.
    """

    delay_ms: float = Field(default=0.0, ge=0, description="Time until the answer")
    resolution: Literal["success", "failure"] = Field(
        default="success", description="Which callback fires"
    )
    error_code: int = Field(
        default=int(ErrorCode.PERMISSION_DENIED),
        ge=1,
        le=3,
        description="Error code passed to the failure callback",
    )
    state_change: Optional[PermissionState] = Field(
        default=None, description="Permission state applied just before answering"
    )


class ScenarioStep(BaseModel):
    """
    One step of a scenario.

    Accepts the compact YAML forms `load`, `advance: 12`,
    `external_change: granted` and `request: {delay_ms: 12, ...}`.
    """

    action: StepAction
    response: Optional[ResponseSpec] = None
    state: Optional[PermissionState] = None
    ms: float = Field(default=0.0, ge=0)

    @model_validator(mode="before")
    @classmethod
    def expand_compact_form(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"action": data}
        if isinstance(data, dict) and len(data) == 1 and "action" not in data:
            action, value = next(iter(data.items()))
            if action == "request":
                return {"action": action, "response": value}
            if action == "external_change":
                return {"action": action, "state": value}
            if action == "advance":
                return {"action": action, "ms": value}
            return {"action": action}
        return data

    @model_validator(mode="after")
    def check_arguments(self) -> "ScenarioStep":
        if self.action == "external_change" and self.state is None:
            raise ValueError("external_change needs a state")
        if self.action == "external_change" and self.state == PermissionState.UNKNOWN:
            raise ValueError("external_change cannot set the unknown state")
        return self


class CapabilityFlags(BaseModel):
    """Which permissions API methods the simulated host exposes."""

    query: bool = True
    request: bool = False
    revoke: bool = True


class ScenarioExpectation(BaseModel):
    """Expected outcome sequence per watcher; None skips the check."""

    api: Optional[List[ApiOutcome]] = None
    callback: Optional[List[CallbackOutcome]] = None


class Scenario(BaseModel):
    """
    A scripted page lifetime played against the simulated browser.
    """

    name: str = Field(description="Short scenario identifier")
    description: str = Field(default="", description="What the scenario shows")
    threshold_ms: float = Field(default=5.0, gt=0)
    permission_name: str = Field(default="geolocation", min_length=1)
    initial_state: PermissionState = PermissionState.PROMPT
    capabilities: CapabilityFlags = Field(default_factory=CapabilityFlags)
    legacy_status_field: bool = False
    steps: List[ScenarioStep] = Field(min_length=1)
    expect: ScenarioExpectation = Field(default_factory=ScenarioExpectation)

    @model_validator(mode="after")
    def check_initial_state(self) -> "Scenario":
        if self.initial_state == PermissionState.UNKNOWN:
            raise ValueError("initial_state must be prompt, granted or denied")
        return self

"""
Classified outcomes emitted to the reporter.
"""

from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field


class ReportSource(Enum):
    """Which watcher produced an outcome."""

    API = "api"
    CALLBACK = "callback"


class Capability(Enum):
    """Capabilities of the declarative status API."""

    QUERY = "query"
    REQUEST = "request"
    REVOKE = "revoke"


class ApiOutcome(Enum):
    """Outcomes classified by the status watcher."""

    UNAVAILABLE = "unavailable"
    REQUESTED = "requested"
    STARTING_GRANTED = "starting_granted"
    STARTING_DENIED = "starting_denied"
    NOT_YET_PROMPTED = "not_yet_prompted"
    DEFERRED = "deferred"
    GRANTED_ELSEWHERE = "granted_elsewhere"
    DENIED_ELSEWHERE = "denied_elsewhere"
    RESET_ELSEWHERE = "reset_elsewhere"
    USER_GRANTED = "user_granted"
    GRANTED_FROM_STORAGE = "granted_from_storage"
    USER_DISMISSED = "user_dismissed"
    BROWSER_BLOCKED = "browser_blocked"
    GRANTED_BUT_OS = "granted_but_os"
    DENIED_FROM_STORAGE = "denied_from_storage"
    USER_DENIED = "user_denied"
    FAST_NAVIGATE = "fast_navigate"
    SLOW_NAVIGATE = "slow_navigate"


class CallbackOutcome(Enum):
    """Outcomes classified from request callbacks and timing alone."""

    UNKNOWN = "unknown"
    REQUESTED = "requested"
    USER_GRANTED = "user_granted"
    AUTO_GRANTED = "auto_granted"
    USER_DENIED = "user_denied"
    USER_FAILED = "user_failed"
    AUTO_DENIED = "auto_denied"
    AUTO_FAILED = "auto_failed"
    FAST_NAVIGATE = "fast_navigate"
    SLOW_NAVIGATE = "slow_navigate"


Outcome = Union[ApiOutcome, CallbackOutcome]


class OutcomeEvent(BaseModel):
    """
    One outcome delivered to a reporter.
    """

    source: ReportSource = Field(description="Watcher that emitted the outcome")
    outcome: Outcome = Field(
        description="Classified outcome"
    )
    elapsed_ms: Optional[float] = Field(
        default=None, description="Time since the matching invocation, if timed"
    )
    sequence: int = Field(
        default=0, description="Delivery order across all sources", ge=0
    )

    @property
    def label(self) -> str:
        """Short "source:outcome" label."""
        return f"{self.source.value}:{self.outcome.value}"

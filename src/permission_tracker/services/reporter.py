"""
Reporter interface and the bundled reporter implementations.

Reporters are fire-and-forget from the watchers' point of view: see
`safe_report` and `safe_report_capability`.
"""

import logging
from typing import Dict, Iterable, List, Optional, Protocol

from rich.console import Console

from ..schemas import Capability, OutcomeEvent, ReportSource
from ..schemas.outcomes import Outcome
from ..utils.ui import format_outcome_line, print_capabilities

logger = logging.getLogger(__name__)


class Reporter(Protocol):
    """Receives classified outcomes and capability flags."""

    def report(
        self,
        source: ReportSource,
        outcome: Outcome,
        elapsed_ms: Optional[float] = None,
    ) -> None: ...

    def report_capability(self, name: Capability, supported: bool) -> None: ...


def safe_report(
    reporter: Reporter,
    source: ReportSource,
    outcome: Outcome,
    elapsed_ms: Optional[float] = None,
) -> None:
    """Deliver an outcome, logging and dropping any reporter failure."""
    try:
        reporter.report(source, outcome, elapsed_ms)
    except Exception as e:
        logger.warning(f"Reporter failed for {source.value}:{outcome.value}: {e}")


def safe_report_capability(
    reporter: Reporter, name: Capability, supported: bool
) -> None:
    """Deliver a capability flag, logging and dropping any reporter failure."""
    try:
        reporter.report_capability(name, supported)
    except Exception as e:
        logger.warning(f"Reporter failed for capability {name.value}: {e}")


class RecordingReporter:
    """
    Keeps every delivered outcome in memory.
    """

    def __init__(self):
        self.events: List[OutcomeEvent] = []
        self.capabilities: Dict[Capability, bool] = {}

    def report(
        self,
        source: ReportSource,
        outcome: Outcome,
        elapsed_ms: Optional[float] = None,
    ) -> None:
        self.events.append(
            OutcomeEvent(
                source=source,
                outcome=outcome,
                elapsed_ms=elapsed_ms,
                sequence=len(self.events),
            )
        )

    def report_capability(self, name: Capability, supported: bool) -> None:
        self.capabilities[name] = supported

    def outcomes(self, source: ReportSource) -> List[Outcome]:
        """Outcomes from one source, in delivery order."""
        return [event.outcome for event in self.events if event.source == source]

    def last(self, source: ReportSource) -> Optional[OutcomeEvent]:
        """Most recent event from one source."""
        for event in reversed(self.events):
            if event.source == source:
                return event
        return None

    def clear(self) -> None:
        self.events.clear()


class LoggingReporter:
    """Writes outcomes to the standard logging module."""

    def __init__(self, level: int = logging.INFO):
        self._level = level

    def report(
        self,
        source: ReportSource,
        outcome: Outcome,
        elapsed_ms: Optional[float] = None,
    ) -> None:
        if elapsed_ms is None:
            logger.log(self._level, f"[{source.value}] {outcome.value}")
        else:
            logger.log(
                self._level, f"[{source.value}] {outcome.value} ({elapsed_ms:.1f}ms)"
            )

    def report_capability(self, name: Capability, supported: bool) -> None:
        state = "supported" if supported else "unsupported"
        logger.log(self._level, f"[capability] {name.value}: {state}")


class ConsoleReporter:
    """
    Prints outcomes as they arrive and capabilities as a table.

    Capabilities are buffered until all three flags are known, then shown
    together.
    """

    def __init__(self, console: Optional[Console] = None):
        self._console = console or Console()
        self._capabilities: Dict[Capability, bool] = {}

    def report(
        self,
        source: ReportSource,
        outcome: Outcome,
        elapsed_ms: Optional[float] = None,
    ) -> None:
        self._console.print(format_outcome_line(source, outcome, elapsed_ms))

    def report_capability(self, name: Capability, supported: bool) -> None:
        self._capabilities[name] = supported
        if len(self._capabilities) == len(Capability):
            print_capabilities(self._console, self._capabilities)
            self._capabilities = {}


class CompositeReporter:
    """Fans every call out to several reporters."""

    def __init__(self, reporters: Iterable[Reporter]):
        self._reporters = list(reporters)

    def report(
        self,
        source: ReportSource,
        outcome: Outcome,
        elapsed_ms: Optional[float] = None,
    ) -> None:
        for reporter in self._reporters:
            safe_report(reporter, source, outcome, elapsed_ms)

    def report_capability(self, name: Capability, supported: bool) -> None:
        for reporter in self._reporters:
            safe_report_capability(reporter, name, supported)


__all__ = [
    "Reporter",
    "RecordingReporter",
    "LoggingReporter",
    "ConsoleReporter",
    "CompositeReporter",
    "safe_report",
    "safe_report_capability",
]

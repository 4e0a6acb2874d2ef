"""
Plays a Scenario against a SimulatedBrowser and checks its expectations.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..browser.simulated import SimulatedBrowser, SimulatedResponse
from ..config import create_custom_config
from ..schemas import (
    Capability,
    OutcomeEvent,
    ReportSource,
    Scenario,
    ScenarioStep,
)
from ..services.page_session import PageSession
from ..services.reporter import CompositeReporter, RecordingReporter, Reporter
from ..utils.clock import ManualClock

logger = logging.getLogger(__name__)


@dataclass
class ScenarioResult:
    """Outcome of one scenario run."""

    scenario: Scenario
    events: List[OutcomeEvent] = field(default_factory=list)
    capabilities: Dict[Capability, bool] = field(default_factory=dict)
    mismatches: List[str] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.mismatches

    def outcomes(self, source: ReportSource) -> List[str]:
        """Outcome values from one source, in delivery order."""
        return [e.outcome.value for e in self.events if e.source == source]


class ScenarioRunner:
    """
    Runs a scenario step by step on a fresh simulated page.
    """

    def __init__(self, scenario: Scenario, reporter: Optional[Reporter] = None):
        """
        Initialize the runner.

        Args:
            scenario: Scenario to play
            reporter: Extra reporter that also receives every outcome
        """
        self.scenario = scenario
        self._extra_reporter = reporter

    async def run(self) -> ScenarioResult:
        scenario = self.scenario
        clock = ManualClock()
        browser = SimulatedBrowser(
            clock=clock,
            initial_state=scenario.initial_state,
            query=scenario.capabilities.query,
            request=scenario.capabilities.request,
            revoke=scenario.capabilities.revoke,
            legacy_status_field=scenario.legacy_status_field,
            permission_name=scenario.permission_name,
        )
        recorder = RecordingReporter()
        reporter: Reporter = recorder
        if self._extra_reporter is not None:
            reporter = CompositeReporter([recorder, self._extra_reporter])

        config = create_custom_config(
            threshold_ms=scenario.threshold_ms,
            permission_name=scenario.permission_name,
        )
        session = PageSession(browser, reporter, config, clock)

        for index, step in enumerate(scenario.steps):
            logger.debug(f"{scenario.name} step {index}: {step.action}")
            await self._apply(step, session, browser)
            await session.settle()

        result = ScenarioResult(
            scenario=scenario,
            events=list(recorder.events),
            capabilities=dict(recorder.capabilities),
        )
        result.mismatches = self._check(result)
        return result

    async def _apply(
        self, step: ScenarioStep, session: PageSession, browser: SimulatedBrowser
    ) -> None:
        if step.action == "load":
            await session.load()
        elif step.action == "request":
            if step.response is not None:
                browser.queue_response(
                    SimulatedResponse(
                        delay_ms=step.response.delay_ms,
                        success=step.response.resolution == "success",
                        error_code=step.response.error_code,
                        state_change=step.response.state_change,
                    )
                )
            session.request()
        elif step.action == "external_change":
            browser.set_state(step.state)
        elif step.action == "advance":
            await browser.advance(step.ms)
        elif step.action == "revoke":
            session.revoke()
        elif step.action == "unload":
            session.unload()

    def _check(self, result: ScenarioResult) -> List[str]:
        mismatches = []
        expect = self.scenario.expect
        checks = [
            (ReportSource.API, expect.api),
            (ReportSource.CALLBACK, expect.callback),
        ]
        for source, expected in checks:
            if expected is None:
                continue
            wanted = [outcome.value for outcome in expected]
            actual = result.outcomes(source)
            if wanted != actual:
                mismatches.append(
                    f"{source.value}: expected {wanted}, got {actual}"
                )
        return mismatches


def run_scenario(
    scenario: Scenario, reporter: Optional[Reporter] = None
) -> ScenarioResult:
    """Run a scenario on a new event loop."""
    return asyncio.run(ScenarioRunner(scenario, reporter).run())

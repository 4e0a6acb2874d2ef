"""
Tests for the status watcher: snapshots, change notifications, deferral
while requests are in flight, and failure re-classification.
"""

import asyncio
import logging
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import pytest

from permission_tracker.browser import SimulatedBrowser
from permission_tracker.schemas import (
    ApiOutcome,
    Capability,
    ErrorCode,
    PermissionCapabilities,
    PermissionState,
    ReportSource,
)
from permission_tracker.services import StatusWatcher
from permission_tracker.utils.capability_probe import probe


def api(reporter):
    return reporter.outcomes(ReportSource.API)


def make_watcher(browser, reporter, config, clock):
    return StatusWatcher(browser.permissions, probe(browser), reporter, config, clock)


@pytest.fixture
def watcher(browser, reporter, config, clock):
    return make_watcher(browser, reporter, config, clock)


class FailingPermissions:
    """Permissions API whose queries succeed `ok_queries` times, then raise."""

    def __init__(self, state="prompt", ok_queries=0):
        self._state = state
        self._ok_queries = ok_queries

    async def query(self, name):
        if self._ok_queries <= 0:
            raise RuntimeError("query rejected")
        self._ok_queries -= 1
        return SimpleNamespace(state=self._state)


class TestInitialState:
    """Tests for check_initial_state."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "state,expected",
        [
            (PermissionState.GRANTED, ApiOutcome.STARTING_GRANTED),
            (PermissionState.DENIED, ApiOutcome.STARTING_DENIED),
            (PermissionState.PROMPT, ApiOutcome.NOT_YET_PROMPTED),
        ],
    )
    async def test_snapshot_outcome(self, clock, reporter, config, state, expected):
        browser = SimulatedBrowser(clock=clock, initial_state=state)
        watcher = make_watcher(browser, reporter, config, clock)

        await watcher.check_initial_state()

        assert api(reporter) == [expected]
        assert watcher.context.last_observed_state == state
        assert watcher.subscribed

    @pytest.mark.asyncio
    async def test_concurrent_checks_report_once(self, watcher, browser, reporter):
        await asyncio.gather(
            watcher.check_initial_state(), watcher.check_initial_state()
        )

        assert api(reporter) == [ApiOutcome.NOT_YET_PROMPTED]
        assert browser.query_count == 2
        assert browser.listener_count() == 1

    @pytest.mark.asyncio
    async def test_check_after_snapshot_is_noop(self, watcher, browser, reporter):
        await watcher.check_initial_state()
        await watcher.check_initial_state()

        assert api(reporter) == [ApiOutcome.NOT_YET_PROMPTED]
        assert browser.query_count == 1

    @pytest.mark.asyncio
    async def test_query_failure_leaves_state_unknown(
        self, reporter, config, clock, all_capabilities, caplog
    ):
        watcher = StatusWatcher(
            FailingPermissions(), all_capabilities, reporter, config, clock
        )

        with caplog.at_level(logging.WARNING):
            await watcher.check_initial_state()

        assert api(reporter) == []
        assert watcher.context.last_observed_state == PermissionState.UNKNOWN
        assert "query rejected" in caplog.text

    @pytest.mark.asyncio
    async def test_invocation_before_snapshot_forces_check(
        self, watcher, reporter, browser
    ):
        watcher.record_invocation()
        await watcher.wait_idle()

        assert api(reporter) == [ApiOutcome.REQUESTED, ApiOutcome.NOT_YET_PROMPTED]
        assert watcher.context.last_observed_state == PermissionState.PROMPT
        assert browser.query_count == 1

    @pytest.mark.asyncio
    async def test_subscribes_when_request_resolves_before_snapshot(
        self, clock, reporter, config
    ):
        browser = SimulatedBrowser(clock=clock, initial_state=PermissionState.GRANTED)
        watcher = make_watcher(browser, reporter, config, clock)

        watcher.record_invocation()
        watcher.on_success()
        await watcher.wait_idle()
        browser.set_state(PermissionState.DENIED)

        assert watcher.subscribed
        assert browser.listener_count() == 1
        assert api(reporter) == [
            ApiOutcome.REQUESTED,
            ApiOutcome.GRANTED_FROM_STORAGE,
            ApiOutcome.DENIED_ELSEWHERE,
        ]

    @pytest.mark.asyncio
    async def test_subscribe_failure_is_logged(
        self, reporter, config, clock, all_capabilities, caplog
    ):
        status = Mock(state="prompt")
        status.subscribe.side_effect = RuntimeError("listeners disabled")
        permissions = Mock()
        permissions.query = AsyncMock(return_value=status)
        watcher = StatusWatcher(permissions, all_capabilities, reporter, config, clock)

        with caplog.at_level(logging.WARNING):
            await watcher.check_initial_state()

        assert api(reporter) == [ApiOutcome.NOT_YET_PROMPTED]
        assert not watcher.subscribed
        assert "listeners disabled" in caplog.text
        assert browser.query_count == 1


class TestExternalChanges:
    """Tests for change notifications with and without requests in flight."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "state,expected",
        [
            (PermissionState.GRANTED, ApiOutcome.GRANTED_ELSEWHERE),
            (PermissionState.DENIED, ApiOutcome.DENIED_ELSEWHERE),
        ],
    )
    async def test_change_while_idle(self, watcher, browser, reporter, state, expected):
        await watcher.check_initial_state()
        browser.set_state(state)

        assert api(reporter)[-1] == expected
        assert watcher.context.last_observed_state == state

    @pytest.mark.asyncio
    async def test_reset_elsewhere(self, clock, reporter, config):
        browser = SimulatedBrowser(clock=clock, initial_state=PermissionState.DENIED)
        watcher = make_watcher(browser, reporter, config, clock)
        await watcher.check_initial_state()

        browser.set_state(PermissionState.PROMPT)

        assert api(reporter)[-1] == ApiOutcome.RESET_ELSEWHERE

    @pytest.mark.asyncio
    async def test_change_during_request_is_deferred(self, watcher, browser, reporter):
        await watcher.check_initial_state()
        watcher.record_invocation()

        browser.set_state(PermissionState.GRANTED)

        assert api(reporter)[-1] == ApiOutcome.DEFERRED
        assert watcher.context.deferred_state == PermissionState.GRANTED
        assert watcher.context.last_observed_state == PermissionState.PROMPT

    @pytest.mark.asyncio
    async def test_unknown_change_ignored(self, watcher, reporter):
        await watcher.check_initial_state()
        watcher.on_external_change(PermissionState.UNKNOWN)
        assert api(reporter) == [ApiOutcome.NOT_YET_PROMPTED]


class TestSuccess:
    """Tests for on_success."""

    @pytest.mark.asyncio
    async def test_granted_from_storage(self, clock, reporter, config):
        browser = SimulatedBrowser(clock=clock, initial_state=PermissionState.GRANTED)
        watcher = make_watcher(browser, reporter, config, clock)

        await watcher.check_initial_state()
        watcher.record_invocation()
        watcher.on_success()

        assert api(reporter) == [
            ApiOutcome.STARTING_GRANTED,
            ApiOutcome.REQUESTED,
            ApiOutcome.GRANTED_FROM_STORAGE,
        ]

    @pytest.mark.asyncio
    async def test_user_granted_from_prompt(self, watcher, browser, reporter, clock):
        await watcher.check_initial_state()
        watcher.record_invocation()
        clock.advance_ms(900)
        browser.set_state(PermissionState.GRANTED)
        watcher.on_success()

        assert api(reporter)[-2:] == [ApiOutcome.DEFERRED, ApiOutcome.USER_GRANTED]
        assert watcher.context.deferred_state is None
        assert watcher.context.last_observed_state == PermissionState.GRANTED
        assert watcher.context.pending_count == 0

    @pytest.mark.asyncio
    async def test_second_request_after_grant_is_from_storage(
        self, watcher, browser, reporter
    ):
        await watcher.check_initial_state()
        watcher.record_invocation()
        browser.set_state(PermissionState.GRANTED)
        watcher.on_success()
        watcher.record_invocation()
        watcher.on_success()

        assert api(reporter)[-1] == ApiOutcome.GRANTED_FROM_STORAGE


class TestFailure:
    """Tests for on_failure re-classification."""

    async def _fail(self, watcher, clock, elapsed, code=ErrorCode.PERMISSION_DENIED):
        await watcher.check_initial_state()
        watcher.record_invocation()
        clock.advance_ms(elapsed)
        watcher.on_failure(code)
        await watcher.wait_idle()

    @pytest.mark.asyncio
    async def test_user_dismissed(self, watcher, reporter, clock):
        await self._fail(watcher, clock, 12)

        event = reporter.last(ReportSource.API)
        assert event.outcome == ApiOutcome.USER_DISMISSED
        assert event.elapsed_ms == pytest.approx(12)

    @pytest.mark.asyncio
    async def test_browser_blocked(self, watcher, reporter, clock):
        await self._fail(watcher, clock, 3)
        assert api(reporter)[-1] == ApiOutcome.BROWSER_BLOCKED

    @pytest.mark.asyncio
    async def test_user_denied(self, watcher, browser, reporter, clock):
        await watcher.check_initial_state()
        watcher.record_invocation()
        clock.advance_ms(700)
        browser.set_state(PermissionState.DENIED)
        watcher.on_failure(ErrorCode.PERMISSION_DENIED)
        await watcher.wait_idle()

        assert api(reporter)[-2:] == [ApiOutcome.DEFERRED, ApiOutcome.USER_DENIED]
        assert watcher.context.last_observed_state == PermissionState.DENIED

    @pytest.mark.asyncio
    async def test_denied_from_storage(self, clock, reporter, config):
        browser = SimulatedBrowser(clock=clock, initial_state=PermissionState.DENIED)
        watcher = make_watcher(browser, reporter, config, clock)
        await self._fail(watcher, clock, 1)
        assert api(reporter)[-1] == ApiOutcome.DENIED_FROM_STORAGE

    @pytest.mark.asyncio
    async def test_granted_but_os(self, clock, reporter, config):
        browser = SimulatedBrowser(clock=clock, initial_state=PermissionState.GRANTED)
        watcher = make_watcher(browser, reporter, config, clock)
        await self._fail(watcher, clock, 2)
        assert api(reporter)[-1] == ApiOutcome.GRANTED_BUT_OS

    @pytest.mark.asyncio
    async def test_granted_with_position_error(self, clock, reporter, config):
        browser = SimulatedBrowser(clock=clock, initial_state=PermissionState.GRANTED)
        watcher = make_watcher(browser, reporter, config, clock)
        await self._fail(watcher, clock, 30, ErrorCode.TIMEOUT)
        assert api(reporter)[-1] == ApiOutcome.GRANTED_FROM_STORAGE

    @pytest.mark.asyncio
    async def test_user_granted_then_position_error(
        self, watcher, browser, reporter, clock
    ):
        await watcher.check_initial_state()
        watcher.record_invocation()
        clock.advance_ms(800)
        browser.set_state(PermissionState.GRANTED)
        watcher.on_failure(ErrorCode.POSITION_UNAVAILABLE)
        await watcher.wait_idle()

        assert api(reporter)[-1] == ApiOutcome.USER_GRANTED

    @pytest.mark.asyncio
    async def test_granted_elsewhere_race(self, watcher, browser, reporter, clock):
        await watcher.check_initial_state()
        watcher.record_invocation()
        assert watcher.context.pending_count == 1

        browser.set_state(PermissionState.GRANTED)
        assert api(reporter)[-1] == ApiOutcome.DEFERRED
        assert watcher.context.last_observed_state == PermissionState.PROMPT

        clock.advance_ms(20)
        watcher.on_failure(ErrorCode.PERMISSION_DENIED)
        await watcher.wait_idle()

        assert api(reporter) == [
            ApiOutcome.NOT_YET_PROMPTED,
            ApiOutcome.REQUESTED,
            ApiOutcome.DEFERRED,
            ApiOutcome.GRANTED_ELSEWHERE,
            ApiOutcome.USER_DISMISSED,
        ]
        assert watcher.context.deferred_state is None
        assert watcher.context.last_observed_state == PermissionState.GRANTED

    @pytest.mark.asyncio
    async def test_requery_failure_flushes_deferred(
        self, reporter, config, clock, all_capabilities
    ):
        permissions = FailingPermissions(state="prompt", ok_queries=1)
        watcher = StatusWatcher(permissions, all_capabilities, reporter, config, clock)

        await watcher.check_initial_state()
        watcher.record_invocation()
        watcher.on_external_change(PermissionState.GRANTED)
        watcher.on_failure(ErrorCode.PERMISSION_DENIED)
        await watcher.wait_idle()

        assert api(reporter)[-1] == ApiOutcome.GRANTED_ELSEWHERE
        assert watcher.context.last_observed_state == PermissionState.GRANTED


class TestAbandon:
    """Tests for on_abandon."""

    @pytest.mark.asyncio
    async def test_noop_without_pending_request(self, watcher, reporter):
        await watcher.check_initial_state()
        watcher.on_abandon()
        assert api(reporter) == [ApiOutcome.NOT_YET_PROMPTED]

    @pytest.mark.asyncio
    async def test_fast_navigate(self, watcher, reporter, clock):
        await watcher.check_initial_state()
        watcher.record_invocation()
        clock.advance_ms(2)
        watcher.on_abandon()
        assert api(reporter)[-1] == ApiOutcome.FAST_NAVIGATE

    @pytest.mark.asyncio
    async def test_navigate_at_threshold_is_slow(self, watcher, reporter, clock):
        await watcher.check_initial_state()
        watcher.record_invocation()
        clock.advance_ms(5)
        watcher.on_abandon()
        assert api(reporter)[-1] == ApiOutcome.SLOW_NAVIGATE

    @pytest.mark.asyncio
    async def test_deferred_change_flushed_first(
        self, watcher, browser, reporter, clock
    ):
        await watcher.check_initial_state()
        watcher.record_invocation()
        browser.set_state(PermissionState.DENIED)
        clock.advance_ms(2500)
        watcher.on_abandon()

        assert api(reporter)[-3:] == [
            ApiOutcome.DEFERRED,
            ApiOutcome.DENIED_ELSEWHERE,
            ApiOutcome.SLOW_NAVIGATE,
        ]
        assert watcher.context.deferred_state is None


class TestUnavailable:
    """Without a status query the watcher only ever reports UNAVAILABLE."""

    @pytest.mark.asyncio
    async def test_single_unavailable_for_any_sequence(self, reporter, config, clock):
        watcher = StatusWatcher(
            None, PermissionCapabilities(), reporter, config, clock
        )

        watcher.report_compat()
        await watcher.check_initial_state()
        watcher.record_invocation()
        watcher.on_external_change(PermissionState.GRANTED)
        watcher.on_success()
        watcher.record_invocation()
        watcher.on_failure(ErrorCode.PERMISSION_DENIED)
        watcher.on_abandon()
        watcher.report_compat()
        await watcher.wait_idle()

        assert api(reporter) == [ApiOutcome.UNAVAILABLE]
        assert watcher.context.pending_count == 0

    @pytest.mark.asyncio
    async def test_unavailable_without_report_compat(self, reporter, config, clock):
        watcher = StatusWatcher(
            None, PermissionCapabilities(), reporter, config, clock
        )
        watcher.record_invocation()
        watcher.on_success()
        assert api(reporter) == [ApiOutcome.UNAVAILABLE]

    def test_report_compat_reports_capabilities(self, watcher, reporter):
        watcher.report_compat()
        assert reporter.capabilities == {
            Capability.QUERY: True,
            Capability.REQUEST: False,
            Capability.REVOKE: True,
        }
        assert api(reporter) == []


class TestPendingCount:
    """pending_count never drops below zero."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "sequence",
        [
            "sss",
            "fff",
            "isss",
            "iifsf",
            "ifif",
            "iiisfs",
        ],
    )
    async def test_never_negative(self, watcher, sequence):
        await watcher.check_initial_state()
        for step in sequence:
            if step == "i":
                watcher.record_invocation()
            elif step == "s":
                watcher.on_success()
            else:
                watcher.on_failure(ErrorCode.PERMISSION_DENIED)
            assert watcher.context.pending_count >= 0
        await watcher.wait_idle()
        assert watcher.context.pending_count >= 0


class TestReporterFailures:
    """A failing reporter never breaks the watcher."""

    @pytest.mark.asyncio
    async def test_reporter_exception_is_logged(
        self, browser, config, clock, caplog
    ):
        reporter = Mock()
        reporter.report.side_effect = RuntimeError("reporter offline")
        watcher = make_watcher(browser, reporter, config, clock)

        with caplog.at_level(logging.WARNING):
            await watcher.check_initial_state()
            watcher.record_invocation()
            watcher.on_success()

        assert reporter.report.call_count == 3
        assert watcher.context.last_observed_state == PermissionState.GRANTED
        assert "reporter offline" in caplog.text

"""
Terminal display helpers built on rich.
"""

from typing import TYPE_CHECKING, Dict, Iterable, Optional, Union

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from ..schemas import (
    ApiOutcome,
    CallbackOutcome,
    Capability,
    OutcomeEvent,
    ReportSource,
)

if TYPE_CHECKING:
    from ..scenarios.runner import ScenarioResult

THEME: Dict[str, str] = {
    "granted": "#00ff88",  # Green
    "denied": "#f85149",  # Red
    "neutral": "#00ccff",  # Cyan
    "navigate": "#d29922",  # Yellow
    "muted": "#7d8590",  # Gray
    "header": "#ffffff",
}

ICONS: Dict[str, str] = {
    "success": "✓",
    "error": "✗",
    "api": "◆",
    "callback": "◇",
}

_GRANTED = {
    ApiOutcome.STARTING_GRANTED,
    ApiOutcome.GRANTED_ELSEWHERE,
    ApiOutcome.USER_GRANTED,
    ApiOutcome.GRANTED_FROM_STORAGE,
    CallbackOutcome.USER_GRANTED,
    CallbackOutcome.AUTO_GRANTED,
}

_DENIED = {
    ApiOutcome.UNAVAILABLE,
    ApiOutcome.STARTING_DENIED,
    ApiOutcome.DENIED_ELSEWHERE,
    ApiOutcome.USER_DISMISSED,
    ApiOutcome.BROWSER_BLOCKED,
    ApiOutcome.GRANTED_BUT_OS,
    ApiOutcome.DENIED_FROM_STORAGE,
    ApiOutcome.USER_DENIED,
    CallbackOutcome.USER_DENIED,
    CallbackOutcome.USER_FAILED,
    CallbackOutcome.AUTO_DENIED,
    CallbackOutcome.AUTO_FAILED,
}

_NAVIGATE = {
    ApiOutcome.FAST_NAVIGATE,
    ApiOutcome.SLOW_NAVIGATE,
    CallbackOutcome.FAST_NAVIGATE,
    CallbackOutcome.SLOW_NAVIGATE,
}


def outcome_style(outcome: Union[ApiOutcome, CallbackOutcome]) -> str:
    """Theme color for an outcome."""
    if outcome in _GRANTED:
        return THEME["granted"]
    if outcome in _DENIED:
        return THEME["denied"]
    if outcome in _NAVIGATE:
        return THEME["navigate"]
    return THEME["neutral"]


def format_outcome_line(
    source: ReportSource,
    outcome: Union[ApiOutcome, CallbackOutcome],
    elapsed_ms: Optional[float] = None,
) -> Text:
    """One-line rendering of a reported outcome."""
    line = Text()
    line.append(f"{ICONS[source.value]} ", style=THEME["muted"])
    line.append(f"{source.value:<9}", style=THEME["muted"])
    line.append(outcome.value, style=outcome_style(outcome))
    if elapsed_ms is not None:
        line.append(f"  {elapsed_ms:.1f}ms", style=THEME["muted"])
    return line


def print_capabilities(console: Console, capabilities: Dict[Capability, bool]) -> None:
    """
    Display permissions API support in a table.

    Args:
        console: Rich console to print to
        capabilities: Support flag per capability
    """
    table = Table(
        title="Permissions API",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("Capability", style="cyan", width=12)
    table.add_column("Status", width=16)

    for capability in Capability:
        supported = capabilities.get(capability, False)
        if supported:
            status = f"[{THEME['granted']}]{ICONS['success']} supported[/]"
        else:
            status = f"[{THEME['denied']}]{ICONS['error']} unsupported[/]"
        table.add_row(capability.value, status)

    console.print()
    console.print(table)
    console.print()


def print_outcome_table(console: Console, events: Iterable[OutcomeEvent]) -> None:
    """Display recorded outcomes in delivery order."""
    table = Table(box=box.SIMPLE, show_header=True, header_style="bold cyan")
    table.add_column("#", style=THEME["muted"], justify="right")
    table.add_column("Source")
    table.add_column("Outcome")
    table.add_column("Elapsed", justify="right")

    for event in events:
        elapsed = "" if event.elapsed_ms is None else f"{event.elapsed_ms:.1f}ms"
        table.add_row(
            str(event.sequence),
            event.source.value,
            Text(event.outcome.value, style=outcome_style(event.outcome)),
            elapsed,
        )

    console.print(table)


def print_scenario_result(
    console: Console, result: "ScenarioResult", show_events: bool = True
) -> None:
    """
    Display a scenario run and its expectation check.

    Args:
        console: Rich console to print to
        result: Finished scenario run
        show_events: Whether to include the full outcome table
    """
    header = Text()
    header.append(f"{result.scenario.name}", style=f"bold {THEME['header']}")
    if result.scenario.description:
        header.append(f"  {result.scenario.description}", style=THEME["muted"])
    console.print(header)

    if show_events:
        print_outcome_table(console, result.events)

    if result.passed:
        console.print(f"  [{THEME['granted']}]{ICONS['success']} expectations met[/]")
        return

    for mismatch in result.mismatches:
        console.print(f"  [{THEME['denied']}]{ICONS['error']} {mismatch}[/]")

"""
Command-line entry point: play permission scenarios on the simulated browser.
"""

import argparse
import sys
from typing import List, Optional

from rich.console import Console

from .config import get_tracker_config
from .scenarios import (
    ScenarioError,
    ScenarioResult,
    builtin_scenarios,
    load_scenario,
    resolve_scenario,
    run_scenario,
)
from .services.reporter import ConsoleReporter
from .utils.logging_config import setup_logging
from .utils.ui import THEME, print_scenario_result

console = Console()


def cmd_list(args: argparse.Namespace) -> int:
    """Print the bundled scenarios."""
    for name, path in builtin_scenarios().items():
        scenario = load_scenario(path)
        console.print(f"  [bold]{name}[/bold]  [{THEME['muted']}]{scenario.description}[/]")
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    """Run one scenario and print its outcomes."""
    scenario = resolve_scenario(args.scenario)
    threshold = args.threshold_ms
    if threshold is None and args.use_env:
        threshold = get_tracker_config().threshold_ms
    if threshold is not None:
        scenario = scenario.model_copy(update={"threshold_ms": threshold})

    reporter = ConsoleReporter(console) if args.verbosity == "verbose" else None
    result = run_scenario(scenario, reporter)
    if args.verbosity != "quiet":
        print_scenario_result(console, result)
    return 0 if result.passed else 1


def cmd_check(args: argparse.Namespace) -> int:
    """Run every bundled scenario and summarize."""
    results: List[ScenarioResult] = []
    for path in builtin_scenarios().values():
        results.append(run_scenario(load_scenario(path)))

    for result in results:
        if args.verbosity == "verbose" or not result.passed:
            print_scenario_result(console, result, show_events=not result.passed)

    failed = [r for r in results if not r.passed]
    style = THEME["denied"] if failed else THEME["granted"]
    console.print(
        f"[{style}]{len(results) - len(failed)}/{len(results)} scenarios passed[/]"
    )
    return 1 if failed else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="permission-tracker",
        description="Permission Tracker - classify how permission decisions came about",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output with detailed logs",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Only report the exit status",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="List built-in scenarios")
    list_parser.set_defaults(func=cmd_list)

    run_parser = subparsers.add_parser("run", help="Run a scenario file or built-in")
    run_parser.add_argument("scenario", help="Path to a YAML file or built-in name")
    run_parser.add_argument(
        "--threshold-ms",
        type=float,
        default=None,
        help="Override the scenario's fast/slow threshold",
    )
    run_parser.add_argument(
        "--use-env",
        action="store_true",
        help="Take the threshold from PERMISSION_TRACKER_THRESHOLD_MS / .env",
    )
    run_parser.set_defaults(func=cmd_run)

    check_parser = subparsers.add_parser("check", help="Run all built-in scenarios")
    check_parser.set_defaults(func=cmd_check)

    return parser


def cli(argv: Optional[List[str]] = None) -> int:
    """CLI entry point with argument parsing."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose and args.quiet:
        parser.error("Cannot use both --verbose and --quiet")

    if args.verbose:
        args.verbosity = "verbose"
    elif args.quiet:
        args.verbosity = "quiet"
    else:
        args.verbosity = "normal"

    setup_logging(verbose=args.verbose)

    try:
        return args.func(args)
    except ScenarioError as e:
        console.print(f"[{THEME['denied']}]{e}[/]")
        return 2
    except ValueError as e:
        console.print(f"[{THEME['denied']}]Configuration error: {e}[/]")
        return 2
    except KeyboardInterrupt:
        console.print(f"\n[{THEME['muted']}]Interrupted[/]")
        return 130


def main() -> None:
    sys.exit(cli())


if __name__ == "__main__":
    main()

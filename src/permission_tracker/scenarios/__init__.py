"""
Scripted scenarios played against the simulated browser.
"""

from .loader import (
    BUILTIN_DIR,
    ScenarioError,
    builtin_scenarios,
    load_scenario,
    resolve_scenario,
)
from .runner import ScenarioResult, ScenarioRunner, run_scenario

__all__ = [
    "BUILTIN_DIR",
    "ScenarioError",
    "builtin_scenarios",
    "load_scenario",
    "resolve_scenario",
    "ScenarioResult",
    "ScenarioRunner",
    "run_scenario",
]

"""
Loading scenario files from disk or from the bundled set.
"""

from pathlib import Path
from typing import Dict, Union

import yaml
from pydantic import ValidationError

from ..schemas import Scenario

BUILTIN_DIR = Path(__file__).parent / "builtin"


class ScenarioError(Exception):
    """Raised when a scenario file cannot be found, parsed or validated."""


def load_scenario(path: Union[str, Path]) -> Scenario:
    """
    Load and validate a YAML scenario file.

    Args:
        path: Path to the scenario file

    Returns:
        Validated Scenario

    Raises:
        ScenarioError: If the file is missing, is not valid YAML, or does not
            match the scenario schema
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ScenarioError(f"Cannot read scenario {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ScenarioError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ScenarioError(f"Scenario {path} must be a mapping")
    data.setdefault("name", path.stem)

    try:
        return Scenario.model_validate(data)
    except ValidationError as e:
        raise ScenarioError(f"Invalid scenario {path}:\n{e}") from e


def builtin_scenarios() -> Dict[str, Path]:
    """Bundled scenario files keyed by file stem, sorted by name."""
    return {path.stem: path for path in sorted(BUILTIN_DIR.glob("*.yaml"))}


def resolve_scenario(ref: str) -> Scenario:
    """
    Load a scenario from a file path or a bundled scenario name.

    Raises:
        ScenarioError: If `ref` is neither an existing file nor a bundled name
    """
    path = Path(ref)
    if path.is_file():
        return load_scenario(path)

    bundled = builtin_scenarios()
    if ref in bundled:
        return load_scenario(bundled[ref])

    raise ScenarioError(
        f"No scenario file or built-in scenario named {ref!r} "
        f"(built-ins: {', '.join(bundled) or 'none'})"
    )

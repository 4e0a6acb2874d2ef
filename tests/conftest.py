"""
Pytest configuration and fixtures.
"""

import logging
import sys
from pathlib import Path

import pytest

# Add src to path
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from permission_tracker.browser import SimulatedBrowser  # noqa: E402
from permission_tracker.config import create_custom_config  # noqa: E402
from permission_tracker.schemas import PermissionCapabilities  # noqa: E402
from permission_tracker.services import RecordingReporter  # noqa: E402
from permission_tracker.utils.clock import ManualClock  # noqa: E402


def pytest_configure(config):
    """Configure pytest."""
    config.addinivalue_line("markers", "race: interleaving of requests and changes")
    config.addinivalue_line("markers", "scenario: scripted simulated-browser runs")


def pytest_collection_modifyitems(config, items):
    """
    Modify test items to add helpful markers.
    """
    for item in items:
        nodeid = item.nodeid.lower()
        if "race" in nodeid or "concurrent" in nodeid:
            item.add_marker("race")
        if "scenario" in nodeid:
            item.add_marker("scenario")


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def reporter():
    return RecordingReporter()


@pytest.fixture
def config():
    return create_custom_config(threshold_ms=5.0)


@pytest.fixture
def browser(clock):
    return SimulatedBrowser(clock=clock)


@pytest.fixture
def all_capabilities():
    return PermissionCapabilities(
        query_available=True, request_available=True, revoke_available=True
    )


@pytest.fixture
def restore_logging():
    """Undo logging changes made by setup_logging()."""
    root = logging.getLogger()
    tracker = logging.getLogger("permission_tracker")
    noisy = logging.getLogger("asyncio")
    saved = (
        list(root.handlers),
        root.level,
        tracker.level,
        list(noisy.handlers),
        noisy.level,
        noisy.propagate,
    )
    yield
    root.handlers = saved[0]
    root.setLevel(saved[1])
    tracker.setLevel(saved[2])
    noisy.handlers = saved[3]
    noisy.setLevel(saved[4])
    noisy.propagate = saved[5]

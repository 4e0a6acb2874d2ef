"""
Centralized logging configuration.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

NOISY_LIBRARIES = [
    "asyncio",
    "markdown_it",
]


class NullHandler(logging.Handler):
    """Handler that discards all log records."""

    def emit(self, record):
        pass


def setup_logging(verbose: bool = False) -> None:
    """
    Configure logging for the tracker and silence noisy libraries.

    Args:
        verbose: If True, show DEBUG output from the tracker through rich.
            If False, only warnings and errors are shown.
    """
    for logger_name in NOISY_LIBRARIES:
        logger = logging.getLogger(logger_name)
        logger.setLevel(logging.CRITICAL)
        logger.propagate = False
        logger.handlers = [NullHandler()]

    root_logger = logging.getLogger()
    if not any(isinstance(h, RichHandler) for h in root_logger.handlers):
        root_logger.addHandler(
            RichHandler(
                console=Console(stderr=True),
                show_path=verbose,
                rich_tracebacks=True,
                markup=False,
            )
        )
    root_logger.setLevel(logging.WARNING)

    tracker_logger = logging.getLogger("permission_tracker")
    tracker_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)

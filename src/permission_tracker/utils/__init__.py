"""
Utility helpers: capability probing, timing classification, logging and display.
"""

from .capability_probe import probe
from .clock import Clock, ManualClock, elapsed_ms
from .logging_config import setup_logging
from .timing_gate import Speed, classify

__all__ = [
    "probe",
    "Clock",
    "ManualClock",
    "elapsed_ms",
    "setup_logging",
    "Speed",
    "classify",
]

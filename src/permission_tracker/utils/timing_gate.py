"""
Fast/slow classification of response times.
"""

from enum import Enum


class Speed(Enum):
    """Whether a response was quick enough to be automatic."""

    FAST = "fast"
    SLOW = "slow"


def classify(elapsed_ms: float, threshold_ms: float) -> Speed:
    """
    Classify a response time against a threshold.

    No one can read a prompt and answer it within a few milliseconds, so
    responses at or under the threshold are treated as automatic or cached.

    Args:
        elapsed_ms: Time between invocation and response
        threshold_ms: Configured threshold

    Returns:
        Speed.FAST if elapsed_ms <= threshold_ms, otherwise Speed.SLOW
    """
    if elapsed_ms <= threshold_ms:
        return Speed.FAST
    return Speed.SLOW

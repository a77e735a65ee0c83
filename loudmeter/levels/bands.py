"""Categorical loudness bands for display."""

from enum import Enum

from .errors import InvalidConfigError


class LoudnessBand(str, Enum):
    QUIET = "quiet"
    NORMAL = "normal"
    LOUD = "loud"


def classify(level: float, quiet_max: float = 25.0, normal_max: float = 50.0) -> LoudnessBand:
    """Map a display level to a band.

    Levels up to ``quiet_max`` are quiet, up to ``normal_max`` normal, and
    anything above is loud.
    """
    if quiet_max >= normal_max:
        raise InvalidConfigError(f"quiet_max ({quiet_max}) must be below normal_max ({normal_max})")

    if level <= quiet_max:
        return LoudnessBand.QUIET
    if level <= normal_max:
        return LoudnessBand.NORMAL
    return LoudnessBand.LOUD

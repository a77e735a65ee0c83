"""Errors raised by the loudness aggregator.

All of these are recoverable: a rejected call leaves the aggregator in the
state it was in before the call.
"""

import math
from typing import Optional


class LoudnessError(Exception):
    """Base class for loudness aggregation errors."""


class InvalidConfigError(LoudnessError, ValueError):
    """Raised when a session or normalizer is configured with unusable values."""


class InactiveSessionError(LoudnessError):
    """Raised when a sample is pushed while no session is active."""


class OutOfOrderSampleError(LoudnessError):
    """Raised when a sample is older than the previous one or its time is not finite."""

    def __init__(self, time_seconds: float, last_time_seconds: Optional[float] = None):
        if last_time_seconds is None or not math.isfinite(time_seconds):
            message = f"Sample time {time_seconds}s is not a finite session time"
        else:
            message = f"Sample at {time_seconds:.3f}s is older than previous sample at {last_time_seconds:.3f}s"
        super().__init__(message)
        self.time_seconds = time_seconds
        self.last_time_seconds = last_time_seconds

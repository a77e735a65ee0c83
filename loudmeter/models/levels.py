"""Loudness sample and session models."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Sample:
    """A single normalized loudness reading."""
    time_seconds: float  # Seconds since session start
    raw_level: float
    display_level: float


@dataclass
class SessionState:
    """Mutable per-session counters owned by the aggregator."""
    is_active: bool = False
    start_time: Optional[float] = None  # Unix timestamp of start()
    elapsed_seconds: float = 0.0
    active_duration_seconds: float = 0.0
    running_average: float = 0.0


@dataclass(frozen=True)
class LevelSnapshot:
    """Read-only view of the aggregator after the latest update."""
    current_level: float = 0.0
    running_average: float = 0.0
    active_duration_seconds: float = 0.0
    elapsed_seconds: float = 0.0
    sample_count: int = 0


@dataclass(frozen=True)
class StopResult:
    """Summary returned when a session stops."""
    final_average: float
    active_duration_seconds: float
    elapsed_seconds: float

"""Data models for the Loudmeter application."""

from .audio import AudioStats
from .events import AudioEvent, LevelEvent, SessionEvent
from .levels import Sample, SessionState, LevelSnapshot, StopResult

__all__ = [
    "AudioStats",
    "AudioEvent",
    "LevelEvent",
    "SessionEvent",
    "Sample",
    "SessionState",
    "LevelSnapshot",
    "StopResult",
]

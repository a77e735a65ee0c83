"""Event models for pub/sub loudness metering."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .levels import LevelSnapshot, StopResult


@dataclass
class AudioEvent:
    """Audio chunk event with metadata."""
    chunk_id: str
    audio_data: bytes
    timestamp: float  # Unix timestamp when chunk was captured
    sequence_number: int
    sample_rate: int = 16000
    channels: int = 1
    final: bool = False  # True if this is the last chunk before capture stops


@dataclass
class LevelEvent:
    """Loudness update published after every accepted sample."""
    snapshot: LevelSnapshot
    band: str  # LoudnessBand value of the running average
    is_active: bool
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class SessionEvent:
    """Session lifecycle event."""
    event_type: str  # "started", "stopped", "cleared"
    result: Optional[StopResult] = None
    timestamp: datetime = field(default_factory=datetime.now)

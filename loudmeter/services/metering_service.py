"""Metering service: feeds captured audio into the loudness aggregator.

The service subscribes to the audio topic, turns every chunk into an RMS
reading with a session-relative timestamp and pushes it into a
``LoudnessAggregator``. After each chunk it publishes a ``LevelEvent`` on the
level topic; session start/stop/clear are published on the session topic.
"""

import time
import logging
import threading
from typing import Callable, Optional

from pubsub import pub

from ..config import LevelSettings
from ..levels import (
    LoudnessAggregator,
    LoudnessError,
    build_normalizer,
    classify,
    rms_from_pcm16,
)
from ..models.events import AudioEvent, LevelEvent, SessionEvent
from ..models.levels import LevelSnapshot, StopResult

logger = logging.getLogger(__name__)


class MeteringService:
    """Single-producer bridge between audio capture and the aggregator."""

    def __init__(
        self,
        settings: LevelSettings,
        audio_topic: str = "audio.frame",
        level_topic: str = "level.update",
        session_topic: str = "level.session",
        clock: Callable[[], float] = time.time,
    ):
        self.settings = settings
        self.audio_topic = audio_topic
        self.level_topic = level_topic
        self.session_topic = session_topic
        self.clock = clock

        settings.validate()
        self.aggregator = LoudnessAggregator(
            normalizer=build_normalizer(settings.normalizer),
            silence_floor=settings.silence_floor,
            nominal_tick_seconds=settings.nominal_tick_seconds,
            keep_boundary_sample=settings.keep_boundary_sample,
            clock=clock,
        )

        # The aggregator does no locking of its own
        self.lock = threading.RLock()
        self.session_start: Optional[float] = None
        self.last_result: Optional[StopResult] = None
        self.dropped_events = 0

        pub.subscribe(self._on_audio_event, audio_topic)
        logger.info(f"MeteringService initialized - subscribed to {audio_topic}, "
                    f"publishing to {level_topic}")

    def start_session(self) -> None:
        """Start a new metering session."""
        with self.lock:
            self.aggregator.start(self.settings.window_seconds, self.settings.activity_threshold)
            self.session_start = self.clock()
            self.last_result = None
            self.dropped_events = 0
        pub.sendMessage(self.session_topic, event=SessionEvent(event_type="started"))

    def stop_session(self) -> Optional[StopResult]:
        """Stop the current session; returns the previous result if already stopped."""
        with self.lock:
            if not self.aggregator.is_active:
                logger.debug("stop_session() called with no active session")
                return self.last_result
            result = self.aggregator.stop()
            self.last_result = result
        pub.sendMessage(self.session_topic, event=SessionEvent(event_type="stopped", result=result))
        return result

    def clear(self) -> None:
        """Discard accumulated history; an active session keeps running."""
        with self.lock:
            self.aggregator.clear()
            if self.aggregator.is_active:
                self.session_start = self.clock()
        pub.sendMessage(self.session_topic, event=SessionEvent(event_type="cleared"))

    def snapshot(self) -> LevelSnapshot:
        with self.lock:
            return self.aggregator.snapshot()

    @property
    def is_active(self) -> bool:
        return self.aggregator.is_active

    def _on_audio_event(self, event: AudioEvent) -> None:
        with self.lock:
            if not self.aggregator.is_active or self.session_start is None:
                self.dropped_events += 1
                return

            time_seconds = event.timestamp - self.session_start
            if time_seconds < 0:
                logger.debug(f"Dropping {event.chunk_id}: captured before session start")
                self.dropped_events += 1
                return

            try:
                self.aggregator.push_sample(rms_from_pcm16(event.audio_data), time_seconds)
                snapshot = self.aggregator.snapshot()
                band = classify(snapshot.running_average, self.settings.quiet_max, self.settings.normal_max)
            except LoudnessError as e:
                logger.debug(f"Sample {event.chunk_id} rejected: {e}")
                self.dropped_events += 1
                return

            if event.final:
                logger.info(f"Final audio chunk {event.chunk_id} received, capture has ended")

            level_event = LevelEvent(snapshot=snapshot, band=band.value, is_active=True)
            pub.sendMessage(self.level_topic, event=level_event)

            max_duration = self.settings.max_duration_seconds
            if max_duration and snapshot.elapsed_seconds >= max_duration:
                logger.info(f"Session reached {max_duration}s limit, stopping")
                self.stop_session()

    def shutdown(self) -> None:
        """Stop any running session and unsubscribe from the audio topic."""
        self.stop_session()
        if pub.isSubscribed(self._on_audio_event, self.audio_topic):
            pub.unsubscribe(self._on_audio_event, self.audio_topic)
        logger.info("MeteringService shut down")

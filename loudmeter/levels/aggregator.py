"""Time-windowed loudness aggregation.

The aggregator is driven entirely by ``push_sample`` calls from a single
producer. It owns no timers or threads and does no locking; callers with more
than one producer must serialize access themselves.
"""

import math
import time
import logging
from collections import deque
from enum import Enum
from typing import Callable, Deque, Optional, Tuple

from ..models.levels import Sample, SessionState, LevelSnapshot, StopResult
from .errors import InvalidConfigError, InactiveSessionError, OutOfOrderSampleError
from .normalize import Normalizer, DecibelNormalizer

logger = logging.getLogger(__name__)

# Sessions with less speech than this report a final average of zero
MIN_ACTIVE_SECONDS = 1.0

# Pushes between full recomputations of the voiced sum, bounding float drift
RESYNC_INTERVAL = 1024


class AggregatorState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    STOPPED = "stopped"


class LoudnessAggregator:
    """Sliding window of normalized loudness samples with session statistics."""

    def __init__(
        self,
        normalizer: Optional[Normalizer] = None,
        silence_floor: float = 8.0,
        nominal_tick_seconds: float = 0.1,
        keep_boundary_sample: bool = True,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the aggregator.

        Args:
            normalizer: Maps raw levels to display levels (defaults to RMS to dB)
            silence_floor: Display level below which samples are left out of the average
            nominal_tick_seconds: Speech time credited for the first sample of a session
            keep_boundary_sample: Keep a sample sitting exactly on the trailing window edge
            clock: Source of wall-clock timestamps for ``SessionState.start_time``
        """
        if nominal_tick_seconds < 0:
            raise InvalidConfigError(f"nominal_tick_seconds must not be negative, got {nominal_tick_seconds}")

        self.normalizer = normalizer or DecibelNormalizer()
        self.silence_floor = silence_floor
        self.nominal_tick_seconds = nominal_tick_seconds
        self.keep_boundary_sample = keep_boundary_sample
        self.clock = clock

        self.window_duration_seconds: Optional[float] = None
        self.activity_threshold: Optional[float] = None
        self.lifecycle = AggregatorState.IDLE

        self.window: Deque[Sample] = deque()
        self.session = SessionState()
        self.rejected_samples = 0
        self._reset_counters()

    @property
    def is_active(self) -> bool:
        return self.session.is_active

    def _reset_counters(self) -> None:
        self.window.clear()
        self.current_level = 0.0
        self.last_sample_time: Optional[float] = None
        # Sum and count of window samples at or above the silence floor
        self._voiced_sum = 0.0
        self._voiced_count = 0
        self._pushes_since_resync = 0

    def start(self, window_duration_seconds: float, activity_threshold: float) -> None:
        """Begin a new session, discarding any previous window."""
        if not window_duration_seconds > 0 or math.isinf(window_duration_seconds):
            raise InvalidConfigError(
                f"window_duration_seconds must be a positive number, got {window_duration_seconds}"
            )
        if not activity_threshold > 0:
            raise InvalidConfigError(f"activity_threshold must be positive, got {activity_threshold}")

        if self.lifecycle == AggregatorState.ACTIVE:
            logger.warning("start() called on an active session, restarting")

        self.window_duration_seconds = float(window_duration_seconds)
        self.activity_threshold = float(activity_threshold)
        self._reset_counters()
        self.rejected_samples = 0
        self.session = SessionState(is_active=True, start_time=self.clock())
        self.lifecycle = AggregatorState.ACTIVE

        logger.info(f"Loudness session started: window={self.window_duration_seconds}s, "
                    f"threshold={self.activity_threshold}, floor={self.silence_floor}")

    def push_sample(self, raw_level: float, time_seconds: float) -> Sample:
        """Fold one raw reading into the window and session counters.

        Raises:
            InactiveSessionError: no session is active; the sample is dropped
            OutOfOrderSampleError: the sample is older than the previous one or its
                time is NaN or infinite; it is dropped
        """
        if not self.session.is_active:
            self.rejected_samples += 1
            raise InactiveSessionError("Cannot push a sample while the session is not active")

        previous_time = self.last_sample_time
        if not math.isfinite(time_seconds) or (previous_time is not None and not time_seconds >= previous_time):
            self.rejected_samples += 1
            raise OutOfOrderSampleError(time_seconds, previous_time)

        sample = Sample(
            time_seconds=time_seconds,
            raw_level=raw_level,
            display_level=self.normalizer(raw_level),
        )

        self.window.append(sample)
        if sample.display_level >= self.silence_floor:
            self._voiced_sum += sample.display_level
            self._voiced_count += 1
        self._evict(time_seconds - self.window_duration_seconds)

        self._pushes_since_resync += 1
        if self._pushes_since_resync >= RESYNC_INTERVAL:
            self._resync_voiced()

        if self._voiced_count > 0:
            self.session.running_average = self._voiced_sum / self._voiced_count
        else:
            # Nothing voiced in the window: keep the previous average
            self._voiced_sum = 0.0

        if sample.display_level > self.activity_threshold:
            if previous_time is None:
                self.session.active_duration_seconds += self.nominal_tick_seconds
            else:
                self.session.active_duration_seconds += time_seconds - previous_time

        self.current_level = sample.display_level
        self.last_sample_time = time_seconds
        self.session.elapsed_seconds = time_seconds
        return sample

    def _evict(self, cutoff: float) -> None:
        while self.window and self._is_expired(self.window[0].time_seconds, cutoff):
            old = self.window.popleft()
            if old.display_level >= self.silence_floor:
                self._voiced_sum -= old.display_level
                self._voiced_count -= 1

    def _resync_voiced(self) -> None:
        voiced = [s.display_level for s in self.window if s.display_level >= self.silence_floor]
        self._voiced_sum = math.fsum(voiced)
        self._voiced_count = len(voiced)
        self._pushes_since_resync = 0

    def _is_expired(self, sample_time: float, cutoff: float) -> bool:
        if self.keep_boundary_sample:
            return sample_time < cutoff
        return sample_time <= cutoff

    def stop(self) -> StopResult:
        """End the session and return its summary."""
        if self.lifecycle != AggregatorState.ACTIVE:
            logger.warning(f"stop() called while {self.lifecycle.value}")

        self.session.is_active = False
        if self.lifecycle == AggregatorState.ACTIVE:
            self.lifecycle = AggregatorState.STOPPED

        final_average = self.session.running_average
        if self.session.active_duration_seconds < MIN_ACTIVE_SECONDS:
            logger.info(f"Active speech time {self.session.active_duration_seconds:.2f}s "
                        f"below {MIN_ACTIVE_SECONDS}s, reporting average as 0")
            final_average = 0.0

        result = StopResult(
            final_average=final_average,
            active_duration_seconds=self.session.active_duration_seconds,
            elapsed_seconds=self.session.elapsed_seconds,
        )
        logger.info(f"Loudness session stopped: average={result.final_average:.1f}, "
                    f"active={result.active_duration_seconds:.2f}s, "
                    f"elapsed={result.elapsed_seconds:.2f}s")
        return result

    def clear(self) -> None:
        """Drop all history without changing whether the session is active."""
        is_active = self.session.is_active
        self._reset_counters()
        self.session = SessionState(
            is_active=is_active,
            start_time=self.clock() if is_active else None,
        )
        logger.debug(f"Loudness history cleared ({self.lifecycle.value})")

    def snapshot(self) -> LevelSnapshot:
        return LevelSnapshot(
            current_level=self.current_level,
            running_average=self.session.running_average,
            active_duration_seconds=self.session.active_duration_seconds,
            elapsed_seconds=self.session.elapsed_seconds,
            sample_count=len(self.window),
        )

    def window_samples(self) -> Tuple[Sample, ...]:
        """Samples currently in the window, oldest first."""
        return tuple(self.window)

"""Microphone capture that feeds loudness metering through a callback."""

import pyaudio
import time
import logging
from threading import Thread, Event
from typing import Optional, Callable
from datetime import datetime

from ..models.audio import AudioStats
from ..models.events import AudioEvent


logger = logging.getLogger(__name__)


class AudioCapture:
    """Continuous microphone capture running on a background thread.

    Device or permission failures are logged and kept in ``last_error``;
    no chunks are delivered in that case.
    """

    def __init__(
        self,
        callback: Callable[[AudioEvent], None],
        sample_rate: int = 16000,
        chunk_size: int = 1024,
        channels: int = 1,
        format: int = pyaudio.paInt16,
    ):
        """Initialize audio capture with specified parameters.

        Args:
            callback: Receives every captured chunk as an AudioEvent
            sample_rate: Audio sample rate
            chunk_size: Size of each audio chunk in samples (1024 @ 16kHz = 64ms)
            channels: Number of audio channels (1 for mono)
            format: Audio format (16-bit signed int)
        """
        self.audio_event_callback = callback
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size
        self.channels = channels
        self.format = format

        self.recording_thread: Optional[Thread] = None
        self.stop_event = Event()
        self.is_recording = False

        self.start_time: Optional[datetime] = None
        self.total_chunks = 0
        self.last_error: Optional[str] = None

        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None

    @property
    def chunk_interval_seconds(self) -> float:
        return self.chunk_size / self.sample_rate

    def start_recording(self) -> None:
        """Start continuous capture in a background thread."""
        if self.is_recording:
            logger.warning("Recording already in progress")
            return

        logger.info("Starting audio capture")
        self.stop_event.clear()
        self.start_time = datetime.now()
        self.total_chunks = 0
        self.last_error = None

        self.recording_thread = Thread(target=self._record_continuously, daemon=True)
        self.recording_thread.name = "AudioCaptureThread"
        self.recording_thread.start()
        self.is_recording = True

    def stop_recording(self) -> None:
        """Stop capture and wait for the thread to exit."""
        if not self.is_recording:
            logger.warning("No recording in progress")
            return

        logger.info("Stopping audio capture")
        self.stop_event.set()

        if self.recording_thread and self.recording_thread.is_alive():
            self.recording_thread.join(timeout=2.0)
            if self.recording_thread.is_alive():
                logger.warning("Recording thread did not stop cleanly")

        self.is_recording = False
        logger.info(f"Capture stopped. Total chunks: {self.total_chunks}")

    def _open_stream(self):
        self.pyaudio_instance = pyaudio.PyAudio()
        stream = self.pyaudio_instance.open(
            format=self.format,
            channels=self.channels,
            rate=self.sample_rate,
            input=True,
            frames_per_buffer=self.chunk_size,
            stream_callback=None
        )
        logger.info(f"Audio stream opened: {self.sample_rate}Hz, "
                    f"{self.chunk_size} samples/chunk")
        return stream

    def _publish_chunk(self, stream, final: bool = False) -> None:
        audio_chunk = stream.read(self.chunk_size, exception_on_overflow=False)
        self.total_chunks += 1

        self.audio_event_callback(AudioEvent(
            chunk_id=f"chunk_{self.total_chunks}",
            audio_data=audio_chunk,
            timestamp=time.time(),
            sequence_number=self.total_chunks,
            sample_rate=self.sample_rate,
            channels=self.channels,
            final=final,
        ))

    def _record_continuously(self) -> None:
        """Internal method: capture loop run on the background thread."""
        stream = None
        try:
            stream = self._open_stream()
            while not self.stop_event.is_set():
                self._publish_chunk(stream)
            # Final chunk lets consumers know capture is done
            self._publish_chunk(stream, final=True)
        except OSError as e:
            # PyAudio reports missing devices and denied access as OSError
            self.last_error = str(e)
            logger.error(f"Audio capture failed: {e}")
        except Exception as e:
            # A failing consumer would otherwise end the thread with is_recording still set
            self.last_error = f"{type(e).__name__}: {e}"
            logger.exception(f"Audio consumer failed, capture stopped: {e}")
        finally:
            if stream is not None:
                stream.stop_stream()
                stream.close()
            if self.pyaudio_instance:
                self.pyaudio_instance.terminate()
                self.pyaudio_instance = None

    def get_recording_stats(self) -> AudioStats:
        """Get current capture statistics."""
        duration = 0.0
        if self.start_time:
            duration = (datetime.now() - self.start_time).total_seconds()

        return AudioStats(
            is_recording=self.is_recording,
            duration_seconds=duration,
            sample_rate=self.sample_rate,
            chunk_size=self.chunk_size,
            total_chunks=self.total_chunks,
            last_error=self.last_error,
        )

    def __del__(self):
        """Ensure the capture thread is stopped on deletion."""
        if getattr(self, "is_recording", False):
            self.stop_recording()

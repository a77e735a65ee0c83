"""Pytest configuration and fixtures for Loudmeter tests."""

import pytest
import logging
from unittest.mock import Mock, patch
import numpy as np
from pubsub import pub

from loudmeter.levels import LoudnessAggregator, LinearNormalizer


# Configure logging for tests
logging.basicConfig(level=logging.INFO)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without audio hardware")
    config.addinivalue_line("markers", "integration: tests wiring several components together")
    config.addinivalue_line("markers", "slow: tests that run a real capture thread")


class FakeClock:
    """Manually advanced stand-in for time.time."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def aggregator(fake_clock):
    """Aggregator whose display level equals the raw level (0-100)."""
    return LoudnessAggregator(
        normalizer=LinearNormalizer(full_scale=100.0),
        silence_floor=8.0,
        nominal_tick_seconds=0.1,
        clock=fake_clock,
    )


@pytest.fixture
def pcm_chunk():
    """Generate 16-bit mono PCM chunks of a given amplitude."""
    def generate(amplitude: float = 0.5, samples: int = 1024, pattern: str = "sine") -> bytes:
        if pattern == "sine":
            t = np.arange(samples) / 16000
            wave_data = amplitude * np.sin(2 * np.pi * 440 * t)
        elif pattern == "square":
            wave_data = amplitude * np.where(np.arange(samples) % 2 == 0, 1.0, -1.0)
        elif pattern == "silence":
            wave_data = np.zeros(samples)
        else:
            raise ValueError(f"Unknown pattern: {pattern}")
        return (wave_data * 32767).astype('<i2').tobytes()

    return generate


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        mock_stream.read.return_value = b'\x00' * 2048  # Silent audio
        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }


@pytest.fixture(autouse=True)
def reset_pubsub():
    """Drop pubsub listeners between tests so topics don't leak."""
    yield
    pub.unsubAll()

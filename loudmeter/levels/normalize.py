"""Mapping of raw device levels onto the bounded display scale.

Every normalizer is a pure function of its input and its constructor
arguments: monotonically non-decreasing and clamped to ``[0, max_display]``.
"""

import math
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict

import numpy as np

from .errors import InvalidConfigError

logger = logging.getLogger(__name__)

PCM16_FULL_SCALE = 32767.0


def rms_from_pcm16(audio_data: bytes) -> float:
    """Root mean square amplitude of a 16-bit little-endian PCM buffer."""
    if len(audio_data) < 2:
        return 0.0
    # Drop a trailing odd byte rather than failing the whole chunk
    usable = len(audio_data) - (len(audio_data) % 2)
    samples = np.frombuffer(audio_data[:usable], dtype='<i2').astype(np.float64)
    return float(np.sqrt(np.mean(samples * samples)))


class Normalizer(ABC):
    """Base class for raw level to display level mappings."""

    def __init__(self, max_display: float = 100.0):
        if max_display <= 0:
            raise InvalidConfigError(f"max_display must be positive, got {max_display}")
        self.max_display = float(max_display)

    @abstractmethod
    def scale(self, raw_level: float) -> float:
        """Map a raw level to the display scale without clamping."""
        pass

    def __call__(self, raw_level: float) -> float:
        if raw_level is None or math.isnan(raw_level):
            return 0.0
        value = self.scale(raw_level)
        if math.isnan(value):
            return 0.0
        return float(np.clip(value, 0.0, self.max_display))

    def __repr__(self) -> str:
        params = ", ".join(f"{k}={v!r}" for k, v in vars(self).items())
        return f"{type(self).__name__}({params})"


class LinearNormalizer(Normalizer):
    """Percentage of a fixed full-scale reading, e.g. a 0-80 dB sound level meter."""

    def __init__(self, full_scale: float = 80.0, max_display: float = 100.0):
        super().__init__(max_display)
        if full_scale <= 0:
            raise InvalidConfigError(f"full_scale must be positive, got {full_scale}")
        self.full_scale = float(full_scale)

    def scale(self, raw_level: float) -> float:
        return raw_level / self.full_scale * self.max_display


class DecibelNormalizer(Normalizer):
    """RMS amplitude of 16-bit audio converted to dB: ``20*log10(rms/32767) + offset``."""

    def __init__(self, offset: float = 90.0, max_display: float = 100.0,
                 full_scale: float = PCM16_FULL_SCALE):
        super().__init__(max_display)
        if full_scale <= 0:
            raise InvalidConfigError(f"full_scale must be positive, got {full_scale}")
        self.offset = float(offset)
        self.full_scale = float(full_scale)

    def scale(self, raw_level: float) -> float:
        if raw_level <= 0:
            return 0.0
        if math.isinf(raw_level):
            return self.max_display
        return 20.0 * math.log10(raw_level / self.full_scale) + self.offset


class LogNormalizer(Normalizer):
    """Linear mapping of a dBFS reading from ``[floor_db, ceiling_db]`` onto the display range."""

    def __init__(self, floor_db: float = -60.0, ceiling_db: float = 0.0, max_display: float = 100.0):
        super().__init__(max_display)
        if ceiling_db <= floor_db:
            raise InvalidConfigError(
                f"ceiling_db ({ceiling_db}) must be greater than floor_db ({floor_db})"
            )
        self.floor_db = float(floor_db)
        self.ceiling_db = float(ceiling_db)

    def scale(self, raw_level: float) -> float:
        return (raw_level - self.floor_db) / (self.ceiling_db - self.floor_db) * self.max_display


_NORMALIZERS = {
    "linear": LinearNormalizer,
    "decibel": DecibelNormalizer,
    "log": LogNormalizer,
}


def build_normalizer(options: Dict[str, Any]) -> Normalizer:
    """Create a normalizer from a config mapping such as ``{"kind": "decibel", "offset": 90}``."""
    options = dict(options or {})
    kind = options.pop("kind", "decibel")

    normalizer_class = _NORMALIZERS.get(kind)
    if normalizer_class is None:
        raise InvalidConfigError(
            f"Unknown normalizer kind '{kind}', expected one of {sorted(_NORMALIZERS)}"
        )

    try:
        normalizer = normalizer_class(**options)
    except TypeError as e:
        raise InvalidConfigError(f"Invalid options for {kind} normalizer: {e}")

    logger.debug(f"Built normalizer: {normalizer!r}")
    return normalizer

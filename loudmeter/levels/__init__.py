"""Loudness normalization and windowed aggregation."""

from .aggregator import LoudnessAggregator, AggregatorState
from .bands import LoudnessBand, classify
from .errors import (
    LoudnessError,
    InvalidConfigError,
    InactiveSessionError,
    OutOfOrderSampleError,
)
from .normalize import (
    Normalizer,
    LinearNormalizer,
    DecibelNormalizer,
    LogNormalizer,
    build_normalizer,
    rms_from_pcm16,
)

__all__ = [
    'LoudnessAggregator',
    'AggregatorState',
    'LoudnessBand',
    'classify',
    'LoudnessError',
    'InvalidConfigError',
    'InactiveSessionError',
    'OutOfOrderSampleError',
    'Normalizer',
    'LinearNormalizer',
    'DecibelNormalizer',
    'LogNormalizer',
    'build_normalizer',
    'rms_from_pcm16',
]

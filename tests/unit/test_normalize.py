"""Unit tests for level normalizers and RMS helpers."""

import math
import pytest
import numpy as np

from loudmeter.levels import (
    LinearNormalizer,
    DecibelNormalizer,
    LogNormalizer,
    InvalidConfigError,
    build_normalizer,
    rms_from_pcm16,
)


ALL_NORMALIZERS = [
    LinearNormalizer(full_scale=80.0),
    DecibelNormalizer(offset=90.0),
    LogNormalizer(floor_db=-60.0, ceiling_db=0.0),
    LinearNormalizer(full_scale=1.0, max_display=10.0),
]

PROBE_INPUTS = sorted([
    -1e9, -120.0, -60.0, -30.0, -1.0, 0.0, 1e-6, 0.5, 1.0, 10.0, 40.0, 79.9, 80.0,
    100.0, 1000.0, 32767.0, 1e9, float("inf"), float("-inf"),
])


@pytest.mark.unit
class TestNormalizerContract:

    @pytest.mark.parametrize("normalizer", ALL_NORMALIZERS, ids=repr)
    def test_output_is_bounded(self, normalizer):
        for value in PROBE_INPUTS:
            level = normalizer(value)
            assert 0.0 <= level <= normalizer.max_display

    @pytest.mark.parametrize("normalizer", ALL_NORMALIZERS, ids=repr)
    def test_monotonically_non_decreasing(self, normalizer):
        levels = [normalizer(value) for value in PROBE_INPUTS]
        assert all(a <= b for a, b in zip(levels, levels[1:]))

    @pytest.mark.parametrize("normalizer", ALL_NORMALIZERS, ids=repr)
    def test_nan_maps_to_zero(self, normalizer):
        assert normalizer(float("nan")) == 0.0

    def test_deterministic(self):
        normalizer = DecibelNormalizer()
        assert normalizer(1234.5) == normalizer(1234.5)


@pytest.mark.unit
class TestFormulas:

    def test_linear_percentage(self):
        normalizer = LinearNormalizer(full_scale=80.0)
        assert normalizer(40.0) == pytest.approx(50.0)
        assert normalizer(120.0) == 100.0
        assert normalizer(-5.0) == 0.0

    def test_decibel_from_rms(self):
        normalizer = DecibelNormalizer(offset=90.0)
        # Full scale RMS is 0 dBFS -> 90, clamped at 100 only above +10 dBFS
        assert normalizer(32767.0) == pytest.approx(90.0)
        assert normalizer(3276.7) == pytest.approx(70.0)
        assert normalizer(0.0) == 0.0

    def test_decibel_very_quiet_clamps_to_zero(self):
        assert DecibelNormalizer(offset=90.0)(0.5) == 0.0

    def test_log_maps_dbfs_range(self):
        normalizer = LogNormalizer(floor_db=-60.0, ceiling_db=0.0)
        assert normalizer(-30.0) == pytest.approx(50.0)
        assert normalizer(-90.0) == 0.0
        assert normalizer(6.0) == 100.0

    @pytest.mark.parametrize("factory", [
        lambda: LinearNormalizer(full_scale=0),
        lambda: LinearNormalizer(max_display=0),
        lambda: LogNormalizer(floor_db=0, ceiling_db=-10),
        lambda: DecibelNormalizer(full_scale=-1),
    ])
    def test_invalid_parameters(self, factory):
        with pytest.raises(InvalidConfigError):
            factory()


@pytest.mark.unit
class TestBuildNormalizer:

    def test_default_is_decibel(self):
        assert isinstance(build_normalizer({}), DecibelNormalizer)

    def test_builds_with_options(self):
        normalizer = build_normalizer({"kind": "linear", "full_scale": 50, "max_display": 10})
        assert isinstance(normalizer, LinearNormalizer)
        assert normalizer(25) == pytest.approx(5.0)

    def test_does_not_mutate_options(self):
        options = {"kind": "log", "floor_db": -40}
        build_normalizer(options)
        assert options == {"kind": "log", "floor_db": -40}

    def test_unknown_kind(self):
        with pytest.raises(InvalidConfigError, match="Unknown normalizer"):
            build_normalizer({"kind": "cubic"})

    def test_unknown_option(self):
        with pytest.raises(InvalidConfigError):
            build_normalizer({"kind": "linear", "gain": 2})


@pytest.mark.unit
class TestRms:

    def test_silence(self, pcm_chunk):
        assert rms_from_pcm16(pcm_chunk(pattern="silence")) == 0.0

    def test_square_wave(self, pcm_chunk):
        rms = rms_from_pcm16(pcm_chunk(amplitude=0.5, pattern="square"))
        assert rms == pytest.approx(16383, abs=1)

    def test_sine_wave(self, pcm_chunk):
        rms = rms_from_pcm16(pcm_chunk(amplitude=1.0, samples=16000))
        assert rms == pytest.approx(32767 / math.sqrt(2), rel=1e-3)

    def test_empty_and_odd_buffers(self):
        assert rms_from_pcm16(b'') == 0.0
        assert rms_from_pcm16(b'\x01') == 0.0
        odd = np.array([1000, -1000], dtype='<i2').tobytes() + b'\x7f'
        assert rms_from_pcm16(odd) == pytest.approx(1000.0)

"""Tests for frame loudness analysis."""

import math

import numpy as np
import pytest

from speech_clipper.detection.loudness import (
    compute_dynamic_range,
    compute_rms,
    db_to_percent,
    percent_to_db,
    rms_to_dbfs,
)
from speech_clipper.detection.models import DynamicRange


@pytest.mark.unit
class TestComputeRms:
    """Test cases for RMS energy."""

    def test_square_wave_rms_equals_amplitude(self) -> None:
        """Test that an alternating +/-A signal has RMS A."""
        frame = np.tile(np.array([1000, -1000], dtype="<i2"), 240).tobytes()

        assert compute_rms(frame) == pytest.approx(1000.0)

    def test_silence_has_zero_rms(self) -> None:
        """Test RMS of digital silence."""
        assert compute_rms(b"\x00\x00" * 480) == 0.0

    def test_empty_frame(self) -> None:
        """Test RMS of an empty frame."""
        assert compute_rms(b"") == 0.0

    def test_undecodable_frame_falls_back_to_zero(self) -> None:
        """Test that an odd byte count cannot be decoded and yields 0."""
        assert compute_rms(b"\x01\x02\x03") == 0.0

    def test_samples_are_little_endian(self) -> None:
        """Test that bytes are read as little-endian int16."""
        # 0x0100 little-endian is 256
        assert compute_rms(b"\x00\x01") == pytest.approx(256.0)


@pytest.mark.unit
class TestDbfs:
    """Test cases for dBFS conversion and dynamic range."""

    def test_floor_for_near_zero_rms(self) -> None:
        """Test that RMS at or below 1 maps to the silence floor."""
        assert rms_to_dbfs(0.0) == -100.0
        assert rms_to_dbfs(1.0) == -100.0

    def test_full_scale_is_zero_db(self) -> None:
        """Test that full-scale RMS is 0 dBFS."""
        assert rms_to_dbfs(32768.0) == pytest.approx(0.0)

    def test_half_scale(self) -> None:
        """Test the level of a half-scale signal."""
        assert rms_to_dbfs(16384.0) == pytest.approx(20 * math.log10(0.5))

    def test_dynamic_range_ignores_floor(self) -> None:
        """Test that floor frames do not set the minimum."""
        dynamic_range = compute_dynamic_range([-100.0, -60.0, -20.0, -100.0])

        assert dynamic_range == DynamicRange(min_db=-60.0, max_db=-20.0)
        assert dynamic_range.span_db == pytest.approx(40.0)

    def test_dynamic_range_of_silent_clip(self) -> None:
        """Test that a clip entirely at the floor has no dynamic range."""
        assert compute_dynamic_range([-100.0, -100.0]) is None
        assert compute_dynamic_range([]) is None


@pytest.mark.unit
class TestDbToPercent:
    """Test cases for clip-relative loudness percentages."""

    @pytest.fixture
    def dynamic_range(self) -> DynamicRange:
        return DynamicRange(min_db=-60.0, max_db=-20.0)

    def test_minimum_is_zero_percent(self, dynamic_range: DynamicRange) -> None:
        assert db_to_percent(-60.0, dynamic_range) == 0.0
        assert db_to_percent(-100.0, dynamic_range) == 0.0

    def test_maximum_is_hundred_percent(self, dynamic_range: DynamicRange) -> None:
        assert db_to_percent(-20.0, dynamic_range) == pytest.approx(100.0)

    def test_linear_between_bounds(self, dynamic_range: DynamicRange) -> None:
        assert db_to_percent(-40.0, dynamic_range) == pytest.approx(50.0)

    def test_zero_db_is_hundred_percent(self, dynamic_range: DynamicRange) -> None:
        assert db_to_percent(0.0, dynamic_range) == 100.0

    def test_above_range_is_clamped(self, dynamic_range: DynamicRange) -> None:
        assert db_to_percent(-10.0, dynamic_range) == 100.0

    def test_silent_clip_is_zero_percent(self) -> None:
        assert db_to_percent(-30.0, None) == 0.0

    def test_single_level_clip_is_zero_percent(self) -> None:
        """Test that a clip with one audible level scores every frame 0%."""
        dynamic_range = DynamicRange(min_db=-30.0, max_db=-30.0)

        assert db_to_percent(-30.0, dynamic_range) == 0.0

    def test_percent_to_db_inverts_percentage(self, dynamic_range: DynamicRange) -> None:
        assert percent_to_db(50.0, dynamic_range) == pytest.approx(-40.0)
        assert percent_to_db(50.0, None) == -100.0

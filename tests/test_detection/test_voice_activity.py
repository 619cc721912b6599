"""Tests for voiced-frame classification and speech-flag smoothing."""

from unittest.mock import MagicMock, patch

import pytest

from speech_clipper.detection.exceptions import FrameClassifierFailure
from speech_clipper.detection.models import Frame, FrameAnalysis
from speech_clipper.detection.vad import (
    VoicedFrameClassifier,
    WebRtcVoicedFrameClassifier,
    analyze_frames,
    is_vad_frame_duration,
    smooth_speech_flags,
    smoothing_window_frames,
)


def make_analyses(percents: list[float], threshold: float) -> list[FrameAnalysis]:
    """One analysis per second with the given loudness percentages."""
    return [
        FrameAnalysis(
            timestamp=float(i),
            rms_energy=0.0,
            dbfs=-100.0,
            loudness_percent=percent,
            is_voiced=False,
            is_loud_enough=percent >= threshold,
            is_speech=percent >= threshold,
        )
        for i, percent in enumerate(percents)
    ]


@pytest.mark.unit
class TestWebRtcVoicedFrameClassifier:
    """Test cases for the WebRTC classifier wrapper."""

    def test_initialization_sets_mode(self) -> None:
        """Test that aggressiveness is passed to the VAD."""
        with patch("speech_clipper.detection.vad.webrtcvad.Vad") as mock_vad_class:
            classifier = WebRtcVoicedFrameClassifier(aggressiveness=2)

            mock_vad_class.return_value.set_mode.assert_called_once_with(2)
            assert classifier.aggressiveness == 2

    def test_invalid_aggressiveness(self) -> None:
        """Test that aggressiveness outside 0-3 is rejected."""
        with pytest.raises(ValueError, match="aggressiveness"):
            WebRtcVoicedFrameClassifier(aggressiveness=4)

    def test_is_voiced_delegates_to_vad(self) -> None:
        """Test the verdict comes from webrtcvad."""
        with patch("speech_clipper.detection.vad.webrtcvad.Vad") as mock_vad_class:
            mock_vad_class.return_value.is_speech.return_value = True
            classifier = WebRtcVoicedFrameClassifier()
            frame = Frame(timestamp=0.0, samples=b"\x00\x00" * 480)

            assert classifier.is_voiced(frame, 16000) is True
            mock_vad_class.return_value.is_speech.assert_called_once_with(
                frame.samples, 16000
            )

    def test_vad_error_becomes_classifier_failure(self) -> None:
        """Test that webrtcvad errors are wrapped."""
        with patch("speech_clipper.detection.vad.webrtcvad.Vad") as mock_vad_class:
            mock_vad_class.return_value.is_speech.side_effect = Exception("bad frame")
            classifier = WebRtcVoicedFrameClassifier()

            with pytest.raises(FrameClassifierFailure, match="bad frame"):
                classifier.is_voiced(Frame(timestamp=1.5, samples=b"\x00"), 16000)

    def test_unsupported_sample_rate(self) -> None:
        """Test that rates WebRTC cannot process are refused."""
        classifier = WebRtcVoicedFrameClassifier()

        with pytest.raises(FrameClassifierFailure, match="22050Hz"):
            classifier.is_voiced(Frame(timestamp=0.0, samples=b""), 22050)

    def test_real_vad_on_silence(self) -> None:
        """Test the real VAD classifies a silent 30ms frame as unvoiced."""
        classifier = WebRtcVoicedFrameClassifier()
        frame = Frame(timestamp=0.0, samples=b"\x00\x00" * 480)

        assert classifier.is_voiced(frame, 16000) is False


@pytest.mark.unit
class TestAnalyzeFrames:
    """Test cases for the two-pass frame analysis."""

    @pytest.fixture
    def frames(self, make_buffer) -> list[Frame]:
        buffer = make_buffer([0, 100, 10000], segment_seconds=0.03)
        return [
            Frame(timestamp=i * 0.03, samples=buffer.samples[i * 960 : (i + 1) * 960])
            for i in range(3)
        ]

    def test_percentages_follow_dynamic_range(self, frames: list[Frame]) -> None:
        """Test the quietest audible frame is 0% and the loudest 100%."""
        analyses, dynamic_range, failures = analyze_frames(frames, 16000, 50.0)

        assert dynamic_range is not None
        assert [a.loudness_percent for a in analyses] == pytest.approx([0.0, 0.0, 100.0])
        assert [a.is_speech for a in analyses] == [False, False, True]
        assert failures == 0

    def test_speech_is_loudness_only(self, frames: list[Frame]) -> None:
        """Test that the voiced verdict does not decide speech."""
        classifier = MagicMock(spec=VoicedFrameClassifier)
        classifier.is_voiced.return_value = True

        analyses, _, _ = analyze_frames(frames, 16000, 50.0, classifier)

        assert all(a.is_voiced for a in analyses)
        assert [a.is_speech for a in analyses] == [False, False, True]

    def test_classifier_failures_are_not_fatal(self, frames: list[Frame]) -> None:
        """Test that a failing classifier leaves frames unvoiced and continues."""
        classifier = MagicMock(spec=VoicedFrameClassifier)
        classifier.is_voiced.side_effect = [
            True,
            FrameClassifierFailure("boom"),
            FrameClassifierFailure("boom"),
        ]

        analyses, _, failures = analyze_frames(frames, 16000, 50.0, classifier)

        assert failures == 2
        assert [a.is_voiced for a in analyses] == [True, False, False]
        assert analyses[2].is_speech is True

    def test_unexpected_classifier_errors_are_not_fatal(self, frames: list[Frame]) -> None:
        """Test that any exception from a classifier counts as an unvoiced frame."""
        classifier = MagicMock(spec=VoicedFrameClassifier)
        classifier.is_voiced.side_effect = RuntimeError("classifier backend crashed")

        analyses, _, failures = analyze_frames(frames, 16000, 50.0, classifier)

        assert failures == 3
        assert not any(a.is_voiced for a in analyses)
        assert [a.is_speech for a in analyses] == [False, False, True]

    def test_silent_frames_score_zero(self) -> None:
        """Test that an all-silent clip has no dynamic range."""
        frames = [Frame(timestamp=0.0, samples=b"\x00\x00" * 480)]

        analyses, dynamic_range, _ = analyze_frames(frames, 16000, 0.0)

        assert dynamic_range is None
        assert analyses[0].loudness_percent == 0.0
        assert analyses[0].dbfs == -100.0


@pytest.mark.unit
class TestSmoothing:
    """Test cases for hysteresis smoothing of speech flags."""

    def test_window_frames(self) -> None:
        """Test the smoothing window size in frames."""
        assert smoothing_window_frames(30) == 6
        assert smoothing_window_frames(10) == 20
        assert smoothing_window_frames(1000) == 1

    def test_window_spans_full_200_ms_each_way(self) -> None:
        """Test that speech six 30 ms frames away still promotes a frame."""
        window = smoothing_window_frames(30)
        ahead = make_analyses([30, 0, 0, 0, 0, 0, 100], threshold=40)
        behind = make_analyses([100, 0, 0, 0, 0, 0, 30], threshold=40)
        too_far = make_analyses([30, 0, 0, 0, 0, 0, 0, 100], threshold=40)

        assert smooth_speech_flags(ahead, 40, window) == 1
        assert smooth_speech_flags(behind, 40, window) == 1
        assert smooth_speech_flags(too_far, 40, window) == 0

    def test_borderline_frame_next_to_speech_is_promoted(self) -> None:
        """Test promotion of a frame in [t/2, t] beside speech."""
        analyses = make_analyses([0, 100, 30, 0], threshold=40)

        promoted = smooth_speech_flags(analyses, 40, window_frames=1)

        assert promoted == 1
        assert analyses[2].is_speech is True
        assert analyses[2].is_loud_enough is True
        assert analyses[0].is_speech is False

    def test_frame_below_band_is_not_promoted(self) -> None:
        """Test that frames quieter than half the threshold stay silent."""
        analyses = make_analyses([100, 10], threshold=40)

        assert smooth_speech_flags(analyses, 40, window_frames=1) == 0
        assert analyses[1].is_speech is False

    def test_lookahead_promotes_frame_before_speech(self) -> None:
        """Test that speech after a borderline frame promotes it."""
        analyses = make_analyses([30, 0, 100], threshold=40)

        assert smooth_speech_flags(analyses, 40, window_frames=2) == 1
        assert analyses[0].is_speech is True

    def test_promotion_cascades_forward(self) -> None:
        """Test that a promoted frame counts as speech for its successor."""
        analyses = make_analyses([100, 30, 30, 0], threshold=40)

        assert smooth_speech_flags(analyses, 40, window_frames=1) == 2
        assert [a.is_speech for a in analyses] == [True, True, True, False]

    def test_high_threshold_disables_smoothing(self) -> None:
        """Test that thresholds of 70% and above are never smoothed."""
        analyses = make_analyses([100, 50, 0], threshold=70)

        assert smooth_speech_flags(analyses, 70, window_frames=6) == 0
        assert analyses[1].is_speech is False

    def test_vad_frame_durations(self) -> None:
        assert is_vad_frame_duration(30)
        assert not is_vad_frame_duration(25)

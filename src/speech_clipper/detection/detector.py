"""Speech segment detector: turns a PCM buffer into speech intervals."""

from pathlib import Path

from ..logging_utils import get_logger
from .audio import FrameSlicer, read_wav_bytes, read_wav_file
from .loudness import percent_to_db
from .models import AudioBuffer, DetectionResult, DetectionSettings, Interval
from .segments import build_raw_intervals, pad_and_merge
from .vad import (
    VoicedFrameClassifier,
    WebRtcVoicedFrameClassifier,
    analyze_frames,
    is_vad_frame_duration,
    smooth_speech_flags,
    smoothing_window_frames,
)

logger = get_logger(__name__)


class SpeechSegmentDetector:
    """Detects speech intervals in mono 16-bit PCM audio.

    The pipeline runs synchronously over a complete buffer:
    frames -> loudness and voice analysis -> smoothing -> raw intervals ->
    padding, rounding and silence merging.
    """

    def __init__(
        self,
        settings: DetectionSettings | None = None,
        classifier: VoicedFrameClassifier | None = None,
    ) -> None:
        """
        Initialize the detector.

        Args:
            settings: Detection options, defaults if None
            classifier: Voiced/unvoiced classifier. When None a WebRTC VAD
                classifier is created if the frame duration allows it.
        """
        self.settings = settings or DetectionSettings()

        if classifier is None and is_vad_frame_duration(self.settings.frame_duration_ms):
            classifier = WebRtcVoicedFrameClassifier(self.settings.aggressiveness)
        elif classifier is None:
            logger.info(
                f"WebRTC VAD does not accept {self.settings.frame_duration_ms}ms frames, "
                "voiced verdicts are disabled"
            )
        self.classifier = classifier

    def analyze(self, buffer: AudioBuffer) -> DetectionResult:
        """
        Run detection and keep the per-frame diagnostics.

        Args:
            buffer: Mono 16-bit PCM buffer

        Returns:
            DetectionResult with final and raw intervals and frame analyses

        Raises:
            UnsupportedAudioFormat: If the buffer format is not supported
        """
        settings = self.settings
        slicer = FrameSlicer(buffer, settings.frame_duration_ms)
        frames = list(slicer)
        total_duration = buffer.total_duration

        logger.debug(
            f"Analyzing {len(frames)} frames of {settings.frame_duration_ms}ms "
            f"({total_duration:.2f}s at {buffer.sample_rate}Hz)"
        )

        analyses, dynamic_range, failures = analyze_frames(
            frames, buffer.sample_rate, settings.volume_threshold, self.classifier
        )
        logger.debug(
            f"Volume threshold {settings.volume_threshold:.0f}% = "
            f"{percent_to_db(settings.volume_threshold, dynamic_range):.1f}dB"
        )

        smooth_speech_flags(
            analyses,
            settings.volume_threshold,
            smoothing_window_frames(settings.frame_duration_ms),
        )

        raw_intervals = build_raw_intervals(
            analyses,
            settings.volume_threshold,
            use_smoothed_flag=settings.use_smoothed_flag_for_segmentation,
            trailing_end=(
                total_duration if settings.close_trailing_segment_at_buffer_end else None
            ),
        )

        intervals = pad_and_merge(
            raw_intervals,
            total_duration,
            settings.speech_padding_ms,
            settings.silence_padding_ms,
            settings.silence_merge_strategy,
        )

        logger.info(
            f"🗣️ Detected {len(intervals)} speech segments "
            f"({len(raw_intervals)} raw) in {total_duration:.2f}s of audio"
        )

        return DetectionResult(
            intervals=intervals,
            total_duration=total_duration,
            raw_intervals=raw_intervals,
            frames=analyses,
            dynamic_range=dynamic_range,
            classifier_failures=failures,
        )

    def detect(self, buffer: AudioBuffer) -> list[Interval]:
        """
        Detect speech intervals in a PCM buffer.

        Args:
            buffer: Mono 16-bit PCM buffer

        Returns:
            Sorted, non-overlapping speech intervals rounded to two decimals
        """
        return self.analyze(buffer).intervals

    def detect_wav_bytes(self, data: bytes) -> list[Interval]:
        """Detect speech intervals in an in-memory WAV file."""
        return self.detect(read_wav_bytes(data))

    def detect_wav_file(self, path: str | Path) -> list[Interval]:
        """Detect speech intervals in a WAV file on disk."""
        return self.detect(read_wav_file(path))

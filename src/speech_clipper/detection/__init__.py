"""Speech segment detection for silence removal."""

from .audio import FrameSlicer, iter_frames, read_wav_bytes, read_wav_file
from .detector import SpeechSegmentDetector
from .exceptions import (
    FrameClassifierFailure,
    MalformedInput,
    SegmentDetectionError,
    UnsupportedAudioFormat,
)
from .models import (
    AudioBuffer,
    DetectionResult,
    DetectionSettings,
    DynamicRange,
    Frame,
    FrameAnalysis,
    Interval,
    SilenceMergeStrategy,
)
from .vad import VoicedFrameClassifier, WebRtcVoicedFrameClassifier

__all__ = [
    "AudioBuffer",
    "Frame",
    "FrameAnalysis",
    "Interval",
    "DynamicRange",
    "DetectionSettings",
    "DetectionResult",
    "SilenceMergeStrategy",
    "FrameSlicer",
    "iter_frames",
    "read_wav_bytes",
    "read_wav_file",
    "SpeechSegmentDetector",
    "VoicedFrameClassifier",
    "WebRtcVoicedFrameClassifier",
    "SegmentDetectionError",
    "UnsupportedAudioFormat",
    "MalformedInput",
    "FrameClassifierFailure",
]

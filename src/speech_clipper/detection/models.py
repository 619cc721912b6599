"""Data models for speech segment detection."""

from dataclasses import dataclass, field
from enum import Enum

from .config import (
    DEFAULT_AGGRESSIVENESS,
    DEFAULT_FRAME_DURATION_MS,
    DEFAULT_SILENCE_PADDING_MS,
    DEFAULT_SPEECH_PADDING_MS,
    DEFAULT_VOLUME_THRESHOLD,
)


@dataclass(frozen=True)
class AudioBuffer:
    """Raw mono PCM samples with their format metadata."""

    samples: bytes
    sample_rate: int
    sample_width: int
    num_channels: int = 1

    @property
    def total_samples(self) -> int:
        """Number of samples per channel in the buffer."""
        return len(self.samples) // (self.sample_width * self.num_channels)

    @property
    def bytes_per_second(self) -> int:
        """Number of bytes covering one second of audio."""
        return self.sample_rate * self.sample_width * self.num_channels

    @property
    def total_duration(self) -> float:
        """Duration of the buffer in seconds."""
        return len(self.samples) / self.bytes_per_second


@dataclass(frozen=True)
class Frame:
    """A fixed-duration slice of an AudioBuffer."""

    timestamp: float
    samples: bytes


@dataclass
class FrameAnalysis:
    """Loudness and voice-activity verdicts for one frame."""

    timestamp: float
    rms_energy: float
    dbfs: float
    loudness_percent: float
    is_voiced: bool
    is_loud_enough: bool
    is_speech: bool


@dataclass(frozen=True)
class Interval:
    """Half-open time range [start, end) in seconds."""

    start: float
    end: float

    def __post_init__(self) -> None:
        if not self.start < self.end:
            raise ValueError(
                f"Interval start must be before end: start={self.start}, end={self.end}"
            )

    @property
    def duration(self) -> float:
        return self.end - self.start

    def to_dict(self) -> dict[str, float]:
        return {"start": self.start, "end": self.end}


@dataclass(frozen=True)
class DynamicRange:
    """Quietest and loudest non-floor frame levels of a clip, in dBFS."""

    min_db: float
    max_db: float

    @property
    def span_db(self) -> float:
        return self.max_db - self.min_db


class SilenceMergeStrategy(str, Enum):
    """How silence gaps are merged before re-inverting to speech."""

    FILL_SHORT_GAPS = "fill"
    COLLAPSE_SHORT_SPEECH = "collapse"


@dataclass
class DetectionSettings:
    """User-facing options of a detection run."""

    frame_duration_ms: int = DEFAULT_FRAME_DURATION_MS
    volume_threshold: float = DEFAULT_VOLUME_THRESHOLD
    speech_padding_ms: float = DEFAULT_SPEECH_PADDING_MS
    silence_padding_ms: float = DEFAULT_SILENCE_PADDING_MS
    aggressiveness: int = DEFAULT_AGGRESSIVENESS
    use_smoothed_flag_for_segmentation: bool = False
    close_trailing_segment_at_buffer_end: bool = False
    silence_merge_strategy: SilenceMergeStrategy = SilenceMergeStrategy.FILL_SHORT_GAPS

    def __post_init__(self) -> None:
        if self.frame_duration_ms <= 0:
            raise ValueError(
                f"frame_duration_ms must be positive, got {self.frame_duration_ms}"
            )
        if not 0 <= self.volume_threshold <= 100:
            raise ValueError(
                f"volume_threshold must be within [0, 100], got {self.volume_threshold}"
            )
        if self.speech_padding_ms < 0:
            raise ValueError(
                f"speech_padding_ms must not be negative, got {self.speech_padding_ms}"
            )
        if self.silence_padding_ms < 0:
            raise ValueError(
                f"silence_padding_ms must not be negative, got {self.silence_padding_ms}"
            )
        if self.aggressiveness not in (0, 1, 2, 3):
            raise ValueError(
                f"aggressiveness must be between 0 and 3, got {self.aggressiveness}"
            )
        # Accept the plain string values from CLI and JSON callers
        self.silence_merge_strategy = SilenceMergeStrategy(self.silence_merge_strategy)


@dataclass
class DetectionResult:
    """Full output of a detection run, including per-frame diagnostics."""

    intervals: list[Interval]
    total_duration: float
    raw_intervals: list[Interval] = field(default_factory=list)
    frames: list[FrameAnalysis] = field(default_factory=list)
    dynamic_range: DynamicRange | None = None
    classifier_failures: int = 0

"""Data models for interval transcription."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


@dataclass
class TranscriptSegment:
    """Transcribed text for one speech interval."""

    start: float
    end: float
    text: str = ""
    confidence: float = 0.0
    error: str | None = None
    skipped: bool = False

    @property
    def duration(self) -> float:
        return self.end - self.start

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "start": self.start,
            "end": self.end,
            "text": self.text,
            "confidence": self.confidence,
        }
        if self.error is not None:
            data["error"] = self.error
        if self.skipped:
            data["skipped"] = True
        return data


@dataclass
class TranscriptionResult:
    """Represents the result of transcribing one block of audio."""

    text: str
    confidence: float
    language: str | None
    processing_time: float


class ProgressEventType(str, Enum):
    """Kinds of progress records emitted during a transcription run."""

    STATUS = "status"
    BATCH_START = "batch_start"
    SEGMENT_PROCESSING = "segment_processing"
    SEGMENT_COMPLETE = "segment_complete"
    SEGMENT_ERROR = "segment_error"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass
class ProgressEvent:
    """A progress record of a transcription run."""

    type: ProgressEventType
    message: str
    status: str | None = None
    segment_index: int | None = None
    total_segments: int | None = None
    batch_number: int | None = None
    total_batches: int | None = None
    segment: TranscriptSegment | None = None
    segments: list[TranscriptSegment] = field(default_factory=list)

    @property
    def percent(self) -> int | None:
        """Share of segments started so far, for segment events."""
        if self.segment_index is None or not self.total_segments:
            return None
        return round((self.segment_index + 1) / self.total_segments * 100)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type.value, "message": self.message}
        if self.status is not None:
            data["status"] = self.status
        if self.segment_index is not None:
            data["segmentIndex"] = self.segment_index
            data["currentSegment"] = self.segment_index + 1
            data["percent"] = self.percent
        if self.total_segments is not None:
            data["totalSegments"] = self.total_segments
        if self.batch_number is not None:
            data["batchNumber"] = self.batch_number
            data["totalBatches"] = self.total_batches
        if self.segment is not None:
            data["segment"] = self.segment.to_dict()
        if self.type is ProgressEventType.COMPLETE:
            data["segments"] = [segment.to_dict() for segment in self.segments]
        return data

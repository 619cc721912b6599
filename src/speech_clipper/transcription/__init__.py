"""Transcription of detected speech intervals."""

from .exceptions import TranscriptionError
from .models import (
    ProgressEvent,
    ProgressEventType,
    TranscriptionResult,
    TranscriptSegment,
)
from .service import TranscriptionService
from .transcriber import SegmentTranscriber, slice_interval

__all__ = [
    "TranscriptSegment",
    "TranscriptionResult",
    "ProgressEvent",
    "ProgressEventType",
    "TranscriptionError",
    "SegmentTranscriber",
    "TranscriptionService",
    "slice_interval",
]

"""Batched transcription of speech intervals with progress reporting."""

import asyncio
from collections.abc import AsyncIterator, Sequence

from ..detection.models import AudioBuffer, Interval
from ..logging_utils import get_logger
from .config import BATCH_SIZE, MIN_SEGMENT_DURATION
from .models import ProgressEvent, ProgressEventType, TranscriptSegment
from .transcriber import SegmentTranscriber, slice_interval

logger = get_logger(__name__)


class TranscriptionService:
    """Transcribes the speech intervals of a clip in small concurrent batches."""

    def __init__(
        self,
        transcriber: SegmentTranscriber | None = None,
        batch_size: int = BATCH_SIZE,
        min_segment_duration: float = MIN_SEGMENT_DURATION,
    ) -> None:
        """
        Initialize the transcription service.

        Args:
            transcriber: Transcriber to use, a default SegmentTranscriber if None
            batch_size: Number of intervals transcribed concurrently
            min_segment_duration: Intervals shorter than this are skipped
        """
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")

        self.transcriber = transcriber or SegmentTranscriber()
        self.batch_size = batch_size
        self.min_segment_duration = min_segment_duration

    async def _transcribe_one(
        self, buffer: AudioBuffer, interval: Interval
    ) -> TranscriptSegment:
        pcm = slice_interval(buffer, interval)
        result = await self.transcriber.transcribe_audio(pcm, buffer.sample_rate)
        return TranscriptSegment(
            start=interval.start,
            end=interval.end,
            text=result.text,
            confidence=result.confidence,
        )

    async def transcribe_intervals(
        self, buffer: AudioBuffer, intervals: Sequence[Interval]
    ) -> AsyncIterator[ProgressEvent]:
        """
        Transcribe intervals and report progress as it happens.

        Intervals shorter than ``min_segment_duration`` are skipped. The rest
        are transcribed ``batch_size`` at a time; a failing interval yields a
        ``segment_error`` event and an empty segment carrying the error, and
        the run continues. The final ``complete`` event lists one segment per
        input interval in input order.

        Args:
            buffer: Mono PCM buffer the intervals refer to
            intervals: Speech intervals to transcribe

        Yields:
            ProgressEvent records, ending with ``complete`` or ``error``
        """
        yield ProgressEvent(
            type=ProgressEventType.STATUS,
            status="filtering",
            message="Filtering segments by duration...",
        )

        valid = [
            (index, interval)
            for index, interval in enumerate(intervals)
            if interval.duration >= self.min_segment_duration
        ]
        skipped_count = len(intervals) - len(valid)
        if skipped_count:
            logger.debug(
                f"Skipping {skipped_count} segments shorter than {self.min_segment_duration}s"
            )

        yield ProgressEvent(
            type=ProgressEventType.STATUS,
            status="filtered",
            total_segments=len(valid),
            message=f"Found {len(valid)} valid segments out of {len(intervals)} total",
        )

        if not valid:
            yield ProgressEvent(
                type=ProgressEventType.ERROR,
                message=(
                    "No valid segments to transcribe - all segments are too short "
                    f"(< {self.min_segment_duration}s)"
                ),
            )
            return

        total = len(valid)
        total_batches = (total + self.batch_size - 1) // self.batch_size
        processed: dict[int, TranscriptSegment] = {}

        for batch_start in range(0, total, self.batch_size):
            batch = valid[batch_start : batch_start + self.batch_size]
            batch_number = batch_start // self.batch_size + 1

            yield ProgressEvent(
                type=ProgressEventType.BATCH_START,
                batch_number=batch_number,
                total_batches=total_batches,
                message=f"Processing batch {batch_number}/{total_batches}",
            )

            for offset, (_, interval) in enumerate(batch):
                position = batch_start + offset
                yield ProgressEvent(
                    type=ProgressEventType.SEGMENT_PROCESSING,
                    segment_index=position,
                    total_segments=total,
                    message=(
                        f"Processing segment {position + 1}/{total}: "
                        f"{interval.start:.2f}s to {interval.end:.2f}s"
                    ),
                )

            results = await asyncio.gather(
                *(self._transcribe_one(buffer, interval) for _, interval in batch),
                return_exceptions=True,
            )

            for offset, ((index, interval), result) in enumerate(zip(batch, results)):
                position = batch_start + offset
                if isinstance(result, BaseException):
                    logger.warning(
                        f"Segment {position + 1}/{total} "
                        f"({interval.start:.2f}s-{interval.end:.2f}s) failed: {result}"
                    )
                    segment = TranscriptSegment(
                        start=interval.start, end=interval.end, error=str(result)
                    )
                    processed[index] = segment
                    yield ProgressEvent(
                        type=ProgressEventType.SEGMENT_ERROR,
                        segment_index=position,
                        total_segments=total,
                        segment=segment,
                        message=f"Error processing segment {position + 1}: {result}",
                    )
                else:
                    processed[index] = result
                    yield ProgressEvent(
                        type=ProgressEventType.SEGMENT_COMPLETE,
                        segment_index=position,
                        total_segments=total,
                        segment=result,
                        message=f"Completed segment {position + 1}/{total}",
                    )

        segments = [
            processed.get(
                index,
                TranscriptSegment(start=interval.start, end=interval.end, skipped=True),
            )
            for index, interval in enumerate(intervals)
        ]

        logger.info(f"📝 Transcribed {len(processed)} of {len(intervals)} segments")

        yield ProgressEvent(
            type=ProgressEventType.COMPLETE,
            segments=segments,
            message=(
                f"Transcription complete. Processed {len(processed)} of "
                f"{len(intervals)} segments."
            ),
        )

    async def transcribe_all(
        self, buffer: AudioBuffer, intervals: Sequence[Interval]
    ) -> list[TranscriptSegment]:
        """
        Transcribe intervals and return only the final segments.

        Args:
            buffer: Mono PCM buffer the intervals refer to
            intervals: Speech intervals to transcribe

        Returns:
            One TranscriptSegment per interval, or an empty list if nothing
            could be transcribed
        """
        segments: list[TranscriptSegment] = []
        async for event in self.transcribe_intervals(buffer, intervals):
            logger.debug(event.message)
            if event.type is ProgressEventType.COMPLETE:
                segments = event.segments
        return segments

"""Command-line interface for speech segment detection."""

import argparse
import asyncio
import json
import sys
import tempfile
from pathlib import Path
from typing import Any

from .content.service import ContentService
from .detection.audio import read_wav_file
from .detection.config import (
    DEFAULT_AGGRESSIVENESS,
    DEFAULT_FRAME_DURATION_MS,
    DEFAULT_SILENCE_PADDING_MS,
    DEFAULT_SPEECH_PADDING_MS,
    DEFAULT_VOLUME_THRESHOLD,
)
from .detection.detector import SpeechSegmentDetector
from .detection.exceptions import SegmentDetectionError
from .detection.models import (
    AudioBuffer,
    DetectionSettings,
    Interval,
    SilenceMergeStrategy,
)
from .logging_utils import configure_logging, get_logger
from .media.exceptions import TranscoderError
from .media.transcoder import cut_clip, extract_audio
from .storage.config import DEFAULT_DATABASE_PATH, DEFAULT_LANGUAGE
from .storage.database import VideoDatabase
from .storage.exceptions import StorageError
from .transcription.exceptions import TranscriptionError
from .transcription.models import TranscriptSegment
from .transcription.service import TranscriptionService
from .transcription.transcriber import SegmentTranscriber

logger = get_logger(__name__)


def create_argument_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser for the CLI.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        description="Speech Clipper CLI - Find the speech in a video or WAV file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  speech-clipper talk.mp4                              # Detect speech with defaults
  speech-clipper talk.wav --wav                        # Read a mono 16-bit WAV directly
  speech-clipper talk.mp4 --volume-threshold 60        # Stricter loudness cut
  speech-clipper talk.mp4 --silence-padding-ms 0       # Keep every pause
  speech-clipper talk.mp4 --merge-strategy collapse    # Drop short speech instead
  speech-clipper talk.mp4 --transcribe --save          # Transcribe and store the result
  speech-clipper talk.mp4 --transcribe --topics        # Suggest clip topics and draft posts
  speech-clipper talk.mp4 --clips out/                 # Cut every speech interval into a clip
  speech-clipper talk.mp4 -v                           # Verbose logging

Intervals are printed to stdout as JSON, in seconds.
        """,
    )

    parser.add_argument("input", metavar="INPUT", help="Video or audio file to analyze")

    parser.add_argument(
        "--volume-threshold",
        type=float,
        default=DEFAULT_VOLUME_THRESHOLD,
        metavar="N",
        help=f"Loudness threshold in percent of the clip's range (default: {DEFAULT_VOLUME_THRESHOLD:g})",
    )

    parser.add_argument(
        "--speech-padding-ms",
        type=float,
        default=DEFAULT_SPEECH_PADDING_MS,
        metavar="N",
        help=f"Padding added around each speech interval (default: {DEFAULT_SPEECH_PADDING_MS})",
    )

    parser.add_argument(
        "--silence-padding-ms",
        type=float,
        default=DEFAULT_SILENCE_PADDING_MS,
        metavar="N",
        help=f"Silences up to this long are merged away, 0 disables (default: {DEFAULT_SILENCE_PADDING_MS})",
    )

    parser.add_argument(
        "--frame-duration-ms",
        type=int,
        default=DEFAULT_FRAME_DURATION_MS,
        metavar="N",
        help=f"Analysis frame length; VAD runs only for 10, 20 or 30 (default: {DEFAULT_FRAME_DURATION_MS})",
    )

    parser.add_argument(
        "--aggressiveness",
        type=int,
        choices=[0, 1, 2, 3],
        default=DEFAULT_AGGRESSIVENESS,
        help=f"WebRTC VAD aggressiveness (default: {DEFAULT_AGGRESSIVENESS})",
    )

    parser.add_argument(
        "--merge-strategy",
        choices=[strategy.value for strategy in SilenceMergeStrategy],
        default=SilenceMergeStrategy.FILL_SHORT_GAPS.value,
        help="fill: absorb short pauses; collapse: drop short speech (default: fill)",
    )

    parser.add_argument(
        "--use-smoothed-flag",
        action="store_true",
        help="Build intervals from the smoothed speech flags",
    )

    parser.add_argument(
        "--close-at-end",
        action="store_true",
        help="Close speech still open at the end of the clip at the clip's end",
    )

    parser.add_argument(
        "--wav",
        action="store_true",
        help="INPUT is already a mono 16-bit WAV file; skip ffmpeg extraction",
    )

    parser.add_argument(
        "--transcribe",
        action="store_true",
        help="Transcribe each speech interval with faster-whisper",
    )

    parser.add_argument(
        "--language",
        type=str,
        default=None,
        help="Transcription language code (default: auto-detect)",
    )

    parser.add_argument(
        "--topics",
        action="store_true",
        help="Suggest clip topics and draft a social post for each (needs --transcribe and Ollama)",
    )

    parser.add_argument(
        "--clips",
        type=str,
        default=None,
        metavar="DIR",
        help="Cut each speech interval of a video INPUT into DIR",
    )

    parser.add_argument(
        "--save",
        action="store_true",
        help="Store the video and its transcript in the database",
    )

    parser.add_argument(
        "--database",
        type=str,
        default=DEFAULT_DATABASE_PATH,
        metavar="PATH",
        help=f"SQLite database path (default: {DEFAULT_DATABASE_PATH})",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging and debug information",
    )

    parser.add_argument(
        "--trace",
        action="store_true",
        help="Enable trace logging (most verbose, includes per-frame analysis)",
    )

    return parser


def settings_from_args(args: argparse.Namespace) -> DetectionSettings:
    """
    Build detection settings from parsed arguments.

    Raises:
        ValueError: If an option is out of range
    """
    return DetectionSettings(
        frame_duration_ms=args.frame_duration_ms,
        volume_threshold=args.volume_threshold,
        speech_padding_ms=args.speech_padding_ms,
        silence_padding_ms=args.silence_padding_ms,
        aggressiveness=args.aggressiveness,
        use_smoothed_flag_for_segmentation=args.use_smoothed_flag,
        close_trailing_segment_at_buffer_end=args.close_at_end,
        silence_merge_strategy=SilenceMergeStrategy(args.merge_strategy),
    )


def load_audio(input_path: Path, is_wav: bool) -> AudioBuffer:
    """Read INPUT as WAV, extracting the audio track with ffmpeg first if needed."""
    if is_wav:
        return read_wav_file(input_path)

    with tempfile.TemporaryDirectory(prefix="speech_clipper_") as tmp_dir:
        wav_path = extract_audio(input_path, Path(tmp_dir) / "audio.wav")
        return read_wav_file(wav_path)


async def save_result(
    database_path: str,
    input_path: Path,
    duration: float,
    segments: list[TranscriptSegment],
    language: str | None,
) -> str:
    """Store the processed video and return its ID."""
    db = VideoDatabase(database_path)
    await db.initialize()
    try:
        video = await db.save_video_with_transcription(
            input_path.name,
            str(input_path.resolve()),
            input_path.stat().st_size,
            segments,
            duration=duration,
            language=language or DEFAULT_LANGUAGE,
        )
    finally:
        await db.close()
    return str(video.id)


def cut_clips(input_path: Path, clips_dir: Path, intervals: list[Interval]) -> list[str]:
    """Cut each interval of INPUT into its own file under clips_dir."""
    clips_dir.mkdir(parents=True, exist_ok=True)
    clips = []
    for index, interval in enumerate(intervals, start=1):
        clip_path = clips_dir / f"{input_path.stem}_{index:03d}{input_path.suffix}"
        clips.append(str(cut_clip(input_path, clip_path, interval.start, interval.end)))
    logger.info(f"Cut {len(clips)} clips into {clips_dir}")
    return clips


async def suggest_topics(segments: list[TranscriptSegment]) -> dict[str, Any]:
    """Suggest clip topics for a transcript and draft a post for each."""
    spoken = [segment for segment in segments if segment.text]
    if not spoken:
        return {"topics": [], "warning": "No transcribed speech to suggest topics from"}

    service = ContentService()
    topics = await service.identify_topics(spoken)
    result: dict[str, Any] = {"topics": [], "model": topics.model}
    if topics.warning:
        result["warning"] = topics.warning
    if topics.error:
        result["error"] = topics.error

    for topic in topics.value:
        post = await service.generate_post(
            spoken[topic.start_segment : topic.end_segment + 1], topic
        )
        entry = topic.to_dict()
        entry["start"] = spoken[topic.start_segment].start
        entry["end"] = spoken[topic.end_segment].end
        entry["post"] = post.value.to_dict()
        if post.used_fallback:
            entry["post_warning"] = post.error or post.warning
        result["topics"].append(entry)

    return result


async def run(args: argparse.Namespace) -> dict[str, Any]:
    """
    Detect speech in INPUT, then optionally transcribe, suggest topics, cut
    clips and store the result.

    Args:
        args: Parsed arguments from argparse

    Returns:
        JSON-serializable result with the detected intervals
    """
    input_path = Path(args.input)
    settings = settings_from_args(args)
    if args.topics and not args.transcribe:
        raise ValueError("--topics needs --transcribe")
    if args.clips and args.wav:
        raise ValueError("--clips needs a video INPUT, not --wav")

    buffer = load_audio(input_path, args.wav)
    detector = SpeechSegmentDetector(settings)
    intervals = detector.detect(buffer)

    output: dict[str, Any] = {
        "input": str(input_path),
        "duration": round(buffer.total_duration, 3),
        "intervals": [interval.to_dict() for interval in intervals],
    }

    segments: list[TranscriptSegment] = []
    if args.transcribe and intervals:
        service = TranscriptionService(SegmentTranscriber(language=args.language))
        segments = await service.transcribe_all(buffer, intervals)
        output["segments"] = [segment.to_dict() for segment in segments]

    if args.topics:
        output["content"] = await suggest_topics(segments)

    if args.clips and intervals:
        output["clips"] = cut_clips(input_path, Path(args.clips), intervals)

    if args.save:
        output["video_id"] = await save_result(
            args.database, input_path, buffer.total_duration, segments, args.language
        )

    return output


def cli_entry_with_args(argv: list[str] | None = None) -> None:
    """CLI entry point with argument parsing."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=args.verbose, trace=args.trace)

    try:
        output = asyncio.run(run(args))
    except KeyboardInterrupt:
        print("\n👋 Interrupted", file=sys.stderr)
        sys.exit(130)
    except (
        SegmentDetectionError,
        TranscoderError,
        TranscriptionError,
        StorageError,
        ValueError,
        OSError,
    ) as e:
        logger.debug("Detection failed", exc_info=True)
        print(f"❌ {e}", file=sys.stderr)
        sys.exit(1)

    print(json.dumps(output, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    cli_entry_with_args()

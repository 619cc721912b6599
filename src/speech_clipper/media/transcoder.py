"""ffmpeg wrappers for extracting detector-ready audio and cutting clips."""

import subprocess
from pathlib import Path

from ..logging_utils import get_logger
from .config import (
    CLIP_AUDIO_CODEC,
    CLIP_CRF,
    CLIP_PRESET,
    CLIP_VIDEO_CODEC,
    EXTRACT_AUDIO_CODEC,
    EXTRACT_CHANNELS,
    EXTRACT_SAMPLE_RATE,
    FFMPEG_BINARY,
    TRANSCODE_TIMEOUT,
)
from .exceptions import TranscoderError, TranscoderNotFoundError

logger = get_logger(__name__)


def _run_ffmpeg(args: list[str], timeout: float = TRANSCODE_TIMEOUT) -> None:
    cmd = [FFMPEG_BINARY, *args]
    logger.debug(f"Running: {' '.join(cmd)}")

    try:
        res = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
    except FileNotFoundError as e:
        raise TranscoderNotFoundError(
            f"{FFMPEG_BINARY} is not installed or not on PATH"
        ) from e
    except subprocess.TimeoutExpired as e:
        raise TranscoderError(f"{FFMPEG_BINARY} timed out after {timeout}s") from e

    if res.returncode != 0:
        raise TranscoderError((res.stderr or res.stdout or "ffmpeg failed").strip())


def check_ffmpeg_available() -> bool:
    """
    Check whether ffmpeg can be executed.

    Returns:
        True if ``ffmpeg -version`` runs successfully
    """
    try:
        _run_ffmpeg(["-version"], timeout=10.0)
    except TranscoderError as e:
        logger.warning(f"ffmpeg is not available: {e}")
        return False
    return True


def extract_audio(input_path: str | Path, output_path: str | Path) -> Path:
    """
    Extract the audio track of a media file as mono 16kHz 16-bit WAV.

    Args:
        input_path: Source video or audio file
        output_path: Destination WAV path, overwritten if present

    Returns:
        Path of the written WAV file

    Raises:
        TranscoderNotFoundError: If ffmpeg is not installed
        TranscoderError: If ffmpeg fails
    """
    input_path = Path(input_path)
    output_path = Path(output_path)
    if not input_path.exists():
        raise TranscoderError(f"Input file not found: {input_path}")

    _run_ffmpeg(
        [
            "-y",
            "-i",
            str(input_path),
            "-vn",
            "-acodec",
            EXTRACT_AUDIO_CODEC,
            "-ac",
            str(EXTRACT_CHANNELS),
            "-ar",
            str(EXTRACT_SAMPLE_RATE),
            "-f",
            "wav",
            str(output_path),
        ]
    )

    logger.info(f"🎵 Extracted audio from {input_path.name} to {output_path}")
    return output_path


def cut_clip(
    input_path: str | Path, output_path: str | Path, start: float, end: float
) -> Path:
    """
    Re-encode the [start, end) range of a video into a new file.

    Args:
        input_path: Source video file
        output_path: Destination clip path, overwritten if present
        start: Clip start in seconds
        end: Clip end in seconds

    Returns:
        Path of the written clip

    Raises:
        ValueError: If the range is empty or negative
        TranscoderError: If ffmpeg fails or produces no output
    """
    if start < 0 or end <= start:
        raise ValueError(f"Invalid clip range: start={start}, end={end}")

    input_path = Path(input_path)
    output_path = Path(output_path)
    if not input_path.exists():
        raise TranscoderError(f"Input file not found: {input_path}")

    try:
        _run_ffmpeg(
            [
                "-y",
                "-ss",
                f"{start:.3f}",
                "-i",
                str(input_path),
                "-t",
                f"{end - start:.3f}",
                "-c:v",
                CLIP_VIDEO_CODEC,
                "-c:a",
                CLIP_AUDIO_CODEC,
                "-preset",
                CLIP_PRESET,
                "-crf",
                str(CLIP_CRF),
                str(output_path),
            ]
        )
    except TranscoderError:
        # Don't leave a half-written clip behind
        output_path.unlink(missing_ok=True)
        raise

    if not output_path.exists():
        raise TranscoderError(f"ffmpeg did not create {output_path}")

    logger.info(f"✂️ Cut clip {start:.2f}s-{end:.2f}s into {output_path}")
    return output_path

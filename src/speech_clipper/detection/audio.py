"""WAV decoding and PCM frame slicing."""

import io
import wave
from collections.abc import Iterator
from pathlib import Path

from ..logging_utils import get_logger
from .config import (
    DEFAULT_FRAME_DURATION_MS,
    REQUIRED_BITS_PER_SAMPLE,
    REQUIRED_CHANNELS,
    SUPPORTED_SAMPLE_RATES,
)
from .exceptions import MalformedInput, UnsupportedAudioFormat
from .models import AudioBuffer, Frame

logger = get_logger(__name__)


def validate_buffer(buffer: AudioBuffer) -> None:
    """
    Check that a buffer can be analysed by the detector.

    Args:
        buffer: Audio buffer to check

    Raises:
        UnsupportedAudioFormat: If the buffer is not mono 16-bit PCM at a
            supported sample rate
    """
    if buffer.num_channels != REQUIRED_CHANNELS:
        raise UnsupportedAudioFormat(
            f"Audio must be mono for VAD processing, got {buffer.num_channels} channels"
        )
    if buffer.sample_rate not in SUPPORTED_SAMPLE_RATES:
        raise UnsupportedAudioFormat(
            f"Unsupported sample rate: {buffer.sample_rate}. "
            f"Sample rate must be one of {SUPPORTED_SAMPLE_RATES} Hz"
        )
    if buffer.sample_width * 8 != REQUIRED_BITS_PER_SAMPLE:
        raise UnsupportedAudioFormat(
            f"Unsupported bit depth: {buffer.sample_width * 8}. "
            f"Audio must be {REQUIRED_BITS_PER_SAMPLE}-bit PCM"
        )


def read_wav_bytes(data: bytes) -> AudioBuffer:
    """
    Decode an in-memory WAV file into an AudioBuffer.

    Args:
        data: Complete WAV file contents

    Returns:
        Validated AudioBuffer

    Raises:
        MalformedInput: If the WAV header or sample data cannot be read
        UnsupportedAudioFormat: If the audio is not mono 16-bit PCM at a
            supported sample rate
    """
    if not isinstance(data, (bytes, bytearray)) or not data:
        raise MalformedInput("Audio data is empty or not a byte buffer")

    try:
        with wave.open(io.BytesIO(data), "rb") as wav_file:
            num_channels = wav_file.getnchannels()
            sample_width = wav_file.getsampwidth()
            sample_rate = wav_file.getframerate()
            samples = wav_file.readframes(wav_file.getnframes())
    except (wave.Error, EOFError) as e:
        raise MalformedInput(f"Unreadable WAV data: {e}") from e

    buffer = AudioBuffer(
        samples=samples,
        sample_rate=sample_rate,
        sample_width=sample_width,
        num_channels=num_channels,
    )
    validate_buffer(buffer)

    logger.debug(
        f"Decoded WAV: {sample_rate}Hz, {sample_width * 8}-bit, "
        f"{num_channels} channel(s), {buffer.total_duration:.2f}s"
    )
    return buffer


def read_wav_file(path: str | Path) -> AudioBuffer:
    """
    Read and decode a WAV file from disk.

    Args:
        path: Path to a WAV file

    Returns:
        Validated AudioBuffer

    Raises:
        MalformedInput: If the file cannot be read or decoded
        UnsupportedAudioFormat: If the audio format is not supported
    """
    try:
        data = Path(path).read_bytes()
    except OSError as e:
        raise MalformedInput(f"Cannot read audio file {path}: {e}") from e
    return read_wav_bytes(data)


def frame_size_bytes(buffer: AudioBuffer, frame_duration_ms: int) -> int:
    """Number of bytes in one full frame of the given duration."""
    frame_size = int(buffer.sample_rate * frame_duration_ms / 1000)
    return frame_size * buffer.sample_width


class FrameSlicer:
    """Splits a mono PCM buffer into fixed-duration, timestamped frames.

    Iterating a slicer always starts again from the beginning of the buffer.
    The trailing partial frame is dropped.
    """

    def __init__(
        self, buffer: AudioBuffer, frame_duration_ms: int = DEFAULT_FRAME_DURATION_MS
    ) -> None:
        validate_buffer(buffer)
        if frame_duration_ms <= 0:
            raise UnsupportedAudioFormat(
                f"Frame duration must be positive, got {frame_duration_ms}"
            )

        self.buffer = buffer
        self.frame_duration_ms = frame_duration_ms
        self.frame_bytes = frame_size_bytes(buffer, frame_duration_ms)
        if self.frame_bytes <= 0:
            raise UnsupportedAudioFormat(
                f"Frame duration {frame_duration_ms}ms is shorter than one sample"
            )

    def __iter__(self) -> Iterator[Frame]:
        samples = self.buffer.samples
        bytes_per_second = self.buffer.bytes_per_second
        offset = 0
        while len(samples) - offset >= self.frame_bytes:
            yield Frame(
                timestamp=offset / bytes_per_second,
                samples=samples[offset : offset + self.frame_bytes],
            )
            offset += self.frame_bytes

    def __len__(self) -> int:
        return len(self.buffer.samples) // self.frame_bytes


def iter_frames(
    buffer: AudioBuffer, frame_duration_ms: int = DEFAULT_FRAME_DURATION_MS
) -> Iterator[Frame]:
    """
    Lazily yield the frames of a buffer in timestamp order.

    Args:
        buffer: Mono 16-bit PCM buffer
        frame_duration_ms: Frame duration in milliseconds

    Returns:
        Iterator over full-size frames

    Raises:
        UnsupportedAudioFormat: If the buffer format is not supported
    """
    return iter(FrameSlicer(buffer, frame_duration_ms))

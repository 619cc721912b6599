"""Shared fixtures for synthesizing PCM test audio."""

import io
import wave
from collections.abc import Callable, Sequence

import numpy as np
import pytest

from speech_clipper.detection.models import AudioBuffer


def square_wave(amplitude: int, num_samples: int) -> np.ndarray:
    """Alternating +/- amplitude samples, whose RMS is exactly the amplitude."""
    signs = np.where(np.arange(num_samples) % 2 == 0, 1, -1)
    return (signs * amplitude).astype("<i2")


def synthesize_buffer(
    amplitudes: Sequence[int], segment_seconds: float = 1.0, sample_rate: int = 16000
) -> AudioBuffer:
    """Build a buffer of consecutive constant-level segments."""
    samples_per_segment = int(round(sample_rate * segment_seconds))
    pcm = np.concatenate(
        [square_wave(amplitude, samples_per_segment) for amplitude in amplitudes]
    )
    return AudioBuffer(samples=pcm.tobytes(), sample_rate=sample_rate, sample_width=2)


def encode_wav(
    samples: bytes, sample_rate: int = 16000, channels: int = 1, sample_width: int = 2
) -> bytes:
    """Wrap raw PCM bytes in a WAV container."""
    output = io.BytesIO()
    with wave.open(output, "wb") as wav_file:
        wav_file.setnchannels(channels)
        wav_file.setsampwidth(sample_width)
        wav_file.setframerate(sample_rate)
        wav_file.writeframes(samples)
    return output.getvalue()


@pytest.fixture
def make_buffer() -> Callable[..., AudioBuffer]:
    """Factory for synthetic level-profile buffers."""
    return synthesize_buffer


@pytest.fixture
def make_wav() -> Callable[..., bytes]:
    """Factory for in-memory WAV files."""
    return encode_wav


@pytest.fixture
def example_buffer() -> AudioBuffer:
    """Ten seconds at 16kHz: speech in seconds 3-6 and 8-9, quiet elsewhere.

    Second 8 is the loudest part of the clip, the quiet seconds set the
    bottom of its dynamic range.
    """
    return synthesize_buffer([33, 33, 33, 10000, 10000, 10000, 33, 33, 16000, 33])

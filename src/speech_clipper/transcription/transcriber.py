"""Whisper transcription of detected speech intervals."""

import asyncio
import re
import threading
import time
from typing import Any

import faster_whisper  # type: ignore[import-untyped]
import numpy as np

from ..detection.models import AudioBuffer, Interval
from ..logging_utils import get_logger
from .cache_utils import get_whisper_cache_dir
from .config import (
    CONFIDENCE_LOGPROB_MAX,
    CONFIDENCE_LOGPROB_MIN,
    DEFAULT_COMPUTE_TYPE,
    DEFAULT_DEVICE,
    DEFAULT_MODEL_SIZE,
    MAX_16BIT_VALUE,
    WHISPER_SAMPLE_RATE,
)
from .exceptions import TranscriptionError
from .models import TranscriptionResult

logger = get_logger(__name__)


def slice_interval(buffer: AudioBuffer, interval: Interval) -> bytes:
    """
    Extract the PCM bytes of an interval from a mono buffer.

    Args:
        buffer: Mono PCM buffer
        interval: Time range to extract, clamped to the buffer

    Returns:
        Sample-aligned PCM bytes
    """
    width = buffer.sample_width
    start_sample = max(0, int(interval.start * buffer.sample_rate))
    end_sample = min(buffer.total_samples, int(interval.end * buffer.sample_rate))
    return buffer.samples[start_sample * width : end_sample * width]


class SegmentTranscriber:
    """Uses faster-whisper to transcribe blocks of 16-bit mono PCM."""

    def __init__(
        self,
        model_size: str = DEFAULT_MODEL_SIZE,
        device: str = DEFAULT_DEVICE,
        compute_type: str = DEFAULT_COMPUTE_TYPE,
        language: str | None = None,
    ) -> None:
        """
        Initialize Whisper transcriber.

        Args:
            model_size: Size of Whisper model to use
            device: Device to use for inference ("cpu" or "cuda")
            compute_type: Compute type for inference ("int8", "float16", etc.)
            language: Language code, auto-detected when None
        """
        self.model_size = model_size
        self.device = device
        self.compute_type = compute_type
        self.language = language
        self._model: Any | None = None
        self._model_lock = threading.Lock()

    def _load_model(self) -> Any:
        """
        Load the Whisper model on first use.

        Returns:
            The loaded WhisperModel

        Raises:
            TranscriptionError: If the model cannot be loaded
        """
        # Batches transcribe in parallel executor threads
        with self._model_lock:
            if self._model is not None:
                return self._model

            logger.debug(
                f"Loading Whisper '{self.model_size}' on {self.device} ({self.compute_type})"
            )

            try:
                self._model = faster_whisper.WhisperModel(
                    self.model_size,
                    device=self.device,
                    compute_type=self.compute_type,
                    download_root=str(get_whisper_cache_dir()),
                )
            except Exception as e:
                raise TranscriptionError(f"Failed to load Whisper model: {e}") from e

        logger.debug(f"Successfully loaded Whisper model '{self.model_size}'")
        return self._model

    def _prepare_audio(self, pcm_bytes: bytes, sample_rate: int) -> np.ndarray:
        """Convert 16-bit PCM into the float32 16kHz array Whisper consumes."""
        samples = np.frombuffer(pcm_bytes, dtype="<i2").astype(np.float32)
        samples /= MAX_16BIT_VALUE

        if sample_rate != WHISPER_SAMPLE_RATE and samples.size > 0:
            # Simple linear interpolation resampling
            new_length = int(len(samples) * WHISPER_SAMPLE_RATE / sample_rate)
            old_indices = np.linspace(0, len(samples) - 1, new_length)
            samples = np.interp(old_indices, np.arange(len(samples)), samples).astype(
                np.float32
            )

        return samples

    def _calculate_confidence(self, segments: list) -> float:
        """
        Convert faster-whisper avg_logprob to normalized confidence score (0.0-1.0).

        avg_logprob typically ranges from -2.0 (low confidence) to -0.1 (high
        confidence); segments are weighted by their duration.

        Args:
            segments: List of transcription segments from faster-whisper

        Returns:
            Confidence score between 0.0 and 1.0
        """
        total_duration = 0.0
        weighted_logprob = 0.0

        for segment in segments:
            duration = segment.end - segment.start
            total_duration += duration
            weighted_logprob += segment.avg_logprob * duration

        if total_duration <= 0:
            return 0.0

        avg_logprob = weighted_logprob / total_duration
        return max(
            0.0,
            min(
                1.0,
                (avg_logprob - CONFIDENCE_LOGPROB_MIN)
                / (CONFIDENCE_LOGPROB_MAX - CONFIDENCE_LOGPROB_MIN),
            ),
        )

    def _post_process_text(self, text: str) -> str:
        """Collapse whitespace and capitalize the first letter."""
        processed = re.sub(r"\s+", " ", text or "").strip()
        if processed and processed[0].islower():
            processed = processed[0].upper() + processed[1:]
        return processed

    def _transcribe_sync(self, audio: np.ndarray) -> tuple[list, str | None]:
        model = self._load_model()
        segments, info = model.transcribe(audio, language=self.language)
        # The segment generator decodes lazily, consume it in this thread
        return list(segments), getattr(info, "language", None)

    async def transcribe_audio(
        self, pcm_bytes: bytes, sample_rate: int = WHISPER_SAMPLE_RATE
    ) -> TranscriptionResult:
        """
        Transcribe a block of mono 16-bit PCM.

        Args:
            pcm_bytes: Little-endian 16-bit mono samples
            sample_rate: Sample rate of the samples

        Returns:
            TranscriptionResult with text, confidence and detected language

        Raises:
            TranscriptionError: If the audio is empty or Whisper fails
        """
        if not pcm_bytes or not isinstance(pcm_bytes, (bytes, bytearray)):
            raise TranscriptionError("No audio data to transcribe")
        if len(pcm_bytes) % 2:
            raise TranscriptionError(
                f"PCM data must hold whole 16-bit samples, got {len(pcm_bytes)} bytes"
            )

        processing_start_time = time.time()
        audio = self._prepare_audio(pcm_bytes, sample_rate)

        logger.debug(f"🎤 Transcribing {len(audio) / WHISPER_SAMPLE_RATE:.2f}s of audio")

        try:
            # Run transcription in thread pool to avoid blocking
            loop = asyncio.get_running_loop()
            segments, language = await loop.run_in_executor(
                None, self._transcribe_sync, audio
            )
        except TranscriptionError:
            raise
        except Exception as e:
            raise TranscriptionError(f"Transcription failed: {e}") from e

        text = self._post_process_text("".join(segment.text for segment in segments))
        processing_time = time.time() - processing_start_time

        logger.trace(
            f"✅ Transcribed {len(segments)} Whisper segments into {len(text)} chars "
            f"({processing_time:.2f}s)"
        )

        return TranscriptionResult(
            text=text,
            confidence=self._calculate_confidence(segments),
            language=language,
            processing_time=processing_time,
        )

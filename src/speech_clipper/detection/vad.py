"""Voice activity classification and hysteresis smoothing for PCM frames."""

from abc import ABC, abstractmethod
from collections.abc import Sequence

import webrtcvad

from ..logging_utils import get_logger
from .config import (
    DEFAULT_AGGRESSIVENESS,
    SMOOTHING_MAX_THRESHOLD,
    SMOOTHING_WINDOW_MS,
    SUPPORTED_SAMPLE_RATES,
    VAD_SUPPORTED_FRAME_DURATIONS,
)
from .exceptions import FrameClassifierFailure
from .loudness import compute_dynamic_range, compute_rms, db_to_percent, rms_to_dbfs
from .models import DynamicRange, Frame, FrameAnalysis

logger = get_logger(__name__)


class VoicedFrameClassifier(ABC):
    """Binary voiced/unvoiced verdict for a single frame."""

    @abstractmethod
    def is_voiced(self, frame: Frame, sample_rate: int) -> bool:
        """
        Decide whether a frame contains voiced audio.

        Args:
            frame: Frame to classify
            sample_rate: Sample rate of the frame's PCM data

        Returns:
            True if the frame is voiced

        Raises:
            FrameClassifierFailure: If the frame cannot be classified
        """
        pass


class WebRtcVoicedFrameClassifier(VoicedFrameClassifier):
    """Voiced/unvoiced classification using WebRTC VAD."""

    def __init__(self, aggressiveness: int = DEFAULT_AGGRESSIVENESS) -> None:
        """
        Initialize the WebRTC classifier.

        Args:
            aggressiveness: WebRTC VAD mode, 0 (least) to 3 (most aggressive)

        Raises:
            ValueError: If aggressiveness is outside 0-3
        """
        if aggressiveness not in (0, 1, 2, 3):
            raise ValueError(f"Unsupported VAD aggressiveness: {aggressiveness}")

        self.aggressiveness = aggressiveness
        self.vad = webrtcvad.Vad()
        self.vad.set_mode(aggressiveness)

        logger.debug(f"🔊 WebRTC VAD initialized: aggressiveness={aggressiveness}")

    def is_voiced(self, frame: Frame, sample_rate: int) -> bool:
        if sample_rate not in SUPPORTED_SAMPLE_RATES:
            raise FrameClassifierFailure(
                f"WebRTC VAD does not support {sample_rate}Hz audio"
            )

        try:
            return bool(self.vad.is_speech(frame.samples, sample_rate))
        except Exception as e:
            raise FrameClassifierFailure(
                f"VAD error processing frame at {frame.timestamp:.2f}s: {e}"
            ) from e


def analyze_frames(
    frames: Sequence[Frame],
    sample_rate: int,
    volume_threshold: float,
    classifier: VoicedFrameClassifier | None = None,
) -> tuple[list[FrameAnalysis], DynamicRange | None, int]:
    """
    Measure loudness and classify every frame of a clip.

    The first pass measures each frame's level and derives the clip's
    dynamic range; the second pass rescales each level to a percentage and
    applies the threshold. The classifier's voiced verdict is recorded on
    every frame but never decides ``is_speech``: speech is loudness alone,
    so results follow the volume threshold exactly.

    Args:
        frames: Frames in timestamp order
        sample_rate: Sample rate of the frames
        volume_threshold: Loudness percentage at or above which a frame is speech
        classifier: Voiced/unvoiced classifier, skipped when None

    Returns:
        Tuple of (per-frame analyses, dynamic range, classifier failure count)
    """
    levels = []
    for frame in frames:
        rms = compute_rms(frame.samples)
        levels.append((rms, rms_to_dbfs(rms)))

    dynamic_range = compute_dynamic_range(db for _, db in levels)
    if dynamic_range is None:
        logger.debug("Every frame is at the silence floor, dynamic range is empty")
    else:
        logger.debug(
            f"Dynamic range: {dynamic_range.min_db:.1f}dB to {dynamic_range.max_db:.1f}dB"
        )

    analyses = []
    failures = 0
    for frame, (rms, db) in zip(frames, levels):
        is_voiced = False
        if classifier is not None:
            try:
                is_voiced = classifier.is_voiced(frame, sample_rate)
            except Exception as e:
                failures += 1
                logger.debug(f"Voice classifier failed, treating frame as unvoiced: {e}")

        percent = db_to_percent(db, dynamic_range)
        is_loud_enough = percent >= volume_threshold

        analyses.append(
            FrameAnalysis(
                timestamp=frame.timestamp,
                rms_energy=rms,
                dbfs=db,
                loudness_percent=percent,
                is_voiced=is_voiced,
                is_loud_enough=is_loud_enough,
                is_speech=is_loud_enough,
            )
        )

    if failures:
        logger.warning(
            f"Voice classifier failed on {failures} of {len(analyses)} frames; "
            "those frames were recorded as unvoiced"
        )

    return analyses, dynamic_range, failures


def smoothing_window_frames(frame_duration_ms: int) -> int:
    """Number of frames covering the smoothing look-back/look-ahead span."""
    return max(1, int(SMOOTHING_WINDOW_MS / frame_duration_ms))


def smooth_speech_flags(
    analyses: Sequence[FrameAnalysis], volume_threshold: float, window_frames: int
) -> int:
    """
    Promote borderline-quiet frames that sit next to speech.

    A non-speech frame whose loudness lies in [threshold/2, threshold] becomes
    speech when any frame within ``window_frames`` before or after it is
    speech. Frames are visited in order, so a promoted frame counts as speech
    for its successors. Thresholds of 70% and above are left untouched.

    The window reaches a full 200 ms on both sides, see
    ``smoothing_window_frames``. At 30 ms frames that is 6 frames each way,
    wider than a byte-counted window that would stop about 3 frames back
    and 2 ahead. Smoothing only changes intervals when
    ``use_smoothed_flag_for_segmentation`` is set.

    Args:
        analyses: Frame analyses in timestamp order, updated in place
        volume_threshold: Loudness percentage threshold
        window_frames: Look-back and look-ahead window size in frames

    Returns:
        Number of promoted frames
    """
    if volume_threshold >= SMOOTHING_MAX_THRESHOLD:
        return 0

    band_low = volume_threshold / 2
    promoted = 0
    count = len(analyses)

    for i, analysis in enumerate(analyses):
        if analysis.is_speech:
            continue
        if not band_low <= analysis.loudness_percent <= volume_threshold:
            continue

        lookback = range(max(0, i - window_frames), i)
        lookahead = range(i + 1, min(count, i + window_frames + 1))
        near_speech = any(analyses[j].is_speech for j in lookback) or any(
            analyses[j].is_speech for j in lookahead
        )

        if near_speech:
            analysis.is_speech = True
            analysis.is_loud_enough = True
            promoted += 1

    if promoted:
        logger.trace(f"Smoothing promoted {promoted} borderline frames to speech")

    return promoted


def is_vad_frame_duration(frame_duration_ms: int) -> bool:
    """Whether WebRTC VAD accepts frames of this duration."""
    return frame_duration_ms in VAD_SUPPORTED_FRAME_DURATIONS

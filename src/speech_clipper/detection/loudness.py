"""Frame loudness analysis: RMS energy, dBFS and clip-relative percentages.

Loudness is judged against the clip's own dynamic range rather than an
absolute dB level, so a volume threshold of 40 means "40% of the way from the
quietest to the loudest non-silent frame of this recording" regardless of the
recording gain. That needs two passes: one to collect every frame's level,
and one to rescale each level into the clip's range.
"""

import math
from collections.abc import Iterable

import numpy as np

from ..logging_utils import get_logger
from .config import MAX_16BIT_VALUE, SILENCE_FLOOR_DB, SILENCE_FLOOR_RMS
from .models import DynamicRange

logger = get_logger(__name__)


def compute_rms(frame: bytes) -> float:
    """
    Compute the root-mean-square amplitude of 16-bit little-endian PCM.

    Args:
        frame: Raw sample bytes of one frame

    Returns:
        RMS amplitude in sample units, 0.0 if the frame cannot be decoded
    """
    try:
        samples = np.frombuffer(frame, dtype="<i2").astype(np.float64)
    except (ValueError, TypeError) as e:
        logger.debug(f"Error calculating frame RMS: {e}")
        return 0.0

    if samples.size == 0:
        return 0.0

    return float(np.sqrt(np.mean(samples * samples)))


def rms_to_dbfs(rms: float) -> float:
    """
    Convert an RMS amplitude to decibels relative to 16-bit full scale.

    Args:
        rms: RMS amplitude in sample units

    Returns:
        Level in dBFS, or the silence floor for near-zero amplitudes
    """
    if rms <= SILENCE_FLOOR_RMS:
        return SILENCE_FLOOR_DB
    return 20 * math.log10(rms / MAX_16BIT_VALUE)


def compute_dynamic_range(db_values: Iterable[float]) -> DynamicRange | None:
    """
    Find the quietest and loudest frame levels above the silence floor.

    Args:
        db_values: Per-frame levels in dBFS

    Returns:
        DynamicRange of the clip, or None when every frame is at the floor
    """
    audible = [db for db in db_values if db > SILENCE_FLOOR_DB]
    if not audible:
        return None
    return DynamicRange(min_db=min(audible), max_db=max(audible))


def db_to_percent(db: float, dynamic_range: DynamicRange | None) -> float:
    """
    Rescale a frame level into a percentage of the clip's dynamic range.

    Args:
        db: Frame level in dBFS
        dynamic_range: Clip dynamic range, None if the clip is silent

    Returns:
        Loudness percentage clamped to [0, 100]
    """
    if dynamic_range is None or db <= dynamic_range.min_db:
        return 0.0
    if db >= 0:
        return 100.0
    if dynamic_range.span_db <= 0:
        return 100.0

    percent = (db - dynamic_range.min_db) / dynamic_range.span_db * 100
    return min(100.0, max(0.0, percent))


def percent_to_db(percent: float, dynamic_range: DynamicRange | None) -> float:
    """
    Level in dBFS that corresponds to a percentage of the dynamic range.

    Args:
        percent: Loudness percentage in [0, 100]
        dynamic_range: Clip dynamic range, None if the clip is silent

    Returns:
        dBFS level, the silence floor for a silent clip
    """
    if dynamic_range is None:
        return SILENCE_FLOOR_DB
    return dynamic_range.min_db + dynamic_range.span_db * percent / 100

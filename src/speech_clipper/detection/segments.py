"""Speech interval building, padding and silence merging."""

import math
from collections.abc import Iterable, Sequence

from ..logging_utils import get_logger
from .config import INTERVAL_PRECISION
from .models import FrameAnalysis, Interval, SilenceMergeStrategy

logger = get_logger(__name__)


def _interval(start: float, end: float) -> Interval | None:
    """Build an interval, or None when it would be empty."""
    if end <= start:
        return None
    return Interval(start=start, end=end)


def round_time(value: float, precision: int = INTERVAL_PRECISION) -> float:
    """Round a time half-up to ``precision`` decimal places."""
    scale = 10**precision
    return math.floor(value * scale + 0.5) / scale


def build_raw_intervals(
    analyses: Sequence[FrameAnalysis],
    volume_threshold: float,
    use_smoothed_flag: bool = False,
    trailing_end: float | None = None,
) -> list[Interval]:
    """
    Turn per-frame speech decisions into raw speech intervals.

    By default the decision is re-derived from each frame's loudness
    percentage, so the smoothing pass does not move segment boundaries.
    Set ``use_smoothed_flag`` to segment on the smoothed ``is_speech`` flag
    instead.

    Args:
        analyses: Frame analyses in timestamp order
        volume_threshold: Loudness percentage threshold
        use_smoothed_flag: Segment on ``is_speech`` rather than the percentage
        trailing_end: End time for a segment still open after the last frame;
            defaults to the last frame's timestamp

    Returns:
        Raw speech intervals in ascending order
    """
    intervals: list[Interval] = []
    segment_start: float | None = None

    for analysis in analyses:
        if use_smoothed_flag:
            is_speech = analysis.is_speech
        else:
            is_speech = analysis.loudness_percent >= volume_threshold

        if is_speech and segment_start is None:
            segment_start = analysis.timestamp
        elif not is_speech and segment_start is not None:
            interval = _interval(segment_start, analysis.timestamp)
            if interval is not None:
                intervals.append(interval)
            segment_start = None

    if segment_start is not None and analyses:
        end = trailing_end if trailing_end is not None else analyses[-1].timestamp
        interval = _interval(segment_start, end)
        if interval is not None:
            intervals.append(interval)
        else:
            logger.debug(
                f"Dropping zero-length trailing segment at {segment_start:.2f}s"
            )

    return intervals


def pad_intervals(
    intervals: Iterable[Interval], padding_ms: float, total_duration: float
) -> list[Interval]:
    """
    Widen every interval by ``padding_ms`` on both sides, clamped to the clip.

    Args:
        intervals: Speech intervals
        padding_ms: Padding in milliseconds
        total_duration: Clip duration in seconds

    Returns:
        Padded intervals
    """
    padding = padding_ms / 1000
    padded = []
    for interval in intervals:
        start = max(0.0, interval.start - padding)
        end = min(interval.end + padding, total_duration)
        padded_interval = _interval(start, end)
        if padded_interval is not None:
            padded.append(padded_interval)
    return padded


def round_intervals(intervals: Iterable[Interval]) -> list[Interval]:
    """Round interval bounds to two decimals, dropping any that collapse."""
    rounded = []
    for interval in intervals:
        rounded_interval = _interval(round_time(interval.start), round_time(interval.end))
        if rounded_interval is not None:
            rounded.append(rounded_interval)
    return rounded


def union_overlapping(intervals: Iterable[Interval]) -> list[Interval]:
    """
    Sort intervals and merge any that overlap.

    Touching intervals (one ends where the next starts) stay separate.
    """
    merged: list[Interval] = []
    for interval in sorted(intervals, key=lambda i: (i.start, i.end)):
        if merged and interval.start < merged[-1].end:
            last = merged[-1]
            merged[-1] = Interval(start=last.start, end=max(last.end, interval.end))
        else:
            merged.append(interval)
    return merged


def silence_gaps(speech: Sequence[Interval], total_duration: float) -> list[Interval]:
    """
    Complement of sorted, non-overlapping speech intervals within the clip.

    Args:
        speech: Speech intervals in ascending order
        total_duration: Clip duration in seconds

    Returns:
        Silence gaps in ascending order; the whole clip when there is no speech
    """
    if not speech:
        whole = _interval(0.0, total_duration)
        return [whole] if whole is not None else []

    gaps = []
    if speech[0].start > 0:
        gaps.append(Interval(start=0.0, end=speech[0].start))

    for current, following in zip(speech, speech[1:]):
        if following.start > current.end:
            gaps.append(Interval(start=current.end, end=following.start))

    if speech[-1].end < total_duration:
        gaps.append(Interval(start=speech[-1].end, end=total_duration))

    return gaps


def speech_from_gaps(gaps: Sequence[Interval], total_duration: float) -> list[Interval]:
    """
    Complement of sorted silence gaps within the clip.

    Args:
        gaps: Silence gaps in ascending order
        total_duration: Clip duration in seconds

    Returns:
        Speech intervals in ascending order; the whole clip when there are no gaps
    """
    # Silence and speech partition the clip the same way in both directions
    return silence_gaps(gaps, total_duration)


def _span_ms(start: float, end: float) -> float:
    """Milliseconds between two times, free of float subtraction noise."""
    return round((end - start) * 1000, 6)


def fill_short_gaps(
    gaps: Sequence[Interval], silence_padding_ms: float, total_duration: float
) -> list[Interval]:
    """
    Drop interior silence gaps no longer than ``silence_padding_ms``.

    Leading and trailing silence is kept whatever its length; a dropped
    interior gap becomes part of the speech on either side of it.
    """
    kept = []
    for gap in gaps:
        is_edge = gap.start <= 0 or gap.end >= total_duration
        if is_edge or _span_ms(gap.start, gap.end) > silence_padding_ms:
            kept.append(gap)
        else:
            logger.trace(
                f"Filling {gap.duration * 1000:.0f}ms silence gap at {gap.start:.2f}s"
            )
    return kept


def collapse_short_speech(
    gaps: Sequence[Interval], silence_padding_ms: float
) -> list[Interval]:
    """
    Merge consecutive silence gaps separated by short speech.

    Walks the gaps in order and merges each into the running gap when the
    speech between them lasts no more than ``silence_padding_ms``.
    """
    if not gaps:
        return []

    merged = []
    current = gaps[0]
    for following in gaps[1:]:
        separation_ms = _span_ms(current.end, following.start)
        if separation_ms <= silence_padding_ms:
            current = Interval(start=current.start, end=following.end)
        else:
            merged.append(current)
            current = following
    merged.append(current)
    return merged


def merge_silence(
    speech: Sequence[Interval],
    total_duration: float,
    silence_padding_ms: float,
    strategy: SilenceMergeStrategy = SilenceMergeStrategy.FILL_SHORT_GAPS,
) -> list[Interval]:
    """
    Merge silence gaps and re-invert them into speech intervals.

    Args:
        speech: Padded, rounded speech intervals
        total_duration: Clip duration in seconds
        silence_padding_ms: Merge threshold in milliseconds
        strategy: How silence gaps are merged

    Returns:
        Speech intervals after merging. If nothing is left after re-inverting,
        the input intervals are returned unchanged.
    """
    ordered = union_overlapping(speech)
    gaps = silence_gaps(ordered, total_duration)

    if strategy is SilenceMergeStrategy.COLLAPSE_SHORT_SPEECH:
        merged_gaps = collapse_short_speech(gaps, silence_padding_ms)
    else:
        merged_gaps = fill_short_gaps(gaps, silence_padding_ms, total_duration)

    logger.debug(
        f"Silence merge ({strategy.value}): {len(gaps)} gaps -> {len(merged_gaps)} gaps"
    )

    result = speech_from_gaps(merged_gaps, total_duration)
    if not result:
        return ordered
    return result


def finalize_intervals(intervals: Iterable[Interval]) -> list[Interval]:
    """Round, sort and de-overlap the final intervals."""
    return union_overlapping(round_intervals(intervals))


def pad_and_merge(
    raw: Sequence[Interval],
    total_duration: float,
    speech_padding_ms: float,
    silence_padding_ms: float,
    strategy: SilenceMergeStrategy = SilenceMergeStrategy.FILL_SHORT_GAPS,
) -> list[Interval]:
    """
    Run the padding, rounding and silence-merge stages over raw intervals.

    Args:
        raw: Raw speech intervals
        total_duration: Clip duration in seconds
        speech_padding_ms: Padding around each raw interval
        silence_padding_ms: Silence merge threshold, 0 disables merging
        strategy: Silence merge strategy

    Returns:
        Final sorted, non-overlapping intervals rounded to two decimals
    """
    padded = pad_intervals(raw, speech_padding_ms, total_duration)
    rounded = round_intervals(padded)

    merged = rounded
    if silence_padding_ms > 0:
        merged = merge_silence(rounded, total_duration, silence_padding_ms, strategy)

    return finalize_intervals(merged)

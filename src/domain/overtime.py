"""
Overtime Segmenter Module

Splits an explicitly declared overtime interval into tiered pay segments
(free, next, beyond) after removing break time that falls inside it.
"""

from typing import List, Optional, Sequence, Tuple

from .entities import OvertimeSegment, OvertimeTiers, TimeInterval
from .time_utils import MINUTES_PER_DAY
from infrastructure.logger import get_logger

logger = get_logger("Overtime")


def _overlap(start: int, end: int, other_start: int, other_end: int) -> int:
    """Length of the intersection of [start, end) and [other_start, other_end)."""
    return max(0, min(end, other_end) - max(start, other_start))


def break_overlap_minutes(
    overtime_start: int,
    overtime_end: int,
    break_interval: TimeInterval
) -> int:
    """
    Minutes of one break that fall inside the overtime window.

    A break after midnight is also matched one day later so it can clip an
    overnight overtime window.
    """
    break_start, break_end = break_interval.resolve()
    overlap = _overlap(overtime_start, overtime_end, break_start, break_end)
    if overtime_end > MINUTES_PER_DAY:
        overlap += _overlap(
            overtime_start, overtime_end,
            break_start + MINUTES_PER_DAY, break_end + MINUTES_PER_DAY
        )
    return overlap


def net_overtime_minutes(
    overtime_interval: TimeInterval,
    breaks: Sequence[TimeInterval]
) -> int:
    """Declared overtime span minus every break's clipped overlap."""
    start, end = overtime_interval.resolve()
    total = end - start
    for break_interval in breaks:
        overlap = break_overlap_minutes(start, end, break_interval)
        if overlap:
            logger.debug(f"Break {break_interval} overlaps overtime by {overlap} minutes")
            total -= overlap
    return total


def calculate_overtime_segments(
    overtime_interval: Optional[TimeInterval],
    breaks: Sequence[TimeInterval],
    tiers: Optional[OvertimeTiers]
) -> List[OvertimeSegment]:
    """
    Allocate declared overtime to free / next / beyond tiers.

    Breaks are assumed not to overlap each other; overlaps are summed per
    break without deduplication.

    Args:
        overtime_interval: Declared overtime, None when the record has none
        breaks: Lunch and other breaks of the record
        tiers: Tier configuration of the shift, None when not configured

    Returns:
        Segments in tier order; tiers that receive no minutes are omitted
    """
    if tiers is None or overtime_interval is None:
        return []

    total = net_overtime_minutes(overtime_interval, breaks)
    logger.debug(f"Overtime {overtime_interval}: {total} minutes after breaks")
    if total <= 0:
        return []

    segments: List[OvertimeSegment] = []
    remaining = total
    for allowance, multiplier in (
        (tiers.free_minutes, 1.0),
        (tiers.next_minutes, tiers.next_multiplier),
    ):
        allocated = min(remaining, max(allowance, 0))
        if allocated > 0:
            segments.append(OvertimeSegment(allocated, multiplier))
        remaining -= allocated

    if remaining > 0:
        segments.append(OvertimeSegment(remaining, tiers.beyond_multiplier))

    logger.debug(f"Overtime segments: {segments}")
    return segments


def segment_spans(
    overtime_start: int,
    segments: Sequence[OvertimeSegment]
) -> List[Tuple[int, int]]:
    """Wall-clock (start, end) minutes of each segment, walking forward from the start."""
    spans = []
    cursor = overtime_start
    for segment in segments:
        spans.append((cursor, cursor + segment.duration_minutes))
        cursor += segment.duration_minutes
    return spans

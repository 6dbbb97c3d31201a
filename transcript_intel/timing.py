"""Timestamp conversion, formatting, and time-range helpers.

All times inside the pipeline are integer milliseconds from the start of the
recording. Vendor payloads use float seconds and are converted once at the
boundary with seconds_to_ms.
"""

import math
from typing import Iterable, List, Tuple

TimeRange = Tuple[int, int]


def seconds_to_ms(seconds: float) -> int:
    """Convert seconds to milliseconds, rounding half up."""
    return int(math.floor(seconds * 1000 + 0.5))


def ms_to_seconds(ms: int) -> float:
    return ms / 1000


def format_timestamp(ms: int) -> str:
    """Format as MM:SS.mmm, or HH:MM:SS.mmm once past the first hour."""
    total_seconds = ms // 1000
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60
    millis = ms % 1000

    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{seconds:02d}.{millis:03d}"
    return f"{minutes:02d}:{seconds:02d}.{millis:03d}"


def format_duration(ms: int) -> str:
    """Human-readable duration, e.g. '1h 2m 3s', '2m 3s', '3s'."""
    total_seconds = ms // 1000
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60

    if hours > 0:
        return f"{hours}h {minutes}m {seconds}s"
    if minutes > 0:
        return f"{minutes}m {seconds}s"
    return f"{seconds}s"


def calculate_duration(start_ms: int, end_ms: int) -> int:
    return max(0, end_ms - start_ms)


def time_ranges_overlap(start1: int, end1: int, start2: int, end2: int) -> bool:
    return start1 < end2 and end1 > start2


def merge_time_ranges(ranges: Iterable[TimeRange]) -> List[TimeRange]:
    """Coalesce overlapping or touching (start, end) ranges.

    The input is not modified; the result is sorted by start.
    """
    sorted_ranges = sorted(ranges, key=lambda r: r[0])
    if not sorted_ranges:
        return []

    merged: List[TimeRange] = [sorted_ranges[0]]
    for start, end in sorted_ranges[1:]:
        last_start, last_end = merged[-1]
        if start <= last_end:
            merged[-1] = (last_start, max(last_end, end))
        else:
            merged.append((start, end))
    return merged


def calculate_speaking_time(segments: Iterable) -> int:
    """Total covered time of segments, counting overlapping speech once."""
    merged = merge_time_ranges((s.start_ms, s.end_ms) for s in segments)
    return sum(end - start for start, end in merged)


def find_silence_gaps(
    segments: Iterable,
    total_duration_ms: int,
    min_gap_ms: int = 1000,
) -> List[dict]:
    """Find silent stretches between (and around) segments.

    Returns dicts with start_ms, end_ms and duration_ms.
    """
    sorted_segs = sorted(segments, key=lambda s: s.start_ms)
    if not sorted_segs:
        return [{"start_ms": 0, "end_ms": total_duration_ms, "duration_ms": total_duration_ms}]

    gaps: List[dict] = []

    first_start = sorted_segs[0].start_ms
    if first_start > min_gap_ms:
        gaps.append({"start_ms": 0, "end_ms": first_start, "duration_ms": first_start})

    for current, following in zip(sorted_segs, sorted_segs[1:]):
        gap = following.start_ms - current.end_ms
        if gap >= min_gap_ms:
            gaps.append({
                "start_ms": current.end_ms,
                "end_ms": following.start_ms,
                "duration_ms": gap,
            })

    last_end = sorted_segs[-1].end_ms
    if total_duration_ms - last_end > min_gap_ms:
        gaps.append({
            "start_ms": last_end,
            "end_ms": total_duration_ms,
            "duration_ms": total_duration_ms - last_end,
        })

    return gaps

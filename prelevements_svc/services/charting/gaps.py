"""
Gap detection for time series points.

When two consecutive points are further apart than the expected sampling
interval times a multiplier, a null point is inserted between them so the
chart line breaks instead of bridging missing data.
"""

import math
from typing import Any, Dict, List, Optional, Sequence

from core.config import settings
from core.datetime_utils import to_datetime
from services.frequency import parse_frequency

MS_PER_SECOND = 1000
MS_PER_MINUTE = 60 * MS_PER_SECOND
MS_PER_HOUR = 60 * MS_PER_MINUTE
MS_PER_DAY = 24 * MS_PER_HOUR

# Variable-length units use fixed approximations
UNIT_MS = {
    'second': MS_PER_SECOND,
    'minute': MS_PER_MINUTE,
    'hour': MS_PER_HOUR,
    'day': MS_PER_DAY,
    'week': 7 * MS_PER_DAY,
    'month': 30 * MS_PER_DAY,
    'quarter': 90 * MS_PER_DAY,
    'year': 365 * MS_PER_DAY,
}

GAP_POINT_POSITION_RATIO = 0.1


def parse_frequency_to_ms(frequency: Optional[str]) -> Optional[int]:
    """
    Convert a frequency string to its interval in milliseconds.

    Example:
        >>> parse_frequency_to_ms("15 minutes")
        900000
    """
    parsed = parse_frequency(frequency)
    if parsed is None:
        return None
    count, unit = parsed
    return count * UNIT_MS[unit]


def calculate_gap_threshold(frequency_ms: Optional[float], multiplier: Optional[float] = None) -> float:
    """
    Minimum distance (ms) between two points for the gap to be significant.

    Without a positive interval, gap detection is disabled (infinite threshold).
    """
    if not frequency_ms or frequency_ms <= 0:
        return math.inf
    if multiplier is None:
        multiplier = settings.series_gap_multiplier
    return frequency_ms * multiplier


def insert_gap_points(
    data: Optional[Sequence[Dict[str, Any]]],
    frequency: Optional[str],
    multiplier: Optional[float] = None,
) -> Optional[List[Dict[str, Any]]]:
    """
    Insert a null point after every significant gap.

    The gap point sits at 10% of the gap, after the earlier point, and is
    flagged ``is_gap_point``. Data is returned unchanged when it is empty or
    the frequency cannot be parsed.

    Args:
        data: Points sorted by x, each a mapping with ``x`` and ``y``
        frequency: Expected sampling interval, e.g. "1 day"
        multiplier: Gap multiplier (defaults to settings.series_gap_multiplier)
    """
    if not data:
        return data

    frequency_ms = parse_frequency_to_ms(frequency)
    if not frequency_ms:
        return data

    threshold_ms = calculate_gap_threshold(frequency_ms, multiplier)
    result: List[Dict[str, Any]] = []

    for index, current in enumerate(data):
        result.append({**current, 'is_gap_point': False})
        if index == len(data) - 1:
            continue

        current_x = to_datetime(current.get('x'))
        next_x = to_datetime(data[index + 1].get('x'))
        if current_x is None or next_x is None:
            continue

        gap = next_x - current_x
        if gap.total_seconds() * 1000 > threshold_ms:
            result.append({
                'x': current_x + gap * GAP_POINT_POSITION_RATIO,
                'y': None,
                'is_gap_point': True,
            })

    return result


def apply_gap_detection_to_series(
    series: Optional[Sequence[Dict[str, Any]]],
    frequency: Optional[str],
    multiplier: Optional[float] = None,
) -> Optional[List[Dict[str, Any]]]:
    """Apply insert_gap_points to the ``data`` of every series sharing one frequency."""
    if series is None or not frequency:
        return series

    return [
        {**item, 'data': insert_gap_points(item.get('data'), frequency, multiplier)}
        for item in series
    ]

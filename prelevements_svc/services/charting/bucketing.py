"""
Time bucketing of chart series for display.

A display resolution is picked from the visible range and the chart width,
then each series is aggregated into buckets of that resolution, never finer
than its own native sampling. Cumulative series (volumes) are summed per
bucket; instant series (flows, levels) are averaged. Every bucket also keeps
min, max and count for band rendering, plus the merged remarks of its points.
"""

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from core.datetime_utils import to_datetime
from core.value_utils import coerce_numeric_value
from services.charting.gaps import MS_PER_DAY, MS_PER_HOUR, MS_PER_MINUTE, parse_frequency_to_ms
from services.remarks import Meta, build_meta

logger = logging.getLogger(__name__)

# Ordered from finest to coarsest
RESOLUTION_MS = {
    '15m': 15 * MS_PER_MINUTE,
    '1h': MS_PER_HOUR,
    '6h': 6 * MS_PER_HOUR,
    '1d': MS_PER_DAY,
    '1M': 30 * MS_PER_DAY,
    '1Q': 90 * MS_PER_DAY,
    '1Y': 365 * MS_PER_DAY,
}
RESOLUTION_ORDER = list(RESOLUTION_MS)
FINEST_RESOLUTION = RESOLUTION_ORDER[0]

RESOLUTION_TO_FREQUENCY = {
    '15m': '15 minutes',
    '1h': '1 hour',
    '6h': '6 hours',
    '1d': '1 day',
    '1M': '1 month',
    '1Q': '1 quarter',
    '1Y': '1 year',
}

# Coarse resolutions need a range long enough to hold several buckets
MIN_RANGE_MS = {
    '1M': 90 * MS_PER_DAY,
    '1Q': 270 * MS_PER_DAY,
    '1Y': 1095 * MS_PER_DAY,
}

DEFAULT_WIDTH_PX = 1200
MIN_POINTS = 12
PX_PER_POINT = 15

KIND_INSTANT = 'instant'
KIND_CUMULATIVE = 'cumulative'

POINT_DATE_KEYS = ('t', 'x', 'timestamp', 'date')


# =============================================================================
# DATA STRUCTURES
# =============================================================================

@dataclass
class TimeRange:
    """Visible range of a chart, both bounds included."""
    start: datetime
    end: datetime


@dataclass
class BucketedPoint:
    """Aggregate of the points falling in one bucket."""
    t: datetime
    value: float
    min: float
    max: float
    count: int
    meta: Optional[Meta] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            't': self.t,
            'value': self.value,
            'min': self.min,
            'max': self.max,
            'count': self.count,
        }
        if self.meta is not None:
            data['meta'] = self.meta.to_dict()
        return data


@dataclass
class BucketedSeries:
    """One series aggregated at its bucket resolution."""
    id: Any
    bucket_resolution: str
    data: List[BucketedPoint] = field(default_factory=list)
    meta: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'data': [point.to_dict() for point in self.data],
            'bucket_resolution': self.bucket_resolution,
            'meta': dict(self.meta),
        }


@dataclass
class BucketingResult:
    """Bucketed series and the resolution picked for the whole chart."""
    display_resolution: str
    bucketed_series: List[BucketedSeries] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'bucketed_series': [series.to_dict() for series in self.bucketed_series],
            'display_resolution': self.display_resolution,
        }


# =============================================================================
# HELPERS
# =============================================================================

def _read(item: Any, name: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def _point_date(point: Any) -> Optional[datetime]:
    for key in POINT_DATE_KEYS:
        raw = _read(point, key)
        if raw is not None:
            return to_datetime(raw)
    return None


def _point_value(point: Any) -> Optional[float]:
    raw = _read(point, 'value')
    if raw is None:
        raw = _read(point, 'y')
    return coerce_numeric_value(raw)


def _point_comment(point: Any) -> Optional[str]:
    comment = _read(_read(point, 'meta'), 'comment')
    if isinstance(comment, str) and comment.strip():
        return comment.strip()
    return None


def _known_resolution(resolution: Optional[str]) -> str:
    return resolution if resolution in RESOLUTION_MS else FINEST_RESOLUTION


def resolution_to_ms(resolution: Optional[str]) -> int:
    """Bucket length of a resolution; unknown resolutions count as the finest."""
    return RESOLUTION_MS[_known_resolution(resolution)]


def get_available_resolutions(range_ms: Optional[float] = None) -> List[str]:
    """Resolutions usable for a range; all of them when the range is unknown."""
    if not range_ms or range_ms <= 0:
        return list(RESOLUTION_ORDER)

    return [
        resolution for resolution in RESOLUTION_ORDER
        if range_ms > MIN_RANGE_MS.get(resolution, 0)
    ]


def pick_resolution_by_ms(target_ms: Optional[float], range_ms: Optional[float] = None) -> str:
    """
    Pick the finest available resolution whose bucket holds ``target_ms``.

    Falls back to the coarsest available resolution, and to the finest one
    when the target is missing or not positive.
    """
    if target_ms is None or not math.isfinite(target_ms) or target_ms <= 0:
        return FINEST_RESOLUTION

    available = get_available_resolutions(range_ms)
    for resolution in available:
        if RESOLUTION_MS[resolution] >= target_ms:
            return resolution

    return available[-1] if available else RESOLUTION_ORDER[-1]


def resolution_from_frequency(frequency: Optional[str]) -> Optional[str]:
    """
    Map a sampling frequency to the closest resolution not finer than it.

    Example:
        >>> resolution_from_frequency("1 quarter")
        '1Q'
    """
    frequency_ms = parse_frequency_to_ms(frequency)
    if not frequency_ms:
        return None
    return pick_resolution_by_ms(frequency_ms)


def resolution_to_frequency(resolution: Optional[str]) -> str:
    """Frequency string of a resolution, e.g. '6h' -> '6 hours'."""
    return RESOLUTION_TO_FREQUENCY[_known_resolution(resolution)]


def normalize_time_range(time_range: Any, series: Optional[Sequence[Any]] = None) -> Optional[TimeRange]:
    """
    Return the requested range when it is valid, else the span of the data.

    Args:
        time_range: TimeRange, mapping or object with ``start`` and ``end``
        series: Series whose ``data`` points bound the fallback range

    Returns:
        TimeRange, or None when neither source gives a non-empty range
    """
    if time_range is not None:
        start = to_datetime(_read(time_range, 'start'))
        end = to_datetime(_read(time_range, 'end'))
        if start is not None and end is not None and end > start:
            return TimeRange(start=start, end=end)

    dates = [
        date
        for item in series or []
        for date in (_point_date(point) for point in (_read(item, 'data') or []))
        if date is not None
    ]
    if dates and max(dates) > min(dates):
        return TimeRange(start=min(dates), end=max(dates))
    return None


# =============================================================================
# RESOLUTION SELECTION
# =============================================================================

def choose_display_resolution(range_start: Any, range_end: Any, width_px: int = DEFAULT_WIDTH_PX) -> str:
    """
    Pick the chart resolution so the range fits the available width.

    Each point gets about ``PX_PER_POINT`` pixels, with at least
    ``MIN_POINTS`` points whatever the width.

    Example:
        >>> choose_display_resolution("2024-01-01", "2024-01-02")
        '1h'
    """
    start = to_datetime(range_start)
    end = to_datetime(range_end)
    if start is None or end is None or end <= start:
        return FINEST_RESOLUTION

    range_ms = (end - start).total_seconds() * 1000
    max_points = max(MIN_POINTS, int(width_px // PX_PER_POINT))
    target_ms = range_ms / max_points
    return pick_resolution_by_ms(max(target_ms, RESOLUTION_MS[FINEST_RESOLUTION]), range_ms)


def choose_series_bucket_resolution(display_resolution: Optional[str], native_resolution: Optional[str]) -> str:
    """Bucket a series at the display resolution, but never finer than its native one."""
    effective_ms = max(resolution_to_ms(display_resolution), resolution_to_ms(native_resolution))
    return pick_resolution_by_ms(effective_ms)


def floor_to_bucket(value: Any, resolution: Optional[str]) -> Optional[datetime]:
    """
    Start of the bucket containing ``value``.

    Month, quarter and year buckets follow the calendar. Unknown resolutions
    are treated as the finest one.

    Example:
        >>> floor_to_bucket(datetime(2024, 5, 17, 10, 23), '6h')
        datetime.datetime(2024, 5, 17, 6, 0)
    """
    moment = to_datetime(value)
    if moment is None:
        return None

    day_start = datetime(moment.year, moment.month, moment.day)
    resolution = _known_resolution(resolution)

    if resolution == '15m':
        return day_start.replace(hour=moment.hour, minute=moment.minute // 15 * 15)
    if resolution == '1h':
        return day_start.replace(hour=moment.hour)
    if resolution == '6h':
        return day_start.replace(hour=moment.hour // 6 * 6)
    if resolution == '1d':
        return day_start
    if resolution == '1M':
        return datetime(moment.year, moment.month, 1)
    if resolution == '1Q':
        return datetime(moment.year, (moment.month - 1) // 3 * 3 + 1, 1)
    return datetime(moment.year, 1, 1)


# =============================================================================
# AGGREGATION
# =============================================================================

class _BucketAccumulator:
    def __init__(self, start: datetime):
        self.start = start
        self.count = 0
        self.total = 0.0
        self.min = float('inf')
        self.max = float('-inf')
        self.comments: List[str] = []

    def add(self, value: float, comment: Optional[str]) -> None:
        self.count += 1
        self.total += value
        self.min = min(self.min, value)
        self.max = max(self.max, value)
        if comment is not None:
            self.comments.append(comment)

    def to_point(self, kind: str) -> BucketedPoint:
        return BucketedPoint(
            t=self.start,
            value=self.total if kind == KIND_CUMULATIVE else self.total / self.count,
            min=self.min,
            max=self.max,
            count=self.count,
            meta=build_meta({'remarks': self.comments}),
        )


def aggregate_series_into_buckets(
    points: Optional[Sequence[Any]],
    bucket_resolution: Optional[str],
    time_range: Optional[TimeRange] = None,
    kind: str = KIND_INSTANT,
) -> List[BucketedPoint]:
    """
    Aggregate points into buckets sorted by start.

    Points are mappings or objects dated by ``t``, ``x``, ``timestamp`` or
    ``date`` with a ``value`` (or ``y``). Points without a date or a numeric
    value, or outside ``time_range``, are skipped.

    Args:
        points: Series points in any order
        bucket_resolution: Resolution id, e.g. '1d'
        time_range: Optional inclusive bounds
        kind: 'cumulative' sums each bucket, anything else averages it

    Returns:
        One BucketedPoint per non-empty bucket; bucket remarks are deduplicated
        and capped like sample remarks
    """
    if not points:
        return []

    resolution = _known_resolution(bucket_resolution)
    buckets: Dict[datetime, _BucketAccumulator] = {}

    for point in points:
        date = _point_date(point)
        value = _point_value(point)
        if date is None or value is None:
            continue
        if time_range is not None and not time_range.start <= date <= time_range.end:
            continue

        start = floor_to_bucket(date, resolution)
        accumulator = buckets.get(start)
        if accumulator is None:
            accumulator = _BucketAccumulator(start)
            buckets[start] = accumulator
        accumulator.add(value, _point_comment(point))

    return [buckets[start].to_point(kind) for start in sorted(buckets)]


def bucket_series_collection(
    series: Optional[Sequence[Any]],
    time_range: Any = None,
    width_px: int = DEFAULT_WIDTH_PX,
) -> BucketingResult:
    """
    Bucket every series of a chart for display.

    The native resolution of a series comes from its ``meta``:
    ``native_resolution``, else the resolution of ``native_frequency`` or
    ``frequency``, else the display resolution. ``meta.kind`` selects sum
    ('cumulative') or mean ('instant', the default).

    Args:
        series: Mappings or objects with ``id``, ``data`` and optional ``meta``
        time_range: Requested range; the span of the data is used when missing
        width_px: Chart width in pixels

    Returns:
        BucketingResult with the display resolution and one BucketedSeries per
        input series, in input order
    """
    normalized_range = normalize_time_range(time_range, series)
    if normalized_range is not None:
        display_resolution = choose_display_resolution(normalized_range.start, normalized_range.end, width_px)
    else:
        display_resolution = FINEST_RESOLUTION

    bucketed: List[BucketedSeries] = []
    for item in series or []:
        meta = _read(item, 'meta')
        meta = dict(meta) if isinstance(meta, Mapping) else {}

        native_resolution = (
            meta.get('native_resolution')
            or resolution_from_frequency(meta.get('native_frequency') or meta.get('frequency'))
            or display_resolution
        )
        bucket_resolution = choose_series_bucket_resolution(display_resolution, native_resolution)

        bucketed.append(BucketedSeries(
            id=_read(item, 'id'),
            bucket_resolution=bucket_resolution,
            data=aggregate_series_into_buckets(
                _read(item, 'data') or [],
                bucket_resolution,
                time_range=normalized_range,
                kind=meta.get('kind') or KIND_INSTANT,
            ),
            meta=meta,
        ))

    logger.debug("Bucketed series", extra={
        'series': len(bucketed),
        'display_resolution': display_resolution,
    })
    return BucketingResult(display_resolution=display_resolution, bucketed_series=bucketed)

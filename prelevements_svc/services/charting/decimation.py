"""
Point decimation for dense chart series.

Series longer than the decimation target are reduced with the
Largest-Triangle-Three-Buckets algorithm, which keeps the visual shape of
the line. Null points (line breaks) and annotated points are always kept.
Decimation runs on the input series, before alignment.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from core.config import settings
from core.datetime_utils import to_datetime
from core.logging_config import WarningSink, resolve_sink
from core.value_utils import coerce_numeric_value
from schemas.series import SeriesInput
from services.charting.alignment import validate_series_input

logger = logging.getLogger(__name__)

# (index in the input, x in seconds, y)
NumericPoint = Tuple[int, float, float]


@dataclass
class DecimationResult:
    """Decimated series, and whether any of them lost points."""
    series: List[SeriesInput] = field(default_factory=list)
    did_decimate: bool = False


def _average(points: Sequence[NumericPoint], position: int) -> float:
    if not points:
        return 0.0
    return sum(point[position] for point in points) / len(points)


def largest_triangle_three_buckets(points: Sequence[NumericPoint], threshold: int) -> List[int]:
    """
    Select ``threshold`` points keeping the shape of the series.

    The first and last points are always kept. The points in between are split
    into ``threshold - 2`` buckets, and each bucket keeps the point forming the
    largest triangle with the previously kept point and the average of the
    next bucket.

    Returns:
        Sorted input indices of the kept points; every index when the series
        is already short enough
    """
    if len(points) <= threshold or threshold <= 2:
        return [point[0] for point in points]

    sampled = [points[0][0]]
    bucket_size = (len(points) - 2) / (threshold - 2)
    previous = points[0]

    for bucket in range(threshold - 2):
        next_start = int((bucket + 1) * bucket_size) + 1
        next_end = min(int((bucket + 2) * bucket_size) + 1, len(points))
        next_bucket = points[next_start:next_end]
        average_x = _average(next_bucket, 1)
        average_y = _average(next_bucket, 2)

        start = int(bucket * bucket_size) + 1
        end = min(int((bucket + 1) * bucket_size) + 1, len(points) - 1)

        best_area = -1.0
        best_point = None
        for candidate in points[start:end]:
            area = abs(
                (previous[1] - average_x) * (candidate[2] - previous[2])
                - (previous[1] - candidate[1]) * (average_y - previous[2])
            ) / 2
            if area > best_area:
                best_area = area
                best_point = candidate

        if best_point is not None:
            sampled.append(best_point[0])
            previous = best_point

    sampled.append(points[-1][0])
    return sorted(set(sampled))


def _read(item: Any, name: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def _is_annotated(meta: Any) -> bool:
    return bool(meta) and bool(_read(meta, 'comment') or _read(meta, 'alert'))


def decimate_points(points: Sequence[Any], threshold: Optional[int] = None) -> Tuple[List[int], bool]:
    """
    Choose which points of an x-sorted series to keep.

    Args:
        points: Points with ``x``, ``y`` and optional ``meta``
        threshold: Target number of numeric points (defaults to
            settings.series_decimation_target)

    Returns:
        (sorted indices to keep, whether any point was dropped)
    """
    if threshold is None:
        threshold = settings.series_decimation_target

    every_index = list(range(len(points)))
    if len(points) <= threshold:
        return every_index, False

    keep = set()
    numeric: List[NumericPoint] = []
    origin = None

    for index, point in enumerate(points):
        x = to_datetime(_read(point, 'x'))
        y = coerce_numeric_value(_read(point, 'y'))
        if x is None or y is None:
            keep.add(index)
            continue

        if origin is None:
            origin = x
        numeric.append((index, (x - origin).total_seconds(), y))
        if _is_annotated(_read(point, 'meta')):
            keep.add(index)

    if len(numeric) <= threshold:
        return every_index, False

    keep.update(largest_triangle_three_buckets(numeric, threshold))
    return sorted(keep), True


def _sort_key(point: Any) -> Tuple[bool, datetime]:
    x = to_datetime(point.x)
    return (x is None, x if x is not None else datetime.min)


def decimate_series(
    series: Optional[Iterable[Any]],
    target: Optional[int] = None,
    max_points: Optional[int] = None,
    on_warning: Optional[WarningSink] = None,
) -> DecimationResult:
    """
    Decimate every series of a chart.

    Points are sorted by x before decimation; points whose x cannot be parsed
    are kept at the end and left to the aligner to report.

    Args:
        series: SeriesInput objects or mappings accepted by align_series_data
        target: Points kept per decimated series (defaults to
            settings.series_decimation_target)
        max_points: A series longer than this flags the chart as decimated
            even if it kept all its points (defaults to
            settings.series_decimation_max_points)
        on_warning: Diagnostic sink for skipped series

    Returns:
        DecimationResult with validated series in input order
    """
    warn = resolve_sink(on_warning, logger)
    if target is None:
        target = settings.series_decimation_target
    if max_points is None:
        max_points = settings.series_decimation_max_points

    result = DecimationResult()
    for raw in series or []:
        item = validate_series_input(raw, warn)
        if item is None:
            continue

        points = sorted(item.data, key=_sort_key)
        indices, dropped = decimate_points(points, target)
        if dropped or len(points) > max_points:
            result.did_decimate = True

        kept = [points[index] for index in indices]
        result.series.append(item.model_copy(update={'data': kept}))
        if dropped:
            logger.debug("Series decimated", extra={
                'series': item.id,
                'points': len(points),
                'kept': len(kept),
            })

    return result

"""
Threshold classification of aligned series into line segments.

A threshold is a static number, None, or a list of {x, y} points linearly
interpolated along the timeline (clamped outside the first and last point).
Each aligned series is split wherever the classification of its points
changes, so a segment above the threshold can be drawn in another color.
When threshold crossings are inserted first, the two segments on each side
of a crossing both end on the crossing point so the line stays continuous.
Segments of one series never share a real point: crossing points are the
only shared indices, and they are listed in ``synthetic_indices``.
"""

import math
import numbers
from bisect import bisect_right
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Tuple, Union

from core.datetime_utils import to_datetime
from core.exceptions import InvalidThresholdError
from core.value_utils import coerce_numeric_value
from services.charting.alignment import AlignedSery, AlignmentResult

SEGMENT_ABOVE = 'above'
SEGMENT_BELOW = 'below'
SEGMENT_DEFAULT = 'default'

DEFAULT_ABOVE_COLOR = '#CE0500'
DEFAULT_THRESHOLD_COLOR = '#B34000'

ThresholdEvaluator = Callable[[datetime], Optional[float]]


@dataclass
class ChartSeries:
    """
    A renderable chart series.

    ``original_id`` links segments, thresholds and legend stubs back to the
    parameter series they were derived from.
    """
    id: str
    original_id: Union[str, int]
    data: List[Optional[float]]
    axis_key: str
    label: Optional[str] = None
    color: Optional[str] = None
    classification: Optional[str] = None
    type: Optional[str] = None
    curve: Optional[str] = None
    area: bool = False
    stack: Optional[str] = None
    synthetic_indices: List[int] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'id': self.id,
            'original_id': self.original_id,
            'label': self.label,
            'color': self.color,
            'axis_key': self.axis_key,
            'data': list(self.data),
        }
        for name in ('classification', 'type', 'curve', 'stack'):
            value = getattr(self, name)
            if value is not None:
                result[name] = value
        if self.area:
            result['area'] = True
        if self.synthetic_indices:
            result['synthetic_indices'] = list(self.synthetic_indices)
        return result


# =============================================================================
# THRESHOLDS
# =============================================================================

def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def build_threshold_evaluator(threshold: Any) -> ThresholdEvaluator:
    """
    Build a function returning the threshold value at a given x.

    Raises:
        InvalidThresholdError: If the threshold is neither None, a number, nor
            a list of {x, y} points with parseable x and numeric y
    """
    if threshold is None:
        return lambda x: None

    if _is_number(threshold):
        value = float(threshold)
        return lambda x: value

    if not isinstance(threshold, (list, tuple)):
        raise InvalidThresholdError(type(threshold).__name__)

    if not threshold:
        return lambda x: None

    points = []
    for point in threshold:
        if not isinstance(point, Mapping):
            raise InvalidThresholdError(type(point).__name__)
        x = to_datetime(point.get('x'))
        y = coerce_numeric_value(point.get('y'))
        if x is None or y is None:
            raise InvalidThresholdError("point with invalid x or y")
        points.append((x, y))

    points.sort(key=lambda item: item[0])
    xs = [x for x, _ in points]

    def evaluate(x: datetime) -> Optional[float]:
        lower_index = bisect_right(xs, x) - 1
        if lower_index < 0:
            return points[0][1]
        if lower_index >= len(points) - 1:
            return points[-1][1]

        lower_x, lower_y = points[lower_index]
        upper_x, upper_y = points[lower_index + 1]
        span = (upper_x - lower_x).total_seconds()
        if span == 0:
            return lower_y

        ratio = (x - lower_x).total_seconds() / span
        return lower_y + ratio * (upper_y - lower_y)

    return evaluate


def classify_point(y: Optional[float], threshold: Optional[float]) -> Optional[str]:
    """
    Classify a value against a threshold.

    Returns None for a missing value, 'default' when there is no threshold,
    otherwise 'above' (strictly greater) or 'below'.
    """
    if y is None or (isinstance(y, float) and math.isnan(y)):
        return None
    if threshold is None:
        return SEGMENT_DEFAULT
    return SEGMENT_ABOVE if y > threshold else SEGMENT_BELOW


def _threshold_of(thresholds: Optional[Mapping], sery: AlignedSery) -> Any:
    if not thresholds:
        return None
    return thresholds.get(sery.id)


# =============================================================================
# THRESHOLD CROSSINGS
# =============================================================================

def compute_threshold_crossings(
    sery: AlignedSery,
    x_values: Sequence[datetime],
    evaluate: ThresholdEvaluator,
) -> List[Tuple[datetime, float]]:
    """
    Find where a series crosses its threshold between two adjacent points.

    Both the series and the threshold are taken as linear between the two
    points. Touching the threshold without crossing it is not a crossing.

    Returns:
        (x, y) of every crossing, in timeline order
    """
    crossings = []

    for index in range(len(x_values) - 1):
        current = sery.data[index]
        following = sery.data[index + 1]
        if current is None or following is None:
            continue

        current_threshold = evaluate(x_values[index])
        next_threshold = evaluate(x_values[index + 1])
        if current_threshold is None or next_threshold is None:
            continue

        delta_current = current - current_threshold
        delta_next = following - next_threshold
        if delta_current == 0 or delta_next == 0 or delta_current * delta_next > 0:
            continue

        ratio = delta_current / (delta_current - delta_next)
        crossings.append((
            x_values[index] + (x_values[index + 1] - x_values[index]) * ratio,
            current + (following - current) * ratio,
        ))

    return crossings


def _interpolate(data: Sequence[Optional[float]], x_values: Sequence[datetime], x: datetime) -> Optional[float]:
    upper = bisect_right(x_values, x)
    if upper == 0 or upper >= len(x_values):
        return None

    lower_value = data[upper - 1]
    upper_value = data[upper]
    if lower_value is None or upper_value is None:
        return None

    span = (x_values[upper] - x_values[upper - 1]).total_seconds()
    ratio = (x - x_values[upper - 1]).total_seconds() / span
    return lower_value + ratio * (upper_value - lower_value)


def insert_threshold_crossings(alignment: AlignmentResult, thresholds: Optional[Mapping] = None) -> AlignmentResult:
    """
    Add the threshold crossings of every series to the shared timeline.

    A series gets its own crossing value at its crossing positions. At the
    crossing positions of other series it gets the value interpolated between
    its two neighbouring points, or None when one of them is missing, so
    adding a crossing never breaks another line.

    Args:
        alignment: Output of align_series_data
        thresholds: Mapping of series id -> threshold (number, None or points)

    Returns:
        A new AlignmentResult, or the input itself when nothing crosses
    """
    if alignment.is_empty() or not thresholds:
        return alignment

    x_values = alignment.x_values
    real_positions = {x: index for index, x in enumerate(x_values)}
    crossings_by_series: List[Dict[datetime, float]] = []
    added: Set[datetime] = set()

    for sery in alignment.aligned_series:
        evaluate = build_threshold_evaluator(_threshold_of(thresholds, sery))
        crossings = {
            x: y for x, y in compute_threshold_crossings(sery, x_values, evaluate)
            if x not in real_positions
        }
        crossings_by_series.append(crossings)
        added.update(crossings)

    if not added:
        return alignment

    merged_x = sorted(set(x_values) | added)
    aligned: List[AlignedSery] = []

    for sery, crossings in zip(alignment.aligned_series, crossings_by_series):
        data: List[Optional[float]] = []
        synthetic: Set[int] = set()
        crossing_indices: Set[int] = set()

        for index, x in enumerate(merged_x):
            real_index = real_positions.get(x)
            if real_index is not None:
                data.append(sery.data[real_index])
                continue

            if x in crossings:
                value = crossings[x]
                crossing_indices.add(index)
            else:
                value = _interpolate(sery.data, x_values, x)
            if value is not None:
                synthetic.add(index)
            data.append(value)

        aligned.append(replace(sery, data=data, synthetic_indices=synthetic, crossing_indices=crossing_indices))

    return AlignmentResult(x_values=merged_x, aligned_series=aligned, axis_keys=set(alignment.axis_keys))


# =============================================================================
# SERIES BUILDERS
# =============================================================================

def _split_runs(sery: AlignedSery, x_values: Sequence[datetime], evaluate: ThresholdEvaluator) -> List[tuple]:
    """Group the indices of a series into (classification, indices) runs."""
    runs: List[tuple] = []
    current_class: Optional[str] = None
    current_indices: List[int] = []
    boundary: Optional[int] = None

    for index, value in enumerate(sery.data):
        if index in sery.crossing_indices and value is not None and current_indices:
            # ends this run and opens the next one
            current_indices.append(index)
            boundary = index
            continue

        classification = classify_point(value, evaluate(x_values[index]))
        if classification != current_class and current_indices:
            runs.append((current_class, current_indices))
            current_indices = [boundary] if boundary is not None and classification is not None else []
        current_class = classification
        boundary = None
        if classification is not None:
            current_indices.append(index)

    if current_indices:
        runs.append((current_class, current_indices))
    return runs


def build_segments(
    aligned_series: Sequence[AlignedSery],
    x_values: Sequence[datetime],
    thresholds: Optional[Mapping] = None,
    above_color: str = DEFAULT_ABOVE_COLOR,
) -> List[ChartSeries]:
    """
    Split each aligned series into runs of equally classified points.

    Args:
        aligned_series: Output of align_series_data, optionally passed
            through insert_threshold_crossings
        x_values: Shared timeline of the aligned series
        thresholds: Mapping of series id -> threshold (number, None or points)
        above_color: Color of segments above their threshold

    Returns:
        Segments with ids "<series id>__segment-<n>", each a dense array the
        length of the timeline holding only its own points
    """
    segments: List[ChartSeries] = []

    for sery in aligned_series:
        evaluate = build_threshold_evaluator(_threshold_of(thresholds, sery))

        for number, (classification, indices) in enumerate(_split_runs(sery, x_values, evaluate)):
            data: List[Optional[float]] = [None] * len(x_values)
            for index in indices:
                data[index] = sery.data[index]
            segments.append(ChartSeries(
                id=f"{sery.id}__segment-{number}",
                original_id=sery.id,
                data=data,
                axis_key=sery.axis_key,
                color=above_color if classification == SEGMENT_ABOVE else sery.color,
                classification=classification,
                synthetic_indices=[index for index in indices if index in sery.synthetic_indices],
            ))

    return segments


def build_stub_series(aligned_series: Sequence[AlignedSery], x_length: int) -> List[ChartSeries]:
    """One all-None series per parameter, carrying its legend label and color."""
    return [
        ChartSeries(
            id=str(sery.id),
            original_id=sery.id,
            label=sery.label,
            color=sery.color,
            axis_key=sery.axis_key,
            data=[None] * x_length,
        )
        for sery in aligned_series
    ]


def build_dynamic_threshold_series(
    aligned_series: Sequence[AlignedSery],
    x_values: Sequence[datetime],
    thresholds: Optional[Mapping] = None,
    color: str = DEFAULT_THRESHOLD_COLOR,
) -> List[ChartSeries]:
    """Build a "threshold-<series id>" line for every series with a time-varying threshold."""
    threshold_series: List[ChartSeries] = []

    for sery in aligned_series:
        threshold = _threshold_of(thresholds, sery)
        if not isinstance(threshold, (list, tuple)):
            continue

        evaluate = build_threshold_evaluator(threshold)
        threshold_series.append(ChartSeries(
            id=f"threshold-{sery.id}",
            original_id=sery.id,
            color=color,
            axis_key=sery.axis_key,
            data=[evaluate(x) for x in x_values],
        ))

    return threshold_series

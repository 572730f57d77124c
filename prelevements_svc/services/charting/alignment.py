"""
Alignment of heterogeneous series on one shared timeline.

Every series is resampled onto the sorted union of all x values, with None
wherever a series has no (finite) value. Series left without any value are
dropped so they never produce empty legend rows or unused axes.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Set, Union

from pydantic import ValidationError

from core.datetime_utils import to_datetime
from core.logging_config import WarningSink, resolve_sink
from core.value_utils import coerce_numeric_value
from schemas.series import SeriesInput

logger = logging.getLogger(__name__)

AXIS_LEFT_KEY = 'y-left'
AXIS_RIGHT_KEY = 'y-right'


# =============================================================================
# DATA STRUCTURES
# =============================================================================

@dataclass
class AlignedSery:
    """
    A series resampled onto the shared x axis; ``data[i]`` belongs to ``x_values[i]``.

    ``synthetic_indices`` holds values interpolated at x positions the series
    has no point of, ``crossing_indices`` the subset where it crosses its threshold.
    """
    id: Union[str, int]
    label: str
    color: Optional[str]
    axis_key: str
    data: List[Optional[float]]
    value_type: Optional[str] = None
    synthetic_indices: Set[int] = field(default_factory=set)
    crossing_indices: Set[int] = field(default_factory=set)

    def has_values(self) -> bool:
        return any(value is not None for value in self.data)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'id': self.id,
            'label': self.label,
            'color': self.color,
            'axis_key': self.axis_key,
            'value_type': self.value_type,
            'data': list(self.data),
        }
        if self.synthetic_indices:
            result['synthetic_indices'] = sorted(self.synthetic_indices)
        return result


@dataclass
class AlignmentResult:
    """Shared timeline, aligned series, and the axes those series use."""
    x_values: List[datetime] = field(default_factory=list)
    aligned_series: List[AlignedSery] = field(default_factory=list)
    axis_keys: Set[str] = field(default_factory=set)

    def is_empty(self) -> bool:
        return not self.x_values or not self.aligned_series

    def find_by_value_type(self, value_type: str) -> Optional[AlignedSery]:
        """First aligned series with the given value type, or None."""
        for sery in self.aligned_series:
            if sery.value_type == value_type:
                return sery
        return None


# =============================================================================
# ALIGNMENT
# =============================================================================

def validate_series_input(raw: Any, warn: WarningSink) -> Optional[SeriesInput]:
    """Validate one raw chart series; invalid mappings are reported and skipped."""
    if isinstance(raw, SeriesInput):
        return raw
    if not isinstance(raw, Mapping):
        return None

    try:
        return SeriesInput.model_validate(raw)
    except ValidationError as e:
        warn("Invalid chart series, skipping", {'series': raw.get('id'), 'errors': e.error_count()})
        return None


def align_series_data(
    series: Optional[Iterable[Any]],
    on_warning: Optional[WarningSink] = None,
) -> AlignmentResult:
    """
    Align series on the sorted union of their x values.

    Args:
        series: SeriesInput objects or mappings with ``id``, ``data`` and
            optional ``label``, ``axis``, ``color``, ``valueType``
        on_warning: Diagnostic sink for skipped series and points

    Returns:
        AlignmentResult; empty when there is no x value or no series

    Example:
        >>> result = align_series_data([
        ...     {'id': 'a', 'data': [{'x': '2024-01-01', 'y': 1}]},
        ...     {'id': 'b', 'axis': 'right', 'data': [{'x': '2024-01-02', 'y': 2}]},
        ... ])
        >>> [sery.data for sery in result.aligned_series]
        [[1.0, None], [None, 2.0]]
    """
    warn = resolve_sink(on_warning, logger)
    x_set: Set[datetime] = set()
    normalized = []

    for raw in series or []:
        item = validate_series_input(raw, warn)
        if item is None:
            continue

        point_map: Dict[datetime, Optional[float]] = {}
        for point in item.data:
            if point.x is None:
                continue

            timestamp = to_datetime(point.x)
            if timestamp is None:
                warn("Unparseable x value, skipping point", {'series': item.id, 'x': str(point.x)})
                continue

            x_set.add(timestamp)
            point_map[timestamp] = coerce_numeric_value(point.y)

        normalized.append((item, point_map))

    x_values = sorted(x_set)
    if not x_values or not normalized:
        return AlignmentResult()

    aligned: List[AlignedSery] = []
    for item, point_map in normalized:
        sery = AlignedSery(
            id=item.id,
            label=item.label if item.label is not None else str(item.id),
            color=item.color,
            axis_key=AXIS_RIGHT_KEY if item.axis == 'right' else AXIS_LEFT_KEY,
            value_type=item.value_type,
            data=[point_map.get(timestamp) for timestamp in x_values],
        )
        if sery.has_values():
            aligned.append(sery)
        else:
            logger.debug("Dropping series without values", extra={'series': item.id})

    return AlignmentResult(
        x_values=x_values,
        aligned_series=aligned,
        axis_keys={sery.axis_key for sery in aligned},
    )


def build_y_axis_configs(axis_keys: Optional[Iterable[str]]) -> List[Dict[str, Any]]:
    """
    Build one linear Y axis config per used axis key, left first.

    A single left axis is returned when no key is given.
    """
    keys = set(axis_keys or ())
    if not keys:
        keys = {AXIS_LEFT_KEY}

    axes: List[Dict[str, Any]] = []
    if AXIS_LEFT_KEY in keys:
        axes.append({'id': AXIS_LEFT_KEY, 'position': 'left', 'scale_type': 'linear'})
    if AXIS_RIGHT_KEY in keys:
        axes.append({'id': AXIS_RIGHT_KEY, 'position': 'right', 'scale_type': 'linear'})
    return axes

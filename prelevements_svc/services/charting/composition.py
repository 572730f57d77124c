"""
Assembly of the final renderable chart series.

Responsible for:
- One legend row per parameter with its resolved type and color
- Keeping line segments as independent series (gaps stay gaps)
- Merging the segments of bar-typed parameters back into one dense series,
  leaving out interpolated crossing points
- Forcing threshold series to lines
- Min/max band envelopes for series carrying 'minimum'/'maximum' values
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from services.charting.alignment import AlignmentResult
from services.charting.segments import ChartSeries

logger = logging.getLogger(__name__)

SERIES_TYPE_LINE = 'line'
SERIES_TYPE_BAR = 'bar'
CURVE_LINEAR = 'linear'
BAND_STACK_ID = 'band-range'

SeriesTypeResolver = Callable[[Union[str, int]], Optional[str]]
SeriesColorResolver = Callable[[Union[str, int], Optional[str]], Optional[str]]


@dataclass
class ComposedSeries:
    """
    Final chart series grouped by role.

    ``composed_series`` is the concatenation legend + line segments + bars +
    thresholds, in that order.
    """
    legend_series: List[ChartSeries] = field(default_factory=list)
    line_segments: List[ChartSeries] = field(default_factory=list)
    bar_series: List[ChartSeries] = field(default_factory=list)
    threshold_series: List[ChartSeries] = field(default_factory=list)
    composed_series: List[ChartSeries] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            name: [series.to_dict() for series in getattr(self, name)]
            for name in ('legend_series', 'line_segments', 'bar_series', 'threshold_series', 'composed_series')
        }


def _series_type(resolve_series_type: Optional[SeriesTypeResolver], original_id: Any) -> str:
    if resolve_series_type is None:
        return SERIES_TYPE_LINE
    return SERIES_TYPE_BAR if resolve_series_type(original_id) == SERIES_TYPE_BAR else SERIES_TYPE_LINE


def build_composed_series(
    stub_series: Sequence[ChartSeries],
    segment_series: Sequence[ChartSeries],
    dynamic_threshold_series: Optional[Sequence[ChartSeries]] = None,
    resolve_series_type: Optional[SeriesTypeResolver] = None,
    resolve_series_color: Optional[SeriesColorResolver] = None,
    x_length: Optional[int] = None,
) -> ComposedSeries:
    """
    Compose legend, line, bar and threshold series.

    Args:
        stub_series: One legend series per parameter (see build_stub_series)
        segment_series: Classified segments (see build_segments)
        dynamic_threshold_series: Time-varying threshold lines
        resolve_series_type: original_id -> 'bar' or 'line' (default line)
        resolve_series_color: (original_id, base color) -> legend color,
            used to grey out hidden parameters; None keeps the base color
        x_length: Length of the shared timeline; defaults to the length of
            each merged segment

    Returns:
        ComposedSeries; inputs are never mutated
    """
    legend_series: List[ChartSeries] = []
    for stub in stub_series:
        color = stub.color
        if resolve_series_color is not None:
            resolved = resolve_series_color(stub.original_id, stub.color)
            color = resolved if resolved is not None else stub.color
        legend_series.append(replace(
            stub,
            type=_series_type(resolve_series_type, stub.original_id),
            curve=CURVE_LINEAR,
            color=color,
            data=list(stub.data),
        ))

    stubs_by_id = {stub.original_id: stub for stub in stub_series}
    line_segments: List[ChartSeries] = []
    bars: Dict[Any, ChartSeries] = {}

    for segment in segment_series:
        if _series_type(resolve_series_type, segment.original_id) == SERIES_TYPE_LINE:
            line_segments.append(replace(segment, type=SERIES_TYPE_LINE, curve=CURVE_LINEAR, data=list(segment.data)))
            continue

        bar = bars.get(segment.original_id)
        if bar is None:
            stub = stubs_by_id.get(segment.original_id)
            length = x_length if x_length is not None else len(segment.data)
            bar = ChartSeries(
                id=f"{segment.original_id}__bar",
                original_id=segment.original_id,
                label=stub.label if stub else None,
                color=stub.color if stub else segment.color,
                axis_key=segment.axis_key,
                data=[None] * length,
                type=SERIES_TYPE_BAR,
            )
            bars[segment.original_id] = bar

        synthetic = set(segment.synthetic_indices)
        for index, value in enumerate(segment.data[:len(bar.data)]):
            if value is not None and index not in synthetic:
                bar.data[index] = value

    bar_series = list(bars.values())
    threshold_series = [
        replace(threshold, type=SERIES_TYPE_LINE, curve=CURVE_LINEAR, data=list(threshold.data))
        for threshold in dynamic_threshold_series or []
    ]

    return ComposedSeries(
        legend_series=legend_series,
        line_segments=line_segments,
        bar_series=bar_series,
        threshold_series=threshold_series,
        composed_series=legend_series + line_segments + bar_series + threshold_series,
    )


def build_band_series(alignment: AlignmentResult) -> List[ChartSeries]:
    """
    Build a min/max envelope from aligned series.

    The 'minimum' series is drawn as a stacked line and the 'maximum' series
    as a stacked area of height ``max - min`` (None where either bound is
    missing or the difference is negative). Other series follow as plain lines.

    Returns:
        Band series, or [] when the minimum or maximum series is missing
    """
    min_series = alignment.find_by_value_type('minimum')
    max_series = alignment.find_by_value_type('maximum')

    if min_series is None or max_series is None:
        logger.debug("Band chart requires minimum and maximum series")
        return []

    band_axis_key = max_series.axis_key or min_series.axis_key

    range_data: List[Optional[float]] = []
    for max_value, min_value in zip(max_series.data, min_series.data):
        if max_value is None or min_value is None or max_value - min_value < 0:
            range_data.append(None)
        else:
            range_data.append(max_value - min_value)

    band = [
        ChartSeries(
            id=str(min_series.id),
            original_id=min_series.id,
            label=min_series.label,
            color=min_series.color,
            axis_key=band_axis_key,
            data=list(min_series.data),
            type=SERIES_TYPE_LINE,
            stack=BAND_STACK_ID,
            area=False,
        ),
        ChartSeries(
            id=f"{max_series.id}__band",
            original_id=max_series.id,
            label=max_series.label,
            color=max_series.color,
            axis_key=band_axis_key,
            data=range_data,
            type=SERIES_TYPE_LINE,
            stack=BAND_STACK_ID,
            area=True,
        ),
    ]

    supplemental = [
        ChartSeries(
            id=str(sery.id),
            original_id=sery.id,
            label=sery.label,
            color=sery.color,
            axis_key=sery.axis_key,
            data=list(sery.data),
            type=SERIES_TYPE_LINE,
        )
        for sery in alignment.aligned_series
        if sery.value_type not in ('minimum', 'maximum')
    ]

    return band + supplemental

"""
Charting package for withdrawal series.

This package contains:
- Decimation: Shape-preserving point reduction of dense input series
- Alignment: Series resampled onto one shared timeline
- Segments: Threshold classification into line segments, joined on crossing points
- Composition: Legend, line, bar, threshold and band series assembly
- Gaps: Null points breaking lines over missing data
- Bucketing: Display resolution and per-bucket sum/mean aggregation

Usage:
    from services.charting import (
        align_series_data, build_composed_series, build_segments, build_stub_series,
        decimate_series, insert_threshold_crossings,
    )

    decimated = decimate_series(series)
    alignment = align_series_data(decimated.series)
    alignment = insert_threshold_crossings(alignment, thresholds)
    segments = build_segments(alignment.aligned_series, alignment.x_values, thresholds)
    stubs = build_stub_series(alignment.aligned_series, len(alignment.x_values))
    composed = build_composed_series(stubs, segments, x_length=len(alignment.x_values))
"""

from services.charting.alignment import (
    AXIS_LEFT_KEY,
    AXIS_RIGHT_KEY,
    AlignedSery,
    AlignmentResult,
    align_series_data,
    validate_series_input,
    build_y_axis_configs,
)
from services.charting.segments import (
    ChartSeries,
    build_threshold_evaluator,
    classify_point,
    build_segments,
    build_stub_series,
    build_dynamic_threshold_series,
    compute_threshold_crossings,
    insert_threshold_crossings,
)
from services.charting.composition import (
    ComposedSeries,
    build_composed_series,
    build_band_series,
)
from services.charting.gaps import (
    parse_frequency_to_ms,
    calculate_gap_threshold,
    insert_gap_points,
    apply_gap_detection_to_series,
)
from services.charting.decimation import (
    DecimationResult,
    largest_triangle_three_buckets,
    decimate_points,
    decimate_series,
)
from services.charting.bucketing import (
    TimeRange,
    BucketedPoint,
    BucketedSeries,
    BucketingResult,
    resolution_from_frequency,
    resolution_to_frequency,
    normalize_time_range,
    choose_display_resolution,
    choose_series_bucket_resolution,
    floor_to_bucket,
    aggregate_series_into_buckets,
    bucket_series_collection,
)

__all__ = [
    # Alignment
    'AXIS_LEFT_KEY',
    'AXIS_RIGHT_KEY',
    'AlignedSery',
    'AlignmentResult',
    'align_series_data',
    'validate_series_input',
    'build_y_axis_configs',
    # Segments
    'ChartSeries',
    'build_threshold_evaluator',
    'classify_point',
    'build_segments',
    'build_stub_series',
    'build_dynamic_threshold_series',
    'compute_threshold_crossings',
    'insert_threshold_crossings',
    # Composition
    'ComposedSeries',
    'build_composed_series',
    'build_band_series',
    # Gaps
    'parse_frequency_to_ms',
    'calculate_gap_threshold',
    'insert_gap_points',
    'apply_gap_detection_to_series',
    # Decimation
    'DecimationResult',
    'largest_triangle_three_buckets',
    'decimate_points',
    'decimate_series',
    # Bucketing
    'TimeRange',
    'BucketedPoint',
    'BucketedSeries',
    'BucketingResult',
    'resolution_from_frequency',
    'resolution_to_frequency',
    'normalize_time_range',
    'choose_display_resolution',
    'choose_series_bucket_resolution',
    'floor_to_bucket',
    'aggregate_series_into_buckets',
    'bucket_series_collection',
]

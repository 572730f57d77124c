"""
Business logic layer for the series aggregation service.

Contains the pure transforms turning raw parameter samples into daily values,
timeline samples, calendar grids and chart-ready series.
"""

from services.remarks import Meta, normalize_remarks, build_meta
from services.aggregation_service import (
    DailyValue,
    TimelineSample,
    AggregationResult,
    build_daily_and_timeline_data,
)
from services.periods import (
    SelectablePeriods,
    MonthRange,
    YearPeriod,
    MonthPeriod,
    calculate_selectable_periods_from_date_range,
    extract_default_periods_from_date_range,
    periods_to_date_range,
)
from services.frequency import (
    get_frequency_order,
    sort_frequencies,
    pick_available_frequency,
    format_frequency_label,
    parse_frequency,
)
from services.series_registry import LocalSeriesRegistry

__all__ = [
    "Meta",
    "normalize_remarks",
    "build_meta",
    "DailyValue",
    "TimelineSample",
    "AggregationResult",
    "build_daily_and_timeline_data",
    "SelectablePeriods",
    "MonthRange",
    "YearPeriod",
    "MonthPeriod",
    "calculate_selectable_periods_from_date_range",
    "extract_default_periods_from_date_range",
    "periods_to_date_range",
    "get_frequency_order",
    "sort_frequencies",
    "pick_available_frequency",
    "format_frequency_label",
    "parse_frequency",
    "LocalSeriesRegistry",
]

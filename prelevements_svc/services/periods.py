"""
Selectable and default periods derived from a bounded date range.

Used to restrict period selection to external constraints (for example the
exploitation dates of a withdrawal point) and to preselect a sensible default.
Months are 1-based (January = 1).
"""
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence, Tuple, Union

from core.config import settings
from core.datetime_utils import (
    DateLike,
    end_of_month,
    end_of_year,
    parse_local_date,
    start_of_month,
    start_of_year,
)


@dataclass
class MonthRange:
    """Bounds of the months that may be selected."""
    start: datetime
    end: datetime


@dataclass
class SelectablePeriods:
    """Years (inclusive range) and month bounds available for selection."""
    years: List[int]
    months: MonthRange


@dataclass
class YearPeriod:
    value: int
    type: str = 'year'


@dataclass
class MonthPeriod:
    year: int
    month: int
    type: str = 'month'


Period = Union[YearPeriod, MonthPeriod]


def calculate_selectable_periods_from_date_range(
    start_date: Optional[DateLike],
    end_date: Optional[DateLike],
) -> Optional[SelectablePeriods]:
    """
    Calculate selectable years and month bounds from a date range.

    A missing bound falls back to ``settings.series_period_min_year`` (start)
    or ``settings.series_period_max_year`` (end).

    Args:
        start_date: ISO string, date or datetime, or None
        end_date: ISO string, date or datetime, or None

    Returns:
        SelectablePeriods, or None when neither bound is usable

    Example:
        >>> calculate_selectable_periods_from_date_range('2023-03-15', '2024-11-20').years
        [2023, 2024]
    """
    start = parse_local_date(start_date)
    end = parse_local_date(end_date)

    if start is None and end is None:
        return None

    min_year = start.year if start else settings.series_period_min_year
    max_year = end.year if end else settings.series_period_max_year

    return SelectablePeriods(
        years=list(range(min_year, max_year + 1)),
        months=MonthRange(
            start=start if start else datetime(min_year, 1, 1),
            end=end if end else datetime(max_year, 12, 31),
        ),
    )


def extract_default_periods_from_date_range(
    start_date: Optional[DateLike],
    end_date: Optional[DateLike],
) -> Optional[List[Period]]:
    """
    Extract default periods from a date range.

    Logic:
    - Only one bound (or none): None, both are required
    - Bounds in different calendar years: one YearPeriod per year
    - Bounds in the same year: one MonthPeriod per month between the bounds'
      months (inclusive); a start month after the end month yields no period

    Example:
        >>> extract_default_periods_from_date_range('2024-01-15', '2024-02-20')
        [MonthPeriod(year=2024, month=1, type='month'), MonthPeriod(year=2024, month=2, type='month')]
    """
    start = parse_local_date(start_date)
    end = parse_local_date(end_date)

    if start is None or end is None:
        return None

    if start.year != end.year:
        return [YearPeriod(value=year) for year in range(start.year, end.year + 1)]

    return [
        MonthPeriod(year=start.year, month=month)
        for month in range(start.month, end.month + 1)
    ]


def periods_to_date_range(periods: Optional[Sequence[Period]]) -> Optional[Tuple[datetime, datetime]]:
    """
    Convert selected periods into the datetime range covering all of them.

    Returns:
        (start, end) with ``end`` at the last instant of the last period, or
        None when no period is given
    """
    if not periods:
        return None

    bounds: List[Tuple[datetime, datetime]] = []
    for period in periods:
        if isinstance(period, YearPeriod):
            bounds.append((start_of_year(period.value), end_of_year(period.value)))
        else:
            first_day = datetime(period.year, period.month, 1)
            bounds.append((start_of_month(first_day), end_of_month(first_day)))

    return min(start for start, _ in bounds), max(end for _, end in bounds)

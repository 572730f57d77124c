"""
Calendar data processing.

Responsible for:
- Parsing "dd-MM-yyyy" calendar entries (invalid dates warn and are dropped)
- Grouping entries by day ("yyyy-MM-dd"), month ("yyyy-MM") and year ("yyyy")
- Tracking the global date bounds
- Picking the display mode from the span of those bounds
- Turning aggregated daily values into colored calendar entries
"""

import logging
from collections import defaultdict
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from core.config import settings
from core.datetime_utils import calendar_month_span, parse_calendar_date, parse_local_date
from core.logging_config import WarningSink, resolve_sink
from core.reference_registry import get_status_colors

logger = logging.getLogger(__name__)

MODE_MONTH = 'month'
MODE_YEAR = 'year'
MODE_MULTI_YEAR = 'multi-year'


# =============================================================================
# DATA STRUCTURES
# =============================================================================

@dataclass
class CalendarEntry:
    """
    A calendar input entry enriched with its parsed date.

    ``data`` keeps every field of the input item so callers can carry their
    own payload through to the generated cells.
    """
    date: str
    date_obj: datetime
    color: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {**self.data, 'date': self.date, 'color': self.color, 'date_obj': self.date_obj}


@dataclass
class ProcessedCalendarData:
    """Entries grouped per granularity, with the bounds of the valid dates."""
    entries_by_day: Dict[str, List[CalendarEntry]] = field(default_factory=dict)
    entries_by_month: Dict[str, List[CalendarEntry]] = field(default_factory=dict)
    entries_by_year: Dict[str, List[CalendarEntry]] = field(default_factory=dict)
    min_date: Optional[datetime] = None
    max_date: Optional[datetime] = None
    total_count: int = 0
    invalid_count: int = 0

    @property
    def has_data(self) -> bool:
        return self.min_date is not None and self.max_date is not None

    @property
    def has_only_invalid_dates(self) -> bool:
        """True when records were given and none of them had a valid date."""
        return self.total_count > 0 and self.invalid_count == self.total_count


# =============================================================================
# PROCESSING
# =============================================================================

def _read(item: Any, name: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def process_calendar_data(
    data: Optional[Iterable[Any]],
    on_warning: Optional[WarningSink] = None,
) -> ProcessedCalendarData:
    """
    Parse and group calendar entries by day, month and year.

    Args:
        data: Items with a "dd-MM-yyyy" ``date`` and an optional ``color``
        on_warning: Diagnostic sink for dropped entries (defaults to logging)

    Returns:
        ProcessedCalendarData; invalid entries are counted, never raised
    """
    warn = resolve_sink(on_warning, logger)
    by_day: Dict[str, List[CalendarEntry]] = defaultdict(list)
    by_month: Dict[str, List[CalendarEntry]] = defaultdict(list)
    by_year: Dict[str, List[CalendarEntry]] = defaultdict(list)
    result = ProcessedCalendarData()

    for item in data or []:
        result.total_count += 1
        raw_date = _read(item, 'date')
        parsed = parse_calendar_date(raw_date)

        if parsed is None:
            result.invalid_count += 1
            warn("Invalid calendar date, expected dd-MM-yyyy", {'date': raw_date})
            continue

        entry = CalendarEntry(
            date=raw_date,
            date_obj=parsed,
            color=_read(item, 'color'),
            data=dict(item) if isinstance(item, Mapping) else {},
        )

        by_day[parsed.strftime('%Y-%m-%d')].append(entry)
        by_month[parsed.strftime('%Y-%m')].append(entry)
        by_year[f"{parsed.year:04d}"].append(entry)

        if result.min_date is None or parsed < result.min_date:
            result.min_date = parsed
        if result.max_date is None or parsed > result.max_date:
            result.max_date = parsed

    result.entries_by_day = dict(by_day)
    result.entries_by_month = dict(by_month)
    result.entries_by_year = dict(by_year)

    if result.invalid_count:
        logger.debug("Calendar entries dropped", extra={
            'total': result.total_count,
            'invalid': result.invalid_count,
        })

    return result


def resolve_aggregated_color(entries: Optional[Sequence[CalendarEntry]]) -> Optional[str]:
    """Return the color of the first entry that has one, else None."""
    for entry in entries or []:
        if entry.color:
            return entry.color
    return None


def determine_calendar_mode(min_date: Optional[datetime], max_date: Optional[datetime]) -> str:
    """
    Pick the calendar display mode from the span of the data.

    The span counts calendar months with both bounds included:
    - more than ``settings.series_calendar_multi_year_months``: 'multi-year'
    - more than ``settings.series_calendar_year_months``: 'year'
    - otherwise (or when a bound is missing): 'month'
    """
    if min_date is None or max_date is None:
        return MODE_MONTH

    total_months = calendar_month_span(min_date, max_date)

    if total_months > settings.series_calendar_multi_year_months:
        return MODE_MULTI_YEAR

    if total_months > settings.series_calendar_year_months:
        return MODE_YEAR

    return MODE_MONTH


# =============================================================================
# DAILY VALUES -> CALENDAR ENTRIES
# =============================================================================

def resolve_status_color(daily_value: Any, colors: Optional[Mapping] = None) -> str:
    """
    Color of a day from its aggregated values.

    - present: at least one non-zero value
    - no_sampling: values exist and they are all zero
    - not_declared: no value at all

    Args:
        daily_value: DailyValue (or mapping) with a ``values`` list
        colors: Palette keyed like ``get_status_colors()``; defaults to it
    """
    palette = colors or get_status_colors()
    values = [value for value in (_read(daily_value, 'values') or []) if value is not None]

    if not values:
        return palette['not_declared']
    if any(value != 0 for value in values):
        return palette['present']
    return palette['no_sampling']


def build_calendar_entries(
    daily_values: Optional[Iterable[Any]],
    resolve_color: Optional[Callable[[Any], Optional[str]]] = None,
) -> List[Dict[str, Any]]:
    """
    Turn aggregated daily values into "dd-MM-yyyy" calendar entries.

    Args:
        daily_values: DailyValue objects (or mappings) with an ISO ``date``
        resolve_color: Callable mapping a daily value to a color; defaults
            to the status colors of resolve_status_color

    Returns:
        List of {date, color} dicts, days with an unparseable date skipped
    """
    color_of = resolve_color or resolve_status_color
    entries: List[Dict[str, Any]] = []

    for daily_value in daily_values or []:
        parsed = parse_local_date(_read(daily_value, 'date'))
        if parsed is None:
            continue
        entries.append({
            'date': parsed.strftime('%d-%m-%Y'),
            'color': color_of(daily_value),
        })

    return entries

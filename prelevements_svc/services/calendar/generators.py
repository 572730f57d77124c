"""
Calendar cell generators for the three display modes.

- multi-year: one compact grid with a cell per year
- year: one compact grid of 12 month cells per year
- month: one 7-column grid per month, Monday first, padded with placeholders

Labels are French and come from the reference registry.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Mapping, Optional

from core.datetime_utils import (
    add_months,
    end_of_month,
    end_of_year,
    start_of_month,
    start_of_year,
)
from core.reference_registry import get_calendar_labels
from services.calendar.processing import (
    MODE_MONTH,
    MODE_MULTI_YEAR,
    MODE_YEAR,
    CalendarEntry,
    resolve_aggregated_color,
)

DAYS_PER_WEEK = 7


# =============================================================================
# DATA STRUCTURES
# =============================================================================

@dataclass
class CalendarCell:
    """
    A cell of a calendar grid.

    Placeholder cells only pad the grid: they carry no label, entries or period.
    """
    key: str
    mode: str
    label: str = ''
    color: Optional[str] = None
    entries: List[CalendarEntry] = field(default_factory=list)
    period_start: Optional[datetime] = None
    period_end: Optional[datetime] = None
    is_interactive: bool = False
    aria_label: str = ''
    is_placeholder: bool = False
    date: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        if self.is_placeholder:
            return {'key': self.key, 'mode': self.mode, 'is_placeholder': True}
        return {
            'key': self.key,
            'label': self.label,
            'color': self.color,
            'mode': self.mode,
            'entries': [entry.to_dict() for entry in self.entries],
            'period_start': self.period_start,
            'period_end': self.period_end,
            'is_interactive': self.is_interactive,
            'aria_label': self.aria_label,
            'is_placeholder': False,
        }


@dataclass
class CalendarDescription:
    """One displayed grid (a month, a year, or the multi-year range)."""
    key: str
    title: str
    compact_mode: bool
    cells: List[CalendarCell] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'key': self.key,
            'title': self.title,
            'compact_mode': self.compact_mode,
            'cells': [cell.to_dict() for cell in self.cells],
        }


# =============================================================================
# LABEL HELPERS
# =============================================================================

def capitalize(text: str) -> str:
    """Uppercase the first character only ("janv." -> "Janv.")."""
    return text[:1].upper() + text[1:]


def _month_name(month: int) -> str:
    return get_calendar_labels().month_names[month - 1]


def _month_short_name(month: int) -> str:
    return get_calendar_labels().month_short_names[month - 1]


def format_long_date(value: datetime) -> str:
    """French long date, e.g. "1 janvier 2024"."""
    return f"{value.day} {_month_name(value.month)} {value.year}"


# =============================================================================
# GENERATORS
# =============================================================================

def generate_multi_year_calendars(
    entries_by_year: Mapping[str, List[CalendarEntry]],
    min_date: datetime,
    max_date: datetime,
) -> List[CalendarDescription]:
    """Build a single compact grid with one non-interactive cell per year."""
    labels = get_calendar_labels()
    cells: List[CalendarCell] = []

    for year in range(min_date.year, max_date.year + 1):
        entries = list(entries_by_year.get(f"{year:04d}", []))
        cells.append(CalendarCell(
            key=f"year-{year}",
            label=str(year),
            color=resolve_aggregated_color(entries),
            mode=MODE_MULTI_YEAR,
            entries=entries,
            period_start=start_of_year(year),
            period_end=end_of_year(year),
            aria_label=f"{labels.year_aria_prefix} {year}",
        ))

    return [CalendarDescription(
        key=MODE_MULTI_YEAR,
        title=f"{min_date.year} - {max_date.year}",
        compact_mode=True,
        cells=cells,
    )]


def generate_yearly_calendars(
    entries_by_month: Mapping[str, List[CalendarEntry]],
    min_date: datetime,
    max_date: datetime,
) -> List[CalendarDescription]:
    """Build one compact grid of 12 month cells for each year in range."""
    labels = get_calendar_labels()
    calendars: List[CalendarDescription] = []

    for year in range(min_date.year, max_date.year + 1):
        cells: List[CalendarCell] = []
        for month in range(1, 13):
            month_start = datetime(year, month, 1)
            entries = list(entries_by_month.get(f"{year:04d}-{month:02d}", []))
            cells.append(CalendarCell(
                key=f"month-{year}-{month:02d}",
                label=capitalize(_month_short_name(month)),
                color=resolve_aggregated_color(entries),
                mode=MODE_YEAR,
                entries=entries,
                period_start=month_start,
                period_end=end_of_month(month_start),
                aria_label=f"{labels.month_aria_prefix} {_month_name(month)} {year}",
            ))

        calendars.append(CalendarDescription(
            key=f"year-{year}",
            title=str(year),
            compact_mode=True,
            cells=cells,
        ))

    return calendars


def _placeholders(month_start: datetime, count: int, prefix: str) -> List[CalendarCell]:
    return [
        CalendarCell(
            key=f"{prefix}-{month_start.year}-{month_start.month:02d}-{index}",
            mode=MODE_MONTH,
            is_placeholder=True,
        )
        for index in range(count)
    ]


def generate_monthly_calendars(
    entries_by_day: Mapping[str, List[CalendarEntry]],
    min_date: datetime,
    max_date: datetime,
) -> List[CalendarDescription]:
    """
    Build one 7-column grid per month from min_date's month to max_date's.

    Leading placeholders align day 1 on its ISO weekday column (Monday first);
    trailing placeholders complete the last week.
    """
    calendars: List[CalendarDescription] = []
    cursor = start_of_month(min_date)
    limit = start_of_month(max_date)

    while cursor <= limit:
        last_day = end_of_month(cursor).day
        start_offset = cursor.isoweekday() - 1

        day_cells: List[CalendarCell] = []
        for day_index in range(last_day):
            day = cursor + timedelta(days=day_index)
            day_key = day.strftime('%Y-%m-%d')
            entries = list(entries_by_day.get(day_key, []))
            day_cells.append(CalendarCell(
                key=day_key,
                label=str(day.day),
                color=resolve_aggregated_color(entries),
                mode=MODE_MONTH,
                entries=entries,
                date=day,
                period_start=day,
                period_end=day,
                is_interactive=bool(entries),
                aria_label=format_long_date(day),
            ))

        total_cells = start_offset + len(day_cells)
        trailing_count = (DAYS_PER_WEEK - total_cells % DAYS_PER_WEEK) % DAYS_PER_WEEK

        calendars.append(CalendarDescription(
            key=f"month-{cursor.year}-{cursor.month:02d}",
            title=capitalize(f"{_month_name(cursor.month)} {cursor.year}"),
            compact_mode=False,
            cells=(
                _placeholders(cursor, start_offset, 'placeholder-start')
                + day_cells
                + _placeholders(cursor, trailing_count, 'placeholder-end')
            ),
        ))

        cursor = add_months(cursor, 1)

    return calendars

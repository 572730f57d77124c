"""
Calendar package for withdrawal availability views.

This package contains:
- CalendarService: Public orchestration layer building calendar grids
- Processing: Entry parsing, grouping, mode selection and status colors
- Generators: Multi-year, yearly and monthly cell grids

Usage:
    from services.calendar import build_calendar

    result = build_calendar([{'date': '15-01-2024', 'color': '#000091'}])
    result.mode       # 'month'
"""

from services.calendar.calendar_service import CalendarService, CalendarResult, build_calendar
from services.calendar.generators import (
    CalendarCell,
    CalendarDescription,
    generate_multi_year_calendars,
    generate_yearly_calendars,
    generate_monthly_calendars,
)
from services.calendar.processing import (
    CalendarEntry,
    ProcessedCalendarData,
    process_calendar_data,
    resolve_aggregated_color,
    determine_calendar_mode,
    resolve_status_color,
    build_calendar_entries,
)

__all__ = [
    # Primary exports
    'CalendarService',
    'CalendarResult',
    'build_calendar',
    # Generators
    'CalendarCell',
    'CalendarDescription',
    'generate_multi_year_calendars',
    'generate_yearly_calendars',
    'generate_monthly_calendars',
    # Processing
    'CalendarEntry',
    'ProcessedCalendarData',
    'process_calendar_data',
    'resolve_aggregated_color',
    'determine_calendar_mode',
    'resolve_status_color',
    'build_calendar_entries',
]

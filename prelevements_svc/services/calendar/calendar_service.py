"""
Service layer for building calendar views.

Orchestrates processing (parse and group entries), mode selection and the
generator matching the chosen mode.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from core.logging_config import WarningSink
from services.calendar.generators import (
    CalendarDescription,
    generate_monthly_calendars,
    generate_multi_year_calendars,
    generate_yearly_calendars,
)
from services.calendar.processing import (
    MODE_MONTH,
    MODE_MULTI_YEAR,
    MODE_YEAR,
    determine_calendar_mode,
    process_calendar_data,
)

logger = logging.getLogger(__name__)


@dataclass
class CalendarResult:
    """
    Calendars to display and their metadata.

    ``has_invalid_dates`` is set only when records were given and every one
    of them had an invalid date; ``calendars`` is then empty.
    """
    mode: str = MODE_MONTH
    calendars: List[CalendarDescription] = field(default_factory=list)
    has_invalid_dates: bool = False
    min_date: Optional[datetime] = None
    max_date: Optional[datetime] = None

    @property
    def has_data(self) -> bool:
        return bool(self.calendars)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'mode': self.mode,
            'calendars': [description.to_dict() for description in self.calendars],
            'has_data': self.has_data,
            'has_invalid_dates': self.has_invalid_dates,
            'min_date': self.min_date,
            'max_date': self.max_date,
        }


# =============================================================================
# CALENDAR SERVICE
# =============================================================================

class CalendarService:
    """
    Builds calendar grids from "dd-MM-yyyy" entries.

    Invalid dates are reported through the warning sink and dropped; they
    never abort the build.
    """

    def __init__(self, on_warning: Optional[WarningSink] = None):
        self._on_warning = on_warning
        self._generators = {
            MODE_MULTI_YEAR: generate_multi_year_calendars,
            MODE_YEAR: generate_yearly_calendars,
            MODE_MONTH: generate_monthly_calendars,
        }

    def build(self, data: Optional[Iterable[Any]]) -> CalendarResult:
        """Process the entries, pick the display mode and generate the grids."""
        processed = process_calendar_data(data, on_warning=self._on_warning)

        if processed.has_only_invalid_dates:
            logger.warning("No valid calendar date", extra={'invalid': processed.invalid_count})
            return CalendarResult(has_invalid_dates=True)

        if not processed.has_data:
            return CalendarResult()

        mode = determine_calendar_mode(processed.min_date, processed.max_date)
        grouped = {
            MODE_MULTI_YEAR: processed.entries_by_year,
            MODE_YEAR: processed.entries_by_month,
            MODE_MONTH: processed.entries_by_day,
        }[mode]

        calendars = self._generators[mode](grouped, processed.min_date, processed.max_date)

        logger.debug("Calendar built", extra={
            'mode': mode,
            'calendars': len(calendars),
            'entries': processed.total_count - processed.invalid_count,
        })

        return CalendarResult(
            mode=mode,
            calendars=calendars,
            min_date=processed.min_date,
            max_date=processed.max_date,
        )


def build_calendar(
    data: Optional[Iterable[Any]],
    on_warning: Optional[WarningSink] = None,
) -> CalendarResult:
    """Build the calendar view of ``data`` with a one-off CalendarService."""
    return CalendarService(on_warning=on_warning).build(data)

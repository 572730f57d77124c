"""
Local-calendar datetime utilities.

Water withdrawal samples are reported per local calendar day, optionally with
a local "HH:MM" time. Everything here works on naive datetimes interpreted as
local time; no timezone conversion happens.

Accepted inputs:
- ISO dates "2024-01-15" and datetimes "2024-01-15T10:30:00"
- Quarter dates "2024-Q1" (resolved to the first day of the quarter)
- French fixed-format calendar dates "15-01-2024" (calendar pipeline only)
- Epoch milliseconds (chart x values)

Usage:
    from core.datetime_utils import parse_local_datetime, to_datetime

    ts = parse_local_datetime("2024-01-15", "10:30")
    x = to_datetime("2024-Q2")  # datetime(2024, 4, 1)
"""
import calendar
import math
import re
from datetime import date, datetime
from typing import Optional, Tuple, Union

DateLike = Union[str, date, datetime]

QUARTER_PATTERN = re.compile(r'^(\d{4})-Q([1-4])$')
CALENDAR_DATE_PATTERN = re.compile(r'^\d{2}-\d{2}-\d{4}$')
TIME_PATTERN = re.compile(r'^(\d+):(\d+)(?::(\d+))?$')


# =============================================================================
# TIME OF DAY
# =============================================================================

def parse_time_components(time: Optional[str]) -> Optional[Tuple[int, int, int]]:
    """
    Parse a "HH:MM" or "HH:MM:SS" string into (hours, minutes, seconds).

    Returns None when the string is empty, malformed or out of range.
    """
    if not isinstance(time, str):
        return None

    match = TIME_PATTERN.match(time.strip())
    if not match:
        return None

    hours = int(match.group(1))
    minutes = int(match.group(2))
    seconds = int(match.group(3) or 0)

    if not (0 <= hours <= 23 and 0 <= minutes <= 59 and 0 <= seconds <= 59):
        return None

    return hours, minutes, seconds


def normalize_time(time: Optional[str]) -> Optional[str]:
    """
    Normalize a time string to zero-padded "HH:MM".

    Example:
        >>> normalize_time("7:5")
        '07:05'
        >>> normalize_time("25:00") is None
        True
    """
    components = parse_time_components(time)
    if components is None:
        return None
    hours, minutes, _ = components
    return f"{hours:02d}:{minutes:02d}"


# =============================================================================
# PARSING
# =============================================================================

def _to_naive_local(dt: datetime) -> datetime:
    """Drop timezone info, converting aware datetimes to local time first."""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone().replace(tzinfo=None)


def parse_quarter_date(value: object) -> Optional[datetime]:
    """
    Parse a "YYYY-Qn" string to the first day of that quarter.

    Example:
        >>> parse_quarter_date("2024-Q3")
        datetime.datetime(2024, 7, 1, 0, 0)
    """
    if not isinstance(value, str):
        return None

    match = QUARTER_PATTERN.match(value.strip())
    if not match:
        return None

    year = int(match.group(1))
    quarter = int(match.group(2))
    return datetime(year, (quarter - 1) * 3 + 1, 1)


def parse_local_date(value: Optional[DateLike]) -> Optional[datetime]:
    """
    Parse an ISO date/datetime string, date or datetime to a naive datetime.

    Returns None for missing or unparseable values.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return _to_naive_local(value)

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)

    if not isinstance(value, str):
        return None

    stripped = value.strip()
    if not stripped:
        return None

    if stripped.endswith('Z'):
        stripped = stripped[:-1] + '+00:00'

    try:
        return _to_naive_local(datetime.fromisoformat(stripped))
    except ValueError:
        return None


def parse_local_datetime(date_value: Optional[DateLike], time: Optional[str] = None) -> Optional[datetime]:
    """
    Combine a date and an optional "HH:MM[:SS]" time into a local datetime.

    Quarter dates ("2024-Q1") resolve to the first day of the quarter.
    An invalid time makes the whole value invalid.

    Args:
        date_value: ISO date string, quarter string, date or datetime.
        time: Optional time of day.

    Returns:
        Naive local datetime, or None when either part cannot be parsed.
    """
    base = parse_quarter_date(date_value) or parse_local_date(date_value)
    if base is None:
        return None

    if time is None:
        return base

    components = parse_time_components(time)
    if components is None:
        return None

    hours, minutes, seconds = components
    return base.replace(hour=hours, minute=minutes, second=seconds, microsecond=0)


def parse_calendar_date(value: object) -> Optional[datetime]:
    """
    Strictly parse a French fixed-format "dd-MM-yyyy" date.

    ISO dates are rejected: the two formats are not interchangeable.
    """
    if not isinstance(value, str) or not CALENDAR_DATE_PATTERN.match(value):
        return None

    try:
        return datetime.strptime(value, "%d-%m-%Y")
    except ValueError:
        return None


def to_datetime(value: object) -> Optional[datetime]:
    """
    Coerce a chart x value to a naive local datetime.

    Accepts datetimes, dates, epoch milliseconds and date strings
    (quarter-aware). Returns None when the value cannot be interpreted.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        try:
            return datetime.fromtimestamp(value / 1000)
        except (OverflowError, OSError, ValueError):
            return None

    if isinstance(value, str):
        return parse_local_datetime(value)

    if isinstance(value, (date, datetime)):
        return parse_local_date(value)

    return None


# =============================================================================
# CALENDAR ARITHMETIC
# =============================================================================

def start_of_month(value: datetime) -> datetime:
    """First instant of the month containing ``value``."""
    return datetime(value.year, value.month, 1)


def end_of_month(value: datetime) -> datetime:
    """Last instant of the month containing ``value``."""
    last_day = calendar.monthrange(value.year, value.month)[1]
    return datetime(value.year, value.month, last_day, 23, 59, 59, 999999)


def start_of_year(year: int) -> datetime:
    """First instant of ``year``."""
    return datetime(year, 1, 1)


def end_of_year(year: int) -> datetime:
    """Last instant of ``year``."""
    return datetime(year, 12, 31, 23, 59, 59, 999999)


def add_months(value: datetime, months: int) -> datetime:
    """
    Add calendar months, clamping the day to the target month length.

    Example:
        >>> add_months(datetime(2024, 1, 31), 1)
        datetime.datetime(2024, 2, 29, 0, 0)
    """
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def calendar_month_span(start: datetime, end: datetime) -> int:
    """
    Number of calendar months touched by [start, end], bounds included.

    Example:
        >>> calendar_month_span(datetime(2024, 1, 31), datetime(2024, 2, 1))
        2
    """
    return (end.year - start.year) * 12 + (end.month - start.month) + 1

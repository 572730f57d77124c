"""
Sampling frequency ordering, labelling and calendar arithmetic.

Frequencies are strings such as "15 minutes" or "1 day". Known frequencies and
their finest-to-coarsest ranks live in core/reference_data.yaml; anything
missing from the table sorts last.

Usage:
    from services.frequency import sort_frequencies, pick_available_frequency

    sort_frequencies(["1 day", "15 minutes", "1 hour"])
    # ['15 minutes', '1 hour', '1 day']
"""
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from core.datetime_utils import add_months
from core.reference_registry import (
    FREQUENCY_PATTERN,
    get_frequency,
    get_unknown_frequency_rank,
    list_frequencies,
)

CALENDAR_UNITS = frozenset({'month', 'quarter', 'year'})

MONTHS_PER_UNIT = {
    'month': 1,
    'quarter': 3,
    'year': 12,
}


def frequency_labels() -> Dict[str, str]:
    """French display label of every known frequency."""
    return {definition.value: definition.label for definition in list_frequencies()}


def frequency_order() -> Dict[str, float]:
    """Rank of every known frequency, finest first."""
    return {definition.value: definition.rank for definition in list_frequencies()}


def get_frequency_order(frequency: Optional[str]) -> float:
    """
    Get the rank of a frequency.

    Unknown (or empty) frequencies get the registry's unknown rank so they
    sort after every known one.
    """
    definition = get_frequency(frequency)
    if definition is None:
        return get_unknown_frequency_rank()
    return definition.rank


def sort_frequencies(frequencies: Iterable[str]) -> List[str]:
    """
    Sort frequencies finest first.

    The sort is stable: unknown frequencies keep their relative input order.

    Example:
        >>> sort_frequencies(["1 year", "weird", "1 day", "other"])
        ['1 day', '1 year', 'weird', 'other']
    """
    return sorted(frequencies, key=get_frequency_order)


def pick_available_frequency(
    target: Optional[str],
    available: Optional[Iterable[str]],
) -> Optional[str]:
    """
    Pick the frequency to use among those available for a series.

    Logic:
    - Nothing available, or target among the available ones: the target
    - No target: the finest available frequency
    - Otherwise: the finest available frequency that is not finer than the
      target, falling back to the coarsest available one

    Example:
        >>> pick_available_frequency("1 hour", ["15 minutes", "1 day"])
        '1 day'
    """
    ordered = sort_frequencies(available or [])
    if not ordered or target in ordered:
        return target

    if not target:
        return ordered[0]

    target_rank = get_frequency_order(target)
    for candidate in ordered:
        if get_frequency_order(candidate) >= target_rank:
            return candidate

    return ordered[-1]


def format_frequency_label(frequency: Optional[str]) -> Optional[str]:
    """French label of a frequency; unknown frequencies are returned as-is, empty ones as None."""
    if not frequency:
        return None
    definition = get_frequency(frequency)
    return definition.label if definition else frequency


def parse_frequency(frequency: Optional[str]) -> Optional[Tuple[int, str]]:
    """
    Parse a "<integer> <unit>" frequency string.

    Returns:
        (count, singular unit), or None when the string does not match

    Example:
        >>> parse_frequency("15 minutes")
        (15, 'minute')
    """
    if not frequency or not isinstance(frequency, str):
        return None

    match = FREQUENCY_PATTERN.match(frequency.lower().strip())
    if not match:
        return None

    return int(match.group(1)), match.group(2)


def is_calendar_based_unit(unit: Optional[str]) -> bool:
    """Check whether a unit has a variable length (month, quarter, year)."""
    return unit in CALENDAR_UNITS


def add_calendar_increment(value: datetime, count: int, unit: str) -> datetime:
    """
    Step a datetime forward by ``count`` calendar units.

    The day of month is clamped to the target month's length, so
    Jan 31 + 1 month gives Feb 28 (or 29).

    Raises:
        ValueError: If ``unit`` is not calendar based
    """
    if not is_calendar_based_unit(unit):
        raise ValueError(f"'{unit}' is not a calendar-based unit")
    return add_months(value, count * MONTHS_PER_UNIT[unit])

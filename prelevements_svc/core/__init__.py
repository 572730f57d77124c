"""
Core module for configuration, logging, and shared reference data.

This module provides:
- Settings: Application configuration via pydantic-settings
- Logging: Structured JSON logging and the default diagnostic sink
- Exceptions: Configuration and caller error classes
- Datetime utilities: Local-calendar date parsing and month arithmetic
- Reference registry: Frequencies, French calendar labels, status colors
"""
from core.config import settings, Settings

from core.logging_config import (
    JSONFormatter,
    WarningSink,
    setup_logging,
    logging_sink,
    resolve_sink,
)

from core.exceptions import (
    SeriesServiceError,
    ReferenceConfigError,
    InvalidThresholdError,
)

from core.datetime_utils import (
    normalize_time,
    parse_quarter_date,
    parse_local_date,
    parse_local_datetime,
    parse_calendar_date,
    to_datetime,
)

from core.reference_registry import (
    FrequencyDefinition,
    CalendarLabels,
    StatusColor,
    get_frequency,
    list_frequencies,
    get_calendar_labels,
    get_status_colors,
    get_status_legend,
    reload_reference_data,
)

__all__ = [
    # Settings
    "settings",
    "Settings",
    # Logging
    "JSONFormatter",
    "WarningSink",
    "setup_logging",
    "logging_sink",
    "resolve_sink",
    # Exceptions
    "SeriesServiceError",
    "ReferenceConfigError",
    "InvalidThresholdError",
    # Datetime utilities
    "normalize_time",
    "parse_quarter_date",
    "parse_local_date",
    "parse_local_datetime",
    "parse_calendar_date",
    "to_datetime",
    # Reference registry
    "FrequencyDefinition",
    "CalendarLabels",
    "StatusColor",
    "get_frequency",
    "list_frequencies",
    "get_calendar_labels",
    "get_status_colors",
    "get_status_legend",
    "reload_reference_data",
]

"""
Central reference registry - single source of truth for sampling frequencies,
French calendar labels and calendar status colors.

This module provides:
- YAML-based configuration loading and validation
- Frozen dataclasses for frequency, label and color definitions
- Read-only access to the loaded reference data

YAML access is encapsulated here - no other module should read reference_data.yaml directly.

Usage:
    from core.reference_registry import get_frequency, get_calendar_labels

    definition = get_frequency("15 minutes")   # FrequencyDefinition or None
    labels = get_calendar_labels()
    labels.month_names[0]                      # 'janvier'
"""

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from core.config import settings
from core.exceptions import ReferenceConfigError

logger = logging.getLogger(__name__)

# "<integer> <unit>", unit optionally pluralized
FREQUENCY_PATTERN = re.compile(r'^(\d+)\s*(second|minute|hour|day|week|month|quarter|year)s?$')

STATUS_KEYS = ('present', 'no_sampling', 'not_declared')


# =============================================================================
# REFERENCE DATACLASSES
# =============================================================================

@dataclass(frozen=True)
class FrequencyDefinition:
    """
    Immutable definition of a known sampling frequency.

    Attributes:
        value: Canonical frequency string (e.g., "15 minutes")
        label: French display label (e.g., "15 minutes", "1 heure")
        rank: Position in the finest-to-coarsest order
        count: Number of units in one interval
        unit: Singular unit name (second, minute, hour, ...)
    """
    value: str
    label: str
    rank: float
    count: int
    unit: str


@dataclass(frozen=True)
class CalendarLabels:
    """French labels used by the calendar generators."""
    month_names: Tuple[str, ...]
    month_short_names: Tuple[str, ...]
    year_aria_prefix: str
    month_aria_prefix: str


@dataclass(frozen=True)
class StatusColor:
    """Calendar day status with its color and legend label."""
    key: str
    color: str
    label: str


@dataclass(frozen=True)
class ReferenceData:
    """Everything loaded from the reference YAML."""
    frequencies: Tuple[FrequencyDefinition, ...]
    unknown_frequency_rank: float
    calendar_labels: CalendarLabels
    status_colors: Tuple[StatusColor, ...]


# =============================================================================
# YAML CONFIGURATION LOADING & VALIDATION
# =============================================================================

def _get_config_path() -> Path:
    """Get the path to the reference data file, honoring the settings override."""
    override = settings.reference_file_path
    if override is not None:
        return override
    return Path(__file__).parent / 'reference_data.yaml'


def _load_yaml_config() -> Dict[str, Any]:
    """
    Load and parse the YAML configuration file.

    Raises:
        FileNotFoundError: If the reference file is not found
        yaml.YAMLError: If YAML parsing fails
    """
    config_path = _get_config_path()
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.error("Reference data file not found", extra={'path': str(config_path)})
        raise
    except yaml.YAMLError as e:
        logger.error("Failed to parse reference data", extra={'path': str(config_path), 'error': str(e)})
        raise


def _validate_frequency_entry(raw: Dict[str, Any], index: int) -> None:
    """
    Validate a single frequency entry from YAML.

    Raises:
        ReferenceConfigError: If required fields are missing or invalid
    """
    for field in ('value', 'label', 'rank'):
        if field not in raw:
            raise ReferenceConfigError(f"frequency at index {index} is missing required field '{field}'")

    if not FREQUENCY_PATTERN.match(str(raw['value']).lower().strip()):
        raise ReferenceConfigError(f"frequency '{raw['value']}' does not match '<integer> <unit>'")

    try:
        float(raw['rank'])
    except (TypeError, ValueError):
        raise ReferenceConfigError(f"frequency '{raw['value']}' has a non-numeric rank")


def _parse_frequency_entry(raw: Dict[str, Any]) -> FrequencyDefinition:
    """Parse a single frequency entry from YAML into a FrequencyDefinition."""
    value = str(raw['value'])
    match = FREQUENCY_PATTERN.match(value.lower().strip())
    return FrequencyDefinition(
        value=value,
        label=str(raw['label']),
        rank=float(raw['rank']),
        count=int(match.group(1)),
        unit=match.group(2),
    )


def _parse_calendar_labels(raw: Dict[str, Any]) -> CalendarLabels:
    """Validate and parse the calendar label section."""
    month_names = tuple(raw.get('month_names') or ())
    month_short_names = tuple(raw.get('month_short_names') or ())
    if len(month_names) != 12 or len(month_short_names) != 12:
        raise ReferenceConfigError("calendar month_names and month_short_names must list 12 months")

    return CalendarLabels(
        month_names=month_names,
        month_short_names=month_short_names,
        year_aria_prefix=raw.get('year_aria_prefix', 'Année'),
        month_aria_prefix=raw.get('month_aria_prefix', 'Mois'),
    )


def _parse_status_colors(raw: Dict[str, Any]) -> Tuple[StatusColor, ...]:
    """Validate and parse the status color section."""
    statuses: List[StatusColor] = []
    for key in STATUS_KEYS:
        entry = raw.get(key)
        if not entry or 'color' not in entry:
            raise ReferenceConfigError(f"status color '{key}' is missing")

        color = entry['color']
        if not re.match(r'^#[0-9A-Fa-f]{6}$', str(color)):
            raise ReferenceConfigError(f"status '{key}' has invalid color format: '{color}'")

        statuses.append(StatusColor(key=key, color=color, label=entry.get('label', key)))
    return tuple(statuses)


@lru_cache(maxsize=1)
def _load_registry() -> ReferenceData:
    """
    Load and cache the complete reference registry from YAML.

    This function is cached to ensure the YAML file is loaded exactly once
    during the lifetime of the process (see reload_reference_data).
    """
    config = _load_yaml_config()

    frequencies: List[FrequencyDefinition] = []
    for i, raw in enumerate(config.get('frequencies', [])):
        _validate_frequency_entry(raw, i)
        frequencies.append(_parse_frequency_entry(raw))

    ranks = [definition.rank for definition in frequencies]
    if ranks != sorted(ranks) or len(set(ranks)) != len(ranks):
        raise ReferenceConfigError("frequency ranks must be strictly ascending")

    unknown_rank = float(config.get('unknown_frequency_rank', 999))
    if ranks and unknown_rank <= ranks[-1]:
        raise ReferenceConfigError("unknown_frequency_rank must be above every known rank")

    return ReferenceData(
        frequencies=tuple(frequencies),
        unknown_frequency_rank=unknown_rank,
        calendar_labels=_parse_calendar_labels(config.get('calendar', {})),
        status_colors=_parse_status_colors(config.get('status_colors', {})),
    )


@lru_cache(maxsize=1)
def _build_frequency_lookup() -> Dict[str, FrequencyDefinition]:
    """Build the exact-string lookup of known frequencies. Called once and cached."""
    lookup: Dict[str, FrequencyDefinition] = {}
    for definition in _load_registry().frequencies:
        if definition.value in lookup:
            logger.warning("Duplicate frequency detected", extra={'frequency': definition.value})
        lookup[definition.value] = definition
    return lookup


def reload_reference_data() -> None:
    """Drop the cached registry so the next access reloads the YAML file."""
    _load_registry.cache_clear()
    _build_frequency_lookup.cache_clear()


# =============================================================================
# PUBLIC API
# =============================================================================

def get_frequency(value: Optional[str]) -> Optional[FrequencyDefinition]:
    """
    Get a known frequency definition by its exact string.

    Returns None for unknown or empty values.
    """
    if not value or not isinstance(value, str):
        return None
    return _build_frequency_lookup().get(value)


def list_frequencies() -> Tuple[FrequencyDefinition, ...]:
    """List all known frequencies, finest first."""
    return _load_registry().frequencies


def get_unknown_frequency_rank() -> float:
    """Rank assigned to frequencies missing from the registry."""
    return _load_registry().unknown_frequency_rank


def get_calendar_labels() -> CalendarLabels:
    """Get the French calendar labels."""
    return _load_registry().calendar_labels


def get_status_colors() -> Dict[str, str]:
    """
    Get calendar status colors keyed by status.

    Returns:
        Mapping with keys 'present', 'no_sampling', 'not_declared'
    """
    return {status.key: status.color for status in _load_registry().status_colors}


def get_status_legend() -> List[Dict[str, str]]:
    """Get the calendar legend as a list of {color, label} rows."""
    return [
        {'color': status.color, 'label': status.label}
        for status in _load_registry().status_colors
    ]

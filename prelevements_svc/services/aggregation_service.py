"""
Aggregation of loaded parameter samples into daily values and timeline samples.

Responsible for:
- Validating raw samples at the boundary (shape normalization happens in schemas)
- Folding direct daily values and sub-daily readings into one value per day
- Building a unified, timestamp-sorted timeline of (day or day+time) samples
- Attaching normalized remarks to values

Daily values feed the calendar pipeline; timeline samples feed the charts.
Both are positional: slot ``i`` of ``values``/``metas`` belongs to
``selected_params[i]``.
"""

import logging
from collections import defaultdict
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from pydantic import ValidationError

from core.datetime_utils import normalize_time, parse_local_datetime
from core.logging_config import WarningSink, resolve_sink
from core.value_utils import coerce_numeric_value
from schemas.samples import RawSample
from services.remarks import Meta, build_meta

logger = logging.getLogger(__name__)


# =============================================================================
# NORMALIZED DATA STRUCTURES
# =============================================================================

@dataclass
class DailyValue:
    """One aggregated value per selected parameter for a calendar day."""
    date: str
    values: List[Optional[float]]
    metas: List[Optional[Meta]]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'date': self.date,
            'values': list(self.values),
            'metas': [meta.to_dict() if meta else None for meta in self.metas],
        }


@dataclass
class TimelineSample:
    """
    A timestamped point of the chart timeline.

    ``time`` is None for daily samples and "HH:MM" for sub-daily readings.
    """
    date: str
    time: Optional[str]
    timestamp: datetime
    values: List[Optional[float]]
    metas: List[Optional[Meta]]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'date': self.date,
            'time': self.time,
            'timestamp': self.timestamp,
            'values': list(self.values),
            'metas': [meta.to_dict() if meta else None for meta in self.metas],
        }


@dataclass
class AggregationResult:
    """Daily values sorted by date and timeline samples sorted by timestamp."""
    daily_values: List[DailyValue] = field(default_factory=list)
    timeline_samples: List[TimelineSample] = field(default_factory=list)

    def is_empty(self) -> bool:
        """Check if nothing could be aggregated."""
        return not self.daily_values and not self.timeline_samples


# =============================================================================
# AGGREGATOR
# =============================================================================

class TimelineAggregator:
    """
    Per-call aggregation context.

    Holds the day and timeline maps while samples are folded in. An instance
    must not be reused across calls; ``build_daily_and_timeline_data`` creates
    a fresh one every time.
    """

    def __init__(self, parameters_count: int, on_warning: Optional[WarningSink] = None):
        self.parameters_count = parameters_count
        self.warn = resolve_sink(on_warning, logger)
        self._daily: Dict[str, DailyValue] = {}
        self._timeline: Dict[Tuple[str, Optional[str]], TimelineSample] = {}
        self._timeline_by_date: Dict[str, List[TimelineSample]] = defaultdict(list)
        self._invalid_keys: Set[Tuple[str, Optional[str]]] = set()

    def _empty_slots(self) -> List[Any]:
        return [None] * self.parameters_count

    def _get_or_create_daily(self, date: str) -> DailyValue:
        daily = self._daily.get(date)
        if daily is None:
            daily = DailyValue(date=date, values=self._empty_slots(), metas=self._empty_slots())
            self._daily[date] = daily
        return daily

    def _get_or_create_sample(self, date: str, time: Optional[str] = None) -> Optional[TimelineSample]:
        """Return the timeline sample for (date, time), creating it when the timestamp parses."""
        key = (date, time)
        sample = self._timeline.get(key)
        if sample is not None:
            return sample

        if key in self._invalid_keys:
            return None

        timestamp = parse_local_datetime(date, time)
        if timestamp is None:
            self._invalid_keys.add(key)
            self.warn("Unparseable sample timestamp, skipping", {'date': date, 'time': time})
            return None

        sample = TimelineSample(
            date=date,
            time=time,
            timestamp=timestamp,
            values=self._empty_slots(),
            metas=self._empty_slots(),
        )
        self._timeline[key] = sample
        self._timeline_by_date[date].append(sample)
        return sample

    def _validate(self, raw: Any, param_label: str) -> Optional[RawSample]:
        """Validate a raw entry; entries without a date are skipped silently."""
        if isinstance(raw, RawSample):
            return raw if raw.date else None

        if not isinstance(raw, Mapping):
            if raw is not None:
                self.warn("Sample is not an object, skipping", {
                    'parameter': param_label,
                    'type': type(raw).__name__,
                })
            return None

        if not raw.get('date'):
            return None

        try:
            sample = RawSample.model_validate(raw)
        except ValidationError as e:
            self.warn("Invalid sample, skipping", {
                'parameter': param_label,
                'date': raw.get('date'),
                'errors': e.error_count(),
            })
            return None

        return sample if sample.date else None

    def add_sample(self, param_index: int, param_label: str, raw: Any) -> None:
        """Fold one raw sample of the parameter at ``param_index`` into the context."""
        sample = self._validate(raw, param_label)
        if sample is None:
            return

        direct_value = coerce_numeric_value(sample.value)
        if direct_value is not None:
            self._assign_direct(param_index, sample, direct_value)
            return

        if sample.values:
            self._assign_sub_daily(param_index, sample)

    def _assign_direct(self, param_index: int, sample: RawSample, value: float) -> None:
        meta = build_meta(sample)

        daily = self._get_or_create_daily(sample.date)
        daily.values[param_index] = value
        daily.metas[param_index] = meta

        timeline_sample = self._get_or_create_sample(sample.date)
        if timeline_sample is not None:
            timeline_sample.values[param_index] = value
            timeline_sample.metas[param_index] = meta

    def _assign_sub_daily(self, param_index: int, sample: RawSample) -> None:
        """Place each intra-day reading on the timeline and average them into the day."""
        total = 0.0
        count = 0

        for reading in sample.values:
            value = coerce_numeric_value(reading.value)
            if value is None:
                continue

            time = None
            if reading.time is not None:
                time = normalize_time(reading.time)
                if time is None:
                    self.warn("Invalid sub-daily time, skipping reading", {
                        'date': sample.date,
                        'time': reading.time,
                    })
                    continue

            timeline_sample = self._get_or_create_sample(sample.date, time)
            if timeline_sample is None:
                continue

            timeline_sample.values[param_index] = value
            timeline_sample.metas[param_index] = build_meta(reading)
            total += value
            count += 1

        if count > 0:
            daily = self._get_or_create_daily(sample.date)
            daily.values[param_index] = total / count
            daily.metas[param_index] = build_meta(sample)

    def fill_sub_daily_gaps(self) -> None:
        """Copy each day's aggregated values into that day's timeline samples where still empty."""
        for daily in self._daily.values():
            for timeline_sample in self._timeline_by_date.get(daily.date, []):
                for index, daily_value in enumerate(daily.values):
                    if daily_value is not None and timeline_sample.values[index] is None:
                        timeline_sample.values[index] = daily_value

    def result(self) -> AggregationResult:
        """Return daily values sorted by ISO date and timeline samples sorted by timestamp."""
        return AggregationResult(
            daily_values=sorted(self._daily.values(), key=lambda entry: entry.date),
            timeline_samples=sorted(self._timeline.values(), key=lambda entry: entry.timestamp),
        )


def build_daily_and_timeline_data(
    loaded_values: Optional[Mapping],
    selected_params: Optional[Sequence[str]],
    fill_sub_daily_gaps: bool = True,
    on_warning: Optional[WarningSink] = None,
) -> AggregationResult:
    """
    Transform loaded values keyed by parameter label into daily values
    (for the calendar) and timeline samples (for charts).

    Args:
        loaded_values: Mapping of parameter label -> list of raw samples
        selected_params: Ordered parameter labels; defines slot order
        fill_sub_daily_gaps: Backfill daily aggregates into sub-daily samples
            of the same day where a parameter has no reading; pass False to
            keep each timeline sample limited to its own readings
        on_warning: Diagnostic sink for skipped records (defaults to logging)

    Returns:
        AggregationResult, empty when either input is empty or missing
    """
    if not loaded_values or not selected_params:
        return AggregationResult()

    aggregator = TimelineAggregator(len(selected_params), on_warning=on_warning)

    for param_index, param_label in enumerate(selected_params):
        samples = loaded_values.get(param_label) or []
        if not isinstance(samples, (list, tuple)):
            aggregator.warn("Parameter values are not a list, skipping", {
                'parameter': param_label,
                'type': type(samples).__name__,
            })
            continue

        for raw in samples:
            aggregator.add_sample(param_index, param_label, raw)

    if fill_sub_daily_gaps:
        aggregator.fill_sub_daily_gaps()

    result = aggregator.result()
    logger.debug("Aggregated samples", extra={
        'parameters': len(selected_params),
        'daily_values': len(result.daily_values),
        'timeline_samples': len(result.timeline_samples),
    })
    return result

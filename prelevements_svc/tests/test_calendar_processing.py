"""
Unit tests for calendar data processing.

Tests cover:
- process_calendar_data: strict parsing, grouping, bounds, invalid dates
- resolve_aggregated_color: first color wins
- determine_calendar_mode: month/year/multi-year thresholds
- resolve_status_color / build_calendar_entries: daily values to entries
"""
from datetime import datetime

import pytest

from core.config import settings
from services.aggregation_service import DailyValue
from services.calendar.processing import (
    CalendarEntry,
    build_calendar_entries,
    determine_calendar_mode,
    process_calendar_data,
    resolve_aggregated_color,
    resolve_status_color,
)


# =============================================================================
# TESTS: process_calendar_data
# =============================================================================

class TestProcessCalendarData:
    """Tests for process_calendar_data."""

    def test_groups_by_granularity(self):
        """Should index each entry by day, month and year."""
        processed = process_calendar_data([
            {'date': '15-01-2024', 'color': 'blue'},
            {'date': '16-01-2024'},
            {'date': '01-03-2025', 'color': 'red'},
        ])

        assert set(processed.entries_by_day) == {'2024-01-15', '2024-01-16', '2025-03-01'}
        assert len(processed.entries_by_month['2024-01']) == 2
        assert len(processed.entries_by_year['2025']) == 1
        assert processed.min_date == datetime(2024, 1, 15)
        assert processed.max_date == datetime(2025, 3, 1)
        assert processed.total_count == 3
        assert processed.invalid_count == 0

    def test_entry_enriched(self):
        """Should keep the input fields and add the parsed date."""
        processed = process_calendar_data([{'date': '02-02-2024', 'color': 'blue', 'volume': 3}])
        entry = processed.entries_by_day['2024-02-02'][0]

        assert isinstance(entry, CalendarEntry)
        assert entry.date_obj == datetime(2024, 2, 2)
        assert entry.color == 'blue'
        assert entry.data['volume'] == 3

    @pytest.mark.parametrize("bad_date", ['2024-01-15', '32-01-2024', '1-1-2024', '', None, 20240115])
    def test_invalid_dates_dropped(self, bad_date, warnings_sink):
        """Should drop non dd-MM-yyyy dates with a warning."""
        processed = process_calendar_data(
            [{'date': bad_date}, {'date': '10-10-2024'}],
            on_warning=warnings_sink,
        )

        assert list(processed.entries_by_day) == ['2024-10-10']
        assert processed.invalid_count == 1
        assert len(warnings_sink) == 1
        assert not processed.has_only_invalid_dates

    def test_only_invalid_dates(self, warnings_sink):
        """Should flag input where every date is invalid."""
        processed = process_calendar_data([{'date': 'x'}, {'date': 'y'}], on_warning=warnings_sink)

        assert processed.has_only_invalid_dates
        assert processed.min_date is None
        assert processed.max_date is None
        assert len(warnings_sink) == 2

    @pytest.mark.parametrize("data", [None, []])
    def test_empty(self, data):
        """Should return empty groups without data."""
        processed = process_calendar_data(data)
        assert processed.entries_by_day == {}
        assert not processed.has_data
        assert not processed.has_only_invalid_dates


# =============================================================================
# TESTS: resolve_aggregated_color
# =============================================================================

class TestResolveAggregatedColor:
    """Tests for resolve_aggregated_color."""

    def _entry(self, color):
        return CalendarEntry(date='01-01-2024', date_obj=datetime(2024, 1, 1), color=color)

    def test_first_color_wins(self):
        """Should return the first non-empty color."""
        entries = [self._entry(None), self._entry('red'), self._entry('blue')]
        assert resolve_aggregated_color(entries) == 'red'

    @pytest.mark.parametrize("entries", [None, []])
    def test_no_entries(self, entries):
        """Should return None without entries."""
        assert resolve_aggregated_color(entries) is None

    def test_no_color(self):
        """Should return None when no entry has a color."""
        assert resolve_aggregated_color([self._entry(None), self._entry('')]) is None


# =============================================================================
# TESTS: determine_calendar_mode
# =============================================================================

class TestDetermineCalendarMode:
    """Tests for determine_calendar_mode."""

    @pytest.mark.parametrize("start,end,mode", [
        (datetime(2024, 1, 1), datetime(2024, 6, 30), 'month'),
        (datetime(2024, 1, 1), datetime(2024, 7, 1), 'year'),
        (datetime(2019, 1, 1), datetime(2024, 12, 31), 'year'),
        (datetime(2019, 1, 1), datetime(2025, 1, 1), 'multi-year'),
        (datetime(2024, 3, 10), datetime(2024, 3, 10), 'month'),
    ])
    def test_span_thresholds(self, start, end, mode):
        """Should count calendar months with both bounds included."""
        assert determine_calendar_mode(start, end) == mode

    def test_missing_bound(self):
        """Should fall back to month mode."""
        assert determine_calendar_mode(None, datetime(2024, 1, 1)) == 'month'
        assert determine_calendar_mode(datetime(2024, 1, 1), None) == 'month'

    def test_thresholds_follow_settings(self, monkeypatch):
        """Should use the configured spans."""
        monkeypatch.setattr(settings, 'series_calendar_year_months', 2)
        assert determine_calendar_mode(datetime(2024, 1, 1), datetime(2024, 3, 1)) == 'year'


# =============================================================================
# TESTS: status colors
# =============================================================================

class TestStatusColors:
    """Tests for resolve_status_color and build_calendar_entries."""

    def test_present(self, status_colors):
        """Should mark days with a non-zero value as present."""
        assert resolve_status_color({'values': [0, 3.2]}, status_colors) == '#111111'

    def test_no_sampling(self, status_colors):
        """Should mark days with only zeros as no sampling."""
        assert resolve_status_color({'values': [0, None, 0.0]}, status_colors) == '#222222'

    def test_not_declared(self, status_colors):
        """Should mark days without values as not declared."""
        assert resolve_status_color({'values': [None]}, status_colors) == '#333333'
        assert resolve_status_color({}, status_colors) == '#333333'

    def test_default_palette(self):
        """Should default to the reference colors."""
        assert resolve_status_color({'values': [1]}) == '#000091'

    def test_build_entries(self, status_colors):
        """Should convert ISO dates to dd-MM-yyyy entries."""
        daily_values = [
            DailyValue(date='2024-01-15', values=[2.0], metas=[None]),
            DailyValue(date='2024-01-16', values=[0.0], metas=[None]),
            {'date': 'invalid', 'values': [1]},
        ]

        entries = build_calendar_entries(daily_values, lambda value: resolve_status_color(value, status_colors))
        assert entries == [
            {'date': '15-01-2024', 'color': '#111111'},
            {'date': '16-01-2024', 'color': '#222222'},
        ]

    def test_build_entries_feed_processing(self):
        """Should produce entries the calendar processor accepts."""
        entries = build_calendar_entries([{'date': '2024-05-01', 'values': [1]}])
        processed = process_calendar_data(entries)
        assert processed.entries_by_day['2024-05-01'][0].color == '#000091'

"""
Unit tests for calendar cell generators.

Tests cover:
- generate_multi_year_calendars: one cell per year
- generate_yearly_calendars: 12 month cells with French labels
- generate_monthly_calendars: weekday alignment, placeholders, day cells
"""
from datetime import datetime

import pytest

from services.calendar.generators import (
    capitalize,
    format_long_date,
    generate_monthly_calendars,
    generate_multi_year_calendars,
    generate_yearly_calendars,
)
from services.calendar.processing import process_calendar_data


def _grouped(dates_and_colors):
    return process_calendar_data([{'date': value, 'color': color} for value, color in dates_and_colors])


# =============================================================================
# TESTS: helpers
# =============================================================================

class TestLabelHelpers:
    """Tests for label helpers."""

    def test_capitalize(self):
        """Should uppercase only the first character."""
        assert capitalize("janv.") == "Janv."
        assert capitalize("") == ""
        assert capitalize("éTé") == "ÉTé"

    def test_long_date(self):
        """Should format French long dates."""
        assert format_long_date(datetime(2024, 1, 1)) == "1 janvier 2024"
        assert format_long_date(datetime(2024, 8, 15)) == "15 août 2024"


# =============================================================================
# TESTS: multi-year
# =============================================================================

class TestMultiYearCalendars:
    """Tests for generate_multi_year_calendars."""

    def test_one_cell_per_year(self):
        """Should build a single compact grid covering every year."""
        processed = _grouped([('01-06-2018', 'blue'), ('01-06-2021', 'red')])
        calendars = generate_multi_year_calendars(
            processed.entries_by_year, processed.min_date, processed.max_date
        )

        assert len(calendars) == 1
        description = calendars[0]
        assert description.key == 'multi-year'
        assert description.title == '2018 - 2021'
        assert description.compact_mode is True
        assert [cell.label for cell in description.cells] == ['2018', '2019', '2020', '2021']

        first = description.cells[0]
        assert first.key == 'year-2018'
        assert first.color == 'blue'
        assert first.aria_label == 'Année 2018'
        assert first.is_interactive is False
        assert first.period_start == datetime(2018, 1, 1)
        assert first.period_end.date() == datetime(2018, 12, 31).date()

        assert description.cells[1].color is None
        assert description.cells[1].entries == []


# =============================================================================
# TESTS: yearly
# =============================================================================

class TestYearlyCalendars:
    """Tests for generate_yearly_calendars."""

    def test_twelve_month_cells(self):
        """Should build one grid of 12 months per year."""
        processed = _grouped([('15-02-2023', 'blue'), ('10-01-2024', 'red')])
        calendars = generate_yearly_calendars(
            processed.entries_by_month, processed.min_date, processed.max_date
        )

        assert [description.key for description in calendars] == ['year-2023', 'year-2024']
        assert all(len(description.cells) == 12 for description in calendars)
        assert all(description.compact_mode for description in calendars)
        assert calendars[0].title == '2023'

    def test_month_cell_labels(self):
        """Should use capitalized French abbreviations and long ARIA labels."""
        processed = _grouped([('15-01-2024', 'blue')])
        cells = generate_yearly_calendars(
            processed.entries_by_month, processed.min_date, processed.max_date
        )[0].cells

        assert cells[0].label == 'Janv.'
        assert cells[0].aria_label == 'Mois janvier 2024'
        assert cells[0].key == 'month-2024-01'
        assert cells[0].color == 'blue'
        assert cells[0].mode == 'year'
        assert cells[7].label == 'Août'
        assert cells[11].label == 'Déc.'
        assert cells[1].period_end.day == 29


# =============================================================================
# TESTS: monthly
# =============================================================================

class TestMonthlyCalendars:
    """Tests for generate_monthly_calendars."""

    @pytest.mark.parametrize("day,leading,trailing", [
        ('01-01-2024', 0, 4),   # Monday, 31 days
        ('01-02-2024', 3, 3),   # Thursday, 29 days
        ('01-01-2023', 6, 5),   # Sunday, 31 days
    ])
    def test_grid_alignment(self, day, leading, trailing):
        """Should align day 1 on its ISO weekday and pad to full weeks."""
        processed = _grouped([(day, 'blue')])
        cells = generate_monthly_calendars(
            processed.entries_by_day, processed.min_date, processed.max_date
        )[0].cells

        placeholders_start = [cell for cell in cells[:leading] if cell.is_placeholder]
        placeholders_end = [cell for cell in cells[len(cells) - trailing:] if cell.is_placeholder] if trailing else []
        assert len(placeholders_start) == leading
        assert len(placeholders_end) == trailing
        assert len(cells) % 7 == 0
        assert cells[leading].label == '1'

    def test_day_cells(self):
        """Should mark only days with entries as interactive."""
        processed = _grouped([('05-03-2024', 'blue'), ('05-03-2024', 'red')])
        description = generate_monthly_calendars(
            processed.entries_by_day, processed.min_date, processed.max_date
        )[0]

        assert description.title == 'Mars 2024'
        assert description.key == 'month-2024-03'
        assert description.compact_mode is False

        days = [cell for cell in description.cells if not cell.is_placeholder]
        assert len(days) == 31
        fifth = days[4]
        assert fifth.key == '2024-03-05'
        assert fifth.color == 'blue'
        assert fifth.is_interactive is True
        assert fifth.aria_label == '5 mars 2024'
        assert fifth.entries[0].color == 'blue'
        assert days[0].is_interactive is False
        assert days[0].entries == []
        assert days[0].color is None

    def test_one_grid_per_month(self):
        """Should cover every month between the bounds."""
        processed = _grouped([('20-11-2023', 'blue'), ('03-02-2024', 'red')])
        calendars = generate_monthly_calendars(
            processed.entries_by_day, processed.min_date, processed.max_date
        )
        assert [description.key for description in calendars] == [
            'month-2023-11', 'month-2023-12', 'month-2024-01', 'month-2024-02'
        ]

    def test_placeholder_serialization(self):
        """Should serialize placeholders without data."""
        processed = _grouped([('01-02-2024', 'blue')])
        cells = generate_monthly_calendars(
            processed.entries_by_day, processed.min_date, processed.max_date
        )[0].cells

        assert cells[0].to_dict() == {
            'key': 'placeholder-start-2024-02-0',
            'mode': 'month',
            'is_placeholder': True,
        }

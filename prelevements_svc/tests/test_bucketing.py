"""
Unit tests for display resolution selection and time bucketing.

Tests cover:
- choose_display_resolution: range and width driven, coarse resolutions gated by range
- choose_series_bucket_resolution: never finer than the native sampling
- floor_to_bucket: every resolution
- aggregate_series_into_buckets: mean/sum, min/max/count, merged remarks
- bucket_series_collection: per-series resolutions and range fallback
"""
from datetime import datetime

import pytest

from core.config import settings
from services.charting.bucketing import (
    TimeRange,
    aggregate_series_into_buckets,
    bucket_series_collection,
    choose_display_resolution,
    choose_series_bucket_resolution,
    floor_to_bucket,
    normalize_time_range,
    resolution_from_frequency,
    resolution_to_frequency,
)
from services.remarks import Meta


# =============================================================================
# TESTS: resolution selection
# =============================================================================

class TestChooseDisplayResolution:
    """Tests for choose_display_resolution."""

    def test_one_day(self):
        """Should use hourly buckets for a single day on a wide chart."""
        assert choose_display_resolution(datetime(2024, 1, 1), datetime(2024, 1, 2), 1200) == '1h'

    def test_ten_months(self):
        """Should use monthly buckets for most of a year on a wide chart."""
        assert choose_display_resolution(datetime(2024, 1, 1), datetime(2024, 11, 1), 1200) == '1M'

    def test_month_needs_three_months(self):
        """Should not use monthly buckets for two months, even on a narrow chart."""
        assert choose_display_resolution(datetime(2024, 1, 1), datetime(2024, 3, 1), 50) != '1M'
        resolution = choose_display_resolution(datetime(2024, 1, 1), datetime(2024, 7, 1), 50)
        assert resolution in ('1d', '1M')
        assert resolution != '1Q'

    def test_quarter_for_narrow_year(self):
        """Should use quarterly buckets for a full year on a narrow chart."""
        assert choose_display_resolution(datetime(2024, 1, 1), datetime(2025, 1, 1), 50) == '1Q'

    def test_year_needs_three_years(self):
        """Should not use yearly buckets for two years."""
        assert choose_display_resolution(datetime(2024, 1, 1), datetime(2026, 1, 1), 10) != '1Y'
        assert choose_display_resolution(datetime(2020, 1, 1), datetime(2025, 1, 1), 10) in ('1Q', '1Y')

    @pytest.mark.parametrize("start,end", [
        (None, datetime(2024, 1, 1)),
        ("not a date", "2024-01-02"),
        (datetime(2024, 1, 2), datetime(2024, 1, 1)),
        (datetime(2024, 1, 1), datetime(2024, 1, 1)),
    ])
    def test_invalid_range(self, start, end):
        """Should fall back to the finest resolution."""
        assert choose_display_resolution(start, end) == '15m'

    def test_accepts_iso_strings(self):
        """Should parse string bounds."""
        assert choose_display_resolution("2024-01-01", "2024-01-02") == '1h'


class TestSeriesBucketResolution:
    """Tests for choose_series_bucket_resolution."""

    @pytest.mark.parametrize("display,native,expected", [
        ('15m', '1h', '1h'),
        ('1d', '15m', '1d'),
        ('1M', '1Q', '1Q'),
        ('6h', 'unknown', '6h'),
    ])
    def test_coarsest_wins(self, display, native, expected):
        """Should never bucket finer than either resolution."""
        assert choose_series_bucket_resolution(display, native) == expected


class TestFrequencyConversion:
    """Tests for resolution_from_frequency and resolution_to_frequency."""

    @pytest.mark.parametrize("frequency,resolution", [
        ('15 minutes', '15m'),
        ('6 hours', '6h'),
        ('1 day', '1d'),
        ('1 quarter', '1Q'),
        ('1 year', '1Y'),
        ('1 second', '15m'),
    ])
    def test_from_frequency(self, frequency, resolution):
        """Should map a frequency to the closest resolution not finer than it."""
        assert resolution_from_frequency(frequency) == resolution

    @pytest.mark.parametrize("frequency", [None, '', 'weekly'])
    def test_from_invalid_frequency(self, frequency):
        """Should return None for unparseable frequencies."""
        assert resolution_from_frequency(frequency) is None

    def test_to_frequency(self):
        """Should return the frequency string, defaulting to the finest one."""
        assert resolution_to_frequency('1h') == '1 hour'
        assert resolution_to_frequency('6h') == '6 hours'
        assert resolution_to_frequency('unknown') == '15 minutes'


# =============================================================================
# TESTS: floor_to_bucket
# =============================================================================

class TestFloorToBucket:
    """Tests for floor_to_bucket."""

    @pytest.mark.parametrize("resolution,expected", [
        ('15m', datetime(2024, 5, 17, 10, 15)),
        ('1h', datetime(2024, 5, 17, 10, 0)),
        ('6h', datetime(2024, 5, 17, 6, 0)),
        ('1d', datetime(2024, 5, 17)),
        ('1M', datetime(2024, 5, 1)),
        ('1Q', datetime(2024, 4, 1)),
        ('1Y', datetime(2024, 1, 1)),
        ('weird', datetime(2024, 5, 17, 10, 15)),
    ])
    def test_resolutions(self, resolution, expected):
        """Should return the start of the enclosing bucket."""
        assert floor_to_bucket(datetime(2024, 5, 17, 10, 23, 45), resolution) == expected

    def test_invalid_date(self):
        """Should return None for values that are not dates."""
        assert floor_to_bucket("nope", '1d') is None
        assert floor_to_bucket(None, '1d') is None


# =============================================================================
# TESTS: aggregation
# =============================================================================

class TestAggregateSeriesIntoBuckets:
    """Tests for aggregate_series_into_buckets."""

    def test_instant_mean(self):
        """Should average instant series and keep min, max and count."""
        points = [
            {'t': datetime(2024, 1, 1, 0, 0), 'value': 2},
            {'t': datetime(2024, 1, 1, 0, 10), 'value': 4},
            {'t': datetime(2024, 1, 1, 0, 20), 'value': 6},
        ]
        buckets = aggregate_series_into_buckets(points, '15m')

        assert [bucket.t for bucket in buckets] == [datetime(2024, 1, 1, 0, 0), datetime(2024, 1, 1, 0, 15)]
        assert buckets[0].value == 3
        assert (buckets[0].min, buckets[0].max, buckets[0].count) == (2, 4, 2)
        assert buckets[1].value == 6

    def test_cumulative_sum(self):
        """Should sum cumulative series."""
        points = [
            {'t': datetime(2024, 1, 1, 0, 0), 'value': 1},
            {'t': datetime(2024, 1, 1, 0, 30), 'value': 2},
            {'t': datetime(2024, 1, 1, 1, 0), 'value': 3},
        ]
        buckets = aggregate_series_into_buckets(points, '1h', kind='cumulative')
        assert [bucket.value for bucket in buckets] == [3, 3]

    def test_merged_remarks(self):
        """Should merge unique bucket remarks in order of appearance."""
        points = [
            {'t': datetime(2024, 1, 1, 0, 0), 'value': 1, 'meta': {'comment': 'Estimation'}},
            {'t': datetime(2024, 1, 1, 0, 5), 'value': 1, 'meta': {'comment': ' Capteur '}},
            {'t': datetime(2024, 1, 1, 0, 10), 'value': 1, 'meta': Meta(comment='Estimation')},
            {'t': datetime(2024, 1, 1, 0, 12), 'value': 1, 'meta': {'comment': '  '}},
        ]
        buckets = aggregate_series_into_buckets(points, '15m')

        assert buckets[0].meta == Meta(comment='Estimation • Capteur')
        assert buckets[0].to_dict()['meta'] == {'comment': 'Estimation • Capteur'}

    def test_remarks_capped(self, monkeypatch):
        """Should cap bucket remarks like sample remarks."""
        monkeypatch.setattr(settings, "series_remark_max_items", 2)
        points = [
            {'t': datetime(2024, 1, 1), 'value': 1, 'meta': {'comment': comment}}
            for comment in ('a', 'b', 'c')
        ]
        assert aggregate_series_into_buckets(points, '1d')[0].meta == Meta(comment='a • b')

    def test_no_remarks(self):
        """Should leave meta out when no point carries a remark."""
        bucket = aggregate_series_into_buckets([{'t': datetime(2024, 1, 1), 'value': 1}], '1d')[0]
        assert bucket.meta is None
        assert 'meta' not in bucket.to_dict()

    def test_point_shapes(self):
        """Should read x/y, timestamp and date keys and numeric strings."""
        points = [
            {'x': datetime(2024, 1, 1, 8), 'y': 1},
            {'timestamp': datetime(2024, 1, 1, 9), 'value': '3'},
            {'date': '2024-01-01', 'value': 5},
        ]
        buckets = aggregate_series_into_buckets(points, '1d')
        assert len(buckets) == 1
        assert buckets[0].count == 3
        assert buckets[0].value == 3

    def test_invalid_points_skipped(self):
        """Should skip points without a date or a numeric value."""
        points = [
            {'t': datetime(2024, 1, 1), 'value': None},
            {'t': datetime(2024, 1, 1), 'value': float('nan')},
            {'t': 'garbage', 'value': 1},
            {'value': 1},
            {'t': datetime(2024, 1, 1), 'value': 7},
        ]
        buckets = aggregate_series_into_buckets(points, '1d')
        assert [(bucket.value, bucket.count) for bucket in buckets] == [(7, 1)]

    def test_time_range_inclusive(self):
        """Should keep points on both bounds only."""
        points = [{'t': datetime(2024, 1, day), 'value': day} for day in range(1, 6)]
        time_range = TimeRange(start=datetime(2024, 1, 2), end=datetime(2024, 1, 4))

        buckets = aggregate_series_into_buckets(points, '1d', time_range=time_range)
        assert [bucket.value for bucket in buckets] == [2, 3, 4]

    def test_sorted_output(self):
        """Should sort buckets by start regardless of input order."""
        points = [{'t': datetime(2024, 3, 1), 'value': 3}, {'t': datetime(2024, 1, 1), 'value': 1}]
        buckets = aggregate_series_into_buckets(points, '1M')
        assert [bucket.t for bucket in buckets] == [datetime(2024, 1, 1), datetime(2024, 3, 1)]

    def test_empty(self):
        """Should return an empty list without points."""
        assert aggregate_series_into_buckets([], '1d') == []
        assert aggregate_series_into_buckets(None, '1d') == []


# =============================================================================
# TESTS: collection
# =============================================================================

class TestBucketSeriesCollection:
    """Tests for bucket_series_collection and normalize_time_range."""

    def _series(self):
        return [
            {
                'id': 'fast',
                'meta': {'native_resolution': '15m'},
                'data': [
                    {'t': datetime(2024, 1, 2, 0, 0), 'value': 1},
                    {'t': datetime(2024, 1, 2, 0, 15), 'value': 3},
                ],
            },
            {
                'id': 'slow',
                'meta': {'native_frequency': '1 day', 'kind': 'cumulative'},
                'data': [
                    {'t': datetime(2024, 1, 2), 'value': 10},
                    {'t': datetime(2024, 1, 3), 'value': 20},
                ],
            },
        ]

    def test_per_series_resolution(self):
        """Should bucket each series at the display or its native resolution."""
        time_range = {'start': datetime(2024, 1, 1), 'end': datetime(2024, 1, 10)}
        result = bucket_series_collection(self._series(), time_range, 1200)

        assert result.display_resolution == '6h'
        fast, slow = result.bucketed_series
        assert (fast.id, fast.bucket_resolution) == ('fast', '6h')
        assert [point.value for point in fast.data] == [2]
        assert (slow.id, slow.bucket_resolution) == ('slow', '1d')
        assert [point.value for point in slow.data] == [10, 20]

    def test_missing_meta(self):
        """Should bucket a series without meta at the display resolution."""
        time_range = {'start': datetime(2024, 1, 1), 'end': datetime(2024, 1, 10)}
        result = bucket_series_collection([{'id': 'plain', 'data': []}], time_range)

        assert result.bucketed_series[0].bucket_resolution == '6h'
        assert result.bucketed_series[0].data == []
        assert result.bucketed_series[0].meta == {}

    def test_range_from_data(self):
        """Should derive the range from the data when none is given."""
        result = bucket_series_collection(self._series(), None)
        assert result.display_resolution == '1h'
        assert result.bucketed_series[0].bucket_resolution == '1h'
        assert result.bucketed_series[1].bucket_resolution == '1d'

    def test_no_range(self):
        """Should use the finest resolution without any usable range."""
        result = bucket_series_collection([{'id': 'single', 'data': [{'t': datetime(2024, 1, 1), 'value': 4}]}])
        assert result.display_resolution == '15m'
        assert result.bucketed_series[0].data[0].value == 4

    def test_normalize_time_range(self):
        """Should keep a valid requested range and fall back to the data span otherwise."""
        requested = normalize_time_range({'start': '2024-01-01', 'end': '2024-02-01'})
        assert requested == TimeRange(start=datetime(2024, 1, 1), end=datetime(2024, 2, 1))

        fallback = normalize_time_range({'start': '2024-02-01', 'end': '2024-01-01'}, self._series())
        assert fallback == TimeRange(start=datetime(2024, 1, 2), end=datetime(2024, 1, 3))

        assert normalize_time_range(None, []) is None

    def test_serialization(self):
        """Should serialize to plain dicts."""
        time_range = TimeRange(start=datetime(2024, 1, 1), end=datetime(2024, 1, 10))
        payload = bucket_series_collection(self._series(), time_range).to_dict()

        assert payload['display_resolution'] == '6h'
        assert payload['bucketed_series'][1]['bucket_resolution'] == '1d'
        assert payload['bucketed_series'][1]['data'][0] == {
            't': datetime(2024, 1, 2), 'value': 10.0, 'min': 10.0, 'max': 10.0, 'count': 1,
        }

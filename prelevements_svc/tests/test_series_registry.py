"""
Unit tests for the local series registry.

Tests cover:
- register/get: replacement, isolation through deep copies
- Inclusive ISO date range filtering
- clear: all entries or by prefix
- Concurrent registration
"""
import threading

from services.aggregation_service import build_daily_and_timeline_data
from services.series_registry import LocalSeriesRegistry


def _values():
    return [
        {'date': '2024-01-01', 'values': [1], 'metas': [None]},
        {'date': '2024-01-02', 'values': [2], 'metas': [{'comment': 'ok'}]},
        {'date': '2024-01-03', 'values': [3], 'metas': [None]},
    ]


class TestRegisterAndGet:
    """Tests for register and get."""

    def test_round_trip(self):
        """Should return registered values."""
        registry = LocalSeriesRegistry()
        registry.register([{'id': 'point-1', 'values': _values()}])

        assert registry.get('point-1') == {'values': _values()}
        assert 'point-1' in registry
        assert len(registry) == 1

    def test_unknown_series(self):
        """Should return None for unknown or empty ids."""
        registry = LocalSeriesRegistry()
        assert registry.get('missing') is None
        assert registry.get('') is None

    def test_replace_on_register(self):
        """Should replace values of an already registered series."""
        registry = LocalSeriesRegistry()
        registry.register([{'id': 'a', 'values': _values()}])
        registry.register([{'id': 'a', 'values': [{'date': '2025-01-01'}]}])
        assert registry.get('a') == {'values': [{'date': '2025-01-01'}]}

    def test_invalid_entries_ignored(self):
        """Should skip entries without id and ignore non-list input."""
        registry = LocalSeriesRegistry()
        registry.register([{'values': _values()}, {'id': '', 'values': []}, 'junk'])
        registry.register(None)
        registry.register({'id': 'a', 'values': []})
        assert len(registry) == 0

    def test_non_list_values(self):
        """Should register an empty series when values is not a list."""
        registry = LocalSeriesRegistry()
        registry.register([{'id': 'a', 'values': 'oops'}])
        assert registry.get('a') == {'values': []}


class TestIsolation:
    """Stored state cannot be mutated by callers."""

    def test_insert_is_copied(self):
        """Should not see later mutations of the registered list."""
        registry = LocalSeriesRegistry()
        values = _values()
        registry.register([{'id': 'a', 'values': values}])

        values[0]['values'][0] = 999
        values.append({'date': '2024-02-01'})

        stored = registry.get('a')['values']
        assert stored[0]['values'] == [1]
        assert len(stored) == 3

    def test_read_is_copied(self):
        """Should not let returned values alter the registry."""
        registry = LocalSeriesRegistry()
        registry.register([{'id': 'a', 'values': _values()}])

        first = registry.get('a')
        first['values'][1]['metas'][0]['comment'] = 'changed'

        assert registry.get('a')['values'][1]['metas'][0] == {'comment': 'ok'}


class TestRangeFilter:
    """Inclusive ISO string range filtering."""

    def test_inclusive_bounds(self):
        """Should keep values on both bounds."""
        registry = LocalSeriesRegistry()
        registry.register([{'id': 'a', 'values': _values()}])

        dates = [value['date'] for value in registry.get('a', start='2024-01-02', end='2024-01-03')['values']]
        assert dates == ['2024-01-02', '2024-01-03']

    def test_open_bounds(self):
        """Should filter on a single bound."""
        registry = LocalSeriesRegistry()
        registry.register([{'id': 'a', 'values': _values()}])

        assert len(registry.get('a', start='2024-01-03')['values']) == 1
        assert len(registry.get('a', end='2024-01-01')['values']) == 1

    def test_values_without_date_dropped(self):
        """Should never return values without a date."""
        registry = LocalSeriesRegistry()
        registry.register([{'id': 'a', 'values': [{'values': [1]}, {'date': '2024-01-01'}, None]}])
        assert registry.get('a') == {'values': [{'date': '2024-01-01'}]}

    def test_aggregated_daily_values(self):
        """Should filter DailyValue objects by their date attribute."""
        result = build_daily_and_timeline_data({
            'volume': [
                {'date': '2024-01-01', 'value': 1},
                {'date': '2024-01-02', 'value': 2},
                {'date': '2024-01-03', 'value': 3},
            ],
        }, ['volume'])
        registry = LocalSeriesRegistry()
        registry.register([{'id': 'volume', 'values': result.daily_values}])

        values = registry.get('volume', start='2024-01-02')['values']

        assert [value.date for value in values] == ['2024-01-02', '2024-01-03']
        assert values[0].values == [2.0]
        assert values[0] is not result.daily_values[1]


class TestClear:
    """Tests for clear."""

    def test_clear_all(self):
        """Should remove every series."""
        registry = LocalSeriesRegistry()
        registry.register([{'id': 'a', 'values': []}, {'id': 'b', 'values': []}])
        registry.clear()
        assert len(registry) == 0

    def test_clear_prefix(self):
        """Should remove only series whose id starts with the prefix."""
        registry = LocalSeriesRegistry()
        registry.register([
            {'id': 'local-1', 'values': []},
            {'id': 'local-2', 'values': []},
            {'id': 'remote-1', 'values': []},
        ])
        registry.clear('local-')

        assert 'remote-1' in registry
        assert 'local-1' not in registry
        assert len(registry) == 1


class TestConcurrency:
    """Concurrent access from several threads."""

    def test_parallel_register(self):
        """Should keep every series registered from parallel threads."""
        registry = LocalSeriesRegistry()

        def worker(index):
            registry.register([{'id': f"series-{index}", 'values': _values()}])
            assert registry.get(f"series-{index}") is not None

        threads = [threading.Thread(target=worker, args=(index,)) for index in range(20)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(registry) == 20

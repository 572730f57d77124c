"""
In-memory registry of locally computed series values.

Scoped to its owner (one instance per job or request) rather than
shared globally. Stored values are deep-copied on insert and on read so
callers can never mutate the registry state through a reference.
"""

import copy
import logging
import threading
from collections.abc import Mapping
from typing import Any, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)


def _read_date(value: Any) -> Any:
    if isinstance(value, Mapping):
        return value.get('date')
    return getattr(value, 'date', None)


class LocalSeriesRegistry:
    """
    Thread-safe map of series id -> list of dated values.

    Values are typically daily values or timeline samples, either as
    dataclasses or serialized as dicts, with an ISO ``date``.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._series: Dict[str, List[Any]] = {}

    def register(self, entries: Optional[Iterable[Any]]) -> None:
        """
        Register or replace series values.

        Args:
            entries: Mappings with ``id`` and ``values``; entries without an
                id are skipped and a non-list ``values`` registers an empty series
        """
        if not isinstance(entries, (list, tuple)):
            return

        with self._lock:
            for entry in entries:
                if not isinstance(entry, Mapping) or not entry.get('id'):
                    continue

                values = entry.get('values')
                self._series[entry['id']] = copy.deepcopy(list(values)) if isinstance(values, (list, tuple)) else []

                logger.debug("Series registered", extra={
                    'series': entry['id'],
                    'count': len(self._series[entry['id']]),
                })

    def get(self, series_id: Optional[str], start: Optional[str] = None, end: Optional[str] = None) -> Optional[Dict[str, List[Any]]]:
        """
        Get registered values, optionally restricted to [start, end].

        Bounds are compared as ISO strings, both inclusive. Values without a
        ``date`` are never returned.

        Returns:
            {'values': [...]} or None when the series is not registered
        """
        if not series_id:
            return None

        with self._lock:
            if series_id not in self._series:
                return None

            filtered = []
            for value in self._series[series_id]:
                date = _read_date(value)
                if not date:
                    continue
                if start and date < start:
                    continue
                if end and date > end:
                    continue
                filtered.append(value)

            return {'values': copy.deepcopy(filtered)}

    def clear(self, prefix: Optional[str] = None) -> None:
        """Remove every series, or only those whose id starts with ``prefix``."""
        with self._lock:
            if not prefix:
                self._series.clear()
                return

            for series_id in [key for key in self._series if str(key).startswith(prefix)]:
                del self._series[series_id]

    def __contains__(self, series_id: object) -> bool:
        with self._lock:
            return series_id in self._series

    def __len__(self) -> int:
        with self._lock:
            return len(self._series)

"""
Shared pytest fixtures for the series aggregation tests.

Key patterns:

1. Warning capture: transforms accept an ``on_warning`` sink; the
   ``warnings_sink`` fixture records every (message, context) pair.
2. Reference isolation: the cached reference registry is dropped after
   each test so settings overrides never leak.
3. Settings overrides: use ``monkeypatch.setattr(settings, ...)``.
"""
from typing import Any, Dict, List, Tuple

import pytest

from core.reference_registry import reload_reference_data


class WarningRecorder:
    """Callable sink collecting warnings emitted by a transform."""

    def __init__(self):
        self.records: List[Tuple[str, Dict[str, Any]]] = []

    def __call__(self, message: str, context: Dict[str, Any]) -> None:
        self.records.append((message, context))

    @property
    def messages(self) -> List[str]:
        return [message for message, _ in self.records]

    def __len__(self) -> int:
        return len(self.records)


@pytest.fixture
def warnings_sink():
    """Create a fresh warning recorder."""
    return WarningRecorder()


@pytest.fixture(autouse=True)
def fresh_reference_data():
    """Reload the reference YAML around every test."""
    reload_reference_data()
    yield
    reload_reference_data()


@pytest.fixture
def status_colors():
    """Caller palette used by calendar color tests."""
    return {
        'present': '#111111',
        'no_sampling': '#222222',
        'not_declared': '#333333',
    }

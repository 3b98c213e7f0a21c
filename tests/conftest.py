"""
Shared pytest fixtures and configuration for rlog tests.

This module provides:
- Global state isolation (buffer manager, settings cache, default logger)
- Recording sinks for asserting what reached the end of the pipeline
- Deterministic correlation id generators

Usage:
    Fixtures are auto-discovered by pytest. Use them as function arguments:

    def test_something(recording_sink):
        log = RLog({"sinks": [recording_sink]})
        ...
"""

import itertools
import sys
from pathlib import Path
from typing import Generator

import pytest

# Ensure rlog package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from rlog import RLog, get_buffer_manager, get_settings
from rlog.common import LogEntry


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)

        if "integration" in str(test_path):
            item.add_marker(pytest.mark.integration)

        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Global State Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_rlog_state(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """
    Reset process-wide rlog state around each test.

    Runs every test in "studio" mode (baseline level VERBOSE) with no other
    RLOG_* overrides, an empty buffer manager, and a fresh default logger.
    """
    for name in ("RLOG_MIN_LOG_LEVEL", "RLOG_CONTEXT_BYPASS", "RLOG_SUSPEND_CONTEXT"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("RLOG_STUDIO", "true")
    get_settings.cache_clear()
    get_buffer_manager().clear()
    RLog.reset_default_config()
    yield
    get_buffer_manager().clear()
    get_settings.cache_clear()


# =============================================================================
# Sinks and Generators
# =============================================================================


class RecordingSink:
    """Sink that remembers every entry it sees."""

    def __init__(self, consume: bool = True):
        self.consume = consume
        self.entries: list[LogEntry] = []

    def __call__(self, entry: LogEntry) -> bool | None:
        self.entries.append(entry)
        return True if self.consume else None

    @property
    def messages(self) -> list[str]:
        return [entry.message for entry in self.entries]

    @property
    def levels(self) -> list:
        return [entry.level for entry in self.entries]


@pytest.fixture
def recording_sink() -> RecordingSink:
    """Consuming recorder, so the default console sink stays quiet."""
    return RecordingSink()


@pytest.fixture
def sequential_ids():
    """Correlation id generator yielding ctx-1, ctx-2, ..."""
    counter = itertools.count(1)
    return lambda: f"ctx-{next(counter)}"

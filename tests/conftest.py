"""Shared fixtures for the analytics tests."""

import os
from typing import List, Sequence, Tuple

import pytest

from meili_analytics.telemetry import AnalyticsConfig, Event, IndexStats, Stats


class RecordingTransport:
    """Records every batch it receives; can be told to fail."""

    def __init__(self, fail: bool = False, raise_error: bool = False):
        self.fail = fail
        self.raise_error = raise_error
        self.batches: List[Tuple[str, List[Event]]] = []

    async def send(self, identity: str, events: Sequence[Event]) -> bool:
        self.batches.append((identity, list(events)))
        if self.raise_error:
            raise ConnectionError("ingestion endpoint unreachable")
        return not self.fail

    @property
    def events(self) -> List[Event]:
        return [event for _, batch in self.batches for event in batch]


class FakeStatsSource:
    """Stats source returning fixed stats, or failing the first ``failures`` calls."""

    def __init__(self, stats: Stats = None, failures: int = 0):
        self.stats = stats or Stats(
            database_size=4096,
            indexes={
                "movies": IndexStats(number_of_documents=12),
                "books": IndexStats(number_of_documents=3),
            },
        )
        self.failures = failures
        self.calls = 0

    async def get_all_stats(self) -> Stats:
        self.calls += 1
        if self.calls <= self.failures:
            raise RuntimeError("index controller unavailable")
        return self.stats


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def stats_source():
    return FakeStatsSource()


@pytest.fixture
def config(tmp_path):
    """Analytics config storing its identity under a temporary db path."""
    return AnalyticsConfig(db_path=tmp_path / "data.ms", tick_interval=0.01)


@pytest.fixture
def mock_environment():
    """Set up and tear down environment variables for testing."""
    original_env = os.environ.copy()
    for var in (
        "MEILI_NO_ANALYTICS",
        "MEILI_USER_EMAIL",
        "MEILI_SERVER_PROVIDER",
        "MEILI_ANALYTICS_API_KEY",
        "MEILI_ANALYTICS_QUEUE_SIZE",
    ):
        os.environ.pop(var, None)

    yield

    # Restore original environment
    os.environ.clear()
    os.environ.update(original_env)

"""Shared fixtures: a controllable clock and an in-memory DuckDB store."""

from datetime import datetime, timedelta

import pytest

from clinic_records.adapters.storage.duckdb_adapter import DuckDBAdapter


class ManualClock:
    """Callable clock whose time only moves when a test moves it."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return ManualClock(datetime(2024, 3, 1, 9, 30))


@pytest.fixture
def duckdb_storage():
    """Initialized in-memory DuckDB adapter, closed after the test."""
    storage = DuckDBAdapter(db_path=":memory:")
    result = storage.initialize_schema()
    assert result.is_success(), result.error
    yield storage
    storage.close()

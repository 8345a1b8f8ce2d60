#!/usr/bin/env python3
"""Tests del historial SQLite."""

from datetime import datetime, timedelta, timezone

import pytest

from ingestion.models import SensorReading
from storage.history_store import HistoryStore, InvalidRangeError


NOW = datetime(2025, 12, 18, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def store():
    store = HistoryStore(":memory:")
    yield store
    store.close()


def insert_at(store, delta, temperature=25.0):
    reading = SensorReading(temperature=temperature, humidity=60.0, water_temp=24.0, timestamp=NOW - delta)
    return store.insert(reading)


class TestHistoryStore:

    def test_insert_and_count(self, store):
        first = insert_at(store, timedelta(seconds=5))
        second = insert_at(store, timedelta(seconds=1))

        assert second > first
        assert store.count() == 2

    @pytest.mark.parametrize("range_name, expected", [
        ("minute", 1),
        ("hour", 2),
        ("day", 3),
        ("week", 4),
        ("month", 5),
    ])
    def test_history_ranges(self, store, range_name, expected):
        for delta in (
            timedelta(seconds=30),
            timedelta(minutes=30),
            timedelta(hours=12),
            timedelta(days=3),
            timedelta(days=20),
        ):
            insert_at(store, delta)
        insert_at(store, timedelta(days=60))

        assert len(store.history(range_name, now=NOW)) == expected

    def test_history_is_ordered_oldest_first(self, store):
        insert_at(store, timedelta(seconds=10), temperature=20.0)
        insert_at(store, timedelta(seconds=40), temperature=30.0)

        rows = store.history("minute", now=NOW)

        assert [r["temperature"] for r in rows] == [30.0, 20.0]
        assert rows[0]["timestamp"] == (NOW - timedelta(seconds=40)).isoformat()

    def test_invalid_range(self, store):
        with pytest.raises(InvalidRangeError):
            store.history("year", now=NOW)

    def test_recent_window_and_limit(self, store):
        for seconds in range(1, 15):
            insert_at(store, timedelta(seconds=seconds))

        rows = store.recent(seconds=10, limit=5, now=NOW)

        assert len(rows) == 5
        assert all(r["humidity"] == 60.0 for r in rows)

    def test_naive_timestamps_are_utc(self, store):
        naive = datetime(2025, 12, 18, 11, 59, 50)
        store.insert(SensorReading(temperature=25.0, humidity=60.0, water_temp=24.0, timestamp=naive))

        rows = store.history("minute", now=NOW)

        assert len(rows) == 1
        assert rows[0]["timestamp"] == "2025-12-18T11:59:50+00:00"

    def test_history_is_capped_to_oldest_rows(self, store):
        for seconds in range(1, 151):
            insert_at(store, timedelta(seconds=seconds * 10), temperature=float(seconds))

        rows = store.history("hour", now=NOW)

        assert len(rows) == 100
        assert rows[0]["temperature"] == 150.0

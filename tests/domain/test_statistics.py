"""Tests for the statistics aggregator."""

from datetime import datetime, timedelta
from unittest.mock import Mock

import pytest

from clinic_records.domain.kinds import FAMILY_SCHEMA, PERSONAL_SCHEMA, REFERRAL_SCHEMA, RecordKind
from clinic_records.domain.ports import Result, StorageError, StoragePort
from clinic_records.domain.record_store import RecordStore
from clinic_records.domain.statistics import KindStats, StatisticsAggregator


def _create_personal(storage, clock, registered_at, name="Patient"):
    clock.now = registered_at
    return RecordStore(storage, PERSONAL_SCHEMA, clock=clock).create(
        {"name": name, "age": 30, "gender": "Other"}
    )


class TestComputeStats:
    def test_empty_database_reports_zeros(self, duckdb_storage):
        result = StatisticsAggregator(duckdb_storage).compute_stats(now=datetime(2024, 3, 1))

        assert result.is_success()
        for kind in RecordKind:
            assert result.value.for_kind(kind) == KindStats(total=0, weekly=0, expired=0, active=0)

    def test_counts_total_weekly_expired_active(self, duckdb_storage, clock):
        now = datetime(2024, 3, 1, 9, 30)
        _create_personal(duckdb_storage, clock, now - timedelta(days=400))
        _create_personal(duckdb_storage, clock, now - timedelta(days=3))
        _create_personal(duckdb_storage, clock, now)

        stats = StatisticsAggregator(duckdb_storage).compute_stats(now=now).value.personal

        assert stats == KindStats(total=3, weekly=2, expired=1, active=2)

    def test_weekly_window_is_inclusive_at_seven_days(self, duckdb_storage, clock):
        now = datetime(2024, 3, 1, 9, 30)
        _create_personal(duckdb_storage, clock, now - timedelta(days=7))
        _create_personal(duckdb_storage, clock, now - timedelta(days=7, seconds=1))

        assert StatisticsAggregator(duckdb_storage).compute_stats(now=now).value.personal.weekly == 1

    def test_record_expiring_exactly_now_is_active(self, duckdb_storage, clock):
        now = datetime(2024, 3, 1, 9, 30)
        _create_personal(duckdb_storage, clock, datetime(2023, 3, 1, 9, 30))

        stats = StatisticsAggregator(duckdb_storage).compute_stats(now=now).value.personal
        assert stats.active == 1
        assert stats.expired == 0

    def test_record_counted_expired_once_now_passes_expiry(self, duckdb_storage, clock):
        record = _create_personal(duckdb_storage, clock, datetime(2024, 3, 1, 9, 30))
        aggregator = StatisticsAggregator(duckdb_storage)

        before = aggregator.compute_stats(now=record.expiry_date - timedelta(seconds=1)).value.personal
        after = aggregator.compute_stats(now=record.expiry_date + timedelta(days=1)).value.personal

        assert (before.active, before.expired) == (1, 0)
        assert (after.active, after.expired) == (0, 1)

    def test_active_plus_expired_equals_total_for_every_kind(self, duckdb_storage, clock):
        now = datetime(2024, 3, 1, 9, 30)
        for days_ago in (1, 200, 500, 800, 2000):
            clock.now = now - timedelta(days=days_ago)
            for schema, payload in (
                (PERSONAL_SCHEMA, {"name": "P", "age": 1, "gender": "Male"}),
                (FAMILY_SCHEMA, {"headName": "F", "memberCount": 2}),
                (REFERRAL_SCHEMA, {"referralName": "R", "patientCount": 0}),
            ):
                RecordStore(duckdb_storage, schema, clock=clock).create(payload)

        summary = StatisticsAggregator(duckdb_storage).compute_stats(now=now).value
        for kind in RecordKind:
            stats = summary.for_kind(kind)
            assert stats.active + stats.expired == stats.total

        # durations differ, so the split differs by kind
        assert summary.personal.expired == 3
        assert summary.family.expired == 2
        assert summary.referral.expired == 1

    def test_uses_clock_when_now_not_given(self, duckdb_storage, clock):
        _create_personal(duckdb_storage, clock, datetime(2024, 3, 1, 9, 30))
        clock.now = datetime(2030, 1, 1)

        stats = StatisticsAggregator(duckdb_storage, clock=clock).compute_stats().value.personal
        assert stats.expired == 1

    def test_single_snapshot_shared_by_all_kinds(self):
        storage = Mock(spec=StoragePort)
        storage.tally.return_value = Result.success_result(
            {"total": 0, "weekly": 0, "expired": 0, "active": 0}
        )
        clock = Mock(return_value=datetime(2024, 3, 1))

        StatisticsAggregator(storage, clock=clock).compute_stats()

        assert clock.call_count == 1
        snapshots = {call.kwargs["now"] for call in storage.tally.call_args_list}
        assert snapshots == {datetime(2024, 3, 1)}
        assert storage.tally.call_count == 4


class TestStorageFailure:
    def test_failure_reports_kind(self):
        storage = Mock(spec=StoragePort)
        ok = Result.success_result({"total": 1, "weekly": 0, "expired": 0, "active": 1})
        failed = Result.failure_result(StorageError("table missing", operation="count records"))
        storage.tally.side_effect = [ok, failed, ok, ok]

        result = StatisticsAggregator(storage).compute_stats(now=datetime(2024, 3, 1))

        assert result.is_failure()
        assert result.error_type == "StorageError"
        assert result.error_details["kind"] == "family"

    @pytest.mark.parametrize("kind", list(RecordKind))
    def test_summary_lookup_by_kind(self, duckdb_storage, kind):
        summary = StatisticsAggregator(duckdb_storage).compute_stats(now=datetime(2024, 3, 1)).value
        assert summary.for_kind(kind) == getattr(summary, kind.value)

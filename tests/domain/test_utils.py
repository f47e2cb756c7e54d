"""Tests for date arithmetic and numeric coercion helpers."""

from datetime import datetime, timedelta, timezone

import pytest

from clinic_records.domain.utils import add_years, coerce_count, to_naive_utc, utc_now


class TestAddYears:
    def test_adds_calendar_years_keeping_time_of_day(self):
        assert add_years(datetime(2024, 3, 1, 9, 30), 1) == datetime(2025, 3, 1, 9, 30)
        assert add_years(datetime(2024, 3, 1, 9, 30), 5) == datetime(2029, 3, 1, 9, 30)

    def test_leap_day_clamps_to_february_28(self):
        assert add_years(datetime(2024, 2, 29, 12, 0), 1) == datetime(2025, 2, 28, 12, 0)
        assert add_years(datetime(2024, 2, 29, 12, 0), 2) == datetime(2026, 2, 28, 12, 0)

    def test_leap_day_kept_when_target_is_leap_year(self):
        assert add_years(datetime(2024, 2, 29), 4) == datetime(2028, 2, 29)

    def test_negative_years(self):
        assert add_years(datetime(2024, 3, 1), -1) == datetime(2023, 3, 1)


class TestTimezoneHandling:
    def test_utc_now_is_naive(self):
        assert utc_now().tzinfo is None

    def test_aware_value_converted_to_naive_utc(self):
        aware = datetime(2024, 3, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))
        assert to_naive_utc(aware) == datetime(2024, 3, 1, 10, 0)

    def test_naive_value_unchanged(self):
        naive = datetime(2024, 3, 1, 12, 0)
        assert to_naive_utc(naive) is naive


class TestCoerceCount:
    @pytest.mark.parametrize("value,expected", [
        (7, 7),
        ("12", 12),
        (" 3 ", 3),
        ("41.7", 41),
        (4.9, 4),
        (True, 1),
    ])
    def test_parses_numeric_input(self, value, expected):
        assert coerce_count(value) == expected

    @pytest.mark.parametrize("value", ["abc", "", "nan", "inf", float("nan"), float("inf"), [1], {"n": 1}])
    def test_unparsable_input_becomes_zero(self, value):
        assert coerce_count(value) == 0

    def test_none_passes_through(self):
        assert coerce_count(None) is None

    def test_negative_values_are_not_clamped(self):
        assert coerce_count("-2") == -2

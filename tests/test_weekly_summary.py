"""
Unit tests for the weekly aggregator.
"""

import pytest
from datetime import date
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from domain.entities import (
    DailyRecord, FlexDirection, LunchPolicy, ShiftPolicy, TimeInterval
)
from domain.weekly_summary import (
    calculate_weekly_summary, consolidate_day_records, week_window
)


def _record(record_id, day, clock_in, clock_out, lunch=("12:00", "13:00"),
            shift="day", employee="emp-1", breaks=None, notes=""):
    return DailyRecord(
        id=record_id,
        employee_id=employee,
        date=day,
        clock=TimeInterval(clock_in, clock_out),
        lunch=TimeInterval(*lunch),
        shift_policy_id=shift,
        breaks=breaks or [],
        notes=notes,
    )


@pytest.fixture
def policies():
    return [ShiftPolicy(
        id="day",
        regular_start="08:00",
        regular_end="17:00",
        lunch=LunchPolicy("12:00", 60, TimeInterval("11:30", "13:30")),
    )]


@pytest.fixture
def records():
    return [
        # History before the week: +30
        _record("h1", date(2024, 2, 26), "08:00", "17:30"),
        # Monday, two partial records
        _record("m1", date(2024, 3, 4), "08:00", "12:00", lunch=("12:00", "12:30")),
        _record("m2", date(2024, 3, 4), "12:30", "17:00", lunch=("12:00", "12:30")),
        # Tuesday: +30
        _record("t1", date(2024, 3, 5), "08:00", "17:30"),
        # Wednesday: unknown shift
        _record("w1", date(2024, 3, 6), "08:00", "17:00", shift="ghost"),
        # Other employee and next week are ignored
        _record("o1", date(2024, 3, 5), "08:00", "20:00", employee="emp-2"),
        _record("n1", date(2024, 3, 11), "08:00", "20:00"),
    ]


class TestWeekWindow:
    """Tests for week_window."""

    def test_midweek(self):
        assert week_window(date(2024, 3, 7)) == (date(2024, 3, 4), date(2024, 3, 10))

    def test_monday_and_sunday(self):
        assert week_window(date(2024, 3, 4)) == (date(2024, 3, 4), date(2024, 3, 10))
        assert week_window(date(2024, 3, 10)) == (date(2024, 3, 4), date(2024, 3, 10))


class TestConsolidateDayRecords:
    """Tests for consolidate_day_records."""

    def test_earliest_in_latest_out(self):
        merged = consolidate_day_records([
            _record("a", date(2024, 3, 4), "09:00", "12:00", lunch=("11:45", "12:00"),
                    breaks=[TimeInterval("10:00", "10:10")], notes="site A"),
            _record("b", date(2024, 3, 4), "07:55", "17:40", lunch=("12:10", "12:40"),
                    breaks=[TimeInterval("15:00", "15:10")], notes="site B"),
        ])
        assert merged.clock == TimeInterval("07:55", "17:40")
        assert merged.lunch == TimeInterval("11:45", "12:40")
        assert merged.breaks == [TimeInterval("10:00", "10:10"), TimeInterval("15:00", "15:10")]
        assert merged.notes == "site A; site B"
        assert merged.id == "a"

    def test_overnight_split_day(self):
        merged = consolidate_day_records([
            _record("a", date(2024, 3, 4), "22:00", "02:00", lunch=("00:00", "00:30")),
            _record("b", date(2024, 3, 4), "02:30", "06:00", lunch=("00:00", "00:30")),
        ])
        assert merged.clock == TimeInterval("22:00", "06:00")
        assert merged.clock.duration_minutes == 480
        assert merged.lunch == TimeInterval("00:00", "00:30")

    def test_overnight_split_before_midnight(self):
        merged = consolidate_day_records([
            _record("a", date(2024, 3, 4), "00:00", "06:00", lunch=("02:00", "02:30")),
            _record("b", date(2024, 3, 4), "22:00", "23:30", lunch=("02:00", "02:30")),
        ])
        assert merged.clock == TimeInterval("22:00", "06:00")

    def test_afternoon_record_first(self):
        merged = consolidate_day_records([
            _record("a", date(2024, 3, 4), "13:00", "17:00"),
            _record("b", date(2024, 3, 4), "08:00", "12:00"),
        ])
        assert merged.clock == TimeInterval("08:00", "17:00")

    def test_single_record_unchanged(self):
        record = _record("a", date(2024, 3, 4), "08:00", "17:00")
        assert consolidate_day_records([record]) is record

    def test_empty_rejected(self):
        with pytest.raises(ValueError):
            consolidate_day_records([])


class TestCalculateWeeklySummary:
    """Tests for calculate_weekly_summary."""

    def test_rows_and_totals(self, records, policies):
        summary = calculate_weekly_summary(records, policies, "emp-1", date(2024, 3, 6))

        assert summary.week_start == date(2024, 3, 4)
        assert summary.week_end == date(2024, 3, 10)
        assert [d.date for d in summary.days] == [date(2024, 3, 4), date(2024, 3, 5)]
        assert summary.required_minutes == 960
        assert summary.actual_minutes == 990
        assert summary.flex_delta_minutes == 30
        assert summary.weekly_required_hours == "16:00"
        assert summary.weekly_actual_hours == "16:30"
        assert summary.weekly_flex_change == "+00:30"

    def test_flex_bank_carries_history(self, records, policies):
        summary = calculate_weekly_summary(records, policies, "emp-1", date(2024, 3, 6))
        assert summary.flex_bank_start_minutes == 30
        assert summary.flex_bank_end_minutes == 60
        assert summary.flex_bank_start == "+00:30"
        assert summary.flex_bank_end == "+01:00"

    def test_same_day_records_consolidated(self, records, policies):
        monday = calculate_weekly_summary(records, policies, "emp-1", date(2024, 3, 6)).days[0]

        assert monday.record_count == 2
        assert monday.in_time == "08:00"
        assert monday.out_time == "17:00"
        assert monday.lunch_period == "12:00 - 12:30"
        assert monday.total_time == "09:00"
        assert monday.taken_breaks == "00:30"
        assert monday.min_break == "01:00"
        assert monday.total_working_hours == "08:00 h"
        assert monday.required_hours == "08:00 h"
        assert monday.flex_hours == "00:00 h"
        assert monday.delta_minutes == 0
        assert monday.direction == FlexDirection.ADDED

    def test_row_narrative(self, records, policies):
        days = calculate_weekly_summary(records, policies, "emp-1", date(2024, 3, 6)).days
        assert days[0].flex_bank == "00:30 + 00:00 = 00:30"
        assert days[1].flex_bank == "00:30 + 00:30 = 01:00"
        assert days[1].flex_hours == "+00:30 h"
        assert days[1].date_label == "Mar 05, 2024"
        assert days[1].balance_before_minutes == 30
        assert days[1].balance_after_minutes == 60
        assert days[1].calculation is not None

    def test_negative_day_narrative(self, policies):
        records = [_record("a", date(2024, 3, 4), "08:00", "16:40")]
        summary = calculate_weekly_summary(records, policies, "emp-1", date(2024, 3, 4))
        row = summary.days[0]
        assert row.direction == FlexDirection.REMOVED
        assert row.flex_bank == "00:00 - 00:20 = -00:20"
        assert row.flex_hours == "-00:20 h"
        assert summary.flex_bank_end == "-00:20"

    def test_missing_policy_flags_day(self, records, policies):
        summary = calculate_weekly_summary(records, policies, "emp-1", date(2024, 3, 6))
        assert summary.is_partial is True
        assert summary.flagged_dates == [date(2024, 3, 6)]

    def test_missing_policy_in_history_kept_out_of_week(self, policies):
        records = [
            _record("h1", date(2024, 2, 26), "08:00", "17:30", shift="ghost"),
            _record("a", date(2024, 3, 4), "08:00", "17:30"),
        ]
        summary = calculate_weekly_summary(records, policies, "emp-1", date(2024, 3, 4))
        assert summary.flagged_dates == []
        assert summary.history_flagged_dates == [date(2024, 2, 26)]
        assert summary.is_partial is False
        assert summary.flex_bank_start_minutes == 0
        assert summary.flex_bank_end_minutes == 30

    def test_week_without_records(self, records, policies):
        summary = calculate_weekly_summary(records, policies, "emp-1", date(2024, 3, 20))
        assert summary.days == []
        assert summary.flex_bank_end_minutes == summary.flex_bank_start_minutes
        # Earlier days: +30, 0 (consolidated Monday), +30 and +180 on Mar 11
        assert summary.flex_bank_start_minutes == 240
        assert summary.flagged_dates == []
        assert summary.history_flagged_dates == [date(2024, 3, 6)]
        assert summary.is_partial is False

    def test_consecutive_weeks_chain(self, records, policies):
        first = calculate_weekly_summary(records, policies, "emp-1", date(2024, 3, 4))
        second = calculate_weekly_summary(records, policies, "emp-1", date(2024, 3, 11))
        assert second.flex_bank_start_minutes == first.flex_bank_end_minutes == 60
        assert second.flex_bank_end_minutes == 240

    def test_unknown_employee(self, records, policies):
        summary = calculate_weekly_summary(records, policies, "nobody", date(2024, 3, 6))
        assert summary.days == []
        assert summary.flex_bank_end_minutes == 0
        assert summary.is_partial is False

    def test_insertion_order_does_not_matter(self, records, policies):
        forward = calculate_weekly_summary(records, policies, "emp-1", date(2024, 3, 6))
        backward = calculate_weekly_summary(list(reversed(records)), policies, "emp-1", date(2024, 3, 6))
        assert [d.flex_bank for d in backward.days] == [d.flex_bank for d in forward.days]
        assert backward.flex_bank_end_minutes == forward.flex_bank_end_minutes

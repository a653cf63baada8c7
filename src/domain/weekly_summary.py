"""
Weekly Summary Module

Builds one employee's weekly breakdown: per-day display rows, weekly
totals and the flex-bank movement across the week.

Days whose shift policy cannot be resolved are logged, skipped and listed
in WeeklySummary.flagged_dates (or history_flagged_dates for days before
the week) instead of aborting the week.
"""

from datetime import date, timedelta
from itertools import groupby
from typing import Iterable, List, Sequence, Tuple

from .entities import (
    DailyFlexData, DailyRecord, FlexDirection, ShiftPolicy, TimeInterval,
    WeeklyDayRow, WeeklySummary
)
from .errors import MissingPolicy
from .flex_bank import (
    PolicyResolver, accumulate_flex, final_balance, make_policy_resolver
)
from .sorting import filter_employee_records
from .time_utils import (
    MINUTES_PER_DAY, format_minutes, format_signed_minutes, format_time_of_day
)
from .work_time_calculator import calculate_daily, calculate_daily_flex_data
from infrastructure.logger import get_logger

logger = get_logger("WeeklySummary")


def week_window(any_date: date) -> Tuple[date, date]:
    """Return (monday, sunday) of the ISO week containing any_date."""
    week_start = any_date - timedelta(days=any_date.isoweekday() - 1)
    return week_start, week_start + timedelta(days=6)


def _day_anchor(records: Sequence[DailyRecord]) -> int:
    """
    Return the clock-in (minutes) that opens a multi-record day.

    The day opens after the longest idle gap between records, measured on a
    24h circle, so a split night shift opens at its evening clock-in.
    """
    spans = sorted(record.clock.resolve() for record in records)
    anchor = spans[0][0]
    longest_gap = anchor + MINUTES_PER_DAY - max(end for _, end in spans)
    latest_end = spans[0][1]
    for start, end in spans[1:]:
        if start - latest_end > longest_gap:
            anchor, longest_gap = start, start - latest_end
        latest_end = max(latest_end, end)
    return anchor


def _unroll(interval: TimeInterval, anchor: int) -> Tuple[int, int]:
    start, end = interval.resolve()
    if start < anchor:
        return start + MINUTES_PER_DAY, end + MINUTES_PER_DAY
    return start, end


def consolidate_day_records(records: Sequence[DailyRecord]) -> DailyRecord:
    """
    Merge several same-day records into one synthetic record.

    Earliest clock-in, latest clock-out, earliest lunch start, latest lunch
    end and all breaks concatenated (overlaps are kept). Identity, shift
    and declared overtime come from the first record.

    Times before the day's opening clock-in are read as the next morning,
    so "22:00-02:00" plus "02:30-06:00" merges to "22:00-06:00".
    """
    if not records:
        raise ValueError("Cannot consolidate an empty list of records")
    if len(records) == 1:
        return records[0]

    first = records[0]
    anchor = _day_anchor(records)
    clock_in, clock_out = _unroll(first.clock, anchor)
    lunch_start, lunch_end = _unroll(first.lunch, anchor)
    breaks: List[TimeInterval] = []

    for record in records:
        current_in, current_out = _unroll(record.clock, anchor)
        current_lunch_start, current_lunch_end = _unroll(record.lunch, anchor)
        clock_in = min(clock_in, current_in)
        clock_out = max(clock_out, current_out)
        lunch_start = min(lunch_start, current_lunch_start)
        lunch_end = max(lunch_end, current_lunch_end)
        breaks.extend(record.breaks)

    return DailyRecord(
        id=first.id,
        employee_id=first.employee_id,
        date=first.date,
        clock=TimeInterval(format_time_of_day(clock_in), format_time_of_day(clock_out)),
        lunch=TimeInterval(format_time_of_day(lunch_start), format_time_of_day(lunch_end)),
        shift_policy_id=first.shift_policy_id,
        breaks=breaks,
        overtime=first.overtime,
        notes="; ".join(r.notes for r in records if r.notes),
    )


def _flag(flagged_dates: List[date], record: DailyRecord, error: MissingPolicy) -> None:
    logger.warning(
        f"Skipping {record.date.isoformat()} for employee {record.employee_id}: {error.message}"
    )
    if record.date not in flagged_dates:
        flagged_dates.append(record.date)


def _computed_days(
    records: Sequence[DailyRecord],
    resolver: PolicyResolver,
    flagged_dates: List[date]
) -> List[Tuple[DailyRecord, ShiftPolicy, DailyFlexData, int]]:
    """
    Consolidate date-ordered records per day and compute each day's flex data.

    Days whose policy is missing are flagged and left out.
    """
    computed = []
    for _, group in groupby(records, key=lambda r: r.date):
        day_records = list(group)
        consolidated = consolidate_day_records(day_records)
        try:
            policy = resolver(consolidated.shift_policy_id)
        except MissingPolicy as e:
            _flag(flagged_dates, consolidated, e)
            continue
        flex_data = calculate_daily_flex_data(consolidated, policy)
        computed.append((consolidated, policy, flex_data, len(day_records)))
    return computed


def _deltas(computed) -> List[Tuple[date, int]]:
    return [(record.date, flex_data.delta_minutes) for record, _, flex_data, _ in computed]


def _narrative(previous_balance: int, delta: int, new_balance: int) -> str:
    sign = "+" if delta >= 0 else "-"
    return (
        f"{format_minutes(previous_balance)} {sign} "
        f"{format_minutes(abs(delta))} = {format_minutes(new_balance)}"
    )


def _build_row(
    record: DailyRecord,
    policy: ShiftPolicy,
    flex_data: DailyFlexData,
    previous_balance: int,
    new_balance: int,
    record_count: int
) -> WeeklyDayRow:
    delta = flex_data.delta_minutes
    return WeeklyDayRow(
        date=record.date,
        date_label=record.date.strftime("%b %d, %Y"),
        in_time=flex_data.clock_in,
        out_time=flex_data.clock_out,
        lunch_period=f"{flex_data.lunch_start} - {flex_data.lunch_end}",
        total_time=format_minutes(flex_data.in_out_minutes),
        min_break=format_minutes(flex_data.min_break_minutes),
        taken_breaks=format_minutes(flex_data.taken_break_minutes),
        total_working_hours=f"{format_minutes(flex_data.actual_minutes)} h",
        required_hours=f"{format_minutes(flex_data.required_minutes)} h",
        flex_hours=f"{format_signed_minutes(delta)} h",
        flex_bank=_narrative(previous_balance, delta, new_balance),
        direction=FlexDirection.ADDED if delta >= 0 else FlexDirection.REMOVED,
        required_minutes=flex_data.required_minutes,
        actual_minutes=flex_data.actual_minutes,
        delta_minutes=delta,
        balance_before_minutes=previous_balance,
        balance_after_minutes=new_balance,
        record_count=record_count,
        calculation=calculate_daily(record, policy),
    )


def calculate_weekly_summary(
    all_records: Iterable[DailyRecord],
    all_policies: Iterable[ShiftPolicy],
    employee_id: str,
    any_date_in_week: date
) -> WeeklySummary:
    """
    Summarize one employee's week.

    Args:
        all_records: Records in insertion order, any employees
        all_policies: Every shift policy records may reference
        employee_id: Employee to summarize
        any_date_in_week: Any day of the target week

    Returns:
        WeeklySummary, partial when some days had no resolvable policy

    Raises:
        InvalidTimeFormat: If a record carries a malformed time
    """
    resolver = make_policy_resolver(all_policies)
    week_start, week_end = week_window(any_date_in_week)
    records = filter_employee_records(all_records, employee_id)

    summary = WeeklySummary(employee_id=employee_id, week_start=week_start, week_end=week_end)

    # History is folded per consolidated day so a week's end balance is the
    # next week's start balance
    history = _computed_days(
        [r for r in records if r.date < week_start], resolver, summary.history_flagged_dates
    )
    start_balance = final_balance(accumulate_flex(_deltas(history)))
    summary.flex_bank_start_minutes = start_balance

    computed = _computed_days(
        [r for r in records if week_start <= r.date <= week_end], resolver, summary.flagged_dates
    )
    entries = accumulate_flex(_deltas(computed), start_balance)

    for (record, policy, flex_data, count), entry in zip(computed, entries):
        summary.days.append(_build_row(
            record, policy, flex_data,
            entry.previous_balance_minutes, entry.running_balance_minutes, count
        ))
        summary.required_minutes += flex_data.required_minutes
        summary.actual_minutes += flex_data.actual_minutes
        summary.flex_delta_minutes += flex_data.delta_minutes

    summary.flex_bank_end_minutes = final_balance(entries, start_balance)
    summary.flagged_dates.sort()
    summary.history_flagged_dates.sort()

    logger.info(
        f"Weekly summary for {employee_id} {week_start.isoformat()}..{week_end.isoformat()}: "
        f"{len(summary.days)} day(s), flex {summary.flex_bank_start} -> {summary.flex_bank_end}"
    )
    return summary

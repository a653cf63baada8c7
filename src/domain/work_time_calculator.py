"""
Work Time Calculator Module

Daily calculation engine: measures one DailyRecord against its ShiftPolicy.

Two views of a day are produced:
- calculate_daily: effective start/end after early/late clipping, break
  deductions, late-stay overtime and compliance flags
- calculate_daily_flex_data: required versus actual minutes used by the
  flex bank and the weekly summary
"""

from typing import List, Optional

from .entities import (
    CalculationResult, DailyFlexData, DailyRecord, ShiftPolicy
)
from .errors import MissingPolicy
from .overtime import calculate_overtime_segments
from .time_utils import format_minutes, parse_time, resolve_overnight


def _require_policy(record: DailyRecord, policy: Optional[ShiftPolicy]) -> ShiftPolicy:
    if policy is None:
        raise MissingPolicy(record.shift_policy_id)
    return policy


def _other_breaks_minutes(record: DailyRecord) -> int:
    return sum(b.duration_minutes for b in record.breaks)


def calculate_daily(
    record: DailyRecord,
    policy: Optional[ShiftPolicy]
) -> CalculationResult:
    """
    Compute the working-time breakdown for one record.

    Args:
        record: The day's clock, lunch and break times
        policy: The resolved shift policy for record.shift_policy_id

    Returns:
        CalculationResult for the day

    Raises:
        InvalidTimeFormat: If any time string is malformed
        MissingPolicy: If policy is None
    """
    policy = _require_policy(record, policy)

    clock_in, clock_out = record.clock.resolve()
    shift_start, shift_end = policy.shift_interval.resolve()

    # Effective start
    effective_start = clock_in
    if clock_in < shift_start:
        early_by = shift_start - clock_in
        early = policy.early_arrival
        if not (early_by <= early.max_minutes and early.counts_toward_total):
            effective_start = shift_start

    # Effective end and late-stay overtime
    overtime_minutes = 0
    effective_end = clock_out
    if clock_out > shift_end:
        late_by = clock_out - shift_end
        late = policy.late_stay
        if late_by <= late.max_minutes:
            effective_end = clock_out if late.counts_toward_total else shift_end
        else:
            effective_end = shift_end
            overtime_minutes = late_by

    lunch_start, lunch_end = record.lunch.resolve()
    lunch_duration = lunch_end - lunch_start
    other_breaks_duration = _other_breaks_minutes(record)

    total_working_minutes = (
        (effective_end - effective_start) - lunch_duration - other_breaks_duration
    )

    multiplier = policy.late_stay.overtime_multiplier
    overtime_pay = (overtime_minutes / 60) * multiplier
    total_effective_minutes = total_working_minutes + overtime_minutes * multiplier

    overtime_segments = calculate_overtime_segments(
        record.overtime,
        [record.lunch] + list(record.breaks),
        policy.overtime_tiers
    )
    total_effective_minutes += sum(s.weighted_minutes for s in overtime_segments)

    window_start = parse_time(policy.lunch.flex_window.start)
    window_end = parse_time(policy.lunch.flex_window.end)
    is_lunch_in_window = lunch_start >= window_start and lunch_end <= window_end
    is_lunch_correct_duration = lunch_duration == policy.lunch.duration_minutes

    shift_bonus_minutes = 0
    if policy.shift_bonus is not None and policy.shift_bonus.enabled:
        shift_bonus_minutes = policy.shift_bonus.bonus_minutes

    result = CalculationResult(
        effective_start=effective_start,
        effective_end=effective_end,
        total_working_minutes=total_working_minutes,
        lunch_duration=lunch_duration,
        other_breaks_duration=other_breaks_duration,
        regular_minutes=total_working_minutes,
        overtime_minutes=overtime_minutes,
        overtime_pay=overtime_pay,
        total_effective_minutes=total_effective_minutes,
        early_arrival=clock_in < shift_start,
        early_arrival_minutes=max(0, shift_start - clock_in),
        late_arrival=clock_in > shift_start,
        late_arrival_minutes=max(0, clock_in - shift_start),
        early_departure=clock_out < shift_end,
        early_departure_minutes=max(0, shift_end - clock_out),
        late_departure=clock_out > shift_end,
        late_departure_minutes=max(0, clock_out - shift_end),
        is_lunch_in_window=is_lunch_in_window,
        is_lunch_correct_duration=is_lunch_correct_duration,
        overtime_segments=overtime_segments,
        shift_bonus_minutes=shift_bonus_minutes,
    )
    result.notes = build_notes(result)
    return result


def build_notes(result: CalculationResult) -> List[str]:
    """
    Human-readable remarks for a calculation.

    Returns:
        Remark strings in a fixed order, empty when the day is clean
    """
    notes = []
    if result.late_arrival:
        notes.append(f"Late arrival by {result.late_arrival_minutes} min")
    if result.early_departure:
        notes.append(f"Early departure by {result.early_departure_minutes} min")
    if not result.is_lunch_in_window:
        notes.append("Lunch outside flex window")
    if not result.is_lunch_correct_duration:
        notes.append(f"Lunch took {result.lunch_duration} min")
    if result.overtime_minutes:
        notes.append(f"Overtime {format_minutes(result.overtime_minutes)}")
    if result.is_negative_duration:
        notes.append("Breaks exceed working window")
    return notes


def calculate_daily_flex_data(
    record: DailyRecord,
    policy: Optional[ShiftPolicy]
) -> DailyFlexData:
    """
    Extract required and actual working minutes for the flex bank.

    Required time is the scheduled span minus the policy lunch duration.
    Actual time is the in-to-out span minus the larger of the breaks taken
    and that same minimum break.

    Raises:
        InvalidTimeFormat: If any time string is malformed
        MissingPolicy: If policy is None
    """
    policy = _require_policy(record, policy)

    clock_in = parse_time(record.clock.start)
    clock_out = resolve_overnight(clock_in, parse_time(record.clock.end))
    in_out_minutes = clock_out - clock_in

    lunch_minutes = record.lunch.duration_minutes
    other_break_minutes = _other_breaks_minutes(record)
    min_break_minutes = policy.lunch.duration_minutes
    effective_break = max(lunch_minutes + other_break_minutes, min_break_minutes)

    return DailyFlexData(
        clock_in=record.clock.start,
        clock_out=record.clock.end,
        lunch_start=record.lunch.start,
        lunch_end=record.lunch.end,
        breaks=list(record.breaks),
        required_minutes=policy.required_minutes,
        actual_minutes=in_out_minutes - effective_break,
        lunch_minutes=lunch_minutes,
        other_break_minutes=other_break_minutes,
        in_out_minutes=in_out_minutes,
        min_break_minutes=min_break_minutes,
    )

"""
Domain Entities Module

Core domain entities using dataclasses for the work-time engine.
Shift policies and daily records are inputs supplied by the stores;
calculation results, flex-bank entries and weekly summaries are derived
and recomputed on demand.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import List, Optional, Tuple

from .time_utils import (
    format_minutes, format_signed_minutes, format_time_of_day,
    minutes_to_hours, resolve_interval
)


class ShiftName(Enum):
    """Kind of shift a policy describes."""
    MORNING = "morning"
    EVENING = "evening"
    NIGHT = "night"
    REGULAR = "regular"


class FlexDirection(Enum):
    """Whether a day added time to or removed time from the flex bank."""
    ADDED = "added"
    REMOVED = "removed"


@dataclass(frozen=True)
class TimeInterval:
    """
    A wall-clock span given as two "HH:MM" strings.

    When end is earlier than start the span crosses midnight and end is
    read as end + 24h.
    """
    start: str
    end: str

    def resolve(self) -> Tuple[int, int]:
        """Return (start, end) in minutes with the overnight correction applied."""
        return resolve_interval(self.start, self.end)

    @property
    def duration_minutes(self) -> int:
        start, end = self.resolve()
        return end - start

    def __str__(self) -> str:
        return f"{self.start} - {self.end}"


# ==============================================================================
# Shift Policy
# ==============================================================================
@dataclass(frozen=True)
class LunchPolicy:
    """
    Lunch rules for a shift.

    Attributes:
        default_start: Suggested lunch start ("HH:MM")
        duration_minutes: Expected lunch length, also the minimum break
        flex_window: Range the lunch must fall inside to be compliant
    """
    default_start: str = "12:00"
    duration_minutes: int = 30
    flex_window: TimeInterval = field(default_factory=lambda: TimeInterval("11:00", "13:00"))


@dataclass(frozen=True)
class EarlyArrivalPolicy:
    """How much early arrival may count toward the working total."""
    max_minutes: int = 30
    counts_toward_total: bool = False


@dataclass(frozen=True)
class LateStayPolicy:
    """How late departures are counted and paid."""
    max_minutes: int = 60
    counts_toward_total: bool = True
    overtime_multiplier: float = 1.5


@dataclass(frozen=True)
class OvertimeTiers:
    """
    Tiered multipliers for a declared overtime interval.

    The first free_minutes are paid at 1x, the next next_minutes at
    next_multiplier and anything beyond at beyond_multiplier.
    """
    free_minutes: int = 30
    next_minutes: int = 120
    next_multiplier: float = 1.5
    beyond_multiplier: float = 2.0


@dataclass(frozen=True)
class ShiftBonus:
    """Flat bonus credited for working a shift."""
    enabled: bool = False
    bonus_minutes: int = 60


@dataclass(frozen=True)
class ShiftPolicy:
    """
    Immutable shift configuration owned by a company.

    Attributes:
        id: Identifier referenced by DailyRecord.shift_policy_id
        name: Kind of shift
        regular_start: Scheduled start ("HH:MM")
        regular_end: Scheduled end ("HH:MM"), may be past midnight
        lunch: Lunch rules
        early_arrival: Early-arrival rules
        late_stay: Late-stay rules
        overtime_tiers: Tier configuration, None disables tiered overtime
        shift_bonus: Optional flat bonus
    """
    id: str
    name: ShiftName = ShiftName.REGULAR
    regular_start: str = "08:00"
    regular_end: str = "16:00"
    lunch: LunchPolicy = field(default_factory=LunchPolicy)
    early_arrival: EarlyArrivalPolicy = field(default_factory=EarlyArrivalPolicy)
    late_stay: LateStayPolicy = field(default_factory=LateStayPolicy)
    overtime_tiers: Optional[OvertimeTiers] = None
    shift_bonus: Optional[ShiftBonus] = None

    @property
    def shift_interval(self) -> TimeInterval:
        return TimeInterval(self.regular_start, self.regular_end)

    @property
    def required_minutes(self) -> int:
        """Scheduled span minus the lunch duration."""
        return self.shift_interval.duration_minutes - self.lunch.duration_minutes


@dataclass
class Company:
    """A company and the shift policies it owns."""
    id: str
    name: str
    shifts: List[ShiftPolicy] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def find_shift(self, shift_id: str) -> Optional[ShiftPolicy]:
        for shift in self.shifts:
            if shift.id == shift_id:
                return shift
        return None


# ==============================================================================
# Records
# ==============================================================================
@dataclass
class DailyRecord:
    """
    One employee-day as entered in the UI.

    Several records may share a date; the weekly aggregator merges them.

    Attributes:
        id: Record identifier
        employee_id: Owner of the record
        date: Calendar day
        clock: Clock-in / clock-out
        lunch: Lunch start / end
        breaks: Other breaks, in order
        shift_policy_id: Policy the day is measured against
        overtime: Explicitly declared overtime interval
        flex_bank: Precomputed balance, informational only
        notes: Free text
    """
    id: str
    employee_id: str
    date: date
    clock: TimeInterval
    lunch: TimeInterval
    shift_policy_id: str
    breaks: List[TimeInterval] = field(default_factory=list)
    overtime: Optional[TimeInterval] = None
    flex_bank: Optional[int] = None
    notes: str = ""


# ==============================================================================
# Derived results
# ==============================================================================
@dataclass(frozen=True)
class OvertimeSegment:
    """A slice of declared overtime paid at one multiplier."""
    duration_minutes: int
    multiplier: float

    @property
    def duration_hhmm(self) -> str:
        return format_minutes(self.duration_minutes)

    @property
    def weighted_minutes(self) -> float:
        return self.duration_minutes * self.multiplier


@dataclass
class CalculationResult:
    """
    Breakdown of one record against one shift policy.

    Minute values for effective start/end are resolved minutes since
    midnight and may exceed 1439 for overnight work. total_working_minutes
    may be negative when breaks exceed the effective window.
    """
    effective_start: int
    effective_end: int
    total_working_minutes: int
    lunch_duration: int
    other_breaks_duration: int
    regular_minutes: int
    overtime_minutes: int
    overtime_pay: float
    total_effective_minutes: float
    early_arrival: bool
    early_arrival_minutes: int
    late_arrival: bool
    late_arrival_minutes: int
    early_departure: bool
    early_departure_minutes: int
    late_departure: bool
    late_departure_minutes: int
    is_lunch_in_window: bool
    is_lunch_correct_duration: bool
    overtime_segments: List[OvertimeSegment] = field(default_factory=list)
    shift_bonus_minutes: int = 0
    notes: List[str] = field(default_factory=list)

    @property
    def effective_start_hhmm(self) -> str:
        return format_time_of_day(self.effective_start)

    @property
    def effective_end_hhmm(self) -> str:
        return format_time_of_day(self.effective_end)

    @property
    def total_working_hours(self) -> float:
        return minutes_to_hours(self.total_working_minutes)

    @property
    def is_negative_duration(self) -> bool:
        return self.total_working_minutes < 0


@dataclass(frozen=True)
class FlexBankEntry:
    """One step of the flex-bank fold."""
    date: date
    daily_delta_minutes: int
    running_balance_minutes: int

    @property
    def previous_balance_minutes(self) -> int:
        return self.running_balance_minutes - self.daily_delta_minutes


@dataclass
class DailyFlexData:
    """
    Required versus actual minutes for one (possibly consolidated) day.

    Actual time subtracts the larger of the breaks taken and the policy's
    minimum lunch break from the in-to-out span.
    """
    clock_in: str
    clock_out: str
    lunch_start: str
    lunch_end: str
    breaks: List[TimeInterval]
    required_minutes: int
    actual_minutes: int
    lunch_minutes: int
    other_break_minutes: int
    in_out_minutes: int
    min_break_minutes: int

    @property
    def taken_break_minutes(self) -> int:
        return self.lunch_minutes + self.other_break_minutes

    @property
    def delta_minutes(self) -> int:
        return self.actual_minutes - self.required_minutes


@dataclass
class WeeklyDayRow:
    """Display row for one day of a weekly summary."""
    date: date
    date_label: str
    in_time: str
    out_time: str
    lunch_period: str
    total_time: str
    min_break: str
    taken_breaks: str
    total_working_hours: str
    required_hours: str
    flex_hours: str
    flex_bank: str
    direction: FlexDirection
    required_minutes: int
    actual_minutes: int
    delta_minutes: int
    balance_before_minutes: int
    balance_after_minutes: int
    record_count: int = 1
    calculation: Optional[CalculationResult] = None


@dataclass
class WeeklySummary:
    """
    One employee's week: per-day rows, totals and flex-bank movement.

    flagged_dates lists days of this week whose shift policy could not be
    resolved; those days contribute nothing to the totals.
    history_flagged_dates lists the same for days before the week, which
    were left out of the starting balance.
    """
    employee_id: str
    week_start: date
    week_end: date
    days: List[WeeklyDayRow] = field(default_factory=list)
    required_minutes: int = 0
    actual_minutes: int = 0
    flex_delta_minutes: int = 0
    flex_bank_start_minutes: int = 0
    flex_bank_end_minutes: int = 0
    flagged_dates: List[date] = field(default_factory=list)
    history_flagged_dates: List[date] = field(default_factory=list)

    @property
    def is_partial(self) -> bool:
        return bool(self.flagged_dates)

    @property
    def weekly_required_hours(self) -> str:
        return format_minutes(self.required_minutes)

    @property
    def weekly_actual_hours(self) -> str:
        return format_minutes(self.actual_minutes)

    @property
    def weekly_flex_change(self) -> str:
        return format_signed_minutes(self.flex_delta_minutes)

    @property
    def flex_bank_start(self) -> str:
        return format_signed_minutes(self.flex_bank_start_minutes)

    @property
    def flex_bank_end(self) -> str:
        return format_signed_minutes(self.flex_bank_end_minutes)

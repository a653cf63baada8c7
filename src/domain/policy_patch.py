"""
Policy Patch Module

Typed partial updates for ShiftPolicy. Each field of the patch maps to one
policy field; None means "leave unchanged".
"""

from dataclasses import dataclass, replace
from typing import Optional

from .entities import (
    OvertimeTiers, ShiftBonus, ShiftName, ShiftPolicy, TimeInterval
)
from .errors import InvalidInput
from .time_utils import parse_time


@dataclass(frozen=True)
class ShiftPolicyPatch:
    """Fields to change on a ShiftPolicy."""
    name: Optional[ShiftName] = None
    regular_start: Optional[str] = None
    regular_end: Optional[str] = None
    lunch_default_start: Optional[str] = None
    lunch_duration_minutes: Optional[int] = None
    lunch_flex_window: Optional[TimeInterval] = None
    early_max_minutes: Optional[int] = None
    early_counts_toward_total: Optional[bool] = None
    late_max_minutes: Optional[int] = None
    late_counts_toward_total: Optional[bool] = None
    overtime_multiplier: Optional[float] = None
    overtime_tiers: Optional[OvertimeTiers] = None
    clear_overtime_tiers: bool = False
    shift_bonus: Optional[ShiftBonus] = None
    clear_shift_bonus: bool = False


def _check_time(value: Optional[str]) -> None:
    if value is not None:
        parse_time(value)


def _check_minutes(value: Optional[int], field_name: str) -> None:
    if value is not None and value < 0:
        raise InvalidInput(f"{field_name} must not be negative, got {value}")


def apply_patch(policy: ShiftPolicy, patch: ShiftPolicyPatch) -> ShiftPolicy:
    """
    Return a new policy with the patch applied.

    Raises:
        InvalidTimeFormat: If a patched time is malformed
        InvalidInput: If a patched minute count or multiplier is negative
    """
    for value in (patch.regular_start, patch.regular_end, patch.lunch_default_start):
        _check_time(value)
    if patch.lunch_flex_window is not None:
        patch.lunch_flex_window.resolve()
    _check_minutes(patch.lunch_duration_minutes, "lunch_duration_minutes")
    _check_minutes(patch.early_max_minutes, "early_max_minutes")
    _check_minutes(patch.late_max_minutes, "late_max_minutes")
    if patch.overtime_multiplier is not None and patch.overtime_multiplier < 0:
        raise InvalidInput(f"overtime_multiplier must not be negative, got {patch.overtime_multiplier}")

    lunch = replace(
        policy.lunch,
        default_start=_pick(patch.lunch_default_start, policy.lunch.default_start),
        duration_minutes=_pick(patch.lunch_duration_minutes, policy.lunch.duration_minutes),
        flex_window=_pick(patch.lunch_flex_window, policy.lunch.flex_window),
    )
    early_arrival = replace(
        policy.early_arrival,
        max_minutes=_pick(patch.early_max_minutes, policy.early_arrival.max_minutes),
        counts_toward_total=_pick(
            patch.early_counts_toward_total, policy.early_arrival.counts_toward_total
        ),
    )
    late_stay = replace(
        policy.late_stay,
        max_minutes=_pick(patch.late_max_minutes, policy.late_stay.max_minutes),
        counts_toward_total=_pick(
            patch.late_counts_toward_total, policy.late_stay.counts_toward_total
        ),
        overtime_multiplier=_pick(patch.overtime_multiplier, policy.late_stay.overtime_multiplier),
    )

    overtime_tiers = None if patch.clear_overtime_tiers else _pick(
        patch.overtime_tiers, policy.overtime_tiers
    )
    shift_bonus = None if patch.clear_shift_bonus else _pick(
        patch.shift_bonus, policy.shift_bonus
    )

    return replace(
        policy,
        name=_pick(patch.name, policy.name),
        regular_start=_pick(patch.regular_start, policy.regular_start),
        regular_end=_pick(patch.regular_end, policy.regular_end),
        lunch=lunch,
        early_arrival=early_arrival,
        late_stay=late_stay,
        overtime_tiers=overtime_tiers,
        shift_bonus=shift_bonus,
    )


def _pick(new_value, current_value):
    return current_value if new_value is None else new_value

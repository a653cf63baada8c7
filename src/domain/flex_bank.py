"""
Flex Bank Module

Folds daily (actual - required) deltas into a running signed balance.

The balance is never stored: it is recomputed from the full, date-ordered
record history each time. Feeding records out of date order does not raise
but yields a wrong running balance, so callers sort first.
"""

from datetime import date
from typing import Callable, Dict, Iterable, List, Sequence, Tuple

from .entities import DailyRecord, FlexBankEntry, ShiftPolicy
from .errors import MissingPolicy
from .work_time_calculator import calculate_daily_flex_data

PolicyResolver = Callable[[str], ShiftPolicy]


def make_policy_resolver(policies: Iterable[ShiftPolicy]) -> PolicyResolver:
    """
    Build a resolver over a collection of shift policies.

    Returns:
        Callable mapping a policy id to its ShiftPolicy, raising
        MissingPolicy for unknown ids
    """
    by_id: Dict[str, ShiftPolicy] = {policy.id: policy for policy in policies}

    def resolve(policy_id: str) -> ShiftPolicy:
        try:
            return by_id[policy_id]
        except KeyError:
            raise MissingPolicy(policy_id) from None

    return resolve


def accumulate_flex(
    deltas: Iterable[Tuple[date, int]],
    initial_balance: int = 0
) -> List[FlexBankEntry]:
    """Left-fold (date, delta) pairs into flex-bank entries."""
    entries = []
    balance = initial_balance
    for day, delta in deltas:
        balance += delta
        entries.append(FlexBankEntry(
            date=day,
            daily_delta_minutes=delta,
            running_balance_minutes=balance
        ))
    return entries


def calculate_flex_bank(
    ordered_records: Sequence[DailyRecord],
    policy_resolver: PolicyResolver,
    initial_balance: int = 0
) -> List[FlexBankEntry]:
    """
    Compute the running flex balance over date-ordered records.

    Args:
        ordered_records: One employee's records, sorted by date ascending
        policy_resolver: Maps shift_policy_id to a ShiftPolicy
        initial_balance: Balance carried in from earlier records

    Returns:
        One FlexBankEntry per record, in input order

    Raises:
        MissingPolicy: If a record's policy cannot be resolved
    """
    deltas = []
    for record in ordered_records:
        policy = policy_resolver(record.shift_policy_id)
        flex_data = calculate_daily_flex_data(record, policy)
        deltas.append((record.date, flex_data.delta_minutes))
    return accumulate_flex(deltas, initial_balance)


def final_balance(entries: Sequence[FlexBankEntry], initial_balance: int = 0) -> int:
    """Balance after the last entry, or initial_balance when there are none."""
    if not entries:
        return initial_balance
    return entries[-1].running_balance_minutes

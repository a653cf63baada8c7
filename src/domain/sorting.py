"""
Sorting Utilities Module

Provides ordering helpers for daily records before they are folded.
"""

from datetime import date
from typing import Iterable, List, Tuple

from domain.entities import DailyRecord
from domain.time_utils import parse_time


def get_record_sort_key(record: DailyRecord) -> Tuple[date, int]:
    """Sort key of (date, clock-in minutes)."""
    return (record.date, parse_time(record.clock.start))


def sort_records_by_date(records: Iterable[DailyRecord]) -> List[DailyRecord]:
    """
    Sort records by date ascending, then by clock-in.

    Args:
        records: Records in insertion order

    Returns:
        Sorted list (new list, does not modify original)
    """
    return sorted(records, key=get_record_sort_key)


def filter_employee_records(
    records: Iterable[DailyRecord],
    employee_id: str
) -> List[DailyRecord]:
    """Keep only the given employee's records, sorted by date."""
    return sort_records_by_date(r for r in records if r.employee_id == employee_id)

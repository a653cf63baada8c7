"""
Record Store Module

Flat JSON persistence for employee records and company shift policies.

The stores only do CRUD and change notification; all calculations live in
the domain layer and receive records and policies as explicit arguments.
"""

import json
import uuid
from dataclasses import replace
from datetime import date, datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional

from domain.entities import (
    Company, DailyRecord, EarlyArrivalPolicy, LateStayPolicy, LunchPolicy,
    OvertimeTiers, ShiftBonus, ShiftName, ShiftPolicy, TimeInterval
)
from domain.errors import MissingPolicy
from domain.policy_patch import ShiftPolicyPatch, apply_patch
from domain.time_utils import format_minutes, parse_time
from infrastructure.logger import get_logger

logger = get_logger("RecordStore")

# Listener signature: (event, item_id) with event in "added", "updated", "deleted"
Listener = Callable[[str, str], None]


class StoreError(Exception):
    """Raised when a store file is unreadable or an id is unknown."""
    pass


# ==============================================================================
# Serialization
# ==============================================================================
def _interval_or_none(start: Optional[str], end: Optional[str]) -> Optional[TimeInterval]:
    if start and end:
        return TimeInterval(start, end)
    return None


def record_to_dict(record: DailyRecord) -> dict:
    """Convert a DailyRecord to its JSON representation."""
    return {
        "id": record.id,
        "employee_id": record.employee_id,
        "date": record.date.isoformat(),
        "clock_in": record.clock.start,
        "clock_out": record.clock.end,
        "lunch_start": record.lunch.start,
        "lunch_end": record.lunch.end,
        "breaks": [{"start": b.start, "end": b.end} for b in record.breaks],
        "shift_id": record.shift_policy_id,
        "overtime_start": record.overtime.start if record.overtime else None,
        "overtime_end": record.overtime.end if record.overtime else None,
        "flex_bank": record.flex_bank,
        "notes": record.notes
    }


def record_from_dict(data: dict) -> DailyRecord:
    """Convert a JSON dict back into a DailyRecord."""
    return DailyRecord(
        id=data["id"],
        employee_id=data["employee_id"],
        date=date.fromisoformat(data["date"]),
        clock=TimeInterval(data["clock_in"], data["clock_out"]),
        lunch=TimeInterval(data["lunch_start"], data["lunch_end"]),
        shift_policy_id=data["shift_id"],
        breaks=[TimeInterval(b["start"], b["end"]) for b in data.get("breaks", [])],
        overtime=_interval_or_none(data.get("overtime_start"), data.get("overtime_end")),
        flex_bank=data.get("flex_bank"),
        notes=data.get("notes", "")
    )


def policy_to_dict(policy: ShiftPolicy) -> dict:
    """Convert a ShiftPolicy to its JSON representation."""
    tiers = policy.overtime_tiers
    bonus = policy.shift_bonus
    return {
        "id": policy.id,
        "name": policy.name.value,
        "start": policy.regular_start,
        "end": policy.regular_end,
        "lunch_break": {
            "default_start": policy.lunch.default_start,
            "duration": policy.lunch.duration_minutes,
            "flex_window_start": policy.lunch.flex_window.start,
            "flex_window_end": policy.lunch.flex_window.end
        },
        "early_arrival": {
            "max_minutes": policy.early_arrival.max_minutes,
            "count_towards_total": policy.early_arrival.counts_toward_total
        },
        "late_stay": {
            "max_minutes": policy.late_stay.max_minutes,
            "count_towards_total": policy.late_stay.counts_toward_total,
            "overtime_multiplier": policy.late_stay.overtime_multiplier
        },
        "overtime": {
            "free_overtime_duration": format_minutes(tiers.free_minutes),
            "next_overtime_duration": format_minutes(tiers.next_minutes),
            "next_overtime_multiplier": tiers.next_multiplier,
            "beyond_overtime_multiplier": tiers.beyond_multiplier
        } if tiers else None,
        "shift_bonus": {
            "enabled": bonus.enabled,
            "bonus_minutes": bonus.bonus_minutes
        } if bonus else None
    }


def policy_from_dict(data: dict) -> ShiftPolicy:
    """Convert a JSON dict back into a ShiftPolicy."""
    lunch_data = data.get("lunch_break", {})
    early_data = data.get("early_arrival", {})
    late_data = data.get("late_stay", {})
    tiers_data = data.get("overtime")
    bonus_data = data.get("shift_bonus")

    tiers = None
    if tiers_data:
        tiers = OvertimeTiers(
            free_minutes=parse_time(tiers_data.get("free_overtime_duration", "00:30")),
            next_minutes=parse_time(tiers_data.get("next_overtime_duration", "02:00")),
            next_multiplier=tiers_data.get("next_overtime_multiplier", 1.5),
            beyond_multiplier=tiers_data.get("beyond_overtime_multiplier", 2.0)
        )

    bonus = None
    if bonus_data:
        bonus = ShiftBonus(
            enabled=bonus_data.get("enabled", False),
            bonus_minutes=bonus_data.get("bonus_minutes", 60)
        )

    return ShiftPolicy(
        id=data["id"],
        name=ShiftName(data.get("name", "regular")),
        regular_start=data.get("start", "08:00"),
        regular_end=data.get("end", "16:00"),
        lunch=LunchPolicy(
            default_start=lunch_data.get("default_start", "12:00"),
            duration_minutes=lunch_data.get("duration", 30),
            flex_window=TimeInterval(
                lunch_data.get("flex_window_start", "11:00"),
                lunch_data.get("flex_window_end", "13:00")
            )
        ),
        early_arrival=EarlyArrivalPolicy(
            max_minutes=early_data.get("max_minutes", 30),
            counts_toward_total=early_data.get("count_towards_total", False)
        ),
        late_stay=LateStayPolicy(
            max_minutes=late_data.get("max_minutes", 60),
            counts_toward_total=late_data.get("count_towards_total", True),
            overtime_multiplier=late_data.get("overtime_multiplier", 1.5)
        ),
        overtime_tiers=tiers,
        shift_bonus=bonus
    )


# ==============================================================================
# Stores
# ==============================================================================
class _JsonStore:
    """
    Shared persistence and notification for the stores.

    With no path the store is memory-only.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = path
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a change listener.

        Returns:
            Function that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, event: str, item_id: str) -> None:
        for listener in list(self._listeners):
            listener(event, item_id)

    def _changed(self, event: str, item_id: str) -> None:
        self.save()
        self._notify(event, item_id)

    def _read_json(self) -> Optional[dict]:
        if self.path is None or not self.path.exists():
            return None
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise StoreError(f"Store file {self.path} is not valid JSON: {e}") from e

    def _write_json(self, data: dict) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

    def save(self) -> None:
        raise NotImplementedError


class RecordStore(_JsonStore):
    """Employee DailyRecords, kept in insertion order."""

    def __init__(self, path: Optional[Path] = None):
        super().__init__(path)
        self._records: Dict[str, DailyRecord] = {}

    def load(self) -> List[DailyRecord]:
        """Load records from the JSON file (empty when the file is absent)."""
        data = self._read_json() or {}
        try:
            self._records = {
                item["id"]: record_from_dict(item) for item in data.get("records", [])
            }
        except (KeyError, ValueError) as e:
            raise StoreError(f"Malformed record in {self.path}: {e}") from e
        logger.info(f"Loaded {len(self._records)} record(s) from {self.path}")
        return self.list_records()

    def save(self) -> None:
        self._write_json({"records": [record_to_dict(r) for r in self._records.values()]})

    def list_records(self) -> List[DailyRecord]:
        return list(self._records.values())

    def records_for(self, employee_id: str) -> List[DailyRecord]:
        return [r for r in self._records.values() if r.employee_id == employee_id]

    def get(self, record_id: str) -> DailyRecord:
        try:
            return self._records[record_id]
        except KeyError:
            raise StoreError(f"Unknown record '{record_id}'") from None

    def add(self, record: DailyRecord) -> DailyRecord:
        """Store a new record, generating an id when it has none."""
        if not record.id:
            record = replace(record, id=uuid.uuid4().hex)
        if record.id in self._records:
            raise StoreError(f"Record '{record.id}' already exists")
        self._records[record.id] = record
        self._changed("added", record.id)
        return record

    def update(self, record: DailyRecord) -> DailyRecord:
        """Replace the stored record with the same id."""
        self.get(record.id)
        self._records[record.id] = record
        self._changed("updated", record.id)
        return record

    def delete(self, record_id: str) -> None:
        self.get(record_id)
        del self._records[record_id]
        self._changed("deleted", record_id)


class CompanyStore(_JsonStore):
    """Companies and the shift policies they own."""

    def __init__(self, path: Optional[Path] = None):
        super().__init__(path)
        self._companies: Dict[str, Company] = {}

    def load(self) -> List[Company]:
        """Load companies from the JSON file (empty when the file is absent)."""
        data = self._read_json() or {}
        companies = {}
        try:
            for item in data.get("companies", []):
                companies[item["id"]] = Company(
                    id=item["id"],
                    name=item["name"],
                    shifts=[policy_from_dict(s) for s in item.get("shifts", [])],
                    created_at=datetime.fromisoformat(item["created_at"]),
                    updated_at=datetime.fromisoformat(item["updated_at"])
                )
        except (KeyError, ValueError) as e:
            raise StoreError(f"Malformed company in {self.path}: {e}") from e
        self._companies = companies
        logger.info(f"Loaded {len(self._companies)} compan(ies) from {self.path}")
        return self.list_companies()

    def save(self) -> None:
        self._write_json({
            "companies": [
                {
                    "id": c.id,
                    "name": c.name,
                    "shifts": [policy_to_dict(s) for s in c.shifts],
                    "created_at": c.created_at.isoformat(),
                    "updated_at": c.updated_at.isoformat()
                }
                for c in self._companies.values()
            ]
        })

    def list_companies(self) -> List[Company]:
        return list(self._companies.values())

    def get_company(self, company_id: str) -> Company:
        try:
            return self._companies[company_id]
        except KeyError:
            raise StoreError(f"Unknown company '{company_id}'") from None

    def add_company(self, name: str, company_id: Optional[str] = None) -> Company:
        company = Company(id=company_id or uuid.uuid4().hex, name=name)
        if company.id in self._companies:
            raise StoreError(f"Company '{company.id}' already exists")
        self._companies[company.id] = company
        self._changed("added", company.id)
        return company

    def rename_company(self, company_id: str, name: str) -> Company:
        company = self.get_company(company_id)
        company.name = name
        company.updated_at = datetime.now()
        self._changed("updated", company_id)
        return company

    def delete_company(self, company_id: str) -> None:
        self.get_company(company_id)
        del self._companies[company_id]
        self._changed("deleted", company_id)

    def add_shift(self, company_id: str, policy: ShiftPolicy) -> ShiftPolicy:
        company = self.get_company(company_id)
        if company.find_shift(policy.id) is not None:
            raise StoreError(f"Shift '{policy.id}' already exists in company '{company_id}'")
        company.shifts.append(policy)
        company.updated_at = datetime.now()
        self._changed("updated", company_id)
        return policy

    def update_shift(
        self,
        company_id: str,
        shift_id: str,
        patch: ShiftPolicyPatch
    ) -> ShiftPolicy:
        """Apply a typed patch to one shift and persist the result."""
        company = self.get_company(company_id)
        current = self.get_policy(company_id, shift_id)
        updated = apply_patch(current, patch)
        company.shifts = [updated if s.id == shift_id else s for s in company.shifts]
        company.updated_at = datetime.now()
        self._changed("updated", company_id)
        return updated

    def delete_shift(self, company_id: str, shift_id: str) -> None:
        company = self.get_company(company_id)
        self.get_policy(company_id, shift_id)
        company.shifts = [s for s in company.shifts if s.id != shift_id]
        company.updated_at = datetime.now()
        self._changed("updated", company_id)

    def get_policy(self, company_id: str, shift_id: str) -> ShiftPolicy:
        """
        Resolve a shift policy.

        Raises:
            StoreError: If the company is unknown
            MissingPolicy: If the company has no such shift
        """
        policy = self.get_company(company_id).find_shift(shift_id)
        if policy is None:
            raise MissingPolicy(shift_id)
        return policy

    def all_policies(self) -> List[ShiftPolicy]:
        """Every shift of every company."""
        return [s for c in self._companies.values() for s in c.shifts]

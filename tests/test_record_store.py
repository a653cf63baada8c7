"""
Unit tests for the JSON record and company stores.
"""

import pytest
import json
import tempfile
from datetime import date
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from domain.entities import (
    DailyRecord, OvertimeTiers, ShiftBonus, ShiftName, ShiftPolicy, TimeInterval
)
from domain.errors import MissingPolicy
from domain.policy_patch import ShiftPolicyPatch
from infrastructure.record_store import (
    CompanyStore, RecordStore, StoreError, policy_from_dict, policy_to_dict,
    record_from_dict, record_to_dict
)


def _record(record_id="r1", employee="emp-1"):
    return DailyRecord(
        id=record_id,
        employee_id=employee,
        date=date(2024, 3, 4),
        clock=TimeInterval("08:00", "17:00"),
        lunch=TimeInterval("12:00", "12:30"),
        shift_policy_id="day",
        breaks=[TimeInterval("10:00", "10:15")],
        overtime=TimeInterval("17:00", "18:00"),
        notes="site visit",
    )


class TestSerialization:
    """Tests for the dict converters."""

    def test_record_json_shape(self):
        data = record_to_dict(_record())
        assert data["date"] == "2024-03-04"
        assert data["clock_in"] == "08:00"
        assert data["breaks"] == [{"start": "10:00", "end": "10:15"}]
        assert data["shift_id"] == "day"
        assert record_from_dict(data) == _record()

    def test_record_without_overtime(self):
        data = record_to_dict(DailyRecord(
            id="r2", employee_id="emp-1", date=date(2024, 3, 4),
            clock=TimeInterval("08:00", "17:00"), lunch=TimeInterval("12:00", "12:30"),
            shift_policy_id="day",
        ))
        assert data["overtime_start"] is None
        assert record_from_dict(data).overtime is None

    def test_policy_tiers_stored_as_durations(self):
        policy = ShiftPolicy(
            id="night", name=ShiftName.NIGHT, regular_start="22:00", regular_end="06:00",
            overtime_tiers=OvertimeTiers(30, 120, 1.5, 2.0),
            shift_bonus=ShiftBonus(True, 60),
        )
        data = policy_to_dict(policy)
        assert data["name"] == "night"
        assert data["overtime"]["free_overtime_duration"] == "00:30"
        assert data["overtime"]["next_overtime_duration"] == "02:00"
        assert policy_from_dict(data) == policy

    def test_policy_defaults_for_missing_keys(self):
        policy = policy_from_dict({"id": "bare"})
        assert policy == ShiftPolicy(id="bare")


class TestRecordStore:
    """Tests for RecordStore CRUD and notifications."""

    def test_add_generates_id(self):
        store = RecordStore()
        added = store.add(_record(record_id=""))
        assert added.id
        assert store.get(added.id) == added

    def test_duplicate_id_rejected(self):
        store = RecordStore()
        store.add(_record())
        with pytest.raises(StoreError):
            store.add(_record())

    def test_update_and_delete(self):
        store = RecordStore()
        store.add(_record())
        changed = _record()
        changed.notes = "updated"
        store.update(changed)
        assert store.get("r1").notes == "updated"

        store.delete("r1")
        assert store.list_records() == []
        with pytest.raises(StoreError):
            store.delete("r1")

    def test_records_for_employee(self):
        store = RecordStore()
        store.add(_record("a", "emp-1"))
        store.add(_record("b", "emp-2"))
        store.add(_record("c", "emp-1"))
        assert [r.id for r in store.records_for("emp-1")] == ["a", "c"]

    def test_listeners_notified(self):
        store = RecordStore()
        events = []
        unsubscribe = store.subscribe(lambda event, item_id: events.append((event, item_id)))

        store.add(_record())
        store.update(_record())
        store.delete("r1")
        unsubscribe()
        store.add(_record("r2"))

        assert events == [("added", "r1"), ("updated", "r1"), ("deleted", "r1")]

    def test_persistence_roundtrip(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "records.json"
            store = RecordStore(path)
            store.add(_record("a"))
            store.add(_record("b"))

            reloaded = RecordStore(path)
            assert [r.id for r in reloaded.load()] == ["a", "b"]
            assert reloaded.get("a") == _record("a")

    def test_missing_file_loads_empty(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            assert RecordStore(Path(tmpdir) / "none.json").load() == []

    def test_corrupt_file_raises(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "records.json"
            path.write_text("[oops", encoding="utf-8")
            with pytest.raises(StoreError):
                RecordStore(path).load()

    def test_malformed_record_raises(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "records.json"
            path.write_text(json.dumps({"records": [{"id": "x"}]}), encoding="utf-8")
            with pytest.raises(StoreError):
                RecordStore(path).load()


class TestCompanyStore:
    """Tests for CompanyStore and shift policy management."""

    def test_company_crud(self):
        store = CompanyStore()
        company = store.add_company("Acme", company_id="acme")
        assert store.get_company("acme") is company

        store.rename_company("acme", "Acme Ltd")
        assert store.get_company("acme").name == "Acme Ltd"

        store.delete_company("acme")
        with pytest.raises(StoreError):
            store.get_company("acme")

    def test_shift_management(self):
        store = CompanyStore()
        store.add_company("Acme", company_id="acme")
        store.add_shift("acme", ShiftPolicy(id="day"))
        with pytest.raises(StoreError):
            store.add_shift("acme", ShiftPolicy(id="day"))

        updated = store.update_shift("acme", "day", ShiftPolicyPatch(regular_end="17:00"))
        assert updated.regular_end == "17:00"
        assert store.get_policy("acme", "day").regular_end == "17:00"

        store.delete_shift("acme", "day")
        with pytest.raises(MissingPolicy):
            store.get_policy("acme", "day")

    def test_get_policy_errors(self):
        store = CompanyStore()
        store.add_company("Acme", company_id="acme")
        with pytest.raises(StoreError):
            store.get_policy("nope", "day")
        with pytest.raises(MissingPolicy) as exc_info:
            store.get_policy("acme", "ghost")
        assert exc_info.value.policy_id == "ghost"

    def test_all_policies(self):
        store = CompanyStore()
        store.add_company("A", company_id="a")
        store.add_company("B", company_id="b")
        store.add_shift("a", ShiftPolicy(id="day"))
        store.add_shift("b", ShiftPolicy(id="night", name=ShiftName.NIGHT))
        assert [p.id for p in store.all_policies()] == ["day", "night"]

    def test_listeners_notified(self):
        store = CompanyStore()
        events = []
        store.subscribe(lambda event, item_id: events.append(event))
        store.add_company("Acme", company_id="acme")
        store.add_shift("acme", ShiftPolicy(id="day"))
        store.delete_company("acme")
        assert events == ["added", "updated", "deleted"]

    def test_persistence_roundtrip(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "companies.json"
            store = CompanyStore(path)
            store.add_company("Acme", company_id="acme")
            policy = ShiftPolicy(id="day", overtime_tiers=OvertimeTiers())
            store.add_shift("acme", policy)

            reloaded = CompanyStore(path)
            reloaded.load()
            assert reloaded.get_company("acme").name == "Acme"
            assert reloaded.get_policy("acme", "day") == policy

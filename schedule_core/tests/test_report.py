"""Tests for the staffing report and hours overview."""

from datetime import date

import pytest

from schedule_core.engine import AssignmentEngine
from schedule_core.hours import hours_overview
from schedule_core.models import Employee
from schedule_core.report import staffing_report
from schedule_core.store import ShiftStore

EMPLOYEES = [
    Employee(id="e1", name="Mina", hourly_rate=12.0),
    Employee(id="e2", name="Joon", hourly_rate=10.0),
]


@pytest.fixture
def store():
    store = ShiftStore()
    engine = AssignmentEngine(store)
    full = store.create({"start": "2025-03-10T09:00", "end": "2025-03-10T15:00", "required_staff": 1})
    engine.assign(full.id, "e1")
    short = store.create({"start": "2025-03-11T09:00", "end": "2025-03-11T15:00", "required_staff": 3})
    engine.assign(short.id, "e2")
    late = store.create({"start": "2025-03-11T14:00", "end": "2025-03-11T18:00", "required_staff": 1})
    engine.assign(late.id, "e2")
    engine.assign(late.id, "gone")
    engine.set_employee_time(late.id, "e2", "2025-03-11T16:00", "2025-03-11T18:00")
    return store


class TestStaffingReport:
    def test_counts(self, store):
        report = staffing_report(store.occurrences(date(2025, 3, 9), date(2025, 3, 15)), EMPLOYEES)
        assert report["occurrence_count"] == 3
        assert report["sufficiency"] == {"understaffed": 1, "sufficient": 2, "overstaffed": 0}

    def test_understaffed_rows(self, store):
        report = staffing_report(store.occurrences(date(2025, 3, 9), date(2025, 3, 15)), EMPLOYEES)
        [row] = report["understaffed"]
        assert row["required_staff"] == 3
        assert row["severely_understaffed"] is True

    def test_fill_rate(self, store):
        report = staffing_report(store.occurrences(date(2025, 3, 9), date(2025, 3, 15)))
        assert report["fill_rate"] == {"required": 5, "filled": 3, "fill_rate_pct": 60.0}

    def test_override_removes_double_booking(self, store):
        report = staffing_report(store.occurrences(date(2025, 3, 9), date(2025, 3, 15)), EMPLOYEES)
        assert report["double_bookings"] == []

    def test_dangling_ids(self, store):
        report = staffing_report(store.occurrences(date(2025, 3, 9), date(2025, 3, 15)), EMPLOYEES)
        assert [d["employee_id"] for d in report["dangling_employees"]] == ["gone"]

    def test_empty(self):
        report = staffing_report([])
        assert report["occurrence_count"] == 0
        assert report["fill_rate"]["fill_rate_pct"] == 0.0


class TestHoursOverview:
    def test_hours_honor_overrides(self, store):
        rows = {r["employee_id"]: r for r in hours_overview(store.occurrences(date(2025, 3, 9), date(2025, 3, 15)), EMPLOYEES)}
        assert rows["e2"]["hours"] == 8.0
        assert rows["e2"]["shifts"] == 2
        assert rows["e2"]["gross_amount"] == 80.0
        assert rows["e1"]["gross_amount"] == 72.0

    def test_unknown_employee_row(self, store):
        rows = {r["employee_id"]: r for r in hours_overview(store.occurrences(date(2025, 3, 9), date(2025, 3, 15)), EMPLOYEES)}
        assert rows["gone"]["employee_name"] == "Unknown"
        assert rows["gone"]["gross_amount"] is None

    def test_sorted_by_hours(self, store):
        rows = hours_overview(store.occurrences(date(2025, 3, 9), date(2025, 3, 15)), EMPLOYEES)
        assert [r["employee_id"] for r in rows] == ["e2", "e1", "gone"]

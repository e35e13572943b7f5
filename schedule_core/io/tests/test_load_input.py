"""Load the minimal fixture directory and drive the engine with it."""

from __future__ import annotations

import shutil
from datetime import date, datetime
from pathlib import Path

import pytest

from schedule_core.io.reader import load_input
from schedule_core.planner import WeeklyPlanner
from schedule_core.store import ShiftStore

FIXTURES_DIR = Path(__file__).parent / "fixtures" / "minimal"


@pytest.fixture
def minimal_input():
    return load_input(FIXTURES_DIR)


class TestLoadInput:
    def test_loads_employees(self, minimal_input):
        assert [e.id for e in minimal_input.employees] == ["E-101", "E-102", "E-103"]

    def test_employee_fields(self, minimal_input):
        mina = minimal_input.employees[0]
        assert mina.name == "Mina Park"
        assert mina.role == "barista"
        assert mina.hourly_rate == 12.50
        assert mina.phone_number == "010-1234-5678"
        assert minimal_input.employees[2].status == "inactive"

    def test_loads_shifts(self, minimal_input):
        shifts = {s.id: s for s in minimal_input.shifts}
        assert set(shifts) == {"S-1", "S-2", "S-3"}
        assert shifts["S-1"].assigned_employee_ids == ["E-101", "E-102"]
        assert shifts["S-1"].max_staff == 3
        assert shifts["S-3"].shift_type is None
        assert shifts["S-3"].status == "unassigned"

    def test_recurrence(self, minimal_input):
        s1 = next(s for s in minimal_input.shifts if s.id == "S-1")
        assert s1.recurrence.days_of_week == {1, 3, 5}
        assert s1.recurrence.end_date == date(2025, 3, 21)
        assert len(s1.occurrences()) == 6

    def test_flags_and_overrides(self, minimal_input):
        s2 = next(s for s in minimal_input.shifts if s.id == "S-2")
        assert s2.status == "substitute-requested"
        assert s2.high_priority is True
        assert s2.min_staff == 1
        assert s2.employee_times["E-102"].start == datetime(2025, 3, 11, 18)

    def test_templates_and_hours(self, minimal_input):
        assert [t.id for t in minimal_input.templates] == ["template-open", "template-middle", "template-close"]
        assert minimal_input.templates[2].required_staff_for(6) == 4
        assert minimal_input.business_hours.opening_hour == "09:00"
        assert minimal_input.store["name"] == "Main Street"

    def test_optional_files(self, tmp_path):
        for name in ("employees.csv", "shifts.csv"):
            shutil.copy(FIXTURES_DIR / name, tmp_path / name)
        loaded = load_input(tmp_path)
        assert loaded.templates is None
        assert loaded.business_hours is None
        assert all(s.employee_times == {} for s in loaded.shifts)

    def test_missing_required_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_input(tmp_path)

    def test_missing_required_column(self, tmp_path):
        shutil.copy(FIXTURES_DIR / "employees.csv", tmp_path / "employees.csv")
        (tmp_path / "shifts.csv").write_text(
            "shift_id,start\nS-1,2025-03-10T09:00\n", encoding="utf-8"
        )
        with pytest.raises(ValueError, match="end"):
            load_input(tmp_path)

    def test_unknown_column_is_ignored(self, tmp_path, caplog):
        shutil.copy(FIXTURES_DIR / "employees.csv", tmp_path / "employees.csv")
        (tmp_path / "shifts.csv").write_text(
            "shift_id,start,end,colour\nS-1,2025-03-10T09:00,2025-03-10T15:00,red\n",
            encoding="utf-8",
        )
        with caplog.at_level("WARNING", logger="schedule_core.io.reader"):
            loaded = load_input(tmp_path)
        assert [s.id for s in loaded.shifts] == ["S-1"]
        assert "colour" in caplog.text


class TestFixtureWeek:
    def test_grid_from_fixture(self, minimal_input):
        store = ShiftStore(minimal_input.shifts)
        planner = WeeklyPlanner.from_store(
            store, minimal_input.templates, minimal_input.employees, date(2025, 3, 10)
        )
        assert planner.cell(1, "template-open").employee_ids == ["E-101", "E-102"]
        assert planner.cell(5, "template-open").employee_ids == ["E-101", "E-102"]
        assert planner.cell(2, "template-close").employee_ids == ["E-102"]
        # S-3 has no type but starts at 15:00
        assert planner.cell(3, "template-middle").max_employees == 2
        assert planner.dropped == []

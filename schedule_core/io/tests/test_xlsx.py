"""Tests for the weekly XLSX export."""

from __future__ import annotations

from datetime import date
from pathlib import Path

import openpyxl
import pytest

from schedule_core.io.reader import load_input
from schedule_core.io.xlsx import render_week_xlsx
from schedule_core.planner import WeeklyPlanner
from schedule_core.store import ShiftStore

FIXTURES_DIR = Path(__file__).parent / "fixtures" / "minimal"
WEEK = date(2025, 3, 9)


@pytest.fixture
def workbook(tmp_path):
    data = load_input(FIXTURES_DIR)
    store = ShiftStore(data.shifts)
    planner = WeeklyPlanner.from_store(store, data.templates, data.employees, WEEK)
    path = render_week_xlsx(
        planner,
        tmp_path / "out" / "week.xlsx",
        occurrences=store.occurrences(WEEK, date(2025, 3, 15)),
        employees=data.employees,
    )
    return openpyxl.load_workbook(path)


class TestRenderWeek:
    def test_sheets(self, workbook):
        assert workbook.sheetnames == ["Week Plan", "Shifts", "Hours"]

    def test_week_plan_grid(self, workbook):
        ws = workbook["Week Plan"]
        assert [c.value for c in ws[1]][:3] == ["slot", "time", "Sun"]
        assert ws["A2"].value == "Open"
        assert ws["B2"].value == "09:00-15:00"
        # Monday column holds both assignees with their roles
        assert ws["D2"].value == "Mina Park (barista)\nJoon Lee (cashier)"

    def test_shift_rows(self, workbook):
        ws = workbook["Shifts"]
        # S-1 occurs Mon/Wed/Fri, S-2 Tue, S-3 Wed
        assert ws.max_row == 1 + 5
        header = [c.value for c in ws[1]]
        first = dict(zip(header, [c.value for c in ws[2]]))
        assert first["shift_id"] == "S-1"
        assert first["weekday"] == "Mon"
        assert first["sufficiency"] == "understaffed"

    def test_hours_sheet(self, workbook):
        ws = workbook["Hours"]
        header = [c.value for c in ws[1]]
        rows = [dict(zip(header, [c.value for c in r])) for r in ws.iter_rows(min_row=2)]
        by_id = {r["employee_id"]: r for r in rows}
        # E-101: 3 x 6h; E-102: 3 x 6h plus 4h override on S-2
        assert by_id["E-101"]["hours"] == 18
        assert by_id["E-102"]["hours"] == 22

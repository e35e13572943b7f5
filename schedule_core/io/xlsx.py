"""Render a weekly plan to a multi-sheet XLSX workbook."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Any

from schedule_core.hours import hours_overview
from schedule_core.models import Employee, Occurrence
from schedule_core.planner import WeeklyPlanner
from schedule_core.staffing import sufficiency
from schedule_core.time_utils import wall_clock, weekday_of

from .schemas import (
    HOURS_COLS,
    SHIFT_EXPORT_COLS,
    WEEK_PLAN_COLS,
    WEEKDAY_LABELS,
)


def _get_openpyxl():
    try:
        from openpyxl import Workbook
        from openpyxl.styles import Alignment, Font, PatternFill
        return Workbook, Font, PatternFill, Alignment
    except ImportError as exc:
        raise ImportError("openpyxl is required for XLSX export: pip install openpyxl") from exc


def _style_headers(worksheets):
    """Apply bold + blue fill to header row of each worksheet."""
    _, Font, PatternFill, _ = _get_openpyxl()
    header_font = Font(bold=True)
    header_fill = PatternFill(start_color="D9E1F2", end_color="D9E1F2", fill_type="solid")
    for ws in worksheets:
        for cell in ws[1]:
            cell.font = header_font
            cell.fill = header_fill


def _hex_color(value: str) -> str | None:
    """``#4CAF50`` -> ``4CAF50``; anything else -> None."""
    raw = (value or "").lstrip("#")
    if len(raw) == 6 and all(c in "0123456789abcdefABCDEF" for c in raw):
        return raw.upper()
    return None


# ---------------------------------------------------------------------------
# Row builders
# ---------------------------------------------------------------------------

def _cell_text(employees) -> str:
    return "\n".join(f"{e.name} ({e.role})" if e.role else e.name for e in employees)


def _shift_row(occ: Occurrence, names: dict[str, str]) -> dict[str, Any]:
    return {
        "shift_id": occ.shift_id,
        "date": occ.start.date().isoformat(),
        "weekday": WEEKDAY_LABELS[weekday_of(occ.start)],
        "start": wall_clock(occ.start),
        "end": wall_clock(occ.end),
        "shift_type": occ.shift_type or "",
        "title": occ.title,
        "status": occ.status,
        "sufficiency": sufficiency(
            len(occ.assigned_employee_ids), occ.required_staff, occ.min_staff, occ.max_staff
        ).value,
        "assigned": len(occ.assigned_employee_ids),
        "required_staff": occ.required_staff,
        "max_staff": occ.max_staff if occ.max_staff is not None else "",
        "employees": ", ".join(names.get(e, e) for e in occ.assigned_employee_ids),
    }


# ---------------------------------------------------------------------------
# Workbook
# ---------------------------------------------------------------------------

def render_week_xlsx(
    planner: WeeklyPlanner,
    path: Path,
    occurrences: Iterable[Occurrence] = (),
    employees: Iterable[Employee] | None = None,
) -> Path:
    """Write the grid and its underlying occurrences to ``path``.

    Sheets: Week Plan, Shifts, Hours.
    """
    Workbook, _, PatternFill, Alignment = _get_openpyxl()
    path = Path(path)
    occ_list = list(occurrences)
    emp_list = list(employees) if employees is not None else list(planner.employees.values())
    names = {e.id: e.name for e in emp_list}

    wb = Workbook()

    # --- Week Plan sheet ---
    ws_plan = wb.active
    ws_plan.title = "Week Plan"
    ws_plan.append(WEEK_PLAN_COLS)
    wrap = Alignment(wrap_text=True, vertical="top")
    for template in planner.templates:
        row = [template.name, f"{template.start_time}-{template.end_time}"]
        for day in range(7):
            cell = planner.cell(day, template.id)
            row.append(_cell_text(cell.employees) if cell is not None else "")
        ws_plan.append(row)
        color = _hex_color(template.color)
        current = ws_plan.max_row
        if color:
            ws_plan.cell(row=current, column=1).fill = PatternFill(
                start_color=color, end_color=color, fill_type="solid"
            )
        for col in range(3, 10):
            ws_plan.cell(row=current, column=col).alignment = wrap

    # --- Shifts sheet ---
    ws_shifts = wb.create_sheet("Shifts")
    ws_shifts.append(SHIFT_EXPORT_COLS)
    for occ in occ_list:
        row = _shift_row(occ, names)
        ws_shifts.append([row[c] for c in SHIFT_EXPORT_COLS])

    # --- Hours sheet ---
    ws_hours = wb.create_sheet("Hours")
    ws_hours.append(HOURS_COLS)
    for row in hours_overview(occ_list, emp_list):
        ws_hours.append(["" if row[c] is None else row[c] for c in HOURS_COLS])

    _style_headers([ws_plan, ws_shifts, ws_hours])

    path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(path)
    return path

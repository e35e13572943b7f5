"""Read a CSV/JSON input directory into domain objects."""

from __future__ import annotations

import csv
import json
import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any

from schedule_core.models import (
    BusinessHours,
    Employee,
    EmployeeTime,
    Recurrence,
    Shift,
    ShiftTemplate,
)
from schedule_core.time_utils import parse_timestamp

from .schemas import (
    EMPLOYEE_TIMES_COLS,
    EMPLOYEE_TIMES_REQUIRED,
    EMPLOYEES_COLS,
    EMPLOYEES_REQUIRED,
    SHIFTS_COLS,
    SHIFTS_REQUIRED,
    pipe_split,
    to_bool,
    to_float,
    to_int,
    to_int_or_none,
)

logger = logging.getLogger(__name__)


@dataclass
class ScheduleInput:
    employees: list[Employee]
    shifts: list[Shift]
    templates: list[ShiftTemplate] | None = None
    business_hours: BusinessHours | None = None
    store: dict[str, Any] = field(default_factory=dict)


def load_input(directory: Path) -> ScheduleInput:
    """Read input dir -> ScheduleInput.

    ``employees.csv`` and ``shifts.csv`` are required; ``employee_times.csv``,
    ``templates.json`` and ``store.json`` are optional.
    Raises FileNotFoundError if required files are missing and ValueError
    if a CSV lacks a required column.
    """
    d = Path(directory)

    # -- employees.csv ----------------------------------------------------------
    employees = [
        Employee(
            id=row["employee_id"],
            name=row["name"],
            role=row.get("role") or "",
            hourly_rate=to_float(row.get("hourly_rate")),
            status=(row.get("status") or "active").strip(),
            phone_number=row.get("phone_number") or "",
            email=row.get("email") or "",
        )
        for row in _read_csv(d / "employees.csv", EMPLOYEES_COLS, EMPLOYEES_REQUIRED)
    ]

    # -- employee_times.csv (optional per-employee overrides) --------------------
    overrides: dict[str, dict[str, EmployeeTime]] = {}
    times_path = d / "employee_times.csv"
    if times_path.exists():
        for row in _read_csv(times_path, EMPLOYEE_TIMES_COLS, EMPLOYEE_TIMES_REQUIRED):
            overrides.setdefault(row["shift_id"], {})[row["employee_id"]] = EmployeeTime(
                start=parse_timestamp(row["start"]),
                end=parse_timestamp(row["end"]),
            )

    # -- shifts.csv ---------------------------------------------------------------
    shifts = []
    for row in _read_csv(d / "shifts.csv", SHIFTS_COLS, SHIFTS_REQUIRED):
        shift_id = row["shift_id"]
        days = pipe_split(row.get("recurrence_days"))
        recurrence = None
        if days:
            end = (row.get("recurrence_end") or "").strip()
            recurrence = Recurrence(
                days_of_week={int(x) for x in days},
                end_date=date.fromisoformat(end) if end else None,
            )
        shifts.append(
            Shift(
                id=shift_id,
                start=parse_timestamp(row["start"]),
                end=parse_timestamp(row["end"]),
                assigned_employee_ids=pipe_split(row.get("assigned_employee_ids")),
                required_staff=to_int(row.get("required_staff"), 1),
                min_staff=to_int_or_none(row.get("min_staff")),
                max_staff=to_int_or_none(row.get("max_staff")),
                shift_type=row.get("shift_type") or None,
                title=row.get("title") or "",
                note=row.get("note") or "",
                color=row.get("color") or "",
                recurrence=recurrence,
                employee_times=overrides.get(shift_id, {}),
                substitute_requested=to_bool(row.get("substitute_requested")),
                high_priority=to_bool(row.get("high_priority")),
            )
        )

    # -- templates.json / store.json ----------------------------------------------
    templates = None
    templates_path = d / "templates.json"
    if templates_path.exists():
        templates = [ShiftTemplate.from_dict(t) for t in _read_json(templates_path)]

    store: dict[str, Any] = {}
    business_hours = None
    store_path = d / "store.json"
    if store_path.exists():
        store = _read_json(store_path)
        if store.get("opening_hour") and store.get("closing_hour"):
            business_hours = BusinessHours(store["opening_hour"], store["closing_hour"])

    return ScheduleInput(
        employees=employees,
        shifts=shifts,
        templates=templates,
        business_hours=business_hours,
        store=store,
    )


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _read_json(path: Path) -> Any:
    if not path.exists():
        raise FileNotFoundError(f"Required file not found: {path}")
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def _read_csv(path: Path, columns: list[str], required: tuple[str, ...]) -> list[dict[str, str]]:
    """Read a CSV file into a list of dicts via csv.DictReader, checking the header."""
    if not path.exists():
        raise FileNotFoundError(f"Required file not found: {path}")
    with open(path, newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        header = reader.fieldnames or []
        missing = [c for c in required if c not in header]
        if missing:
            raise ValueError(f"{path.name} is missing required columns: {', '.join(missing)}")
        unknown = [c for c in header if c not in columns]
        if unknown:
            logger.warning("%s: ignoring unknown columns %s", path.name, ", ".join(unknown))
        return list(reader)

"""Per-employee worked-hours overview derived from occurrences."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from typing import Any

from .models import Employee, Occurrence
from .planner import UNKNOWN_EMPLOYEE_NAME
from .time_utils import duration_hours


def hours_overview(
    occurrences: Iterable[Occurrence],
    employees: Iterable[Employee] = (),
) -> list[dict[str, Any]]:
    """Hours, shift count and gross amount per employee, most hours first.

    Per-employee time overrides replace the shift bounds. Ids missing from
    the directory are listed as ``Unknown`` with no rate.
    """
    directory = {e.id: e for e in employees}
    per_employee = defaultdict(lambda: {"hours": 0.0, "shifts": 0})
    for occ in occurrences:
        for emp_id in occ.assigned_employee_ids:
            start, end = occ.interval_for(emp_id)
            item = per_employee[emp_id]
            item["hours"] += duration_hours(start, end)
            item["shifts"] += 1

    result = []
    for emp_id, values in per_employee.items():
        employee = directory.get(emp_id)
        rate = employee.hourly_rate if employee is not None else None
        result.append(
            {
                "employee_id": emp_id,
                "employee_name": employee.name if employee is not None else UNKNOWN_EMPLOYEE_NAME,
                "hours": round(values["hours"], 2),
                "shifts": int(values["shifts"]),
                "hourly_rate": rate,
                "gross_amount": round(values["hours"] * rate, 2) if rate is not None else None,
            }
        )

    result.sort(key=lambda row: (-row["hours"], row["employee_id"]))
    return result

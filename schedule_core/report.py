"""Staffing report over a set of shift occurrences.

Pure functions, occurrences in / dict out, suitable for tool output.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from typing import Any

from .constraints import find_double_bookings
from .models import Employee, Occurrence
from .staffing import Sufficiency, is_severely_understaffed, sufficiency
from .time_utils import format_timestamp


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _row(occ: Occurrence, state: Sufficiency) -> dict[str, Any]:
    assigned = len(occ.assigned_employee_ids)
    return {
        "shift_id": occ.shift_id,
        "date": occ.start.date().isoformat(),
        "start": format_timestamp(occ.start),
        "end": format_timestamp(occ.end),
        "shift_type": occ.shift_type,
        "assigned": assigned,
        "required_staff": occ.required_staff,
        "max_staff": occ.max_staff,
        "status": occ.status,
        "sufficiency": state.value,
        "severely_understaffed": (
            state == Sufficiency.UNDERSTAFFED
            and is_severely_understaffed(assigned, occ.required_staff)
        ),
    }


def _coverage_by_date(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Date x shift_type sufficiency grid."""
    return [
        {"date": r["date"], "shift_type": r["shift_type"], "sufficiency": r["sufficiency"]}
        for r in sorted(rows, key=lambda r: (r["date"], r["start"], r["shift_id"]))
    ]


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------


def staffing_report(
    occurrences: Iterable[Occurrence],
    employees: Iterable[Employee] | None = None,
) -> dict[str, Any]:
    """Sufficiency counts, under/overstaffed lists, double bookings and dangling ids."""
    occ_list = list(occurrences)
    rows: list[dict[str, Any]] = []
    for occ in occ_list:
        state = sufficiency(
            len(occ.assigned_employee_ids), occ.required_staff, occ.min_staff, occ.max_staff
        )
        rows.append(_row(occ, state))

    counts = Counter(r["sufficiency"] for r in rows)
    status_counts = Counter(r["status"] for r in rows)
    required_total = sum(r["required_staff"] for r in rows)
    filled_total = sum(min(r["assigned"], r["required_staff"]) for r in rows)

    dangling: list[dict[str, Any]] = []
    if employees is not None:
        known = {e.id for e in employees}
        for occ in occ_list:
            for emp_id in occ.assigned_employee_ids:
                if emp_id not in known:
                    dangling.append({
                        "shift_id": occ.shift_id,
                        "date": occ.start.date().isoformat(),
                        "employee_id": emp_id,
                    })

    return {
        "occurrence_count": len(rows),
        "sufficiency": {s.value: counts.get(s.value, 0) for s in Sufficiency},
        "status": dict(status_counts.most_common()),
        "fill_rate": {
            "required": required_total,
            "filled": filled_total,
            "fill_rate_pct": round(filled_total / max(1, required_total) * 100, 1),
        },
        "understaffed": [r for r in rows if r["sufficiency"] == Sufficiency.UNDERSTAFFED.value],
        "overstaffed": [r for r in rows if r["sufficiency"] == Sufficiency.OVERSTAFFED.value],
        "double_bookings": find_double_bookings(occ_list),
        "dangling_employees": dangling,
        "coverage": _coverage_by_date(rows),
    }

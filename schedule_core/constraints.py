"""Rejection taxonomy, invariant validation and advisory conflict checks.

Hard reasons refuse an operation and leave state untouched. Soft reasons
are warnings only: understaffing and cross-shift double booking never
block an assignment.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable

from .models import BusinessHours, Occurrence, Shift
from .rejections import (  # noqa: F401
    CAPACITY_EXCEEDED,
    DANGLING_EMPLOYEE,
    DOUBLE_BOOKED,
    DUPLICATE_ASSIGNMENT,
    HARD_REASONS,
    INVALID_INTERVAL,
    INVALID_STAFFING_LEVELS,
    NOT_ASSIGNED,
    NOT_FOUND,
    OUTSIDE_BUSINESS_HOURS,
    OVERRIDE_OUTSIDE_SHIFT,
    OVERSTAFFED,
    POSITION_FILLED,
    SEVERELY_UNDERSTAFFED,
    SOFT_REASONS,
    UNDERSTAFFED,
    Rejected,
    is_hard,
    is_soft,
)
from .staffing import Sufficiency, is_severely_understaffed, sufficiency
from .time_utils import format_timestamp, overlaps

VALID_DAYS = frozenset(range(7))  # 0 = Sunday

# ---- Invariants ------------------------------------------------------------

def validate_shift(shift: Shift) -> list[str]:
    """Return hard invariant violations for a shift record (empty when valid)."""
    problems: list[str] = []
    if shift.start >= shift.end:
        problems.append(INVALID_INTERVAL)
    for override in shift.employee_times.values():
        if override.start >= override.end:
            problems.append(INVALID_INTERVAL)
            break
    if shift.recurrence is not None and not shift.recurrence.days_of_week <= VALID_DAYS:
        problems.append(INVALID_INTERVAL)
    if len(set(shift.assigned_employee_ids)) != len(shift.assigned_employee_ids):
        problems.append(DUPLICATE_ASSIGNMENT)
    if shift.max_staff is not None and len(shift.assigned_employee_ids) > shift.max_staff:
        problems.append(CAPACITY_EXCEEDED)
    if shift.required_staff < 1:
        problems.append(INVALID_STAFFING_LEVELS)
    elif shift.min_staff is not None and shift.min_staff > shift.required_staff:
        problems.append(INVALID_STAFFING_LEVELS)
    elif shift.max_staff is not None and shift.required_staff > shift.max_staff:
        problems.append(INVALID_STAFFING_LEVELS)
    return problems


# ---- Business hours --------------------------------------------------------

def clamp_to_business_hours(
    start: datetime,
    end: datetime,
    hours: BusinessHours,
) -> tuple[datetime, datetime] | Rejected:
    """Clamp a candidate interval to the opening window of its start date."""
    opening, closing = hours.window(start.date())
    clamped_start = max(start, opening)
    clamped_end = min(end, closing)
    if clamped_start >= clamped_end:
        return Rejected(
            OUTSIDE_BUSINESS_HOURS,
            f"{format_timestamp(start)}-{format_timestamp(end)} outside "
            f"{hours.opening_hour}-{hours.closing_hour}",
        )
    return clamped_start, clamped_end


def within_business_hours(start: datetime, end: datetime, hours: BusinessHours) -> bool:
    opening, closing = hours.window(start.date())
    return opening <= start and end <= closing


# ---- Advisory checks -------------------------------------------------------

def find_double_bookings(occurrences: Iterable[Occurrence]) -> list[dict[str, Any]]:
    """Detect one employee on two overlapping occurrences.

    Uses each employee's effective interval (override when present).
    Advisory only; nothing in the engine refuses on this basis.
    """
    by_emp: dict[str, list[tuple[datetime, datetime, Occurrence]]] = {}
    for occ in occurrences:
        for emp_id in occ.assigned_employee_ids:
            start, end = occ.interval_for(emp_id)
            by_emp.setdefault(emp_id, []).append((start, end, occ))

    conflicts: list[dict[str, Any]] = []
    for emp_id, items in sorted(by_emp.items()):
        items.sort(key=lambda item: item[0])
        for i, (a_start, a_end, a_occ) in enumerate(items):
            for b_start, b_end, b_occ in items[i + 1:]:
                if b_start >= a_end:
                    break
                if a_occ.shift_id == b_occ.shift_id and a_start == b_start:
                    continue
                if overlaps((a_start, a_end), (b_start, b_end)):
                    conflicts.append({
                        "employee_id": emp_id,
                        "warning": DOUBLE_BOOKED,
                        "shift_ids": [a_occ.shift_id, b_occ.shift_id],
                        "date": a_start.date().isoformat(),
                        "detail": (
                            f"{format_timestamp(a_start)}-{format_timestamp(a_end)} overlaps "
                            f"{format_timestamp(b_start)}-{format_timestamp(b_end)}"
                        ),
                    })
    return conflicts


def shift_warnings(
    shift: Shift,
    known_employee_ids: Iterable[str] | None = None,
    hours: BusinessHours | None = None,
) -> list[dict[str, Any]]:
    """Soft warnings for one shift: staffing level, overrides, dangling ids."""
    warnings: list[dict[str, Any]] = []
    assigned = len(shift.assigned_employee_ids)
    state = sufficiency(assigned, shift.required_staff, shift.min_staff, shift.max_staff)

    if state == Sufficiency.UNDERSTAFFED:
        reason = (
            SEVERELY_UNDERSTAFFED
            if is_severely_understaffed(assigned, shift.required_staff)
            else UNDERSTAFFED
        )
        warnings.append({
            "shift_id": shift.id,
            "warning": reason,
            "detail": f"{assigned}/{shift.required_staff} assigned",
        })
    elif state == Sufficiency.OVERSTAFFED:
        warnings.append({
            "shift_id": shift.id,
            "warning": OVERSTAFFED,
            "detail": f"{assigned} assigned, max {shift.max_staff}",
        })

    for emp_id, override in sorted(shift.employee_times.items()):
        inside_shift = shift.start <= override.start and override.end <= shift.end
        if not inside_shift:
            warnings.append({
                "shift_id": shift.id,
                "employee_id": emp_id,
                "warning": OVERRIDE_OUTSIDE_SHIFT,
                "detail": "employee time extends beyond the shift",
            })
        elif hours is not None and not within_business_hours(override.start, override.end, hours):
            warnings.append({
                "shift_id": shift.id,
                "employee_id": emp_id,
                "warning": OVERRIDE_OUTSIDE_SHIFT,
                "detail": "employee time outside business hours",
            })

    if known_employee_ids is not None:
        known = set(known_employee_ids)
        for emp_id in shift.assigned_employee_ids:
            if emp_id not in known:
                warnings.append({
                    "shift_id": shift.id,
                    "employee_id": emp_id,
                    "warning": DANGLING_EMPLOYEE,
                    "detail": "assigned employee no longer in directory",
                })
    return warnings

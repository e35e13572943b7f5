"""Reason constants and the ``Rejected`` result type."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

# ---- Hard: operation refused, state untouched ------------------------------

DUPLICATE_ASSIGNMENT = "duplicate_assignment"
CAPACITY_EXCEEDED = "capacity_exceeded"
NOT_ASSIGNED = "not_assigned"
INVALID_INTERVAL = "invalid_interval"
OUTSIDE_BUSINESS_HOURS = "outside_business_hours"
NOT_FOUND = "not_found"
INVALID_STAFFING_LEVELS = "invalid_staffing_levels"
POSITION_FILLED = "position_filled"

# ---- Soft: surfaced as warnings --------------------------------------------

UNDERSTAFFED = "understaffed"
SEVERELY_UNDERSTAFFED = "severely_understaffed"
OVERSTAFFED = "overstaffed"
DOUBLE_BOOKED = "double_booked"
OVERRIDE_OUTSIDE_SHIFT = "override_outside_shift"
DANGLING_EMPLOYEE = "dangling_employee"

HARD_REASONS = frozenset({
    DUPLICATE_ASSIGNMENT,
    CAPACITY_EXCEEDED,
    NOT_ASSIGNED,
    INVALID_INTERVAL,
    OUTSIDE_BUSINESS_HOURS,
    NOT_FOUND,
    INVALID_STAFFING_LEVELS,
    POSITION_FILLED,
})

SOFT_REASONS = frozenset({
    UNDERSTAFFED,
    SEVERELY_UNDERSTAFFED,
    OVERSTAFFED,
    DOUBLE_BOOKED,
    OVERRIDE_OUTSIDE_SHIFT,
    DANGLING_EMPLOYEE,
})


def is_hard(reason: str) -> bool:
    return reason in HARD_REASONS


def is_soft(reason: str) -> bool:
    return reason in SOFT_REASONS


@dataclass(frozen=True)
class Rejected:
    """Typed refusal returned to the caller; falsy so ``if result:`` reads naturally."""

    reason: str
    detail: str = ""

    def __bool__(self) -> bool:
        return False

    def to_dict(self) -> dict[str, Any]:
        return {"ok": False, "reason": self.reason, "detail": self.detail}

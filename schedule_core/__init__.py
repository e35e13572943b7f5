"""Shift assignment and scheduling-conflict engine."""

from .constraints import (
    Rejected,
    clamp_to_business_hours,
    find_double_bookings,
    is_hard,
    is_soft,
    shift_warnings,
    validate_shift,
)
from .engine import AssignmentEngine
from .hours import hours_overview
from .models import (
    BusinessHours,
    DragMoveRequest,
    Employee,
    EmployeeTime,
    Occurrence,
    PlanCell,
    PlanEmployee,
    Recurrence,
    Shift,
    ShiftTemplate,
)
from .planner import WeeklyPlanner
from .report import staffing_report
from .staffing import Sufficiency, can_add, can_remove, sufficiency
from .store import ShiftStore
from .time_utils import duration_hours, expand_weekly_recurrence, overlaps, weekday_of

# io module -- lazy xlsx re-export (avoids importing openpyxl at import time)
from .io import load_input, render_week_xlsx

__all__ = [
    "AssignmentEngine",
    "BusinessHours",
    "DragMoveRequest",
    "Employee",
    "EmployeeTime",
    "Occurrence",
    "PlanCell",
    "PlanEmployee",
    "Recurrence",
    "Rejected",
    "Shift",
    "ShiftStore",
    "ShiftTemplate",
    "Sufficiency",
    "WeeklyPlanner",
    "can_add",
    "can_remove",
    "clamp_to_business_hours",
    "duration_hours",
    "expand_weekly_recurrence",
    "find_double_bookings",
    "hours_overview",
    "is_hard",
    "is_soft",
    "load_input",
    "overlaps",
    "render_week_xlsx",
    "shift_warnings",
    "staffing_report",
    "sufficiency",
    "validate_shift",
    "weekday_of",
]

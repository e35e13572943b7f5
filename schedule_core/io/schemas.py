"""Column constants, pipe splitting, and type coercion for CSV input."""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Input CSV column names
# ---------------------------------------------------------------------------

EMPLOYEES_COLS = [
    "employee_id",
    "name",
    "role",
    "hourly_rate",
    "status",
    "phone_number",
    "email",
]

SHIFTS_COLS = [
    "shift_id",
    "start",
    "end",
    "assigned_employee_ids",
    "required_staff",
    "min_staff",
    "max_staff",
    "shift_type",
    "title",
    "note",
    "color",
    "recurrence_days",
    "recurrence_end",
    "substitute_requested",
    "high_priority",
]

EMPLOYEE_TIMES_COLS = [
    "shift_id",
    "employee_id",
    "start",
    "end",
]

# Columns that must be present in the header row; the rest are optional.
EMPLOYEES_REQUIRED = ("employee_id", "name")
SHIFTS_REQUIRED = ("shift_id", "start", "end")
EMPLOYEE_TIMES_REQUIRED = tuple(EMPLOYEE_TIMES_COLS)

# ---------------------------------------------------------------------------
# Output sheet column names
# ---------------------------------------------------------------------------

WEEK_PLAN_COLS = [
    "slot",
    "time",
    "Sun",
    "Mon",
    "Tue",
    "Wed",
    "Thu",
    "Fri",
    "Sat",
]

SHIFT_EXPORT_COLS = [
    "shift_id",
    "date",
    "weekday",
    "start",
    "end",
    "shift_type",
    "title",
    "status",
    "sufficiency",
    "assigned",
    "required_staff",
    "max_staff",
    "employees",
]

HOURS_COLS = [
    "employee_id",
    "employee_name",
    "hours",
    "shifts",
    "hourly_rate",
    "gross_amount",
]

WEEKDAY_LABELS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]

# ---------------------------------------------------------------------------
# Pipe-separated field helpers
# ---------------------------------------------------------------------------

PIPE = "|"


def pipe_split(value: str | None) -> list[str]:
    """Split a pipe-separated string into a list. Empty/None -> empty list."""
    if not value or not str(value).strip():
        return []
    return [v.strip() for v in str(value).split(PIPE) if v.strip()]


# ---------------------------------------------------------------------------
# Type coercion helpers for reading CSV values
# ---------------------------------------------------------------------------


def to_float(value: str | None, default: float = 0.0) -> float:
    """Coerce a CSV string to float. Empty/None -> default."""
    if value is None or str(value).strip() == "":
        return default
    try:
        return float(value)
    except (ValueError, TypeError):
        return default


def to_int(value: str | None, default: int = 0) -> int:
    if value is None or str(value).strip() == "":
        return default
    try:
        return int(float(value))
    except (ValueError, TypeError):
        return default


def to_int_or_none(value: str | None) -> int | None:
    """Like ``to_int`` but empty stays ``None`` (optional staffing bounds)."""
    if value is None or str(value).strip() == "":
        return None
    try:
        return int(float(value))
    except (ValueError, TypeError):
        return None


def to_bool(value: str | None) -> bool:
    """Coerce a CSV string to bool. TRUE/true/1/yes -> True, else False."""
    if value is None:
        return False
    return str(value).strip().upper() in ("TRUE", "1", "YES")

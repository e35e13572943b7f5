"""Input/output helpers.

Public API:
    load_input(directory)               -- read CSV/JSON input dir -> ScheduleInput
    render_week_xlsx(planner, path)     -- weekly plan workbook (Week Plan, Shifts, Hours)
"""

from .reader import ScheduleInput, load_input

__all__ = [
    "ScheduleInput",
    "load_input",
    "render_week_xlsx",
]


# Lazy import for the optional heavy dependency (openpyxl).
def render_week_xlsx(*args, **kwargs):
    from .xlsx import render_week_xlsx as _fn
    return _fn(*args, **kwargs)

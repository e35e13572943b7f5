"""Employee <-> shift assignment operations.

Every operation validates before it mutates and returns either the updated
record(s) or a ``Rejected`` without touching the store.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date, datetime, timedelta
from typing import Any

from .constraints import (
    INVALID_INTERVAL,
    NOT_ASSIGNED,
    NOT_FOUND,
    OUTSIDE_BUSINESS_HOURS,
    Rejected,
    find_double_bookings,
    validate_shift,
    within_business_hours,
)
from .models import BusinessHours, Employee, EmployeeTime, Shift
from .staffing import can_add, can_remove
from .store import ShiftStore
from .time_utils import format_timestamp, parse_timestamp

logger = logging.getLogger(__name__)

# Look-ahead used for open-ended recurrences when no range is given.
CONFLICT_HORIZON_DAYS = 28


def _rejected(op: str, shift_id: str, rejection: Rejected) -> Rejected:
    logger.debug("%s on %s rejected: %s (%s)", op, shift_id, rejection.reason, rejection.detail)
    return rejection


class AssignmentEngine:
    def __init__(
        self,
        store: ShiftStore,
        employees: Iterable[Employee] | None = None,
        business_hours: BusinessHours | None = None,
    ) -> None:
        self.store = store
        self.business_hours = business_hours
        self._employees: dict[str, Employee] | None = None
        if employees is not None:
            self.set_employees(employees)

    def set_employees(self, employees: Iterable[Employee]) -> None:
        self._employees = {e.id: e for e in employees}

    def _fetch(self, op: str, shift_id: str) -> Shift | Rejected:
        shift = self.store.get(shift_id)
        if shift is None:
            return _rejected(op, shift_id, Rejected(NOT_FOUND, f"shift {shift_id} not found"))
        return shift

    def _commit(self, shift: Shift) -> Shift:
        result = self.store.update(shift.id, shift)
        if isinstance(result, Rejected):
            # Candidates are validated before commit, so this is a bug.
            raise RuntimeError(f"Store refused validated shift {shift.id}: {result.reason}")
        return result

    # ---- single-shift operations -------------------------------------------

    def assign(self, shift_id: str, employee_id: str) -> Shift | Rejected:
        shift = self._fetch("assign", shift_id)
        if isinstance(shift, Rejected):
            return shift
        if self._employees is not None and employee_id not in self._employees:
            return _rejected("assign", shift_id, Rejected(NOT_FOUND, f"employee {employee_id} not found"))
        rejection = can_add(shift, employee_id)
        if rejection is not None:
            return _rejected("assign", shift_id, rejection)

        shift.assigned_employee_ids.append(employee_id)
        return self._commit(shift)

    def unassign(self, shift_id: str, employee_id: str) -> Shift | Rejected:
        shift = self._fetch("unassign", shift_id)
        if isinstance(shift, Rejected):
            return shift
        rejection = can_remove(shift, employee_id)
        if rejection is not None:
            return _rejected("unassign", shift_id, rejection)

        shift.assigned_employee_ids.remove(employee_id)
        shift.employee_times.pop(employee_id, None)
        return self._commit(shift)

    def reorder(self, shift_id: str, employee_id: str, new_index: int) -> Shift | Rejected:
        shift = self._fetch("reorder", shift_id)
        if isinstance(shift, Rejected):
            return shift
        ids = shift.assigned_employee_ids
        if employee_id not in ids:
            return _rejected("reorder", shift_id, Rejected(NOT_ASSIGNED, f"{employee_id} is not assigned"))

        ids.remove(employee_id)
        ids.insert(max(0, min(new_index, len(ids))), employee_id)
        return self._commit(shift)

    def request_substitute(
        self,
        shift_id: str,
        high_priority: bool = False,
        requested: bool | None = None,
    ) -> Shift | Rejected:
        """Toggle (or set, when ``requested`` is given) the substitute flag.

        ``high_priority`` only sticks while a substitute is requested.
        """
        shift = self._fetch("request_substitute", shift_id)
        if isinstance(shift, Rejected):
            return shift
        flag = (not shift.substitute_requested) if requested is None else bool(requested)
        shift.substitute_requested = flag
        shift.high_priority = bool(high_priority) if flag else False
        return self._commit(shift)

    def set_employee_time(
        self,
        shift_id: str,
        employee_id: str,
        start: datetime | str,
        end: datetime | str,
    ) -> Shift | Rejected:
        shift = self._fetch("set_employee_time", shift_id)
        if isinstance(shift, Rejected):
            return shift
        if employee_id not in shift.assigned_employee_ids:
            return _rejected(
                "set_employee_time", shift_id, Rejected(NOT_ASSIGNED, f"{employee_id} is not assigned")
            )
        start_dt = parse_timestamp(start)
        end_dt = parse_timestamp(end)
        if start_dt >= end_dt:
            return _rejected(
                "set_employee_time",
                shift_id,
                Rejected(INVALID_INTERVAL, f"{format_timestamp(start_dt)} is not before {format_timestamp(end_dt)}"),
            )
        if self.business_hours is not None and not within_business_hours(start_dt, end_dt, self.business_hours):
            return _rejected(
                "set_employee_time",
                shift_id,
                Rejected(
                    OUTSIDE_BUSINESS_HOURS,
                    f"{self.business_hours.opening_hour}-{self.business_hours.closing_hour}",
                ),
            )

        shift.employee_times[employee_id] = EmployeeTime(start_dt, end_dt)
        return self._commit(shift)

    def clear_employee_time(self, shift_id: str, employee_id: str) -> Shift | Rejected:
        shift = self._fetch("clear_employee_time", shift_id)
        if isinstance(shift, Rejected):
            return shift
        if shift.employee_times.pop(employee_id, None) is None:
            return shift
        return self._commit(shift)

    # ---- two-shift operation -----------------------------------------------

    def move(self, source_id: str, dest_id: str, employee_id: str) -> tuple[Shift, Shift] | Rejected:
        """Move an assignee between shifts; both sides validate before either commits."""
        source = self._fetch("move", source_id)
        if isinstance(source, Rejected):
            return source
        dest = self._fetch("move", dest_id)
        if isinstance(dest, Rejected):
            return dest

        rejection = can_remove(source, employee_id)
        if rejection is None:
            rejection = can_add(dest, employee_id)
        if rejection is not None:
            return _rejected("move", f"{source_id}->{dest_id}", rejection)

        source.assigned_employee_ids.remove(employee_id)
        source.employee_times.pop(employee_id, None)
        dest.assigned_employee_ids.append(employee_id)
        for candidate in (source, dest):
            problems = validate_shift(candidate)
            if problems:
                return _rejected("move", candidate.id, Rejected(problems[0], ", ".join(problems)))

        return self._commit(source), self._commit(dest)

    # ---- advisory -----------------------------------------------------------

    def conflicts_for(
        self,
        shift_id: str,
        employee_id: str,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> list[dict[str, Any]] | Rejected:
        """Other shifts where ``employee_id`` overlaps this one (never blocking).

        Works for an employee not yet on the shift, using the shift's own
        bounds, so callers can warn before assigning.
        """
        shift = self._fetch("conflicts_for", shift_id)
        if isinstance(shift, Rejected):
            return shift

        if date_from is None:
            date_from = shift.start.date()
        if date_to is None:
            if shift.recurrence is None:
                date_to = shift.end.date()
            elif shift.recurrence.end_date is not None:
                date_to = shift.recurrence.end_date
            else:
                date_to = date_from + timedelta(days=CONFLICT_HORIZON_DAYS)

        if employee_id not in shift.assigned_employee_ids:
            shift.assigned_employee_ids.append(employee_id)
        own = shift.occurrences(date_from, date_to)
        # One day of slack so overnight shifts from the previous day are seen.
        others = [
            occ
            for occ in self.store.occurrences(date_from - timedelta(days=1), date_to)
            if occ.shift_id != shift_id and employee_id in occ.assigned_employee_ids
        ]
        conflicts = find_double_bookings(own + others)
        return [
            c for c in conflicts
            if c["employee_id"] == employee_id and shift_id in c["shift_ids"]
        ]

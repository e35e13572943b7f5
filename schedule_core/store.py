"""In-memory shift store.

One explicitly-owned instance per session. Records are replaced whole on
every write and callers only ever receive copies.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import fields
from datetime import date
from typing import Any

from .constraints import NOT_FOUND, Rejected, validate_shift
from .models import EmployeeTime, Occurrence, Shift, _opt_int, _recurrence
from .time_utils import parse_timestamp

logger = logging.getLogger(__name__)

_SHIFT_FIELDS = frozenset(f.name for f in fields(Shift))


def new_shift_id() -> str:
    return f"shift-{uuid.uuid4().hex[:12]}"


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


def _coerce_change(key: str, value: Any) -> Any:
    """Coerce one changed field the same way ``Shift.from_dict`` does."""
    if key in ("start", "end"):
        return parse_timestamp(value)
    if key == "required_staff":
        required = _opt_int(value)
        return 1 if required is None else required
    if key in ("min_staff", "max_staff"):
        return _opt_int(value)
    if key in ("substitute_requested", "high_priority"):
        return _flag(value)
    if key in ("title", "note", "color", "store_id"):
        return str(value or "")
    if key == "shift_type":
        return value or None
    if key == "recurrence":
        return _recurrence(value)
    if key == "employee_times":
        return {
            str(emp_id): t if isinstance(t, EmployeeTime) else EmployeeTime.from_dict(t)
            for emp_id, t in (value or {}).items()
        }
    if key == "assigned_employee_ids":
        return [str(e) for e in value or []]
    return value


def apply_changes(shift: Shift, changes: Mapping[str, Any]) -> Shift:
    """Return a copy of ``shift`` with ``changes`` applied (``id`` is immutable)."""
    updated = shift.copy()
    for key, value in changes.items():
        if key == "status":
            continue
        if key == "id":
            if str(value) != shift.id:
                raise ValueError("Shift id cannot be changed")
            continue
        if key not in _SHIFT_FIELDS:
            raise ValueError(f"Unknown shift field: {key!r}")
        setattr(updated, key, _coerce_change(key, value))
    return updated


class ShiftStore:
    def __init__(self, shifts: Iterable[Shift] | None = None) -> None:
        self._shifts: dict[str, Shift] = {}
        if shifts is not None:
            self.load(shifts)

    def __len__(self) -> int:
        return len(self._shifts)

    def __contains__(self, shift_id: object) -> bool:
        return shift_id in self._shifts

    def reset(self) -> None:
        self._shifts.clear()

    def load(self, shifts: Iterable[Shift]) -> list[str]:
        """Replace the whole collection; invalid records are skipped and reported."""
        self._shifts.clear()
        skipped: list[str] = []
        for shift in shifts:
            problems = validate_shift(shift)
            if problems:
                logger.warning("Skipping invalid shift %s: %s", shift.id, ", ".join(problems))
                skipped.append(shift.id)
                continue
            self._shifts[shift.id] = shift.copy()
        return skipped

    def get(self, shift_id: str) -> Shift | None:
        shift = self._shifts.get(shift_id)
        return shift.copy() if shift is not None else None

    def create(self, data: Shift | Mapping[str, Any]) -> Shift | Rejected:
        if isinstance(data, Shift):
            candidate = data.copy()
            candidate.id = new_shift_id()
        else:
            payload = dict(data)
            payload["id"] = new_shift_id()
            candidate = Shift.from_dict(payload)

        rejection = self._validate(candidate)
        if rejection is not None:
            return rejection
        self._shifts[candidate.id] = candidate
        logger.debug("Created shift %s", candidate.id)
        return candidate.copy()

    def update(self, shift_id: str, changes: Shift | Mapping[str, Any]) -> Shift | Rejected:
        current = self._shifts.get(shift_id)
        if current is None:
            return Rejected(NOT_FOUND, f"shift {shift_id} not found")

        if isinstance(changes, Shift):
            if changes.id != shift_id:
                raise ValueError("Shift id cannot be changed")
            candidate = changes.copy()
        else:
            candidate = apply_changes(current, changes)

        rejection = self._validate(candidate)
        if rejection is not None:
            return rejection
        self._shifts[shift_id] = candidate
        return candidate.copy()

    def remove(self, shift_id: str) -> bool:
        return self._shifts.pop(shift_id, None) is not None

    def list(self, date_from: date | None = None, date_to: date | None = None) -> list[Shift]:
        """Shifts with at least one occurrence in the date range, by start."""
        result: list[Shift] = []
        for shift in self._shifts.values():
            if date_from is None and date_to is None:
                result.append(shift.copy())
                continue
            if shift.recurrence is not None and shift.recurrence.end_date is None and date_to is None:
                # Open-ended recurrence always reaches an unbounded range.
                if shift.recurrence.days_of_week:
                    result.append(shift.copy())
                continue
            if shift.occurrences(date_from, date_to):
                result.append(shift.copy())
        result.sort(key=lambda s: (s.start, s.id))
        return result

    def occurrences(self, date_from: date | None = None, date_to: date | None = None) -> list[Occurrence]:
        result: list[Occurrence] = []
        for shift in self._shifts.values():
            result.extend(shift.occurrences(date_from, date_to))
        result.sort(key=lambda o: (o.start, o.shift_id))
        return result

    def _validate(self, candidate: Shift) -> Rejected | None:
        problems = validate_shift(candidate)
        if not problems:
            return None
        logger.debug("Rejected shift %s: %s", candidate.id, ", ".join(problems))
        return Rejected(problems[0], ", ".join(problems))

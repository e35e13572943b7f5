"""Domain records for shifts, employees, templates and the weekly grid."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any

from .time_utils import (
    at_wall_clock,
    expand_weekly_recurrence,
    format_timestamp,
    parse_hhmm_to_minutes,
    parse_timestamp,
)

EMPLOYEE_STATUSES = ("active", "inactive", "pending")
SHIFT_TYPES = ("open", "middle", "close")

STATUS_UNASSIGNED = "unassigned"
STATUS_ASSIGNED = "assigned"
STATUS_SUBSTITUTE_REQUESTED = "substitute-requested"

POOL_ID = "pool"


def shift_status(assigned_employee_ids: list[str], substitute_requested: bool) -> str:
    if not assigned_employee_ids:
        return STATUS_UNASSIGNED
    if substitute_requested:
        return STATUS_SUBSTITUTE_REQUESTED
    return STATUS_ASSIGNED


def _opt_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    return int(value)


def _recurrence(value: Any) -> Recurrence | None:
    if not value:
        return None
    if isinstance(value, Recurrence):
        return value
    return Recurrence.from_dict(value)


@dataclass
class Employee:
    id: str
    name: str
    role: str = ""
    hourly_rate: float = 0.0
    status: str = "active"
    phone_number: str = ""
    email: str = ""

    def __post_init__(self) -> None:
        if self.hourly_rate < 0:
            raise ValueError(f"hourly_rate must be non-negative, got {self.hourly_rate}")
        if self.status not in EMPLOYEE_STATUSES:
            raise ValueError(f"Unknown employee status: {self.status!r}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "role": self.role,
            "hourly_rate": self.hourly_rate,
            "status": self.status,
            "phone_number": self.phone_number,
            "email": self.email,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Employee:
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or ""),
            role=str(data.get("role") or ""),
            hourly_rate=float(data.get("hourly_rate") or 0.0),
            status=str(data.get("status") or "active"),
            phone_number=str(data.get("phone_number") or ""),
            email=str(data.get("email") or ""),
        )


@dataclass
class Recurrence:
    days_of_week: set[int]
    end_date: date | None = None
    frequency: str = "weekly"

    def to_dict(self) -> dict[str, Any]:
        return {
            "frequency": self.frequency,
            "days_of_week": sorted(self.days_of_week),
            "end_date": self.end_date.isoformat() if self.end_date else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Recurrence:
        frequency = str(data.get("frequency") or "weekly")
        if frequency != "weekly":
            raise ValueError(f"Unsupported recurrence frequency: {frequency!r}")
        end = data.get("end_date")
        return cls(
            days_of_week={int(d) for d in data.get("days_of_week") or []},
            end_date=date.fromisoformat(str(end)[:10]) if end else None,
            frequency=frequency,
        )


@dataclass
class EmployeeTime:
    start: datetime
    end: datetime

    def to_dict(self) -> dict[str, str]:
        return {"start": format_timestamp(self.start), "end": format_timestamp(self.end)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EmployeeTime:
        return cls(start=parse_timestamp(data["start"]), end=parse_timestamp(data["end"]))


@dataclass
class Occurrence:
    """One concrete calendar instance of a (possibly recurring) shift."""

    shift_id: str
    start: datetime
    end: datetime
    shift_type: str | None
    required_staff: int
    min_staff: int | None
    max_staff: int | None
    assigned_employee_ids: list[str]
    employee_times: dict[str, EmployeeTime]
    status: str
    title: str = ""

    def interval_for(self, employee_id: str) -> tuple[datetime, datetime]:
        override = self.employee_times.get(employee_id)
        if override is not None:
            return override.start, override.end
        return self.start, self.end

    def to_dict(self) -> dict[str, Any]:
        return {
            "shift_id": self.shift_id,
            "date": self.start.date().isoformat(),
            "start": format_timestamp(self.start),
            "end": format_timestamp(self.end),
            "shift_type": self.shift_type,
            "title": self.title,
            "required_staff": self.required_staff,
            "min_staff": self.min_staff,
            "max_staff": self.max_staff,
            "assigned_employee_ids": list(self.assigned_employee_ids),
            "employee_times": {k: v.to_dict() for k, v in self.employee_times.items()},
            "status": self.status,
        }


@dataclass
class Shift:
    id: str
    start: datetime
    end: datetime
    assigned_employee_ids: list[str] = field(default_factory=list)
    required_staff: int = 1
    min_staff: int | None = None
    max_staff: int | None = None
    shift_type: str | None = None
    recurrence: Recurrence | None = None
    employee_times: dict[str, EmployeeTime] = field(default_factory=dict)
    substitute_requested: bool = False
    high_priority: bool = False
    title: str = ""
    note: str = ""
    color: str = ""
    store_id: str = ""

    @property
    def status(self) -> str:
        return shift_status(self.assigned_employee_ids, self.substitute_requested)

    def copy(self) -> Shift:
        return copy.deepcopy(self)

    def occurrences(self, date_from: date | None = None, date_to: date | None = None) -> list[Occurrence]:
        """Concrete occurrences whose start date falls in ``[date_from, date_to]``.

        Derived from the recurrence on every call, never stored.
        """
        if self.recurrence is None:
            intervals = [(self.start, self.end)]
        else:
            bound = self.recurrence.end_date
            if date_to is not None and (bound is None or date_to < bound):
                bound = date_to
            if bound is None:
                raise ValueError(f"Shift {self.id} recurs without an end date; pass date_to")
            intervals = expand_weekly_recurrence(
                self.start, self.end, self.recurrence.days_of_week, bound
            )

        result: list[Occurrence] = []
        for start, end in intervals:
            day = start.date()
            if date_from is not None and day < date_from:
                continue
            if date_to is not None and day > date_to:
                continue
            delta = start - self.start
            result.append(
                Occurrence(
                    shift_id=self.id,
                    start=start,
                    end=end,
                    shift_type=self.shift_type,
                    required_staff=self.required_staff,
                    min_staff=self.min_staff,
                    max_staff=self.max_staff,
                    assigned_employee_ids=list(self.assigned_employee_ids),
                    employee_times={
                        emp_id: EmployeeTime(t.start + delta, t.end + delta)
                        for emp_id, t in self.employee_times.items()
                    },
                    status=self.status,
                    title=self.title,
                )
            )
        return result

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "start": format_timestamp(self.start),
            "end": format_timestamp(self.end),
            "assigned_employee_ids": list(self.assigned_employee_ids),
            "required_staff": self.required_staff,
            "min_staff": self.min_staff,
            "max_staff": self.max_staff,
            "shift_type": self.shift_type,
            "recurrence": self.recurrence.to_dict() if self.recurrence else None,
            "employee_times": {k: v.to_dict() for k, v in self.employee_times.items()},
            "substitute_requested": self.substitute_requested,
            "high_priority": self.high_priority,
            "title": self.title,
            "note": self.note,
            "color": self.color,
            "store_id": self.store_id,
            "status": self.status,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Shift:
        # "status" is derived; any stored value is ignored.
        recurrence = data.get("recurrence")
        return cls(
            id=str(data["id"]),
            start=parse_timestamp(data["start"]),
            end=parse_timestamp(data["end"]),
            assigned_employee_ids=[str(e) for e in data.get("assigned_employee_ids") or []],
            required_staff=int(data.get("required_staff") or 1),
            min_staff=_opt_int(data.get("min_staff")),
            max_staff=_opt_int(data.get("max_staff")),
            shift_type=data.get("shift_type") or None,
            recurrence=_recurrence(recurrence),
            employee_times={
                str(k): v if isinstance(v, EmployeeTime) else EmployeeTime.from_dict(v)
                for k, v in (data.get("employee_times") or {}).items()
            },
            substitute_requested=bool(data.get("substitute_requested", False)),
            high_priority=bool(data.get("high_priority", False)),
            title=str(data.get("title") or ""),
            note=str(data.get("note") or ""),
            color=str(data.get("color") or ""),
            store_id=str(data.get("store_id") or ""),
        )


@dataclass
class ShiftTemplate:
    """Reusable wall-clock defaults for one shift type; holds no assignments."""

    id: str
    name: str
    start_time: str
    end_time: str
    shift_type: str | None = None
    required_staff: int = 1
    color: str = ""
    required_positions: dict[str, int] = field(default_factory=dict)
    day_variations: dict[int, dict[str, Any]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        start = parse_hhmm_to_minutes(self.start_time)
        end = parse_hhmm_to_minutes(self.end_time, allow_end_of_day=True)
        if start is None or end is None:
            raise ValueError(f"Template {self.id} has invalid times {self.start_time}-{self.end_time}")
        if start >= end:
            raise ValueError(f"Template {self.id} must start before it ends")

    def matches_type(self, shift_type: str | None) -> bool:
        if not shift_type:
            return False
        return shift_type in (self.id, self.shift_type)

    def required_staff_for(self, day_of_week: int) -> int:
        variation = self.day_variations.get(day_of_week) or {}
        if variation.get("required_staff") is not None:
            return int(variation["required_staff"])
        return self.required_staff

    def positions_for(self, day_of_week: int) -> dict[str, int]:
        positions = dict(self.required_positions)
        variation = self.day_variations.get(day_of_week) or {}
        for position, count in (variation.get("required_positions") or {}).items():
            positions[position] = int(count)
        return positions

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "shift_type": self.shift_type,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "required_staff": self.required_staff,
            "color": self.color,
            "required_positions": dict(self.required_positions),
            "day_variations": {str(k): v for k, v in self.day_variations.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ShiftTemplate:
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or data["id"]),
            shift_type=data.get("shift_type") or data.get("type") or None,
            start_time=str(data["start_time"]),
            end_time=str(data["end_time"]),
            required_staff=int(data.get("required_staff") or 1),
            color=str(data.get("color") or ""),
            required_positions={str(k): int(v) for k, v in (data.get("required_positions") or {}).items()},
            day_variations={int(k): dict(v) for k, v in (data.get("day_variations") or {}).items()},
        )


@dataclass(frozen=True)
class BusinessHours:
    opening_hour: str = "09:00"
    closing_hour: str = "22:00"

    def __post_init__(self) -> None:
        opening = parse_hhmm_to_minutes(self.opening_hour)
        closing = parse_hhmm_to_minutes(self.closing_hour, allow_end_of_day=True)
        if opening is None or closing is None:
            raise ValueError(f"Invalid business hours {self.opening_hour}-{self.closing_hour}")
        if opening >= closing:
            raise ValueError("opening_hour must precede closing_hour")

    def window(self, day: date) -> tuple[datetime, datetime]:
        return at_wall_clock(day, self.opening_hour), at_wall_clock(day, self.closing_hour)


@dataclass
class PlanEmployee:
    id: str
    name: str
    role: str = ""
    # Stored shifts this entry was loaded from; empty for pool additions.
    shift_ids: list[str] = field(default_factory=list)

    @classmethod
    def from_employee(cls, employee: Employee, position: str | None = None) -> PlanEmployee:
        return cls(id=employee.id, name=employee.name, role=position or employee.role)


@dataclass
class PlanCell:
    """One ``(day_of_week, slot_id)`` cell of the weekly grid."""

    day_of_week: int
    slot_id: str
    start_time: str
    end_time: str
    color: str = ""
    employees: list[PlanEmployee] = field(default_factory=list)
    max_employees: int | None = None
    required_positions: dict[str, int] = field(default_factory=dict)
    shift_type: str | None = None

    @property
    def id(self) -> str:
        return f"{self.day_of_week}-{self.slot_id}"

    @property
    def employee_ids(self) -> list[str]:
        return [e.id for e in self.employees]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "day_of_week": self.day_of_week,
            "slot_id": self.slot_id,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "color": self.color,
            "shift_type": self.shift_type,
            "employees": [{"id": e.id, "name": e.name, "role": e.role} for e in self.employees],
            "max_employees": self.max_employees,
            "required_positions": dict(self.required_positions),
        }


@dataclass(frozen=True)
class DragMoveRequest:
    """UI-agnostic drag/drop intent; ``source_id == "pool"`` means the employee pool."""

    source_id: str
    dest_id: str
    employee_id: str
    dest_index: int | None = None

    @property
    def from_pool(self) -> bool:
        return self.source_id == POOL_ID

"""Weekly day x timeslot planning grid.

The grid is a rebuildable projection of stored shifts. Drag/drop moves
mirror the assignment engine at cell level, and ``commit`` translates the
grid back into store mutations.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable
from datetime import date
from typing import Any

from .constraints import NOT_ASSIGNED, NOT_FOUND, Rejected
from .models import (
    DragMoveRequest,
    Employee,
    Occurrence,
    PlanCell,
    PlanEmployee,
    ShiftTemplate,
)
from .staffing import check_add, check_position, check_remove
from .store import ShiftStore
from .time_utils import (
    at_wall_clock,
    date_for_weekday,
    format_timestamp,
    parse_hhmm_to_minutes,
    wall_clock,
    week_start,
    weekday_of,
)

logger = logging.getLogger(__name__)

DAYS_OF_WEEK = range(7)
UNKNOWN_EMPLOYEE_NAME = "Unknown"


class WeeklyPlanner:
    def __init__(
        self,
        templates: Iterable[ShiftTemplate],
        employees: Iterable[Employee] = (),
    ) -> None:
        self.templates: list[ShiftTemplate] = sorted(
            templates, key=lambda t: parse_hhmm_to_minutes(t.start_time) or 0
        )
        self._templates_by_id = {t.id: t for t in self.templates}
        self.employees: dict[str, Employee] = {e.id: e for e in employees}
        self.cells: dict[str, PlanCell] = {}
        self.dropped: list[str] = []
        self.reset()

    @classmethod
    def from_store(
        cls,
        store: ShiftStore,
        templates: Iterable[ShiftTemplate],
        employees: Iterable[Employee],
        week_of: date,
    ) -> WeeklyPlanner:
        planner = cls(templates, employees)
        begin = week_start(week_of)
        end = date_for_weekday(begin, 6)
        planner.load(store.occurrences(begin, end))
        return planner

    # ---- construction -------------------------------------------------------

    def reset(self) -> None:
        """Empty grid: one cell per day and template."""
        self.cells = {}
        self.dropped = []
        for day in DAYS_OF_WEEK:
            for template in self.templates:
                cell = PlanCell(
                    day_of_week=day,
                    slot_id=template.id,
                    start_time=template.start_time,
                    end_time=template.end_time,
                    color=template.color,
                    max_employees=template.required_staff_for(day),
                    required_positions=template.positions_for(day),
                    shift_type=template.shift_type or template.id,
                )
                self.cells[cell.id] = cell

    def match_slot(self, occurrence: Occurrence) -> ShiftTemplate | None:
        """Template for an occurrence: explicit type first, then exact start time."""
        for template in self.templates:
            if template.matches_type(occurrence.shift_type):
                return template
        start = parse_hhmm_to_minutes(wall_clock(occurrence.start))
        for template in self.templates:
            if parse_hhmm_to_minutes(template.start_time) == start:
                return template
        return None

    def load(self, occurrences: Iterable[Occurrence]) -> list[str]:
        """Merge occurrences into a fresh grid; returns ids of dropped shifts."""
        self.reset()
        for occ in occurrences:
            template = self.match_slot(occ)
            if template is None:
                logger.warning(
                    "Shift %s at %s matches no template; left out of the grid",
                    occ.shift_id,
                    format_timestamp(occ.start),
                )
                self.dropped.append(occ.shift_id)
                continue
            cell = self.cells[f"{weekday_of(occ.start)}-{template.id}"]
            present = {e.id: e for e in cell.employees}
            for emp_id in occ.assigned_employee_ids:
                entry = present.get(emp_id)
                if entry is None:
                    entry = self._plan_employee(emp_id)
                    cell.employees.append(entry)
                    present[emp_id] = entry
                entry.shift_ids.append(occ.shift_id)
            if occ.required_staff:
                cell.max_employees = occ.required_staff
        return list(self.dropped)

    def set_employees(self, employees: Iterable[Employee]) -> None:
        self.employees = {e.id: e for e in employees}

    def _plan_employee(self, employee_id: str, position: str | None = None) -> PlanEmployee:
        employee = self.employees.get(employee_id)
        if employee is None:
            return PlanEmployee(id=employee_id, name=UNKNOWN_EMPLOYEE_NAME, role=position or "")
        return PlanEmployee.from_employee(employee, position)

    # ---- lookup -------------------------------------------------------------

    def cell(self, day_of_week: int, slot_id: str) -> PlanCell | None:
        return self.cells.get(f"{day_of_week}-{slot_id}")

    def _get(self, op: str, cell_id: str) -> PlanCell | Rejected:
        cell = self.cells.get(cell_id)
        if cell is None:
            logger.debug("%s rejected: unknown cell %s", op, cell_id)
            return Rejected(NOT_FOUND, f"cell {cell_id} not found")
        return cell

    def _reject(self, op: str, cell_id: str, rejection: Rejected) -> Rejected:
        logger.debug("%s on %s rejected: %s (%s)", op, cell_id, rejection.reason, rejection.detail)
        return rejection

    # ---- grid operations ----------------------------------------------------

    def add_from_pool(self, cell_id: str, employee_id: str, index: int | None = None) -> PlanCell | Rejected:
        cell = self._get("add_from_pool", cell_id)
        if isinstance(cell, Rejected):
            return cell
        if employee_id not in self.employees:
            return self._reject("add_from_pool", cell_id, Rejected(NOT_FOUND, f"employee {employee_id} not found"))
        rejection = check_add(cell.employee_ids, employee_id, cell.max_employees)
        if rejection is not None:
            return self._reject("add_from_pool", cell_id, rejection)

        entry = self._plan_employee(employee_id)
        if index is None:
            cell.employees.append(entry)
        else:
            cell.employees.insert(max(0, index), entry)
        return cell

    def assign_position(
        self,
        day_of_week: int,
        slot_id: str,
        employee_id: str,
        position: str,
    ) -> PlanCell | Rejected:
        """Add an employee to a cell as a specific position (role slot)."""
        cell_id = f"{day_of_week}-{slot_id}"
        cell = self._get("assign_position", cell_id)
        if isinstance(cell, Rejected):
            return cell
        if employee_id not in self.employees:
            return self._reject("assign_position", cell_id, Rejected(NOT_FOUND, f"employee {employee_id} not found"))
        rejection = check_add(cell.employee_ids, employee_id, cell.max_employees)
        if rejection is None:
            filled = Counter(e.role for e in cell.employees)
            rejection = check_position(filled, position, cell.required_positions)
        if rejection is not None:
            return self._reject("assign_position", cell_id, rejection)

        cell.employees.append(self._plan_employee(employee_id, position))
        return cell

    def remove(self, cell_id: str, employee_id: str) -> PlanCell | Rejected:
        cell = self._get("remove", cell_id)
        if isinstance(cell, Rejected):
            return cell
        rejection = check_remove(cell.employee_ids, employee_id)
        if rejection is not None:
            return self._reject("remove", cell_id, rejection)
        cell.employees = [e for e in cell.employees if e.id != employee_id]
        return cell

    def reorder(self, cell_id: str, employee_id: str, new_index: int) -> PlanCell | Rejected:
        cell = self._get("reorder", cell_id)
        if isinstance(cell, Rejected):
            return cell
        ids = cell.employee_ids
        if employee_id not in ids:
            return self._reject("reorder", cell_id, Rejected(NOT_ASSIGNED, f"{employee_id} is not in the cell"))
        entry = cell.employees.pop(ids.index(employee_id))
        cell.employees.insert(max(0, min(new_index, len(cell.employees))), entry)
        return cell

    def move(
        self,
        source_id: str,
        dest_id: str,
        employee_id: str,
        index: int | None = None,
    ) -> tuple[PlanCell, PlanCell] | Rejected:
        source = self._get("move", source_id)
        if isinstance(source, Rejected):
            return source
        dest = self._get("move", dest_id)
        if isinstance(dest, Rejected):
            return dest

        rejection = check_remove(source.employee_ids, employee_id)
        if rejection is None:
            rejection = check_add(dest.employee_ids, employee_id, dest.max_employees)
        if rejection is not None:
            return self._reject("move", f"{source_id}->{dest_id}", rejection)

        ids = source.employee_ids
        entry = source.employees.pop(ids.index(employee_id))
        if index is None:
            dest.employees.append(entry)
        else:
            dest.employees.insert(max(0, index), entry)
        return source, dest

    def drop(self, request: DragMoveRequest) -> PlanCell | tuple[PlanCell, PlanCell] | Rejected:
        """Apply a drag/drop intent: pool->cell, cell->cell or same-cell reorder."""
        if request.from_pool:
            return self.add_from_pool(request.dest_id, request.employee_id, request.dest_index)
        if request.source_id == request.dest_id:
            if request.dest_index is None:
                cell = self._get("drop", request.dest_id)
                if isinstance(cell, Rejected) or request.employee_id in cell.employee_ids:
                    return cell
                return self._reject(
                    "drop", request.dest_id, Rejected(NOT_ASSIGNED, f"{request.employee_id} is not in the cell")
                )
            return self.reorder(request.dest_id, request.employee_id, request.dest_index)
        return self.move(request.source_id, request.dest_id, request.employee_id, request.dest_index)

    # ---- save translation ---------------------------------------------------

    def to_shift_drafts(self, week_of: date) -> list[dict[str, Any]]:
        """Shift payloads for every non-empty cell in the week containing ``week_of``."""
        begin = week_start(week_of)
        drafts: list[dict[str, Any]] = []
        for cell in self.cells.values():
            if not cell.employees:
                continue
            drafts.append(self._draft(cell, begin))
        return drafts

    def _draft(self, cell: PlanCell, begin: date) -> dict[str, Any]:
        template = self._templates_by_id[cell.slot_id]
        day = date_for_weekday(begin, cell.day_of_week)
        required = max(1, cell.max_employees or template.required_staff_for(cell.day_of_week))
        return {
            "start": format_timestamp(at_wall_clock(day, cell.start_time)),
            "end": format_timestamp(at_wall_clock(day, cell.end_time)),
            "shift_type": cell.shift_type,
            "title": template.name,
            "color": cell.color,
            "required_staff": required,
            "max_staff": max(required, len(cell.employees)),
            "assigned_employee_ids": cell.employee_ids,
        }

    def commit(self, store: ShiftStore, week_of: date) -> dict[str, list[Any]]:
        """Write the grid back: update the stored shifts for each date and slot, else create one.

        When several stored shifts share a cell, each keeps the assignees it
        was loaded with. Unchanged shifts are not written. Cells backed by a
        recurring shift are reported under ``skipped`` so a single week never
        rewrites the whole series.
        """
        begin = week_start(week_of)
        end = date_for_weekday(begin, 6)
        existing: dict[str, list[Occurrence]] = {}
        for occ in store.occurrences(begin, end):
            template = self.match_slot(occ)
            if template is not None:
                existing.setdefault(f"{weekday_of(occ.start)}-{template.id}", []).append(occ)

        summary: dict[str, list[Any]] = {"created": [], "updated": [], "skipped": [], "rejected": []}
        for cell_id, cell in self.cells.items():
            matches = existing.get(cell_id, [])
            if not cell.employees and not matches:
                continue

            if not matches:
                result = store.create(self._draft(cell, begin))
                if isinstance(result, Rejected):
                    summary["rejected"].append({"cell_id": cell_id, **result.to_dict()})
                else:
                    summary["created"].append(result.id)
                continue

            for shift_id, assignees in self._split_by_origin(cell, matches).items():
                self._write_back(store, cell_id, shift_id, assignees, summary)
        logger.info(
            "Committed week %s: %d created, %d updated, %d skipped, %d rejected",
            begin.isoformat(),
            len(summary["created"]),
            len(summary["updated"]),
            len(summary["skipped"]),
            len(summary["rejected"]),
        )
        return summary

    @staticmethod
    def _split_by_origin(cell: PlanCell, matches: list[Occurrence]) -> dict[str, list[str]]:
        """Assignee ids per stored shift of a cell.

        Entries go back to the shift(s) they were loaded from; entries added
        from the pool or moved in from another cell go to the first shift.
        """
        groups: dict[str, list[str]] = {occ.shift_id: [] for occ in matches}
        first = matches[0].shift_id
        for entry in cell.employees:
            origins = [sid for sid in entry.shift_ids if sid in groups] or [first]
            for shift_id in origins:
                if entry.id not in groups[shift_id]:
                    groups[shift_id].append(entry.id)
        return groups

    @staticmethod
    def _write_back(
        store: ShiftStore,
        cell_id: str,
        shift_id: str,
        assignees: list[str],
        summary: dict[str, list[Any]],
    ) -> None:
        stored = store.get(shift_id)
        if stored is None or stored.assigned_employee_ids == assignees:
            return
        if stored.recurrence is not None:
            # One week never rewrites a whole series.
            summary["skipped"].append({"cell_id": cell_id, "shift_id": shift_id})
            return
        changes: dict[str, Any] = {"assigned_employee_ids": assignees}
        if stored.max_staff is not None:
            changes["max_staff"] = max(stored.max_staff, len(assignees))
        kept = set(assignees)
        changes["employee_times"] = {k: v for k, v in stored.employee_times.items() if k in kept}
        result = store.update(shift_id, changes)
        if isinstance(result, Rejected):
            summary["rejected"].append({"cell_id": cell_id, **result.to_dict()})
        else:
            summary["updated"].append(result.id)

    # ---- views --------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return {
            "templates": [t.to_dict() for t in self.templates],
            "cells": [cell.to_dict() for cell in self.cells.values()],
            "pool": [
                {"id": e.id, "name": e.name, "role": e.role}
                for e in self.employees.values()
                if e.status == "active"
            ],
            "dropped_shift_ids": list(self.dropped),
        }

"""Session wiring: store, engine, planners and a persistence backend.

Mutations are validated and applied in memory first; persistence follows as
a side effect. A failed save is logged and recorded, and the in-memory
state is kept.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any, Protocol

from schedule_core.constraints import Rejected, clamp_to_business_hours
from schedule_core.engine import AssignmentEngine
from schedule_core.hours import hours_overview
from schedule_core.models import BusinessHours, Employee, Shift, ShiftTemplate
from schedule_core.planner import WeeklyPlanner
from schedule_core.report import staffing_report
from schedule_core.store import ShiftStore
from schedule_core.time_utils import date_for_weekday, parse_timestamp, week_start

from .api_client import ShiftApiClient
from .config import (
    business_hours_from_env,
    get_api_config,
    load_env,
    load_shift_templates,
    runtime_config,
)
from .storage import ShiftFileRepository
from .utils import now_utc_iso, week_key

logger = logging.getLogger(__name__)


class ShiftBackend(Protocol):
    def load_shifts(self, date_from: date | None = None, date_to: date | None = None) -> list[Shift]: ...

    def save_shift(self, shift: Shift) -> Shift: ...

    def delete_shift(self, shift_id: str) -> bool: ...

    def list_employees(self) -> list[Employee]: ...


@dataclass
class PersistenceFailure:
    operation: str
    shift_id: str
    error: str
    at: str = field(default_factory=now_utc_iso)

    def to_dict(self) -> dict[str, str]:
        return {"operation": self.operation, "shift_id": self.shift_id, "error": self.error, "at": self.at}


def _remote_templates(client: ShiftApiClient, template_file: Path | None) -> list[ShiftTemplate]:
    # A local template file wins over the service's list.
    if template_file is not None and template_file.exists():
        return load_shift_templates(template_file)
    templates = client.list_templates()
    if not templates:
        logger.info("Service returned no shift templates; using defaults")
        return load_shift_templates()
    return templates


class ScheduleSession:
    def __init__(
        self,
        backend: ShiftBackend,
        templates: list[ShiftTemplate] | None = None,
        business_hours: BusinessHours | None = None,
        artifact_root: Path | None = None,
        store_id: str = "default",
    ):
        self.backend = backend
        self.templates = templates if templates is not None else load_shift_templates()
        self.business_hours = business_hours
        self.artifact_root = artifact_root
        self.store_id = store_id
        self.store = ShiftStore()
        self.engine = AssignmentEngine(self.store, business_hours=business_hours)
        self.employees: list[Employee] = []
        self.planners: dict[str, WeeklyPlanner] = {}
        self.persistence_failures: list[PersistenceFailure] = []

    @classmethod
    def from_env(cls, env_file: str | Path | None = None) -> ScheduleSession:
        """Build a session from environment settings.

        With ``SHIFTDESK_API_BASE_URL`` set, shifts, employees, business hours
        and (absent a template file) templates come from the REST service.
        """
        load_env(env_file)
        cfg = runtime_config()
        backend: ShiftBackend
        if cfg.api_base_url:
            api = get_api_config()
            client = ShiftApiClient(base_url=api.base_url, token=api.token, store_id=api.store_id)
            hours = client.fetch_business_hours()
            templates = _remote_templates(client, cfg.template_file)
            backend = client
        else:
            backend = ShiftFileRepository(cfg.artifact_root, cfg.store_id)
            hours = business_hours_from_env()
            templates = load_shift_templates(cfg.template_file)
        session = cls(
            backend,
            templates=templates,
            business_hours=hours,
            artifact_root=cfg.artifact_root,
            store_id=cfg.store_id,
        )
        session.refresh()
        return session

    # ---- loading ------------------------------------------------------------

    def refresh(self, date_from: date | None = None, date_to: date | None = None) -> dict[str, Any]:
        """Reload shifts and the employee directory from the backend."""
        skipped = self.store.load(self.backend.load_shifts(date_from, date_to))
        self.employees = self.backend.list_employees()
        if self.employees:
            self.engine.set_employees(self.employees)
        self.planners.clear()
        logger.info("Loaded %d shifts and %d employees", len(self.store), len(self.employees))
        return {"shifts": len(self.store), "employees": len(self.employees), "skipped": skipped}

    # ---- persistence side effects ------------------------------------------

    def _persist(self, shift: Shift) -> None:
        try:
            self.backend.save_shift(shift)
        except Exception as exc:
            logger.exception("Saving shift %s failed; keeping in-memory state", shift.id)
            self.persistence_failures.append(PersistenceFailure("save", shift.id, str(exc)))

    def _persist_delete(self, shift_id: str) -> None:
        try:
            self.backend.delete_shift(shift_id)
        except Exception as exc:
            logger.exception("Deleting shift %s failed; keeping in-memory state", shift_id)
            self.persistence_failures.append(PersistenceFailure("delete", shift_id, str(exc)))

    def _persisted(self, result: Shift | Rejected) -> Shift | Rejected:
        if isinstance(result, Shift):
            self._persist(result)
        return result

    # ---- shift records ------------------------------------------------------

    def list_shifts(self, date_from: date | None = None, date_to: date | None = None) -> list[Shift]:
        return self.store.list(date_from, date_to)

    def create_shift(self, data: Mapping[str, Any], clamp: bool = True) -> Shift | Rejected:
        """Create a shift, clamping its interval to business hours first."""
        payload = dict(data)
        if clamp and self.business_hours is not None:
            clamped = clamp_to_business_hours(
                parse_timestamp(payload["start"]), parse_timestamp(payload["end"]), self.business_hours
            )
            if isinstance(clamped, Rejected):
                return clamped
            payload["start"], payload["end"] = clamped
        if not payload.get("store_id"):
            payload["store_id"] = self.store_id
        return self._persisted(self.store.create(payload))

    def update_shift(self, shift_id: str, changes: Mapping[str, Any]) -> Shift | Rejected:
        return self._persisted(self.store.update(shift_id, changes))

    def delete_shift(self, shift_id: str) -> bool:
        removed = self.store.remove(shift_id)
        if removed:
            self._persist_delete(shift_id)
        return removed

    # ---- assignment operations ---------------------------------------------

    def assign(self, shift_id: str, employee_id: str) -> Shift | Rejected:
        return self._persisted(self.engine.assign(shift_id, employee_id))

    def unassign(self, shift_id: str, employee_id: str) -> Shift | Rejected:
        return self._persisted(self.engine.unassign(shift_id, employee_id))

    def move(self, source_id: str, dest_id: str, employee_id: str) -> tuple[Shift, Shift] | Rejected:
        result = self.engine.move(source_id, dest_id, employee_id)
        if not isinstance(result, Rejected):
            for shift in result:
                self._persist(shift)
        return result

    def reorder(self, shift_id: str, employee_id: str, new_index: int) -> Shift | Rejected:
        return self._persisted(self.engine.reorder(shift_id, employee_id, new_index))

    def request_substitute(
        self,
        shift_id: str,
        high_priority: bool = False,
        requested: bool | None = None,
    ) -> Shift | Rejected:
        return self._persisted(self.engine.request_substitute(shift_id, high_priority, requested))

    def set_employee_time(
        self,
        shift_id: str,
        employee_id: str,
        start: datetime | str,
        end: datetime | str,
    ) -> Shift | Rejected:
        return self._persisted(self.engine.set_employee_time(shift_id, employee_id, start, end))

    # ---- weekly planning ----------------------------------------------------

    def planner_for(self, week_of: date, rebuild: bool = False) -> WeeklyPlanner:
        key = week_key(week_of)
        if rebuild or key not in self.planners:
            self.planners[key] = WeeklyPlanner.from_store(self.store, self.templates, self.employees, week_of)
        return self.planners[key]

    def commit_week_plan(self, week_of: date) -> dict[str, Any]:
        planner = self.planner_for(week_of)
        summary = planner.commit(self.store, week_of)
        for shift_id in summary["created"] + summary["updated"]:
            shift = self.store.get(shift_id)
            if shift is not None:
                self._persist(shift)
        # Rebuild from the store so the grid reflects what was saved.
        self.planner_for(week_of, rebuild=True)
        return summary

    # ---- read models --------------------------------------------------------

    def _week_range(self, week_of: date) -> tuple[date, date]:
        begin = week_start(week_of)
        return begin, date_for_weekday(begin, 6)

    def staffing_report(self, date_from: date, date_to: date) -> dict[str, Any]:
        return staffing_report(self.store.occurrences(date_from, date_to), self.employees or None)

    def hours_overview(self, date_from: date, date_to: date) -> list[dict[str, Any]]:
        return hours_overview(self.store.occurrences(date_from, date_to), self.employees)

    def week_occurrences(self, week_of: date):
        return self.store.occurrences(*self._week_range(week_of))

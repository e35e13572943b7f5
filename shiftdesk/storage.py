from __future__ import annotations

import json
import logging
from datetime import date
from pathlib import Path
from typing import Any

from schedule_core.models import Employee, Shift
from schedule_core.store import ShiftStore

from .utils import now_utc_iso

logger = logging.getLogger(__name__)


def _json_dump(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fh:
        json.dump(payload, fh, indent=2, ensure_ascii=False)


def _json_load(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as fh:
        return json.load(fh)


def store_root(artifact_root: Path, store_id: str) -> Path:
    path = artifact_root / "stores" / store_id
    path.mkdir(parents=True, exist_ok=True)
    return path


def week_plan_root(artifact_root: Path, store_id: str) -> Path:
    path = store_root(artifact_root, store_id) / "week_plans"
    path.mkdir(parents=True, exist_ok=True)
    return path


class ShiftFileRepository:
    """Shift and employee persistence as JSON files under the artifact dir."""

    def __init__(self, artifact_root: Path, store_id: str = "default"):
        self.root = store_root(Path(artifact_root), store_id)
        self.store_id = store_id

    @property
    def shifts_path(self) -> Path:
        return self.root / "shifts.json"

    @property
    def employees_path(self) -> Path:
        return self.root / "employees.json"

    def _read_shifts(self) -> dict[str, dict[str, Any]]:
        if not self.shifts_path.exists():
            return {}
        return {row["id"]: row for row in _json_load(self.shifts_path)}

    def _write_shifts(self, rows: dict[str, dict[str, Any]]) -> None:
        _json_dump(self.shifts_path, sorted(rows.values(), key=lambda r: (r["start"], r["id"])))

    def load_shifts(self, date_from: date | None = None, date_to: date | None = None) -> list[Shift]:
        shifts = [Shift.from_dict(row) for row in self._read_shifts().values()]
        return ShiftStore(shifts).list(date_from, date_to)

    def save_shift(self, shift: Shift) -> Shift:
        rows = self._read_shifts()
        payload = shift.to_dict()
        if not shift.store_id:
            payload["store_id"] = self.store_id
        rows[shift.id] = payload
        self._write_shifts(rows)
        return Shift.from_dict(payload)

    def delete_shift(self, shift_id: str) -> bool:
        rows = self._read_shifts()
        if rows.pop(shift_id, None) is None:
            return False
        self._write_shifts(rows)
        return True

    def list_employees(self) -> list[Employee]:
        if not self.employees_path.exists():
            return []
        return [Employee.from_dict(row) for row in _json_load(self.employees_path)]

    def save_employees(self, employees: list[Employee]) -> None:
        _json_dump(self.employees_path, [e.to_dict() for e in employees])


def save_week_plan(artifact_root: Path, store_id: str, week: str, plan: dict[str, Any]) -> Path:
    root = week_plan_root(artifact_root, store_id)
    target = root / week
    target.mkdir(parents=True, exist_ok=True)
    _json_dump(target / "plan.json", plan)

    cells = plan.get("cells", [])
    manifest = {
        "store_id": store_id,
        "week": week,
        "generated_at": now_utc_iso(),
        "counts": {
            "cells": len(cells),
            "filled_cells": sum(1 for c in cells if c.get("employees")),
            "assignments": sum(len(c.get("employees", [])) for c in cells),
        },
        "path": str(target.resolve()),
    }
    _json_dump(target / "manifest.json", manifest)
    _json_dump(root / "latest.json", manifest)
    return target


def list_week_plans(artifact_root: Path, store_id: str, limit: int = 20) -> list[dict[str, Any]]:
    root = week_plan_root(artifact_root, store_id)
    manifests: list[dict[str, Any]] = []
    for child in root.iterdir():
        if not child.is_dir():
            continue
        manifest_file = child / "manifest.json"
        if not manifest_file.exists():
            continue
        try:
            manifests.append(_json_load(manifest_file))
        except (OSError, json.JSONDecodeError):
            logger.warning("Unreadable week-plan manifest: %s", manifest_file)
            continue
    manifests.sort(key=lambda row: row.get("week", ""), reverse=True)
    return manifests[:limit]


def load_week_plan(artifact_root: Path, store_id: str, week: str | None = None) -> dict[str, Any]:
    root = week_plan_root(artifact_root, store_id)
    if week:
        path = root / week / "plan.json"
    else:
        latest = root / "latest.json"
        if not latest.exists():
            raise FileNotFoundError("week plan manifest not found")
        path = root / _json_load(latest)["week"] / "plan.json"
    if not path.exists():
        raise FileNotFoundError(f"week plan not found: {week}")
    return _json_load(path)

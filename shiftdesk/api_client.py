from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from time import sleep
from typing import Any

import httpx

from schedule_core.models import BusinessHours, Employee, Shift, ShiftTemplate
from schedule_core.time_utils import format_timestamp

from .utils import date_range_params

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Operation:
    method: str
    path_template: str


OPERATIONS: dict[str, Operation] = {
    "list_shifts": Operation("GET", "/shifts"),
    "save_shift": Operation("POST", "/shifts"),
    "delete_shift": Operation("DELETE", "/shifts/{shift_id}"),
    "list_employees": Operation("GET", "/employees"),
    "store_profile": Operation("GET", "/branch/{store}/profile"),
    "list_templates": Operation("GET", "/branch/{store}/templates"),
}


# ---- wire mapping (camelCase JSON on the REST side) ------------------------

def shift_to_wire(shift: Shift) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": shift.id,
        "start": format_timestamp(shift.start),
        "end": format_timestamp(shift.end),
        "employeeIds": list(shift.assigned_employee_ids),
        "requiredStaff": shift.required_staff,
        "minStaff": shift.min_staff,
        "maxStaff": shift.max_staff,
        "shiftType": shift.shift_type,
        "title": shift.title,
        "note": shift.note,
        "color": shift.color,
        "storeId": shift.store_id,
        "isSubRequest": shift.substitute_requested,
        "isHighPriority": shift.high_priority,
        "employeeTimes": {k: v.to_dict() for k, v in shift.employee_times.items()},
        "status": shift.status,
    }
    if shift.recurrence is not None:
        payload["recurringPattern"] = {
            "frequency": shift.recurrence.frequency,
            "daysOfWeek": sorted(shift.recurrence.days_of_week),
            "endDate": shift.recurrence.end_date.isoformat() if shift.recurrence.end_date else None,
        }
    return payload


def shift_from_wire(row: dict[str, Any]) -> Shift:
    pattern = row.get("recurringPattern")
    return Shift.from_dict(
        {
            "id": row["id"],
            "start": row["start"],
            "end": row["end"],
            "assigned_employee_ids": row.get("employeeIds") or [],
            "required_staff": row.get("requiredStaff") or 1,
            "min_staff": row.get("minStaff"),
            "max_staff": row.get("maxStaff"),
            "shift_type": row.get("shiftType"),
            "title": row.get("title"),
            "note": row.get("note"),
            "color": row.get("color"),
            "store_id": row.get("storeId"),
            "substitute_requested": bool(row.get("isSubRequest", False)),
            "high_priority": bool(row.get("isHighPriority", False)),
            "employee_times": row.get("employeeTimes") or {},
            "recurrence": {
                "frequency": pattern.get("frequency", "weekly"),
                "days_of_week": pattern.get("daysOfWeek") or [],
                "end_date": pattern.get("endDate"),
            } if pattern else None,
        }
    )


def employee_from_wire(row: dict[str, Any]) -> Employee:
    return Employee.from_dict(
        {
            "id": row["id"],
            "name": row.get("name"),
            "role": row.get("role"),
            "hourly_rate": row.get("hourlyRate"),
            "status": row.get("status"),
            "phone_number": row.get("phoneNumber"),
            "email": row.get("email"),
        }
    )


def template_from_wire(row: dict[str, Any]) -> ShiftTemplate:
    variations = row.get("dayVariations") or {}
    return ShiftTemplate.from_dict(
        {
            "id": row["id"],
            "name": row.get("name"),
            "shift_type": row.get("type"),
            "start_time": row["startTime"],
            "end_time": row["endTime"],
            "required_staff": row.get("requiredStaff"),
            "color": row.get("color"),
            "required_positions": row.get("requiredPositions") or {},
            "day_variations": {
                day: {
                    "required_staff": v.get("requiredStaff"),
                    "required_positions": v.get("requiredPositions") or {},
                }
                for day, v in variations.items()
            },
        }
    )


class ShiftApiClient:
    """REST persistence and directory collaborator.

    Only the operation names listed in OPERATIONS are executable. Transport
    and HTTP status errors propagate as httpx exceptions after retries.
    """

    def __init__(
        self,
        *,
        base_url: str,
        token: str = "",
        store_id: str = "default",
        timeout_s: float = 30.0,
        retries: int = 3,
        backoff_s: float = 1.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.store_id = store_id
        self.retries = max(1, retries)
        self.backoff_s = backoff_s
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._http = httpx.Client(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout_s,
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> ShiftApiClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _request(
        self,
        operation: str,
        *,
        path_args: dict[str, str] | None = None,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> httpx.Response:
        op = OPERATIONS.get(operation)
        if op is None:
            raise ValueError(f"Operation '{operation}' is not supported")

        path = op.path_template.format(store=self.store_id, **(path_args or {}))

        last_exc: Exception | None = None
        for attempt in range(self.retries):
            try:
                resp = self._http.request(op.method, path, params=params, json=json_body)
                if resp.status_code >= 500 and attempt < self.retries - 1:
                    logger.warning("%s %s -> %s, retrying", op.method, path, resp.status_code)
                    sleep(self.backoff_s * 2**attempt)
                    continue
                resp.raise_for_status()
                return resp
            except (httpx.TimeoutException, httpx.ConnectError) as exc:
                last_exc = exc
                if attempt < self.retries - 1:
                    sleep(self.backoff_s * 2**attempt)
                    continue
                raise
        if last_exc:
            raise last_exc
        raise RuntimeError("request failed without an explicit exception")

    # ---- persistence collaborator ------------------------------------------

    def load_shifts(self, date_from: date | None = None, date_to: date | None = None) -> list[Shift]:
        params = {"storeId": self.store_id, **date_range_params(date_from, date_to)}
        data = self._request("list_shifts", params=params).json()
        if isinstance(data, dict):
            data = data.get("items", [])
        return [shift_from_wire(row) for row in data or []]

    def save_shift(self, shift: Shift) -> Shift:
        payload = shift_to_wire(shift)
        if not payload["storeId"]:
            payload["storeId"] = self.store_id
        data = self._request("save_shift", json_body=payload).json()
        return shift_from_wire(data) if isinstance(data, dict) and data.get("id") else shift

    def delete_shift(self, shift_id: str) -> bool:
        try:
            self._request("delete_shift", path_args={"shift_id": shift_id})
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code == 404:
                return False
            raise
        return True

    # ---- directory / location / templates ----------------------------------

    def list_employees(self) -> list[Employee]:
        data = self._request("list_employees", params={"storeId": self.store_id}).json()
        if isinstance(data, dict):
            data = data.get("items", [])
        return [employee_from_wire(row) for row in data or []]

    def fetch_business_hours(self) -> BusinessHours:
        data = self._request("store_profile").json() or {}
        return BusinessHours(
            opening_hour=data.get("openingHour") or "09:00",
            closing_hour=data.get("closingHour") or "22:00",
        )

    def list_templates(self) -> list[ShiftTemplate]:
        data = self._request("list_templates").json()
        if isinstance(data, dict):
            data = data.get("items", [])
        return [template_from_wire(row) for row in data or []]

"""Tests for the REST client against an in-process httpx transport."""

from __future__ import annotations

import json
from datetime import date, datetime

import httpx
import pytest

from schedule_core.models import EmployeeTime, Recurrence, Shift
from shiftdesk.api_client import ShiftApiClient, shift_from_wire, shift_to_wire

SHIFT_ROW = {
    "id": "s1",
    "start": "2025-03-10T09:00:00",
    "end": "2025-03-10T15:00:00",
    "employeeIds": ["e1", "e2"],
    "requiredStaff": 3,
    "maxStaff": 4,
    "shiftType": "open",
    "storeId": "store-1",
    "isSubRequest": True,
    "recurringPattern": {"frequency": "weekly", "daysOfWeek": [1, 3], "endDate": "2025-03-31"},
    "employeeTimes": {"e2": {"start": "2025-03-10T10:00:00", "end": "2025-03-10T14:00:00"}},
    "status": "open",
}


def make_client(handler, **kwargs) -> ShiftApiClient:
    kwargs.setdefault("backoff_s", 0)
    return ShiftApiClient(
        base_url="http://api.test",
        token="secret",
        store_id="store-1",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


class TestWireMapping:
    def test_from_wire(self):
        shift = shift_from_wire(SHIFT_ROW)
        assert shift.assigned_employee_ids == ["e1", "e2"]
        assert shift.max_staff == 4
        assert shift.recurrence.days_of_week == {1, 3}
        assert shift.recurrence.end_date == date(2025, 3, 31)
        assert shift.employee_times["e2"].start == datetime(2025, 3, 10, 10)
        # status on the wire is ignored; it is derived
        assert shift.status == "substitute-requested"

    def test_to_wire(self):
        shift = Shift(
            id="s1",
            start=datetime(2025, 3, 10, 9),
            end=datetime(2025, 3, 10, 15),
            assigned_employee_ids=["e1"],
            recurrence=Recurrence(days_of_week={5, 1}),
            employee_times={"e1": EmployeeTime(datetime(2025, 3, 10, 9), datetime(2025, 3, 10, 12))},
        )
        wire = shift_to_wire(shift)
        assert wire["employeeIds"] == ["e1"]
        assert wire["recurringPattern"] == {"frequency": "weekly", "daysOfWeek": [1, 5], "endDate": None}
        assert wire["employeeTimes"]["e1"] == {"start": "2025-03-10T09:00:00", "end": "2025-03-10T12:00:00"}
        assert wire["status"] == "assigned"


class TestShiftApiClient:
    def test_load_shifts(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json={"items": [SHIFT_ROW]})

        with make_client(handler) as client:
            [shift] = client.load_shifts(date(2025, 3, 9), date(2025, 3, 15))
        assert shift.id == "s1"
        assert seen["path"] == "/shifts"
        assert seen["params"] == {"storeId": "store-1", "from": "2025-03-09", "to": "2025-03-15"}
        assert seen["auth"] == "Bearer secret"

    def test_save_shift_fills_store(self):
        bodies = []

        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            bodies.append(body)
            return httpx.Response(200, json=body)

        shift = Shift(id="s2", start=datetime(2025, 3, 11, 17), end=datetime(2025, 3, 11, 22))
        with make_client(handler) as client:
            saved = client.save_shift(shift)
        assert bodies[0]["storeId"] == "store-1"
        assert saved.id == "s2"
        assert saved.store_id == "store-1"

    def test_delete_missing_returns_false(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "DELETE"
            status = 204 if request.url.path == "/shifts/known" else 404
            return httpx.Response(status)

        with make_client(handler) as client:
            assert client.delete_shift("known") is True
            assert client.delete_shift("missing") is False

    def test_delete_server_error_raises(self):
        with make_client(lambda request: httpx.Response(500), retries=1) as client:
            with pytest.raises(httpx.HTTPStatusError):
                client.delete_shift("x")

    def test_retries_on_server_error(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            if len(calls) < 3:
                return httpx.Response(503)
            return httpx.Response(200, json=[])

        with make_client(handler, retries=3) as client:
            assert client.load_shifts() == []
        assert len(calls) == 3

    def test_retries_on_connect_error(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            raise httpx.ConnectError("refused", request=request)

        with make_client(handler, retries=2) as client:
            with pytest.raises(httpx.ConnectError):
                client.list_employees()
        assert len(calls) == 2

    def test_list_employees(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/employees"
            return httpx.Response(200, json=[
                {"id": "e1", "name": "Mina", "role": "barista", "hourlyRate": 12.5, "status": "active"},
            ])

        with make_client(handler) as client:
            [emp] = client.list_employees()
        assert (emp.id, emp.role, emp.hourly_rate) == ("e1", "barista", 12.5)

    def test_business_hours(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/branch/store-1/profile"
            return httpx.Response(200, json={"openingHour": "08:00", "closingHour": "20:00"})

        with make_client(handler) as client:
            hours = client.fetch_business_hours()
        assert (hours.opening_hour, hours.closing_hour) == ("08:00", "20:00")

    def test_templates(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/branch/store-1/templates"
            return httpx.Response(200, json=[{
                "id": "t-close",
                "name": "Close",
                "type": "close",
                "startTime": "17:00",
                "endTime": "22:00",
                "requiredStaff": 3,
                "dayVariations": {"6": {"requiredStaff": 4}},
            }])

        with make_client(handler) as client:
            [template] = client.list_templates()
        assert template.shift_type == "close"
        assert template.required_staff_for(6) == 4
        assert template.required_staff_for(2) == 3

    def test_unknown_operation(self):
        with make_client(lambda request: httpx.Response(200)) as client:
            with pytest.raises(ValueError, match="not supported"):
                client._request("drop_tables")

"""shiftdesk MCP server.

Exposes tools for shift CRUD, employee assignment, weekly grid planning,
staffing reports, worked-hours overviews and XLSX export.
"""
from __future__ import annotations

import argparse
import hmac
import logging
import os
from datetime import date
from pathlib import Path
from typing import Any

import anyio
import uvicorn
from mcp.server.fastmcp import FastMCP
from starlette.applications import Starlette
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from schedule_core.constraints import NOT_FOUND, Rejected, shift_warnings
from schedule_core.models import POOL_ID, DragMoveRequest, PlanCell, Shift

from .session import ScheduleSession
from .storage import save_week_plan, week_plan_root
from .utils import ensure_date, week_key

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "shiftdesk",
    host=os.getenv("HOST", "127.0.0.1"),
    port=int(os.getenv("PORT", "8000")),
    instructions=(
        "Shift scheduling for a single store. "
        "Create shifts, assign employees subject to staffing limits, plan a week "
        "on a day x shift-template grid, and review staffing and worked hours. "
        "Refusals come back as {ok: false, reason, detail}; understaffing and "
        "double bookings are reported as warnings, never refused."
    ),
)

_ENV_FILE: str | None = None
_SESSION: ScheduleSession | None = None


def _session() -> ScheduleSession:
    global _SESSION
    if _SESSION is None:
        _SESSION = ScheduleSession.from_env(_ENV_FILE or os.getenv("SHIFTDESK_ENV_FILE"))
    return _SESSION


def _date_arg(value: str | None, name: str) -> date | None:
    try:
        return ensure_date(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an ISO date (YYYY-MM-DD), got {value!r}") from exc


def _shift_payload(shift: Shift) -> dict[str, Any]:
    session = _session()
    known = [e.id for e in session.employees] if session.employees else None
    return {
        **shift.to_dict(),
        "warnings": shift_warnings(shift, known, session.business_hours),
    }


def _result(result: Any) -> dict[str, Any]:
    if isinstance(result, Rejected):
        return result.to_dict()
    if isinstance(result, Shift):
        return {"ok": True, "shift": _shift_payload(result)}
    if isinstance(result, PlanCell):
        return {"ok": True, "cells": [result.to_dict()]}
    if isinstance(result, tuple):
        items = list(result)
        if items and isinstance(items[0], PlanCell):
            return {"ok": True, "cells": [c.to_dict() for c in items]}
        return {"ok": True, "shifts": [_shift_payload(s) for s in items]}
    raise TypeError(f"Unexpected result type: {type(result).__name__}")


# -- Shift records --

@mcp.tool()
def list_shifts(start: str | None = None, end: str | None = None) -> list[dict[str, Any]]:
    """List shift records with at least one occurrence in [start, end] (ISO dates)."""
    shifts = _session().list_shifts(_date_arg(start, "start"), _date_arg(end, "end"))
    return [_shift_payload(s) for s in shifts]


@mcp.tool()
def create_shift(
    start: str,
    end: str,
    required_staff: int = 1,
    min_staff: int | None = None,
    max_staff: int | None = None,
    shift_type: str | None = None,
    title: str = "",
    note: str = "",
    color: str = "",
    employee_ids: list[str] | None = None,
    days_of_week: list[int] | None = None,
    recurrence_end: str | None = None,
    clamp_to_business_hours: bool = True,
) -> dict[str, Any]:
    """Create a shift (timestamps as YYYY-MM-DDTHH:MM).

    With days_of_week (0 = Sunday) the shift repeats weekly until
    recurrence_end. The interval is clamped to business hours unless
    clamp_to_business_hours is false.
    """
    data: dict[str, Any] = {
        "start": start,
        "end": end,
        "required_staff": required_staff,
        "min_staff": min_staff,
        "max_staff": max_staff,
        "shift_type": shift_type,
        "title": title,
        "note": note,
        "color": color,
        "assigned_employee_ids": employee_ids or [],
    }
    if days_of_week:
        data["recurrence"] = {"days_of_week": days_of_week, "end_date": recurrence_end}
    return _result(_session().create_shift(data, clamp=clamp_to_business_hours))


@mcp.tool()
def update_shift(shift_id: str, changes: dict[str, Any]) -> dict[str, Any]:
    """Replace fields of a shift. The whole record is re-validated; on refusal nothing changes."""
    return _result(_session().update_shift(shift_id, changes))


@mcp.tool()
def delete_shift(shift_id: str) -> dict[str, Any]:
    """Delete a shift record."""
    return {"ok": _session().delete_shift(shift_id), "shift_id": shift_id}


# -- Assignment --

@mcp.tool()
def assign_employee(shift_id: str, employee_id: str) -> dict[str, Any]:
    """Add an employee to a shift. Refused on duplicate or when at max staff.

    Overlaps with the employee's other shifts are returned as conflicts but do not block.
    """
    session = _session()
    payload = _result(session.assign(shift_id, employee_id))
    if payload.get("ok"):
        payload["conflicts"] = session.engine.conflicts_for(shift_id, employee_id)
    return payload


@mcp.tool()
def unassign_employee(shift_id: str, employee_id: str) -> dict[str, Any]:
    """Remove an employee (and their time override). Understaffing is only a warning."""
    return _result(_session().unassign(shift_id, employee_id))


@mcp.tool()
def move_employee(source_shift_id: str, dest_shift_id: str, employee_id: str) -> dict[str, Any]:
    """Move an employee between shifts; either both shifts change or neither does."""
    return _result(_session().move(source_shift_id, dest_shift_id, employee_id))


@mcp.tool()
def reorder_employee(shift_id: str, employee_id: str, new_index: int) -> dict[str, Any]:
    """Reposition an employee within the shift's ordered assignee list."""
    return _result(_session().reorder(shift_id, employee_id, new_index))


@mcp.tool()
def request_substitute(
    shift_id: str,
    high_priority: bool = False,
    requested: bool | None = None,
) -> dict[str, Any]:
    """Toggle the substitute request (or set it with requested=true/false)."""
    return _result(_session().request_substitute(shift_id, high_priority, requested))


@mcp.tool()
def set_employee_time(shift_id: str, employee_id: str, start: str, end: str) -> dict[str, Any]:
    """Give one assignee their own working interval within the shift."""
    return _result(_session().set_employee_time(shift_id, employee_id, start, end))


# -- Weekly planning grid --

@mcp.tool()
def weekly_plan(week_of: str, rebuild: bool = False) -> dict[str, Any]:
    """Day x shift-template grid for the Sunday-based week containing week_of."""
    day = _date_arg(week_of, "week_of")
    planner = _session().planner_for(day, rebuild=rebuild)
    return {"week": week_key(day), **planner.to_dict()}


@mcp.tool()
def plan_drop(
    week_of: str,
    source_id: str,
    dest_id: str,
    employee_id: str,
    dest_index: int | None = None,
    position: str | None = None,
) -> dict[str, Any]:
    """Apply a drag/drop on the grid.

    source_id "pool" adds from the employee pool (optionally as a position,
    e.g. "barista"); source_id == dest_id reorders; otherwise moves between
    cells. Cell ids are "<day>-<template id>".
    """
    planner = _session().planner_for(_date_arg(week_of, "week_of"))
    if position and source_id == POOL_ID:
        cell = planner.cells.get(dest_id)
        if cell is None:
            return Rejected(NOT_FOUND, f"cell {dest_id} not found").to_dict()
        return _result(planner.assign_position(cell.day_of_week, cell.slot_id, employee_id, position))
    request = DragMoveRequest(source_id, dest_id, employee_id, dest_index)
    return _result(planner.drop(request))


@mcp.tool()
def commit_week_plan(week_of: str) -> dict[str, Any]:
    """Write the week's grid back into shift records and archive the grid as JSON."""
    session = _session()
    day = _date_arg(week_of, "week_of")
    plan = session.planner_for(day).to_dict()
    summary = session.commit_week_plan(day)
    if session.artifact_root is not None:
        target = save_week_plan(session.artifact_root, session.store_id, week_key(day), plan)
        summary["path"] = str(target)
    summary["persistence_failures"] = [f.to_dict() for f in session.persistence_failures]
    return summary


# -- Reports --

@mcp.tool()
def staffing_report(start: str, end: str) -> dict[str, Any]:
    """Sufficiency counts, under/overstaffed occurrences, double bookings and unknown employees."""
    return _session().staffing_report(_date_arg(start, "start"), _date_arg(end, "end"))


@mcp.tool()
def hours_overview(start: str, end: str) -> list[dict[str, Any]]:
    """Worked hours, shift count and gross amount per employee."""
    return _session().hours_overview(_date_arg(start, "start"), _date_arg(end, "end"))


@mcp.tool()
def export_week_xlsx(week_of: str, path: str | None = None) -> dict[str, Any]:
    """Export the week's grid, shifts and hours to an XLSX workbook."""
    from schedule_core.io.xlsx import render_week_xlsx

    session = _session()
    day = _date_arg(week_of, "week_of")
    week = week_key(day)
    if path:
        target = Path(path)
    elif session.artifact_root is not None:
        target = week_plan_root(session.artifact_root, session.store_id) / week / "week.xlsx"
    else:
        raise ValueError("path is required when no artifact directory is configured")
    written = render_week_xlsx(
        session.planner_for(day),
        target,
        occurrences=session.week_occurrences(day),
        employees=session.employees,
    )
    return {"week": week, "path": str(written)}


# -- Server entrypoints --

TRANSPORTS = ("stdio", "sse", "streamable-http")
OPEN_PATHS = frozenset({"/health"})


class ApiKeyMiddleware(BaseHTTPMiddleware):
    """Require ``Authorization: Bearer <key>`` on everything but OPEN_PATHS."""

    def __init__(self, app, api_key: str):
        super().__init__(app)
        self.api_key = api_key

    async def dispatch(self, request: Request, call_next):
        if request.url.path in OPEN_PATHS:
            return await call_next(request)
        scheme, _, supplied = request.headers.get("authorization", "").partition(" ")
        if scheme.lower() != "bearer" or not hmac.compare_digest(supplied.strip(), self.api_key):
            logger.warning("Rejected unauthenticated request to %s", request.url.path)
            return JSONResponse(
                {"error": "unauthorized"},
                status_code=401,
                headers={"WWW-Authenticate": "Bearer"},
            )
        return await call_next(request)


async def health(request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok", "server": mcp.name})


def build_http_app(api_key: str | None = None) -> Starlette:
    """Streamable-HTTP app with a health route, guarded when a key is given."""
    app = mcp.streamable_http_app()
    app.routes.append(Route("/health", health, methods=["GET"]))
    if api_key:
        app.add_middleware(ApiKeyMiddleware, api_key=api_key)
    else:
        logger.warning("MCP_API_KEY is not set; HTTP transport is unauthenticated")
    return app


def serve_http(host: str, port: int) -> None:
    app = build_http_app(os.getenv("MCP_API_KEY") or None)
    server = uvicorn.Server(uvicorn.Config(app, host=host, port=port, log_level="info"))
    logger.info("Serving shiftdesk MCP on http://%s:%d", host, port)
    anyio.run(server.serve)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="shiftdesk-mcp", description="Shift scheduling MCP server")
    parser.add_argument("--env-file", help="dotenv file to load before reading settings")
    parser.add_argument(
        "--transport",
        choices=TRANSPORTS,
        help="stdio, sse or streamable-http; streamable-http when PORT is set, otherwise stdio",
    )
    return parser.parse_args(argv)


def resolve_transport(requested: str | None) -> str:
    if requested:
        return requested
    return "streamable-http" if os.getenv("PORT") else "stdio"


def main(argv: list[str] | None = None) -> None:
    global _ENV_FILE

    args = parse_args(argv)
    _ENV_FILE = args.env_file
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    transport = resolve_transport(args.transport)
    if transport == "streamable-http":
        serve_http(os.getenv("HOST", "0.0.0.0"), int(os.getenv("PORT", "8080")))
    else:
        mcp.run(transport=transport)


if __name__ == "__main__":
    main()

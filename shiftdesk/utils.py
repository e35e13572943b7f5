from __future__ import annotations

from datetime import date, datetime, timezone

from schedule_core.time_utils import week_start

UTC = timezone.utc


def now_utc_iso() -> str:
    return datetime.now(tz=UTC).isoformat()


def ensure_date(value: str | date | None) -> date | None:
    """ISO date string (or datetime prefix) -> date; empty -> None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip()[:10])


def date_range_params(date_from: date | None, date_to: date | None) -> dict[str, str]:
    params: dict[str, str] = {}
    if date_from is not None:
        params["from"] = date_from.isoformat()
    if date_to is not None:
        params["to"] = date_to.isoformat()
    return params


def week_key(day: date) -> str:
    """Sunday that starts the planning week of ``day``, as an ISO date."""
    return week_start(day).isoformat()

"""Shared time and calendar utilities used by the scheduling engine."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime, time, timedelta

DAY_MINUTES = 24 * 60


def parse_hhmm_to_minutes(value: str | None, *, allow_end_of_day: bool = False) -> int | None:
    """Parse HH:MM into minutes after midnight.

    With ``allow_end_of_day`` the literal ``24:00`` is accepted as 1440.
    """
    if not value or ":" not in str(value):
        return None
    try:
        hh, mm = str(value).split(":", 1)
        h = int(hh)
        m = int(mm[:2])
    except (TypeError, ValueError):
        return None
    if allow_end_of_day and h == 24 and m == 0:
        return DAY_MINUTES
    if h < 0 or h > 23 or m < 0 or m > 59:
        return None
    return h * 60 + m


def minutes_to_hhmm(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse an ISO-8601 local timestamp (``YYYY-MM-DDTHH:MM[:SS]``)."""
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).strip())
    except ValueError as exc:
        raise ValueError(f"Invalid timestamp: {value!r}") from exc


def format_timestamp(value: datetime) -> str:
    return value.strftime("%Y-%m-%dT%H:%M:%S")


def wall_clock(value: datetime) -> str:
    """HH:MM of a timestamp."""
    return value.strftime("%H:%M")


def at_wall_clock(day: date, hhmm: str) -> datetime:
    """Combine a date with an HH:MM string; ``24:00`` rolls to the next midnight."""
    minutes = parse_hhmm_to_minutes(hhmm, allow_end_of_day=True)
    if minutes is None:
        raise ValueError(f"Invalid wall-clock time: {hhmm!r}")
    return datetime.combine(day, time(0, 0)) + timedelta(minutes=minutes)


def overlaps(a: tuple[datetime, datetime], b: tuple[datetime, datetime]) -> bool:
    """True iff two half-open ``[start, end)`` intervals intersect."""
    a0, a1 = a
    b0, b1 = b
    return max(a0, b0) < min(a1, b1)


def duration_hours(start: datetime, end: datetime) -> float:
    """Length of ``[start, end)`` in decimal hours."""
    seconds = (end - start).total_seconds()
    if seconds < 0:
        raise ValueError(f"Negative duration: {start.isoformat()} -> {end.isoformat()}")
    return seconds / 3600.0


def weekday_of(value: date | datetime) -> int:
    """Day of week with 0 = Sunday, 6 = Saturday."""
    return (value.weekday() + 1) % 7


def week_start(value: date) -> date:
    """Sunday on or before ``value``."""
    return value - timedelta(days=weekday_of(value))


def date_for_weekday(week_begin: date, day_of_week: int) -> date:
    """Concrete date of ``day_of_week`` in the Sunday-based week containing ``week_begin``."""
    return week_start(week_begin) + timedelta(days=day_of_week)


def expand_weekly_recurrence(
    base_start: datetime,
    base_end: datetime,
    days_of_week: Iterable[int],
    end_date: date,
) -> list[tuple[datetime, datetime]]:
    """Expand a weekly pattern into concrete ``(start, end)`` occurrences.

    One occurrence per date from the base date through ``end_date`` (both
    inclusive) whose weekday is in ``days_of_week``. Time of day and
    duration are taken from the base interval.
    """
    days = {int(d) for d in days_of_week}
    if isinstance(end_date, datetime):
        end_date = end_date.date()
    first = base_start.date()
    if not days or end_date < first:
        return []

    length = base_end - base_start
    occurrences: list[tuple[datetime, datetime]] = []
    offset = 0
    current = first
    while current <= end_date:
        if weekday_of(current) in days:
            start = base_start + timedelta(days=offset)
            occurrences.append((start, start + length))
        offset += 1
        current = first + timedelta(days=offset)
    return occurrences

"""Staffing-level policy.

Capacity is hard-enforced on assignment; understaffing is advisory and never
blocks a removal.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from enum import Enum
from typing import TYPE_CHECKING

from .rejections import (
    CAPACITY_EXCEEDED,
    DUPLICATE_ASSIGNMENT,
    NOT_ASSIGNED,
    POSITION_FILLED,
    Rejected,
)

if TYPE_CHECKING:
    from .models import Shift


class Sufficiency(str, Enum):
    UNDERSTAFFED = "understaffed"
    SUFFICIENT = "sufficient"
    OVERSTAFFED = "overstaffed"


def sufficiency(
    assigned_count: int,
    required: int,
    min_staff: int | None = None,
    max_staff: int | None = None,
) -> Sufficiency:
    """Classify staffing adequacy.

    ``min_staff`` is accepted for symmetry with the shift record; it never
    changes the classification because ``min_staff <= required`` holds.
    """
    if max_staff is not None and assigned_count > max_staff:
        return Sufficiency.OVERSTAFFED
    if assigned_count < required:
        return Sufficiency.UNDERSTAFFED
    return Sufficiency.SUFFICIENT


def is_severely_understaffed(assigned_count: int, required: int) -> bool:
    """UI hint only: more than one person short."""
    return required - assigned_count > 1


def check_add(
    assigned_ids: Sequence[str],
    employee_id: str,
    max_staff: int | None,
) -> Rejected | None:
    """``None`` when the employee may be added, else the rejection."""
    if employee_id in assigned_ids:
        return Rejected(DUPLICATE_ASSIGNMENT, f"{employee_id} is already assigned")
    if max_staff is not None and len(assigned_ids) >= max_staff:
        return Rejected(CAPACITY_EXCEEDED, f"already at capacity ({max_staff})")
    return None


def check_remove(assigned_ids: Sequence[str], employee_id: str) -> Rejected | None:
    if employee_id not in assigned_ids:
        return Rejected(NOT_ASSIGNED, f"{employee_id} is not assigned")
    return None


def check_position(
    filled: Mapping[str, int],
    position: str,
    required_positions: Mapping[str, int],
) -> Rejected | None:
    """Refuse a role slot that is already full; unlisted positions are open."""
    limit = required_positions.get(position)
    if limit is not None and filled.get(position, 0) >= limit:
        return Rejected(POSITION_FILLED, f"position {position!r} already has {limit}")
    return None


def can_add(shift: Shift, employee_id: str) -> Rejected | None:
    return check_add(shift.assigned_employee_ids, employee_id, shift.max_staff)


def can_remove(shift: Shift, employee_id: str) -> Rejected | None:
    return check_remove(shift.assigned_employee_ids, employee_id)

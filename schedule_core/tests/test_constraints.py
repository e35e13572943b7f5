"""Tests for schedule_core.constraints."""

from datetime import date, datetime

from schedule_core.constraints import (
    CAPACITY_EXCEEDED,
    DANGLING_EMPLOYEE,
    DUPLICATE_ASSIGNMENT,
    INVALID_INTERVAL,
    INVALID_STAFFING_LEVELS,
    OUTSIDE_BUSINESS_HOURS,
    OVERRIDE_OUTSIDE_SHIFT,
    OVERSTAFFED,
    SEVERELY_UNDERSTAFFED,
    UNDERSTAFFED,
    Rejected,
    clamp_to_business_hours,
    find_double_bookings,
    is_hard,
    is_soft,
    shift_warnings,
    validate_shift,
)
from schedule_core.models import BusinessHours, EmployeeTime, Recurrence, Shift

HOURS = BusinessHours("09:00", "22:00")


def make_shift(shift_id="s1", start=(10, 9), end=(10, 15), **kwargs) -> Shift:
    return Shift(
        id=shift_id,
        start=datetime(2025, 3, start[0], start[1]),
        end=datetime(2025, 3, end[0], end[1]),
        **kwargs,
    )


class TestClassification:
    def test_hard_and_soft_are_disjoint(self):
        assert is_hard(CAPACITY_EXCEEDED) and not is_soft(CAPACITY_EXCEEDED)
        assert is_soft(UNDERSTAFFED) and not is_hard(UNDERSTAFFED)

    def test_rejected_is_falsy_and_serializable(self):
        rejection = Rejected(CAPACITY_EXCEEDED, "full")
        assert not rejection
        assert rejection.to_dict() == {"ok": False, "reason": "capacity_exceeded", "detail": "full"}


class TestValidateShift:
    def test_valid(self):
        assert validate_shift(make_shift(assigned_employee_ids=["e1"])) == []

    def test_inverted_interval(self):
        assert validate_shift(make_shift(start=(10, 15), end=(10, 9))) == [INVALID_INTERVAL]

    def test_inverted_override(self):
        shift = make_shift(
            assigned_employee_ids=["e1"],
            employee_times={"e1": EmployeeTime(datetime(2025, 3, 10, 12), datetime(2025, 3, 10, 11))},
        )
        assert validate_shift(shift) == [INVALID_INTERVAL]

    def test_duplicates(self):
        assert DUPLICATE_ASSIGNMENT in validate_shift(make_shift(assigned_employee_ids=["e1", "e1"]))

    def test_over_capacity(self):
        shift = make_shift(assigned_employee_ids=["e1", "e2"], max_staff=1)
        assert CAPACITY_EXCEEDED in validate_shift(shift)

    def test_staffing_levels(self):
        assert validate_shift(make_shift(required_staff=0)) == [INVALID_STAFFING_LEVELS]
        assert validate_shift(make_shift(required_staff=2, min_staff=3)) == [INVALID_STAFFING_LEVELS]
        assert validate_shift(make_shift(required_staff=2, max_staff=1)) == [INVALID_STAFFING_LEVELS]

    def test_recurrence_days_out_of_range(self):
        shift = make_shift(recurrence=Recurrence(days_of_week={1, 9}, end_date=date(2025, 3, 31)))
        assert validate_shift(shift) == [INVALID_INTERVAL]
        shift.recurrence.days_of_week = {0, 6}
        assert validate_shift(shift) == []


class TestClamp:
    def test_drag_selection_clamped_to_opening_hours(self):
        result = clamp_to_business_hours(datetime(2025, 3, 10, 7, 30), datetime(2025, 3, 10, 23), HOURS)
        assert result == (datetime(2025, 3, 10, 9), datetime(2025, 3, 10, 22))

    def test_inside_unchanged(self):
        start, end = datetime(2025, 3, 10, 10), datetime(2025, 3, 10, 12)
        assert clamp_to_business_hours(start, end, HOURS) == (start, end)

    def test_entirely_before_opening(self):
        result = clamp_to_business_hours(datetime(2025, 3, 10, 6), datetime(2025, 3, 10, 8), HOURS)
        assert isinstance(result, Rejected)
        assert result.reason == OUTSIDE_BUSINESS_HOURS

    def test_ending_exactly_at_opening(self):
        result = clamp_to_business_hours(datetime(2025, 3, 10, 7), datetime(2025, 3, 10, 9), HOURS)
        assert result.reason == OUTSIDE_BUSINESS_HOURS


class TestDoubleBookings:
    def test_overlap_detected(self):
        a = make_shift("a", assigned_employee_ids=["e1"]).occurrences()
        b = make_shift("b", start=(10, 14), end=(10, 18), assigned_employee_ids=["e1", "e2"]).occurrences()
        conflicts = find_double_bookings(a + b)
        assert len(conflicts) == 1
        assert conflicts[0]["employee_id"] == "e1"
        assert conflicts[0]["shift_ids"] == ["a", "b"]

    def test_touching_not_conflict(self):
        a = make_shift("a", assigned_employee_ids=["e1"]).occurrences()
        b = make_shift("b", start=(10, 15), end=(10, 18), assigned_employee_ids=["e1"]).occurrences()
        assert find_double_bookings(a + b) == []

    def test_other_days_ignored(self):
        a = make_shift("a", assigned_employee_ids=["e1"]).occurrences()
        b = make_shift("b", start=(11, 9), end=(11, 15), assigned_employee_ids=["e1"]).occurrences()
        assert find_double_bookings(a + b) == []


class TestShiftWarnings:
    def test_severely_understaffed(self):
        warnings = shift_warnings(make_shift(required_staff=3))
        assert [w["warning"] for w in warnings] == [SEVERELY_UNDERSTAFFED]

    def test_understaffed_by_one(self):
        warnings = shift_warnings(make_shift(required_staff=2, assigned_employee_ids=["e1"]))
        assert [w["warning"] for w in warnings] == [UNDERSTAFFED]

    def test_overstaffed(self):
        shift = make_shift(assigned_employee_ids=["e1", "e2"], max_staff=1)
        assert OVERSTAFFED in [w["warning"] for w in shift_warnings(shift)]

    def test_override_outside_shift(self):
        shift = make_shift(
            assigned_employee_ids=["e1"],
            employee_times={"e1": EmployeeTime(datetime(2025, 3, 10, 14), datetime(2025, 3, 10, 17))},
        )
        assert [w["warning"] for w in shift_warnings(shift)] == [OVERRIDE_OUTSIDE_SHIFT]

    def test_dangling_employee(self):
        shift = make_shift(assigned_employee_ids=["e1", "gone"])
        warnings = shift_warnings(shift, known_employee_ids=["e1"])
        assert [(w["warning"], w["employee_id"]) for w in warnings] == [(DANGLING_EMPLOYEE, "gone")]

    def test_fully_staffed_has_no_warnings(self):
        shift = make_shift(assigned_employee_ids=["e1"])
        assert shift_warnings(shift, known_employee_ids=["e1"], hours=HOURS) == []


def test_occurrence_dates_used_for_report_keys():
    occ = make_shift(assigned_employee_ids=["e1"]).occurrences(date(2025, 3, 10), date(2025, 3, 10))[0]
    assert occ.to_dict()["date"] == "2025-03-10"

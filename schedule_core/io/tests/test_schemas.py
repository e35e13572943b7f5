"""Tests for io.schemas helpers."""

from schedule_core.io.schemas import (
    EMPLOYEE_TIMES_COLS,
    EMPLOYEE_TIMES_REQUIRED,
    EMPLOYEES_COLS,
    EMPLOYEES_REQUIRED,
    SHIFTS_COLS,
    SHIFTS_REQUIRED,
    pipe_split,
    to_bool,
    to_float,
    to_int,
    to_int_or_none,
)


class TestColumns:
    def test_required_columns_are_known(self):
        for required, columns in (
            (EMPLOYEES_REQUIRED, EMPLOYEES_COLS),
            (SHIFTS_REQUIRED, SHIFTS_COLS),
            (EMPLOYEE_TIMES_REQUIRED, EMPLOYEE_TIMES_COLS),
        ):
            assert set(required) <= set(columns)


class TestPipeHelpers:
    def test_pipe_split_basic(self):
        assert pipe_split("1|3|5") == ["1", "3", "5"]

    def test_pipe_split_strips(self):
        assert pipe_split(" E-101 | E-102 ") == ["E-101", "E-102"]

    def test_pipe_split_empty(self):
        assert pipe_split("") == []
        assert pipe_split(None) == []


class TestTypeCoercion:
    def test_to_float_valid(self):
        assert to_float("12.50") == 12.50

    def test_to_float_empty(self):
        assert to_float("") == 0.0
        assert to_float(None) == 0.0

    def test_to_float_default(self):
        assert to_float("", default=5.0) == 5.0

    def test_to_int(self):
        assert to_int("3") == 3
        assert to_int("", 1) == 1
        assert to_int("abc", 1) == 1

    def test_to_int_or_none(self):
        assert to_int_or_none("2") == 2
        assert to_int_or_none("") is None
        assert to_int_or_none(None) is None

    def test_to_bool(self):
        assert to_bool("TRUE") is True
        assert to_bool("yes") is True
        assert to_bool("FALSE") is False
        assert to_bool(None) is False

from __future__ import annotations

import math

import pytest

from panelsync.domain.conflicts import FieldValue, ValueKind, normalize_field_value
from panelsync.domain.conflicts.normalize import to_enabled, to_number
from panelsync.domain.model import ComparableField


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, 0),
        ("", 0),
        ("abc", 0),
        ("1700000000000", 1700000000000),
        ("1.5", 1.5),
        (2.0, 2),
        (True, 1),
        (math.inf, 0),
        ("nan", 0),
    ],
)
def test_to_number(raw: object, expected: float) -> None:
    assert to_number(raw) == expected


def test_integral_floats_become_ints() -> None:
    assert isinstance(to_number("10.0"), int)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, True),
        (True, True),
        (False, False),
        ("false", False),
        (" OFF ", False),
        ("1", True),
        (0, False),
    ],
)
def test_to_enabled(raw: object, expected: bool) -> None:  # noqa: FBT001
    assert to_enabled(raw) is expected


def test_numeric_strings_and_numbers_compare_equal() -> None:
    assert normalize_field_value(ComparableField.TOTAL_GB, "1024") == normalize_field_value(
        ComparableField.TOTAL_GB, 1024
    )


def test_values_are_tagged_by_kind() -> None:
    assert normalize_field_value(ComparableField.ENABLE, None) == FieldValue(ValueKind.BOOL, True)
    assert normalize_field_value(ComparableField.LIMIT_IP, True) == FieldValue(ValueKind.NUMBER, 1)
    assert normalize_field_value(ComparableField.FLOW, None) == FieldValue(ValueKind.TEXT, "")
    assert FieldValue(ValueKind.TEXT, "1") != FieldValue(ValueKind.NUMBER, 1)

"""Unit tests for engines.mapping.convert."""

import uuid
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

import pytest

from dbharness.engines.mapping import ConversionError, convert_value, zero_value
from dbharness.engines.mapping.convert import unwrap_optional


class Status(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


def test_unwrap_optional() -> None:
    assert unwrap_optional(int) == (int, False)
    assert unwrap_optional(Optional[int]) == (int, True)
    assert unwrap_optional(int | None) == (int, True)
    assert unwrap_optional(Any) == (Any, True)


def test_zero_values() -> None:
    assert zero_value(int) == 0
    assert zero_value(float) == 0.0
    assert zero_value(str) == ""
    assert zero_value(bool) is False
    assert zero_value(Decimal) == Decimal(0)
    assert zero_value(list[int]) == []
    assert zero_value(int | None) is None
    assert zero_value(datetime) is None


@pytest.mark.parametrize(
    ("value", "annotation", "expected"),
    [
        (1, int, 1),
        ("12", int, 12),
        (Decimal("4"), int, 4),
        (3.0, int, 3),
        (True, int, 1),
        (7, str, "7"),
        (b"abc", str, "abc"),
        ("1.5", float, 1.5),
        (Decimal("2.25"), float, 2.25),
        (1.5, Decimal, Decimal("1.5")),
        ("9.99", Decimal, Decimal("9.99")),
        (1, bool, True),
        ("no", bool, False),
        ("2024-01-02", date, date(2024, 1, 2)),
        (datetime(2024, 1, 2, 3, 4), date, date(2024, 1, 2)),
        ("2024-01-02T03:04:05", datetime, datetime(2024, 1, 2, 3, 4, 5)),
        (timedelta(hours=1, minutes=30), time, time(1, 30)),
        ("open", Status, Status.OPEN),
        ("CLOSED", Status, Status.CLOSED),
        (5, Optional[str], "5"),
        ("x", Any, "x"),
        ("x", int | str, "x"),
    ],
)
def test_convert_value(value: Any, annotation: Any, expected: Any) -> None:
    assert convert_value(value, annotation) == expected


def test_convert_uuid() -> None:
    u = uuid.uuid4()
    assert convert_value(str(u), uuid.UUID) == u
    assert convert_value(u.bytes, uuid.UUID) == u


@pytest.mark.parametrize(
    ("value", "annotation"),
    [
        ("abc", int),
        (1.5, int),
        (Decimal("2.5"), int),
        ("", int),
        ("x", float),
        (2, bool),
        ("maybe", bool),
        ("not-a-date", date),
        ("nope", Status),
        ("zz", uuid.UUID),
        (12, bytes),
    ],
)
def test_convert_value_failures(value: Any, annotation: Any) -> None:
    with pytest.raises(ConversionError):
        convert_value(value, annotation)

"""
Column value conversion for record mapping.

Converts raw driver values to a record field's declared type, treating
``Optional[X]`` / ``X | None`` as ``X``. Values already of the target type
pass through untouched. Conversion failures raise ConversionError.
"""

from __future__ import annotations

import types
import uuid
from collections.abc import Callable
from datetime import date, datetime, time, timedelta
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Union, get_args, get_origin


class ConversionError(ValueError):
    """Raised when a value cannot be converted to the requested type."""

    pass


_NONE_TYPE = type(None)


def unwrap_optional(annotation: Any) -> tuple[Any, bool]:
    """Return (underlying type, nullable) for an annotation."""
    if annotation is Any or annotation is None or annotation is _NONE_TYPE:
        return Any, True
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = get_args(annotation)
        rest = [a for a in args if a is not _NONE_TYPE]
        nullable = len(rest) < len(args)
        if len(rest) == 1:
            return rest[0], nullable
        return annotation, nullable
    return annotation, False


_ZEROS: dict[Any, Any] = {
    int: 0,
    float: 0.0,
    str: "",
    bool: False,
    bytes: b"",
    Decimal: Decimal(0),
}


def zero_value(annotation: Any) -> Any:
    """Type-appropriate empty value: 0, "", False, empty container or None."""
    target, nullable = unwrap_optional(annotation)
    if nullable:
        return None
    if target in _ZEROS:
        return _ZEROS[target]
    origin = get_origin(target) or target
    if origin in (list, dict, set, tuple, frozenset):
        return origin()
    return None


def _to_str(value: Any) -> str:
    if isinstance(value, (bytes, bytearray, memoryview)):
        try:
            return bytes(value).decode("utf-8")
        except UnicodeDecodeError as e:
            raise ConversionError(f"Bytes are not valid UTF-8: {e}") from e
    return str(value)


def _to_int(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise ConversionError(f"Expected integer, got float: {value}")
        return int(value)
    if isinstance(value, Decimal):
        if not value.is_finite() or value != value.to_integral_value():
            raise ConversionError(f"Expected integer, got decimal: {value}")
        return int(value)
    s = _to_str(value).strip()
    if not s:
        raise ConversionError("Value is empty")
    try:
        return int(s)
    except ValueError:
        pass
    try:
        x = Decimal(s)
    except InvalidOperation as e:
        raise ConversionError(f"Invalid integer: {s!r}") from e
    if not x.is_finite() or x != x.to_integral_value():
        raise ConversionError(f"Expected integer, got: {s!r}")
    return int(x)


def _to_float(value: Any) -> float:
    if isinstance(value, (int, float, Decimal)):
        return float(value)
    s = _to_str(value).strip()
    if not s:
        raise ConversionError("Value is empty")
    try:
        return float(s)
    except ValueError as e:
        raise ConversionError(f"Invalid number: {s!r}") from e


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    s = _to_str(value).strip()
    try:
        return Decimal(s)
    except InvalidOperation as e:
        raise ConversionError(f"Invalid decimal: {s!r}") from e


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, Decimal)):
        if value == 0:
            return False
        if value == 1:
            return True
        raise ConversionError(f"Expected boolean, got integer: {value}")
    s = _to_str(value).strip().lower()
    if s in ("true", "1", "yes", "t", "y"):
        return True
    if s in ("false", "0", "no", "f", "n"):
        return False
    raise ConversionError(f"Expected boolean (true/false, 1/0, yes/no), got: {value!r}")


def _to_bytes(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        return value.encode("utf-8")
    raise ConversionError(f"Expected bytes, got: {type(value).__name__}")


def _to_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    s = _to_str(value).strip()
    try:
        return datetime.fromisoformat(s)
    except ValueError as e:
        raise ConversionError(f"Invalid datetime: {s!r}") from e


def _to_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    s = _to_str(value).strip()
    try:
        return datetime.fromisoformat(s).date()
    except ValueError as e:
        raise ConversionError(f"Invalid date: {s!r}") from e


def _to_time(value: Any) -> time:
    if isinstance(value, time):
        return value
    if isinstance(value, datetime):
        return value.time()
    if isinstance(value, timedelta):
        # MySQL TIME columns arrive as timedelta
        if not timedelta(0) <= value < timedelta(days=1):
            raise ConversionError(f"Time out of range: {value}")
        return (datetime.min + value).time()
    s = _to_str(value).strip()
    try:
        return time.fromisoformat(s)
    except ValueError as e:
        raise ConversionError(f"Invalid time: {s!r}") from e


def _to_uuid(value: Any) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    if isinstance(value, (bytes, bytearray)) and len(value) == 16:
        return uuid.UUID(bytes=bytes(value))
    s = _to_str(value).strip()
    try:
        return uuid.UUID(s)
    except ValueError as e:
        raise ConversionError(f"Invalid UUID: {s!r}") from e


def _to_enum(target: type[Enum], value: Any) -> Enum:
    if isinstance(value, target):
        return value
    try:
        return target(value)
    except ValueError:
        pass
    if isinstance(value, str) and value in target.__members__:
        return target[value]
    raise ConversionError(f"{value!r} is not a valid {target.__name__}")


_CONVERTERS: dict[Any, Callable[[Any], Any]] = {
    str: _to_str,
    int: _to_int,
    float: _to_float,
    Decimal: _to_decimal,
    bool: _to_bool,
    bytes: _to_bytes,
    datetime: _to_datetime,
    date: _to_date,
    time: _to_time,
    uuid.UUID: _to_uuid,
}


def convert_value(value: Any, annotation: Any) -> Any:
    """
    Convert a non-None ``value`` to ``annotation``.

    Unions of several types, Any and other special forms are passed through.
    """
    target, _ = unwrap_optional(annotation)
    if target is Any:
        return value
    origin = get_origin(target)
    if origin is not None:
        if origin is Union or origin is types.UnionType or not isinstance(origin, type):
            return value
        target = origin
    if not isinstance(target, type):
        return value

    fn = _CONVERTERS.get(target)
    if fn is not None:
        return fn(value)
    if issubclass(target, Enum):
        return _to_enum(target, value)
    if isinstance(value, target):
        return value
    try:
        return target(value)
    except (TypeError, ValueError) as e:
        raise ConversionError(f"Cannot convert {type(value).__name__} to {target.__name__}: {e}") from e

"""
Map query result rows onto record instances.

Columns are matched to record fields by name, ignoring case. Unmatched
columns are skipped; unmatched fields keep their default (or zero) value.
NULL becomes None for nullable fields and the type's zero value otherwise,
unless ``strict_nulls`` is set, in which case it is a FieldConversionError.
"""

import logging
from collections.abc import Sequence
from typing import Any, TypeVar

from dbharness.core.connection import ConnectionHandle
from dbharness.core.errors import DatabaseError, FieldConversionError
from dbharness.engines.sql.executor import QueryParams, fetch_rows

from .convert import convert_value, zero_value
from .shape import shape_of

_log = logging.getLogger(__name__)

T = TypeVar("T")


def map_rows(
    record_type: type[T],
    columns: Sequence[str],
    rows: Sequence[Sequence[Any]],
    *,
    query: str,
    strict_nulls: bool = False,
) -> list[T]:
    """Build one fresh ``record_type`` instance per row, in row order."""
    shape = shape_of(record_type)
    matches = [shape.match(c) for c in columns]
    result: list[T] = []

    for row_index, row in enumerate(rows):
        if shape.populates_itself:
            try:
                instance = shape.from_row(columns, row)
            except DatabaseError:
                raise
            except Exception as e:
                raise FieldConversionError(query, None, row_index, repr(e)) from e
            result.append(instance)
            continue

        values = shape.initial_values()
        for column, spec, raw in zip(columns, matches, row, strict=True):
            if spec is None:
                continue
            if raw is None:
                if strict_nulls and not spec.nullable:
                    raise FieldConversionError(
                        query, column, row_index, f"NULL for non-nullable field {spec.name!r}"
                    )
                values[spec.name] = None if spec.nullable else zero_value(spec.annotation)
                continue
            try:
                values[spec.name] = convert_value(raw, spec.annotation)
            except (ValueError, TypeError, ArithmeticError) as e:
                raise FieldConversionError(query, column, row_index, str(e)) from e

        try:
            result.append(shape.build(values))
        except (ValueError, TypeError) as e:
            raise FieldConversionError(query, None, row_index, repr(e)) from e

    return result


def get_records(
    handle: ConnectionHandle,
    record_type: type[T],
    query: str,
    params: QueryParams = None,
    *,
    strict_nulls: bool = False,
) -> list[T]:
    """Run ``query`` and map every returned row onto a new ``record_type``."""
    # Validate the shape before touching the database.
    shape_of(record_type)
    columns, rows = fetch_rows(handle, query, params)
    if columns is None:
        return []
    try:
        records = map_rows(record_type, columns, rows, query=query, strict_nulls=strict_nulls)
    finally:
        rows.clear()
    _log.debug("Query [%s] mapped %d %s record(s)", query, len(records), record_type.__name__)
    return records

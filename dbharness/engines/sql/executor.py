"""
Run parameterised SQL through a ConnectionHandle.

Every call opens the handle's connection, runs one statement and closes the
cursor and the connection before returning or raising. Driver errors are
wrapped in QueryExecutionError with the query text; DatabaseError
subclasses propagate unchanged.

Parameters are always named. The placeholder syntax is the driver's:
``%(name)s`` for psycopg and pymysql, ``:name`` for sqlite3.
"""

import logging
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from typing import Any, TypeVar

from dbharness.core.connection import ConnectionHandle, cursor_columns, execute
from dbharness.core.errors import (
    CastError,
    DatabaseError,
    InvalidParametersError,
    NoColumnsError,
    QueryExecutionError,
)
from dbharness.engines.mapping.convert import zero_value

_log = logging.getLogger(__name__)

T = TypeVar("T")

QueryParams = Mapping[str, Any] | Sequence[tuple[str, Any]] | None


def bind_params(params: QueryParams) -> dict[str, Any]:
    """
    Normalise named parameters to a fresh dict.

    Accepts a mapping or an ordered sequence of (name, value) pairs. Names
    must be non-empty strings and unique.
    """
    if params is None:
        return {}
    if isinstance(params, Mapping):
        items: list[Any] = list(params.items())
    elif isinstance(params, (str, bytes)):
        raise InvalidParametersError("Parameters must be named (name, value) pairs, got a string")
    else:
        items = list(params)

    bound: dict[str, Any] = {}
    for item in items:
        if not isinstance(item, tuple) or len(item) != 2:
            raise InvalidParametersError(
                f"Parameters must be named (name, value) pairs, got: {item!r}"
            )
        name, value = item
        if not isinstance(name, str) or not name.strip():
            raise InvalidParametersError(f"Parameter name must be a non-empty string, got: {name!r}")
        if name in bound:
            raise InvalidParametersError(f"Duplicate parameter name: {name!r}", parameter=name)
        bound[name] = value
    return bound


@contextmanager
def _cursor(handle: ConnectionHandle, query: str, params: QueryParams) -> Iterator[Any]:
    bound = bind_params(params)
    _log.debug("Query: [%s] params=%s", query, list(bound))
    try:
        with handle.opened() as conn:
            cur = execute(conn, query, bound)
            try:
                yield cur
            finally:
                cur.close()
    except DatabaseError:
        raise
    except Exception as e:
        raise QueryExecutionError(query, error=repr(e)) from e
    finally:
        # Drop references to (possibly large) parameter values.
        bound.clear()


def _cast(query: str, value: Any, as_type: type[T]) -> T:
    if isinstance(value, bool) and as_type is int:
        raise CastError(query, as_type, value)
    if isinstance(value, as_type):
        return value
    raise CastError(query, as_type, value)


def execute_scalar(handle: ConnectionHandle, query: str, params: QueryParams = None) -> Any:
    """First column of the first row, or None when there are no rows."""
    with _cursor(handle, query, params) as cur:
        if not cur.description:
            return None
        row = cur.fetchone()
    if not row:
        return None
    return row[0]


def execute_scalar_as(
    handle: ConnectionHandle, query: str, params: QueryParams = None, *, as_type: type[T]
) -> T:
    """Scalar result that must be an instance of ``as_type``; None is a CastError."""
    value = execute_scalar(handle, query, params)
    return _cast(query, value, as_type)


def execute_scalar_or_default(
    handle: ConnectionHandle, query: str, params: QueryParams = None, *, as_type: type[T]
) -> T:
    """Scalar result cast to ``as_type``; None yields the zero-value of ``as_type``."""
    value = execute_scalar(handle, query, params)
    if value is None:
        return zero_value(as_type)
    return _cast(query, value, as_type)


def execute_column(
    handle: ConnectionHandle,
    query: str,
    params: QueryParams = None,
    *,
    as_type: type | None = None,
) -> list[Any]:
    """
    First column across all rows, in row order (NULL -> None).

    Zero columns raises NoColumnsError; zero rows returns []. With
    ``as_type`` each non-None value must be an instance of it.
    """
    with _cursor(handle, query, params) as cur:
        if not cur.description:
            raise NoColumnsError(query)
        values = [row[0] for row in cur.fetchall()]
    if as_type is not None:
        values = [v if v is None else _cast(query, v, as_type) for v in values]
    return values


def execute_non_query(handle: ConnectionHandle, query: str, params: QueryParams = None) -> int:
    """Run a data-modification statement and return the affected row count."""
    with _cursor(handle, query, params) as cur:
        rc = cur.rowcount
    return rc if rc is not None else 0


def fetch_rows(
    handle: ConnectionHandle, query: str, params: QueryParams = None
) -> tuple[list[str] | None, list[Sequence[Any]]]:
    """Column names (None for statements without a result set) and all rows."""
    with _cursor(handle, query, params) as cur:
        columns = cursor_columns(cur)
        if columns is None:
            return None, []
        rows = list(cur.fetchall())
    return columns, rows

"""
SQL execution: scalar, column, non-query and raw row-set modes.
"""

from dbharness.engines.sql.executor import (
    QueryParams,
    bind_params,
    execute_column,
    execute_non_query,
    execute_scalar,
    execute_scalar_as,
    execute_scalar_or_default,
    fetch_rows,
)

__all__ = [
    "QueryParams",
    "bind_params",
    "execute_scalar",
    "execute_scalar_as",
    "execute_scalar_or_default",
    "execute_column",
    "execute_non_query",
    "fetch_rows",
]

"""
Engines: SQL execution, record mapping and polling retrieval.
"""

from dbharness.engines.sql import (
    execute_column,
    execute_non_query,
    execute_scalar,
    execute_scalar_as,
    execute_scalar_or_default,
)
from dbharness.engines.mapping.mapper import get_records, map_rows
from dbharness.engines.polling import poll_single_record

__all__ = [
    "execute_scalar",
    "execute_scalar_as",
    "execute_scalar_or_default",
    "execute_column",
    "execute_non_query",
    "get_records",
    "map_rows",
    "poll_single_record",
]

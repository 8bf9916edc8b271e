"""
Per-call DB connections: URL parsing, driver connect, handle and health check.

No pooling layer: psycopg, pymysql and sqlite3 are used directly.
"""

from .connect import connect, cursor_columns, execute, parse_connection_string
from .handle import ConnectionHandle
from .health import health_check

__all__ = [
    "connect",
    "execute",
    "cursor_columns",
    "parse_connection_string",
    "ConnectionHandle",
    "health_check",
]

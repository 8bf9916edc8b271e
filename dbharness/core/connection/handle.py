"""
Connection handle: one logical connection, opened and closed around every call.
"""

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

from dbharness.core.errors import ConnectionUnavailableError
from dbharness.models import ProductTypeEnum

from .connect import connect, parse_connection_string, resolve_product_type

_log = logging.getLogger(__name__)


class ConnectionHandle:
    """
    Owns zero or one open DB-API connection.

    A blank connection string puts the handle in a "no connection" state:
    ``open()`` then raises ConnectionUnavailableError. Not thread-safe; give
    each concurrent caller its own handle.
    """

    def __init__(
        self,
        connection_string: str | None,
        *,
        name: str = "",
        connect_fn: Callable[[Any], Any] = connect,
    ) -> None:
        self.name = name
        self._connection_string = (connection_string or "").strip()
        self._connect_fn = connect_fn
        self._conn: Any = None
        self._url = None
        self.product_type: ProductTypeEnum | None = None

        if self._connection_string:
            self._url = parse_connection_string(self._connection_string)
            self.product_type = resolve_product_type(self._url)
        else:
            _log.info(
                "%s - no connection being made as connection string blank or invalid ([%s])",
                name,
                connection_string,
            )

    @property
    def connection_string(self) -> str:
        return self._connection_string

    @property
    def available(self) -> bool:
        return self._url is not None

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def open(self) -> Any:
        if self._url is None:
            raise ConnectionUnavailableError(
                f"No connection available for database [{self.name}]: connection string is blank",
                database=self.name,
            )
        if self._conn is None:
            self._conn = self._connect_fn(self._url)
        return self._conn

    def close(self) -> None:
        conn, self._conn = self._conn, None
        if conn is None:
            return
        try:
            conn.close()
        except Exception:
            _log.debug("Error closing connection for %s", self.name, exc_info=True)

    @contextmanager
    def opened(self) -> Iterator[Any]:
        """Open for the duration of the block; closed on every exit path."""
        conn = self.open()
        try:
            yield conn
        finally:
            self.close()

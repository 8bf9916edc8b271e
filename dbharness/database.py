"""
Database: the handle test harnesses use.

Binds a logical database name and connection string to a ConnectionHandle
and a RetrievalPolicy resolved once at construction. Every operation opens
the connection on entry and closes it before returning or raising.
"""

import logging
import threading
from collections.abc import Callable
from datetime import timedelta
from typing import Any, TypeVar

from dbharness import provision
from dbharness.core.config import ConfigRepository, RetrievalPolicy, SettingsRepository
from dbharness.core.connection import ConnectionHandle, connect, health_check
from dbharness.core.errors import ConfigurationMissingError
from dbharness.engines.mapping.mapper import get_records
from dbharness.engines.polling import Duration, poll_single_record
from dbharness.engines.sql import (
    QueryParams,
    execute_column,
    execute_non_query,
    execute_scalar,
    execute_scalar_as,
    execute_scalar_or_default,
)
from dbharness.models import DatabaseConfig, ProductTypeEnum

_log = logging.getLogger(__name__)

T = TypeVar("T")


class Database:
    """
    Per-call data access for one logical database.

    Not safe for concurrent use from several threads: the handle is opened
    and closed per call. Give each thread its own Database.
    """

    def __init__(
        self,
        name: str,
        connection_string: str | None,
        *,
        repository: ConfigRepository | None = None,
        connect_fn: Callable[[Any], Any] = connect,
    ) -> None:
        self.name = name
        self._handle = ConnectionHandle(connection_string, name=name, connect_fn=connect_fn)
        repo = repository if repository is not None else SettingsRepository.from_settings()
        self.policy = RetrievalPolicy.resolve(repo, name)
        self.cant_connect_reason = ""

    @classmethod
    def from_config(
        cls,
        config: DatabaseConfig,
        *,
        repository: ConfigRepository | None = None,
        connect_fn: Callable[[Any], Any] = connect,
    ) -> "Database":
        return cls(
            config.name,
            config.connection_string,
            repository=repository,
            connect_fn=connect_fn,
        )

    @classmethod
    def from_repository(
        cls,
        name: str,
        repository: SettingsRepository | None = None,
        *,
        connect_fn: Callable[[Any], Any] = connect,
    ) -> "Database":
        """Look up ``name``.ConnectionString; the category must exist."""
        repo = repository if repository is not None else SettingsRepository.from_settings()
        if not repo.has_category(name):
            raise ConfigurationMissingError(name)
        connection_string = repo.get(name, "ConnectionString", str)
        return cls(name, connection_string, repository=repo, connect_fn=connect_fn)

    @property
    def handle(self) -> ConnectionHandle:
        return self._handle

    @property
    def connection_string(self) -> str:
        return self._handle.connection_string

    @property
    def product_type(self) -> ProductTypeEnum | None:
        return self._handle.product_type

    @property
    def timeout(self) -> timedelta:
        return self.policy.timeout

    @property
    def poll_interval(self) -> timedelta:
        return self.policy.poll_interval

    def can_connect(self) -> bool:
        """True if a connection opens; otherwise ``cant_connect_reason`` says why."""
        ok, reason = health_check(self._handle)
        self.cant_connect_reason = reason
        return ok

    # --- scalar / vector ---

    def execute_scalar(self, query: str, params: QueryParams = None) -> Any:
        return execute_scalar(self._handle, query, params)

    def execute_scalar_as(self, query: str, params: QueryParams = None, *, as_type: type[T]) -> T:
        return execute_scalar_as(self._handle, query, params, as_type=as_type)

    def execute_scalar_or_default(
        self, query: str, params: QueryParams = None, *, as_type: type[T]
    ) -> T:
        return execute_scalar_or_default(self._handle, query, params, as_type=as_type)

    def execute_column(
        self, query: str, params: QueryParams = None, *, as_type: type | None = None
    ) -> list[Any]:
        return execute_column(self._handle, query, params, as_type=as_type)

    def execute_non_query(self, query: str, params: QueryParams = None) -> int:
        return execute_non_query(self._handle, query, params)

    # --- records ---

    def get_records(
        self,
        record_type: type[T],
        query: str,
        params: QueryParams = None,
        *,
        strict_nulls: bool = False,
    ) -> list[T]:
        return get_records(self._handle, record_type, query, params, strict_nulls=strict_nulls)

    def get_single_record(
        self,
        record_type: type[T],
        query: str,
        params: QueryParams = None,
        *,
        timeout: Duration | None = None,
        interval: Duration | None = None,
        cancel: threading.Event | None = None,
        raise_on_timeout: bool = False,
        strict_nulls: bool = False,
    ) -> T | None:
        """
        Poll until ``query`` returns exactly one record.

        Returns None when nothing matched within ``timeout`` (the policy
        timeout when omitted), unless ``raise_on_timeout`` is set. More than
        one match raises MultipleMatchError.

        ``timeout`` and ``interval`` take a timedelta or a number of
        seconds (not milliseconds, unlike the ``Database`` settings).
        """
        return poll_single_record(
            lambda: self.get_records(record_type, query, params, strict_nulls=strict_nulls),
            query=query,
            timeout=self.policy.timeout if timeout is None else timeout,
            interval=self.policy.poll_interval if interval is None else interval,
            cancel=cancel,
            raise_on_timeout=raise_on_timeout,
        )

    # --- tables / databases ---

    def database_exists(self, name: str) -> bool:
        return provision.database_exists(self._handle, name)

    def table_exists(self, table_name: str) -> bool:
        return provision.table_exists(self._handle, table_name)

    def clear_table(self, table_name: str) -> int:
        return provision.clear_table(self._handle, table_name)

    def drop_table(self, table_name: str) -> None:
        provision.drop_table(self._handle, table_name)

    def __repr__(self) -> str:
        return f"Database(name={self.name!r}, product_type={self.product_type})"

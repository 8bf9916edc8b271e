"""
Provisioning and table helpers: database/table existence, clear, drop and
"ensure database exists".

SQL differs per product type; identifiers are validated and quoted before
being placed in DDL.
"""

import logging
import os
import re
from collections.abc import Callable
from typing import Any

from sqlalchemy.engine import URL

from dbharness.core.connection import ConnectionHandle, connect
from dbharness.core.connection.connect import parse_connection_string, resolve_product_type
from dbharness.core.errors import (
    ConfigurationMissingError,
    ConnectionUnavailableError,
    DatabaseError,
    InvalidParametersError,
    MultipleMatchError,
    ProvisioningError,
)
from dbharness.engines.sql import execute_non_query, execute_scalar_or_default
from dbharness.models import DatabaseConfig, ProductTypeEnum

_log = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_$]{0,62}$")

_QUOTES: dict[ProductTypeEnum, str] = {
    ProductTypeEnum.POSTGRES: '"',
    ProductTypeEnum.MYSQL: "`",
    ProductTypeEnum.SQLITE: '"',
}

_DATABASE_EXISTS_SQL: dict[ProductTypeEnum, str] = {
    ProductTypeEnum.POSTGRES: "SELECT count(*) FROM pg_database WHERE datname = %(name)s",
    ProductTypeEnum.MYSQL: (
        "SELECT count(*) FROM information_schema.schemata WHERE schema_name = %(name)s"
    ),
    ProductTypeEnum.SQLITE: "SELECT count(*) FROM pragma_database_list WHERE name = :name",
}

_TABLE_EXISTS_SQL: dict[ProductTypeEnum, str] = {
    ProductTypeEnum.POSTGRES: (
        "SELECT count(*) FROM information_schema.tables WHERE table_name = %(name)s"
    ),
    ProductTypeEnum.MYSQL: (
        "SELECT count(*) FROM information_schema.tables "
        "WHERE table_schema = DATABASE() AND table_name = %(name)s"
    ),
    ProductTypeEnum.SQLITE: (
        "SELECT count(*) FROM sqlite_master WHERE type = 'table' AND name = :name"
    ),
}

# Maintenance database to connect to when the target database may not exist yet.
_SERVER_DATABASE: dict[ProductTypeEnum, str | None] = {
    ProductTypeEnum.POSTGRES: "postgres",
    ProductTypeEnum.MYSQL: None,
}


def quote_identifier(name: str, product_type: ProductTypeEnum) -> str:
    """Validate ``name`` (optionally ``schema.name``) and quote it for the dialect."""
    if not isinstance(name, str):
        raise InvalidParametersError(f"Identifier must be a string, got: {name!r}")
    parts = name.split(".")
    if len(parts) > 2 or not all(_IDENTIFIER.match(p) for p in parts):
        raise InvalidParametersError(f"Invalid identifier: {name!r}", identifier=name)
    q = _QUOTES[product_type]
    return ".".join(f"{q}{p}{q}" for p in parts)


def _product_type(handle: ConnectionHandle) -> ProductTypeEnum:
    if handle.product_type is None:
        raise ConnectionUnavailableError(
            f"No connection available for database [{handle.name}]: connection string is blank",
            database=handle.name,
        )
    return handle.product_type


def database_exists(handle: ConnectionHandle, name: str) -> bool:
    query = _DATABASE_EXISTS_SQL[_product_type(handle)]
    count = execute_scalar_or_default(handle, query, {"name": name}, as_type=int)
    if count > 1:
        raise MultipleMatchError(query, count)
    return count > 0


def table_exists(handle: ConnectionHandle, table_name: str) -> bool:
    query = _TABLE_EXISTS_SQL[_product_type(handle)]
    count = execute_scalar_or_default(handle, query, {"name": table_name}, as_type=int)
    _log.debug("Query: [%s] returned [%d]", query, count)
    return count > 0


def clear_table(handle: ConnectionHandle, table_name: str) -> int:
    """Delete every row of ``table_name``; returns the affected row count."""
    query = f"DELETE FROM {quote_identifier(table_name, _product_type(handle))}"
    return execute_non_query(handle, query)


def drop_table(handle: ConnectionHandle, table_name: str) -> None:
    query = f"DROP TABLE IF EXISTS {quote_identifier(table_name, _product_type(handle))}"
    try:
        execute_non_query(handle, query)
    except DatabaseError as e:
        raise ProvisioningError(f"Error dropping table [{table_name}]", table=table_name) from e


def ensure_database_exists(
    config: DatabaseConfig,
    *,
    connect_fn: Callable[[Any], Any] = connect,
) -> bool:
    """
    Create ``config.database_name`` when it does not exist. Returns True if created.

    The database named in the connection string must match
    ``config.database_name``. The existence check and CREATE DATABASE run
    against the server's maintenance database, since the target may be
    missing. For sqlite, connecting creates the file.
    """
    if not config.database_name:
        raise ConfigurationMissingError(config.name, "DatabaseName")
    if not config.connection_string or not config.connection_string.strip():
        raise ConfigurationMissingError(config.name, "DatabaseConnectionString")

    url = parse_connection_string(config.connection_string)
    pt = resolve_product_type(url)
    _log.debug("Connection string: [%s].", url.render_as_string(hide_password=True))

    if pt == ProductTypeEnum.SQLITE:
        path = url.database
        created = bool(path) and path != ":memory:" and not os.path.exists(path)
        handle = ConnectionHandle(config.connection_string, name=config.name, connect_fn=connect_fn)
        try:
            with handle.opened():
                pass
        except Exception as e:
            raise ProvisioningError(
                f"Error ensuring {config.database_name} database exists: {e!r}",
                database=config.database_name,
            ) from e
        _log.info(
            "Database [%s] %s.",
            config.database_name,
            "does not exist so created" if created else "does exist so NOT creating",
        )
        return created

    if url.database and url.database != config.database_name:
        raise ProvisioningError(
            f"Connection string database name ({url.database}) does not match "
            f"given database name ({config.database_name})",
            database=config.database_name,
        )
    create_sql = f"CREATE DATABASE {quote_identifier(config.database_name, pt)}"

    _log.debug("Removing database name (in case database does not exist)")
    # URL.set() ignores database=None, so rebuild the URL instead.
    server_url = URL.create(
        url.drivername,
        username=url.username,
        password=url.password,
        host=url.host,
        port=url.port,
        database=_SERVER_DATABASE[pt],
        query=url.query,
    )
    _log.info("Connecting with: [%s].", server_url.render_as_string(hide_password=True))
    handle = ConnectionHandle(
        server_url.render_as_string(hide_password=False),
        name=config.database_name,
        connect_fn=connect_fn,
    )

    try:
        if database_exists(handle, config.database_name):
            _log.info("Database [%s] does exist so NOT creating.", config.database_name)
            return False
        _log.info("Database [%s] does not exist so creating.", config.database_name)
        execute_non_query(handle, create_sql)
        return True
    except DatabaseError as e:
        raise ProvisioningError(
            f"Error ensuring {config.database_name} database exists: {e}",
            database=config.database_name,
        ) from e

"""
DB connection helpers.

Connection strings are SQLAlchemy-style URLs; only the URL parser is used,
connections are opened directly with the DB-API driver for the scheme:
psycopg (PostgreSQL), pymysql (MySQL) or sqlite3.
"""

import sqlite3
from typing import Any

import psycopg
import pymysql
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError

from dbharness.core.config import settings
from dbharness.models import ProductTypeEnum

_BACKENDS: dict[str, ProductTypeEnum] = {
    "postgresql": ProductTypeEnum.POSTGRES,
    "postgres": ProductTypeEnum.POSTGRES,
    "mysql": ProductTypeEnum.MYSQL,
    "mariadb": ProductTypeEnum.MYSQL,
    "sqlite": ProductTypeEnum.SQLITE,
}


def parse_connection_string(connection_string: str | URL) -> URL:
    """Parse a connection URL; raises ValueError for malformed or unsupported ones."""
    if isinstance(connection_string, URL):
        url = connection_string
    else:
        try:
            url = make_url(connection_string.strip())
        except ArgumentError as e:
            raise ValueError(f"Invalid connection string: {e}") from e
    resolve_product_type(url)
    return url


def resolve_product_type(url: URL) -> ProductTypeEnum:
    backend = url.get_backend_name()
    pt = _BACKENDS.get(backend)
    if pt is None:
        raise ValueError(f"Unsupported database backend: {backend}")
    return pt


def connect(connection_string: str | URL) -> Any:
    """
    Open a DB-API connection in autocommit mode.

    - postgresql[+psycopg]://user:pass@host:port/db?sslmode=...
    - mysql[+pymysql]://user:pass@host:port/db
    - sqlite:///relative/path.db, sqlite:////abs/path.db, sqlite:// (memory)
    """
    url = parse_connection_string(connection_string)
    pt = resolve_product_type(url)
    timeout = settings.DB_CONNECT_TIMEOUT

    if pt == ProductTypeEnum.POSTGRES:
        kwargs: dict[str, Any] = {
            "host": url.host,
            "port": int(url.port or 5432),
            "user": url.username,
            "password": url.password or "",
            "connect_timeout": timeout,
            "autocommit": True,
        }
        if url.database:
            kwargs["dbname"] = url.database
        kwargs.update(url.query)
        return psycopg.connect(**kwargs)
    if pt == ProductTypeEnum.MYSQL:
        kwargs = {
            "host": url.host or "localhost",
            "port": int(url.port or 3306),
            "user": url.username,
            "password": url.password or "",
            "connect_timeout": timeout,
            "autocommit": True,
        }
        if url.database:
            kwargs["database"] = url.database
        if "charset" in url.query:
            kwargs["charset"] = url.query["charset"]
        return pymysql.connect(**kwargs)
    return sqlite3.connect(
        url.database or ":memory:",
        timeout=timeout,
        isolation_level=None,
    )


def execute(conn: Any, sql: str, params: dict[str, Any] | None = None) -> Any:
    """
    Execute SQL and return the cursor. Caller reads rows or cursor.rowcount
    and closes the cursor.
    """
    cur = conn.cursor()
    try:
        if params:
            cur.execute(sql, params)
        else:
            cur.execute(sql)
    except Exception:
        cur.close()
        raise
    return cur


def cursor_columns(cursor: Any) -> list[str] | None:
    """Column names of the current result set; None when the statement returns no rows."""
    desc = cursor.description
    if desc is None:
        return None
    return [d[0] for d in desc]

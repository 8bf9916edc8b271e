"""Unit tests for core.connection.connect: URL parsing, driver dispatch, execute."""

import sqlite3
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from dbharness.core.connection import connect, cursor_columns, execute, parse_connection_string
from dbharness.core.connection.connect import resolve_product_type
from dbharness.models import ProductTypeEnum
from tests.utils.connection import MYSQL_URL, PG_URL


def test_parse_connection_string_product_types() -> None:
    assert resolve_product_type(parse_connection_string(PG_URL)) == ProductTypeEnum.POSTGRES
    assert (
        resolve_product_type(parse_connection_string("postgresql+psycopg://u@h/db"))
        == ProductTypeEnum.POSTGRES
    )
    assert resolve_product_type(parse_connection_string(MYSQL_URL)) == ProductTypeEnum.MYSQL
    assert resolve_product_type(parse_connection_string("sqlite://")) == ProductTypeEnum.SQLITE


def test_parse_connection_string_rejects_garbage() -> None:
    with pytest.raises(ValueError, match="Invalid connection string"):
        parse_connection_string("Server=.;Initial Catalog=orders")


def test_parse_connection_string_rejects_unsupported_backend() -> None:
    with pytest.raises(ValueError, match="Unsupported"):
        parse_connection_string("oracle://u:p@host/orders")


@patch("dbharness.core.connection.connect.psycopg")
def test_connect_postgres(mock_psycopg: MagicMock) -> None:
    connect(PG_URL + "?sslmode=require")
    kwargs = mock_psycopg.connect.call_args.kwargs
    assert kwargs["host"] == "db.local"
    assert kwargs["port"] == 5432
    assert kwargs["dbname"] == "orders"
    assert kwargs["user"] == "harness"
    assert kwargs["password"] == "secret"
    assert kwargs["autocommit"] is True
    assert kwargs["sslmode"] == "require"


@patch("dbharness.core.connection.connect.psycopg")
def test_connect_postgres_without_database(mock_psycopg: MagicMock) -> None:
    connect("postgresql://harness@db.local")
    kwargs = mock_psycopg.connect.call_args.kwargs
    assert "dbname" not in kwargs
    assert kwargs["password"] == ""


@patch("dbharness.core.connection.connect.pymysql")
def test_connect_mysql(mock_pymysql: MagicMock) -> None:
    connect(MYSQL_URL)
    kwargs = mock_pymysql.connect.call_args.kwargs
    assert kwargs["host"] == "db.local"
    assert kwargs["port"] == 3306
    assert kwargs["database"] == "orders"
    assert kwargs["autocommit"] is True


def test_connect_sqlite_file(tmp_path: Path) -> None:
    path = tmp_path / "connect.db"
    conn = connect(f"sqlite:///{path}")
    try:
        cur = execute(conn, "SELECT 1 AS n")
        assert cursor_columns(cur) == ["n"]
        assert cur.fetchall() == [(1,)]
        cur.close()
    finally:
        conn.close()
    assert path.exists()


def test_connect_sqlite_memory_is_autocommit() -> None:
    conn = connect("sqlite://")
    try:
        assert isinstance(conn, sqlite3.Connection)
        assert conn.isolation_level is None
    finally:
        conn.close()


def test_execute_passes_named_params() -> None:
    conn = MagicMock()
    cur = execute(conn, "SELECT * FROM t WHERE id = %(id)s", {"id": 7})
    cur.execute.assert_called_once_with("SELECT * FROM t WHERE id = %(id)s", {"id": 7})


def test_execute_without_params() -> None:
    conn = MagicMock()
    cur = execute(conn, "SELECT 1", {})
    cur.execute.assert_called_once_with("SELECT 1")


def test_execute_closes_cursor_on_error() -> None:
    conn = MagicMock()
    conn.cursor.return_value.execute.side_effect = RuntimeError("syntax error")
    with pytest.raises(RuntimeError):
        execute(conn, "SELEC 1")
    conn.cursor.return_value.close.assert_called_once()


def test_cursor_columns_none_without_result_set() -> None:
    cur = MagicMock()
    cur.description = None
    assert cursor_columns(cur) is None

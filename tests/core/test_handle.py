"""Unit tests for ConnectionHandle and health_check."""

import logging

import pytest

from dbharness.core.connection import ConnectionHandle, health_check
from dbharness.core.errors import ConnectionUnavailableError
from dbharness.models import ProductTypeEnum
from tests.utils.connection import PG_URL, FakeConnector


@pytest.mark.parametrize("conn_str", [None, "", "   "])
def test_blank_connection_string_is_unavailable(
    conn_str: str | None, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.INFO, logger="dbharness.core.connection.handle"):
        handle = ConnectionHandle(conn_str, name="Orders")
    assert handle.available is False
    assert handle.product_type is None
    assert "no connection being made" in caplog.text
    with pytest.raises(ConnectionUnavailableError):
        handle.open()


def test_invalid_connection_string_fails_at_construction() -> None:
    with pytest.raises(ValueError):
        ConnectionHandle("oracle://u@h/db", name="Orders")


def test_open_close(connector: FakeConnector) -> None:
    handle = ConnectionHandle(PG_URL, name="Orders", connect_fn=connector)
    assert handle.product_type == ProductTypeEnum.POSTGRES
    assert handle.is_open is False
    conn = handle.open()
    assert handle.is_open is True
    assert handle.open() is conn
    handle.close()
    assert handle.is_open is False
    handle.close()
    assert connector.opens == 1
    assert connector.closes == 1


def test_opened_closes_on_error(connector: FakeConnector) -> None:
    handle = ConnectionHandle(PG_URL, name="Orders", connect_fn=connector)
    with pytest.raises(RuntimeError):
        with handle.opened():
            raise RuntimeError("boom")
    assert handle.is_open is False
    assert connector.balanced


def test_close_tolerates_driver_close_error(connector: FakeConnector) -> None:
    handle = ConnectionHandle(PG_URL, name="Orders", connect_fn=connector)
    conn = handle.open()
    conn.close.side_effect = RuntimeError("already gone")
    handle.close()
    assert handle.is_open is False


def test_connection_string_is_stripped_and_readonly(connector: FakeConnector) -> None:
    handle = ConnectionHandle(f"  {PG_URL}  ", name="Orders", connect_fn=connector)
    assert handle.connection_string == PG_URL
    with pytest.raises(AttributeError):
        handle.connection_string = "sqlite://"  # type: ignore[misc]


def test_health_check_ok(connector: FakeConnector) -> None:
    handle = ConnectionHandle(PG_URL, name="Orders", connect_fn=connector)
    assert health_check(handle) == (True, "")
    assert connector.balanced


def test_health_check_reports_failure(connector: FakeConnector) -> None:
    connector.connect_error = OSError("connection refused")
    handle = ConnectionHandle(PG_URL, name="Orders", connect_fn=connector)
    ok, reason = health_check(handle)
    assert ok is False
    assert "connection refused" in reason


def test_health_check_unavailable() -> None:
    ok, reason = health_check(ConnectionHandle("", name="Orders"))
    assert ok is False
    assert "ConnectionUnavailableError" in reason

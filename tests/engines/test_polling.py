"""Unit tests for engines.polling: single-record polling retrieval."""

import threading
import time
from datetime import timedelta

import pytest

from dbharness.core.errors import (
    ErrorKindEnum,
    MultipleMatchError,
    RetrievalCancelledError,
    RetrievalTimeoutError,
)
from dbharness.engines.polling import poll_single_record, to_seconds


class Fetcher:
    """Returns queued results in order, repeating the last one."""

    def __init__(self, *results: list) -> None:
        self._results = list(results)
        self.calls = 0

    def __call__(self) -> list:
        self.calls += 1
        if len(self._results) > 1:
            return self._results.pop(0)
        return self._results[0]


def test_single_match_returned_immediately() -> None:
    fetch = Fetcher(["row"])
    assert poll_single_record(fetch, query="q", timeout=1, interval=0.5) == "row"
    assert fetch.calls == 1


def test_multiple_matches_fail() -> None:
    fetch = Fetcher(["a", "b"])
    with pytest.raises(MultipleMatchError) as exc:
        poll_single_record(fetch, query="SELECT * FROM t", timeout=1, interval=0.01)
    assert exc.value.count == 2
    assert exc.value.kind == ErrorKindEnum.MULTIPLE_MATCH
    assert fetch.calls == 1


def test_multiple_matches_after_empty_polls_fail() -> None:
    fetch = Fetcher([], ["a", "b"])
    with pytest.raises(MultipleMatchError):
        poll_single_record(fetch, query="q", timeout=1, interval=0.01)


def test_timeout_returns_none_within_bounds() -> None:
    fetch = Fetcher([])
    start = time.monotonic()
    result = poll_single_record(
        fetch, query="q", timeout=timedelta(milliseconds=200), interval=timedelta(milliseconds=50)
    )
    elapsed = time.monotonic() - start
    assert result is None
    assert 0.2 <= elapsed <= 0.25
    assert fetch.calls >= 4


def test_eventual_success_on_third_poll() -> None:
    fetch = Fetcher([], [], ["found"])
    start = time.monotonic()
    result = poll_single_record(fetch, query="q", timeout=5, interval=timedelta(milliseconds=50))
    elapsed = time.monotonic() - start
    assert result == "found"
    assert fetch.calls == 3
    assert 0.1 <= elapsed <= 0.15


def test_zero_timeout_makes_one_attempt() -> None:
    fetch = Fetcher([])
    assert poll_single_record(fetch, query="q", timeout=0, interval=10) is None
    assert fetch.calls == 1


def test_raise_on_timeout() -> None:
    fetch = Fetcher([])
    with pytest.raises(RetrievalTimeoutError) as exc:
        poll_single_record(fetch, query="q", timeout=0.05, interval=0.01, raise_on_timeout=True)
    assert exc.value.context["timeout_ms"] == 50


def test_cancel_before_first_attempt() -> None:
    fetch = Fetcher(["row"])
    cancel = threading.Event()
    cancel.set()
    with pytest.raises(RetrievalCancelledError):
        poll_single_record(fetch, query="q", timeout=1, interval=0.01, cancel=cancel)
    assert fetch.calls == 0


def test_cancel_interrupts_wait() -> None:
    fetch = Fetcher([])
    cancel = threading.Event()
    timer = threading.Timer(0.05, cancel.set)
    timer.start()
    start = time.monotonic()
    try:
        with pytest.raises(RetrievalCancelledError):
            poll_single_record(fetch, query="q", timeout=60, interval=30, cancel=cancel)
    finally:
        timer.cancel()
    assert time.monotonic() - start < 5


def test_to_seconds() -> None:
    assert to_seconds(timedelta(milliseconds=1500)) == 1.5
    assert to_seconds(2) == 2.0
    with pytest.raises(ValueError):
        to_seconds(-1)

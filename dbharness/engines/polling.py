"""
Polling retrieval of a single record.

Re-runs a record fetch until exactly one record comes back or the timeout
elapses, waiting ``interval`` between attempts. On timeout the result is
None (not an error) unless ``raise_on_timeout`` is set; callers must check
for None explicitly. The wait is ``cancel.wait(interval)`` so a caller can
abort early by setting the event.
"""

import logging
import threading
import time
from collections.abc import Callable
from datetime import timedelta
from typing import TypeVar

from dbharness.core.errors import (
    MultipleMatchError,
    RetrievalCancelledError,
    RetrievalTimeoutError,
)

_log = logging.getLogger(__name__)

T = TypeVar("T")

Duration = timedelta | float | int


def to_seconds(value: Duration) -> float:
    """timedelta or number of seconds -> non-negative float seconds."""
    seconds = value.total_seconds() if isinstance(value, timedelta) else float(value)
    if seconds < 0:
        raise ValueError(f"Duration must not be negative: {value!r}")
    return seconds


def poll_single_record(
    fetch: Callable[[], list[T]],
    *,
    query: str,
    timeout: Duration,
    interval: Duration,
    cancel: threading.Event | None = None,
    raise_on_timeout: bool = False,
) -> T | None:
    """
    Poll ``fetch`` until it returns one record.

    - 1 record: return it.
    - more than 1: MultipleMatchError.
    - 0 and elapsed >= timeout: None (or RetrievalTimeoutError when
      ``raise_on_timeout``).
    - ``cancel`` set before an attempt or during a wait: RetrievalCancelledError.

    ``timeout`` and ``interval`` are timedeltas or numbers of seconds.
    Elapsed time is measured with the monotonic clock.
    """
    timeout_s = to_seconds(timeout)
    interval_s = to_seconds(interval)
    event = cancel if cancel is not None else threading.Event()

    start = time.monotonic()
    attempts = 0
    while True:
        if event.is_set():
            raise RetrievalCancelledError(query)

        records = fetch()
        attempts += 1
        if len(records) > 1:
            raise MultipleMatchError(query, len(records))
        if len(records) == 1:
            _log.debug("Query [%s] matched on attempt %d", query, attempts)
            return records[0]

        elapsed = time.monotonic() - start
        if elapsed >= timeout_s:
            _log.debug(
                "Query [%s] matched nothing after %d attempt(s) in %.0f ms",
                query,
                attempts,
                elapsed * 1000,
            )
            if raise_on_timeout:
                raise RetrievalTimeoutError(query, int(timeout_s * 1000))
            return None

        if event.wait(interval_s):
            raise RetrievalCancelledError(query)

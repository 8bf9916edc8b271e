"""
Error taxonomy for query execution, record mapping and polling retrieval.

Every error carries a machine-readable ``kind`` and a ``context`` dict
(query text, column, row index, ...). Driver errors are chained with
``raise ... from`` so the original traceback is kept.
"""

from enum import Enum
from typing import Any


class ErrorKindEnum(str, Enum):
    """Machine-readable error kinds."""

    CONNECTION_UNAVAILABLE = "connection_unavailable"
    QUERY_EXECUTION = "query_execution"
    CAST = "cast"
    FIELD_CONVERSION = "field_conversion"
    NO_COLUMNS = "no_columns"
    MULTIPLE_MATCH = "multiple_match"
    CONFIGURATION_MISSING = "configuration_missing"
    INVALID_PARAMETERS = "invalid_parameters"
    RETRIEVAL_TIMEOUT = "retrieval_timeout"
    RETRIEVAL_CANCELLED = "retrieval_cancelled"
    PROVISIONING = "provisioning"


class DatabaseError(Exception):
    """Base class for all dbharness errors."""

    kind: ErrorKindEnum = ErrorKindEnum.QUERY_EXECUTION

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context: dict[str, Any] = {k: v for k, v in context.items() if v is not None}

    @property
    def query(self) -> str | None:
        return self.context.get("query")

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "message": self.message, **self.context}


class ConnectionUnavailableError(DatabaseError):
    """Raised when the handle has no connection string configured."""

    kind = ErrorKindEnum.CONNECTION_UNAVAILABLE


class QueryExecutionError(DatabaseError):
    """Driver-level failure (connect, syntax, constraint, ...)."""

    kind = ErrorKindEnum.QUERY_EXECUTION

    def __init__(self, query: str, **context: Any) -> None:
        super().__init__(f"Error executing query [{query}]", query=query, **context)


class CastError(DatabaseError):
    """Scalar result is not of the requested type."""

    kind = ErrorKindEnum.CAST

    def __init__(self, query: str, expected: type, value: Any) -> None:
        super().__init__(
            f"Error casting query [{query}] result: expected {expected.__name__}, "
            f"got {type(value).__name__}",
            query=query,
            expected=expected.__name__,
            actual=type(value).__name__,
        )


class FieldConversionError(DatabaseError):
    """A matched column could not be converted to its record field type."""

    kind = ErrorKindEnum.FIELD_CONVERSION

    def __init__(self, query: str, column: str | None, row: int, reason: str) -> None:
        super().__init__(
            f"Unable to obtain data from column [{column}] on row {row} of query "
            f"[{query}] response data: {reason}",
            query=query,
            column=column,
            row=row,
        )
        self.column = column
        self.row = row


class NoColumnsError(DatabaseError):
    """Query returned zero columns where at least one is expected."""

    kind = ErrorKindEnum.NO_COLUMNS

    def __init__(self, query: str) -> None:
        super().__init__(f"No columns returned by query [{query}]", query=query)


class MultipleMatchError(DatabaseError):
    """More than one row matched where at most one is expected."""

    kind = ErrorKindEnum.MULTIPLE_MATCH

    def __init__(self, query: str, count: int) -> None:
        super().__init__(
            f"More than 1 record ({count}) matched query [{query}]",
            query=query,
            count=count,
        )
        self.count = count


class ConfigurationMissingError(DatabaseError):
    """A required setting is absent from the configuration repository."""

    kind = ErrorKindEnum.CONFIGURATION_MISSING

    def __init__(self, category: str, key: str | None = None) -> None:
        where = f"{category}.{key}" if key else category
        super().__init__(
            f"Setting [{where}] has not been defined! Check environment settings for {where}",
            category=category,
            key=key,
        )


class InvalidParametersError(DatabaseError, ValueError):
    """Query parameters or identifiers are malformed."""

    kind = ErrorKindEnum.INVALID_PARAMETERS


class RetrievalTimeoutError(DatabaseError):
    """No record appeared before the polling timeout (opt-in)."""

    kind = ErrorKindEnum.RETRIEVAL_TIMEOUT

    def __init__(self, query: str, timeout_ms: int) -> None:
        super().__init__(
            f"No record matched query [{query}] within {timeout_ms} milliseconds",
            query=query,
            timeout_ms=timeout_ms,
        )


class RetrievalCancelledError(DatabaseError):
    """Polling retrieval was cancelled by the caller."""

    kind = ErrorKindEnum.RETRIEVAL_CANCELLED

    def __init__(self, query: str) -> None:
        super().__init__(f"Polling for query [{query}] was cancelled", query=query)


class ProvisioningError(DatabaseError):
    """Creating or dropping a database object failed."""

    kind = ErrorKindEnum.PROVISIONING

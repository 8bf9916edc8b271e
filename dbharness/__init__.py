"""
dbharness: database access for automated test harnesses.

Exports: Database, DatabaseConfig, ensure_database_exists, settings and
the error taxonomy.
"""

from dbharness.core.config import RetrievalPolicy, Settings, SettingsRepository, settings
from dbharness.core.errors import (
    CastError,
    ConfigurationMissingError,
    ConnectionUnavailableError,
    DatabaseError,
    ErrorKindEnum,
    FieldConversionError,
    InvalidParametersError,
    MultipleMatchError,
    NoColumnsError,
    ProvisioningError,
    QueryExecutionError,
    RetrievalCancelledError,
    RetrievalTimeoutError,
)
from dbharness.database import Database
from dbharness.models import DatabaseConfig, ProductTypeEnum
from dbharness.provision import ensure_database_exists

__all__ = [
    "Database",
    "DatabaseConfig",
    "ProductTypeEnum",
    "RetrievalPolicy",
    "Settings",
    "SettingsRepository",
    "settings",
    "ensure_database_exists",
    "DatabaseError",
    "ErrorKindEnum",
    "ConnectionUnavailableError",
    "QueryExecutionError",
    "CastError",
    "FieldConversionError",
    "NoColumnsError",
    "MultipleMatchError",
    "ConfigurationMissingError",
    "InvalidParametersError",
    "RetrievalTimeoutError",
    "RetrievalCancelledError",
    "ProvisioningError",
]

"""
Value objects shared across dbharness.

DatabaseConfig replaces the global settings lookup at construction and
provisioning time: callers build it explicitly (or from a repository) and
pass it in.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from dbharness.core.config import ConfigRepository
from dbharness.core.errors import ConfigurationMissingError


class ProductTypeEnum(str, Enum):
    """Supported database product types (postgres, mysql, sqlite)."""

    POSTGRES = "postgres"
    MYSQL = "mysql"
    SQLITE = "sqlite"


class DatabaseConfig(BaseModel):
    """Logical database name, physical database name and connection string."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    database_name: str | None = None
    connection_string: str | None = None

    @classmethod
    def from_repository(
        cls, logical_name: str, repository: ConfigRepository
    ) -> "DatabaseConfig":
        """
        Build the provisioning config from the ``logical_name`` category.

        Requires ``DatabaseName`` and ``DatabaseConnectionString``.
        """
        database_name = repository.try_get(logical_name, "DatabaseName", str)
        if not database_name:
            raise ConfigurationMissingError(logical_name, "DatabaseName")
        conn_str = repository.try_get(logical_name, "DatabaseConnectionString", str)
        if not conn_str:
            raise ConfigurationMissingError(logical_name, "DatabaseConnectionString")
        return cls(
            name=logical_name,
            database_name=database_name,
            connection_string=conn_str,
        )

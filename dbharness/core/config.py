"""
Settings and the configuration repository.

``settings`` is read once from the environment (and ``.env``). The
``SettingsRepository`` exposes it as categories of items, the shape test
harnesses use: a category per logical database name (``ConnectionString``,
``DatabaseName``, ``DatabaseConnectionString``) plus the fixed ``Database``
category (``Timeout``, ``PollInterval`` in milliseconds).
"""

import logging
from collections.abc import Mapping
from datetime import timedelta
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict

from dbharness.core.errors import ConfigurationMissingError

_log = logging.getLogger(__name__)

DATABASE_CATEGORY = "Database"
TIMEOUT_KEY = "Timeout"
POLL_INTERVAL_KEY = "PollInterval"

DEFAULT_TIMEOUT = timedelta(seconds=30)
DEFAULT_POLL_INTERVAL = timedelta(milliseconds=1000)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    # Polling retrieval defaults, in milliseconds. Unset means built-in default.
    DATABASE_TIMEOUT_MS: int | None = None
    DATABASE_POLL_INTERVAL_MS: int | None = None

    # Seconds to wait when opening a driver connection.
    DB_CONNECT_TIMEOUT: int = 10

    # Logical database name -> items, e.g.
    # {"Orders": {"ConnectionString": "postgresql://u:p@localhost/orders"}}
    DATABASES: dict[str, dict[str, Any]] = {}


settings = Settings()  # type: ignore


class ConfigRepository(Protocol):
    def try_get(self, category: str, key: str, as_type: type | None = None) -> Any: ...


def _coerce_setting(value: Any, as_type: type | None) -> Any:
    if as_type is None or value is None:
        return value
    if as_type is timedelta:
        if isinstance(value, timedelta):
            return value
        if isinstance(value, bool):
            raise ValueError(f"Expected milliseconds, got boolean: {value!r}")
        return timedelta(milliseconds=int(str(value).strip()))
    if as_type is int:
        if isinstance(value, bool):
            raise ValueError(f"Expected integer, got boolean: {value!r}")
        if isinstance(value, int):
            return value
        return int(str(value).strip())
    if as_type is str:
        return str(value)
    return as_type(value)


class SettingsRepository:
    """In-memory categories of settings items."""

    def __init__(self, categories: Mapping[str, Mapping[str, Any]] | None = None) -> None:
        self._categories: dict[str, dict[str, Any]] = {
            name: dict(items) for name, items in (categories or {}).items()
        }

    @classmethod
    def from_settings(cls, source: Settings | None = None) -> "SettingsRepository":
        s = source or settings
        repo = cls(s.DATABASES)
        if s.DATABASE_TIMEOUT_MS is not None:
            repo.set(DATABASE_CATEGORY, TIMEOUT_KEY, s.DATABASE_TIMEOUT_MS)
        if s.DATABASE_POLL_INTERVAL_MS is not None:
            repo.set(DATABASE_CATEGORY, POLL_INTERVAL_KEY, s.DATABASE_POLL_INTERVAL_MS)
        return repo

    def has_category(self, category: str) -> bool:
        return category in self._categories

    def set(self, category: str, key: str, value: Any) -> None:
        self._categories.setdefault(category, {})[key] = value

    def try_get(self, category: str, key: str, as_type: type | None = None) -> Any:
        """Return the item coerced to ``as_type``, or None when it is not set."""
        items = self._categories.get(category)
        if not items or key not in items:
            return None
        return _coerce_setting(items[key], as_type)

    def get(self, category: str, key: str, as_type: type | None = None) -> Any:
        value = self.try_get(category, key, as_type)
        if value is None:
            raise ConfigurationMissingError(category, key)
        return value


class RetrievalPolicy(BaseModel):
    """Timeout and poll interval used by polling retrieval."""

    model_config = ConfigDict(frozen=True)

    timeout: timedelta = DEFAULT_TIMEOUT
    poll_interval: timedelta = DEFAULT_POLL_INTERVAL

    @classmethod
    def resolve(cls, repository: ConfigRepository, database_name: str) -> "RetrievalPolicy":
        """Read Database.Timeout / Database.PollInterval, falling back to defaults."""
        timeout = repository.try_get(DATABASE_CATEGORY, TIMEOUT_KEY, timedelta)
        if timeout is not None:
            _log.debug(
                "%d Milliseconds timeout being used for %s",
                timeout // timedelta(milliseconds=1),
                database_name,
            )
        else:
            _log.debug("Default 30 Seconds timeout being used for %s", database_name)
            timeout = DEFAULT_TIMEOUT

        interval = repository.try_get(DATABASE_CATEGORY, POLL_INTERVAL_KEY, timedelta)
        if interval is not None:
            _log.debug(
                "%d Milliseconds polling being used for %s",
                interval // timedelta(milliseconds=1),
                database_name,
            )
        else:
            _log.debug("Default 1000 Milliseconds polling being used for %s", database_name)
            interval = DEFAULT_POLL_INTERVAL

        return cls(timeout=timeout, poll_interval=interval)

from pathlib import Path

import pytest

from dbharness.core.config import SettingsRepository
from tests.utils.connection import FakeConnector


@pytest.fixture
def connector() -> FakeConnector:
    return FakeConnector()


@pytest.fixture
def repository() -> SettingsRepository:
    """Empty repository so environment settings don't leak into tests."""
    return SettingsRepository()


@pytest.fixture
def sqlite_url(tmp_path: Path) -> str:
    return f"sqlite:///{tmp_path / 'harness.db'}"

"""
Unit Test Fixtures.

Unit tests never open a database: sessions are AsyncMocks and secrets
are stubbed. YAML configuration is the real one, loaded fresh per test
so tests can flip individual values.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from notesphere.backend.core.config import AppConfig


class _Savepoint:
    async def __aenter__(self) -> "_Savepoint":
        return self

    async def __aexit__(self, *exc_info: object) -> bool:
        return False


@pytest.fixture
def mock_db_session() -> AsyncMock:
    """
    AsyncSession stand-in. execute() is an AsyncMock; set its return_value
    per test. begin_nested() works as an async context manager.
    """
    session = AsyncMock()
    session.add = MagicMock()
    session.begin_nested = MagicMock(side_effect=lambda: _Savepoint())
    return session


@pytest.fixture
def mock_settings() -> SimpleNamespace:
    """Secrets normally read from config/.env."""
    return SimpleNamespace(
        db_password="test_pass",
        redis_password="",
        jwt_secret="test-secret-key",
    )


@pytest.fixture
def app_config() -> AppConfig:
    """
    A private copy of the YAML configuration.

    Usage:
        def test_flag(app_config):
            app_config.features.fulltext_search_enabled = False
            with patch("module.get_app_config", return_value=app_config):
                ...
    """
    return AppConfig.load()


@pytest.fixture
def mock_logger() -> MagicMock:
    """Patch a module's `logger` with this and assert on its calls."""
    return MagicMock()

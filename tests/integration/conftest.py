"""
Integration fixtures: the real app over ASGI, the real services, and the
in-memory test database from the root conftest.
"""

from collections.abc import AsyncGenerator, Iterator
from types import SimpleNamespace
from typing import Any
from unittest.mock import patch

import pytest
from httpx import ASGITransport, AsyncClient, Response
from sqlalchemy.ext.asyncio import AsyncSession

from notesphere.backend.core.database import get_db_session
from notesphere.backend.core.security import create_access_token, hash_password
from notesphere.backend.models.user import User
from notesphere.backend.repositories.user import UserRepository

TEST_PASSWORD = "correct-horse-battery"


@pytest.fixture
def jwt_settings() -> Iterator[SimpleNamespace]:
    """Fixed JWT secret, independent of config/.env."""
    settings = SimpleNamespace(jwt_secret="integration-test-secret", db_password="", redis_password="")
    with patch("notesphere.backend.core.security.get_settings", return_value=settings):
        yield settings


@pytest.fixture
async def client(db_session: AsyncSession, jwt_settings) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTP client whose requests all share the test session.

    ASGITransport skips the lifespan, so neither database initialization
    nor the retention sweeper runs.
    """
    from notesphere.backend.main import create_app

    async def _test_session() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app = create_app()
    app.dependency_overrides[get_db_session] = _test_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client


@pytest.fixture
def test_password() -> str:
    return TEST_PASSWORD


async def _register(session: AsyncSession, email: str) -> User:
    return await UserRepository(session).create(
        email=email,
        password_hash=hash_password(TEST_PASSWORD),
        display_name=email.split("@", 1)[0],
    )


def _bearer(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id, email=user.email)}"}


@pytest.fixture
async def test_user(db_session: AsyncSession) -> User:
    return await _register(db_session, "ada@example.com")


@pytest.fixture
async def other_user(db_session: AsyncSession) -> User:
    """Second account, for owner isolation checks."""
    return await _register(db_session, "grace@example.com")


@pytest.fixture
def auth_headers(test_user: User, jwt_settings) -> dict[str, str]:
    return _bearer(test_user)


@pytest.fixture
def other_auth_headers(other_user: User, jwt_settings) -> dict[str, str]:
    return _bearer(other_user)


class ApiAssertions:
    """Envelope checks shared by the API tests. Each returns the parsed body."""

    @staticmethod
    def _status(response: Response, expected: int) -> dict[str, Any]:
        assert response.status_code == expected, (
            f"Expected status {expected}, got {response.status_code}: {response.text}"
        )
        return response.json()

    def assert_success(self, response: Response, expected_status: int = 200) -> dict[str, Any]:
        body = self._status(response, expected_status)
        assert body["success"] is True, body
        return body

    def assert_error(
        self,
        response: Response,
        expected_status: int,
        expected_code: str | None = None,
    ) -> dict[str, Any]:
        body = self._status(response, expected_status)
        assert body["success"] is False, body
        assert body["error"] is not None, body
        if expected_code:
            assert body["error"]["code"] == expected_code, body["error"]
        return body

    def assert_validation_error(self, response: Response, field: str | None = None) -> dict[str, Any]:
        body = self.assert_error(response, 422, "VAL_REQUEST_INVALID")
        if field:
            fields = [e["field"] for e in body["error"]["details"]["validation_errors"]]
            assert any(field in f for f in fields), f"No error for {field!r} in {fields}"
        return body


@pytest.fixture
def api() -> ApiAssertions:
    return ApiAssertions()

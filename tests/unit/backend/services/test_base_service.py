"""
Unit Tests for Base Service.

Tests error translation, validation helpers and logging context.
"""

from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

from notesphere.backend.core.exceptions import ConflictError, DatabaseError, ValidationError
from notesphere.backend.services.base import BaseService


@pytest.fixture
def service():
    return BaseService(AsyncMock())


class TestExecuteDbOperation:
    """Tests for _execute_db_operation method."""

    async def test_returns_result_on_success(self, service):
        async def operation():
            return {"id": "note-1"}

        assert await service._execute_db_operation("get_note", operation()) == {"id": "note-1"}

    @pytest.mark.parametrize(
        "message",
        ["UNIQUE constraint failed: users.email", "duplicate key value violates unique constraint"],
    )
    async def test_unique_violation_becomes_conflict(self, service, message):
        async def operation():
            raise IntegrityError("INSERT", {}, Exception(message))

        with pytest.raises(ConflictError, match="already exists"):
            await service._execute_db_operation("register_user", operation())

    async def test_other_integrity_error_becomes_database_error(self, service):
        async def operation():
            raise IntegrityError("INSERT", {}, Exception("CHECK constraint failed"))

        with pytest.raises(DatabaseError, match="constraint violation: create_note"):
            await service._execute_db_operation("create_note", operation())

    async def test_sqlalchemy_error_becomes_database_error(self, service):
        async def operation():
            raise OperationalError("SELECT", {}, Exception("connection refused"))

        with pytest.raises(DatabaseError, match="operation failed: search_notes"):
            await service._execute_db_operation("search_notes", operation())

    async def test_non_database_errors_propagate(self, service):
        async def operation():
            raise ValueError("not a database problem")

        with pytest.raises(ValueError):
            await service._execute_db_operation("get_note", operation())

    async def test_original_error_is_chained(self, service):
        original = SQLAlchemyError("lost")

        async def operation():
            raise original

        with pytest.raises(DatabaseError) as exc_info:
            await service._execute_db_operation("purge_note", operation())

        assert exc_info.value.__cause__ is original


class TestValidateStringLength:
    """Tests for _validate_string_length method."""

    def test_passes_when_length_in_bounds(self, service):
        service._validate_string_length("Plan", "title", min_length=1, max_length=200)

    def test_raises_when_too_short(self, service):
        with pytest.raises(ValidationError) as exc_info:
            service._validate_string_length("short", "password", min_length=8)

        assert exc_info.value.message == "password too short"
        assert "password" in exc_info.value.details

    def test_raises_when_too_long(self, service):
        with pytest.raises(ValidationError) as exc_info:
            service._validate_string_length("x" * 201, "title", max_length=200)

        assert exc_info.value.message == "title too long"
        assert exc_info.value.details == {"title": "Maximum length is 200"}


class TestLoggingMethods:
    """Tests for logging helper methods."""

    def test_log_operation_includes_service_name(self, service):
        with patch.object(service, "_logger") as mock_logger:
            service._log_operation("Note created", note_id="note-1")

        extra = mock_logger.info.call_args[1]["extra"]
        assert extra == {"service": "BaseService", "note_id": "note-1"}

    def test_log_debug_includes_service_name(self, service):
        with patch.object(service, "_logger") as mock_logger:
            service._log_debug("Searching notes", page=2)

        extra = mock_logger.debug.call_args[1]["extra"]
        assert extra == {"service": "BaseService", "page": 2}

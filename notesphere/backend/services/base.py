"""
Base Service.

Services own the business rules; repositories own the SQL. Every awaited
repository call goes through `_execute_db_operation` so that SQLAlchemy
failures reach the API as ConflictError or DatabaseError and never leak
driver messages.
"""

from collections.abc import Awaitable
from typing import Any, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from notesphere.backend.core.exceptions import (
    ApplicationError,
    ConflictError,
    DatabaseError,
    ValidationError,
)
from notesphere.backend.core.logging import get_logger

T = TypeVar("T")

UNIQUE_VIOLATION_MARKERS = ("unique", "duplicate")


class BaseService:
    """Holds the request's session and the service's logger."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._logger = get_logger(self.__class__.__module__)

    def _integrity_error(self, operation: str, error: IntegrityError) -> ApplicationError:
        reason = str(error.orig)
        self._logger.warning("Database integrity error", extra={"operation": operation, "error": reason})
        if any(marker in reason.lower() for marker in UNIQUE_VIOLATION_MARKERS):
            return ConflictError("Resource already exists")
        return DatabaseError(f"Database constraint violation: {operation}")

    async def _execute_db_operation(self, operation: str, coro: Awaitable[T]) -> T:
        """
        Await a repository call, translating database failures.

        There is no retry on the request path. `operation` names the call
        in logs and in the DatabaseError message.

        Raises:
            ConflictError: For unique constraint violations
            DatabaseError: For any other SQLAlchemy error
        """
        try:
            return await coro
        except IntegrityError as e:
            raise self._integrity_error(operation, e) from e
        except SQLAlchemyError as e:
            self._logger.error("Database error", extra={"operation": operation, "error": str(e)})
            raise DatabaseError(f"Database operation failed: {operation}") from e

    def _validate_string_length(
        self,
        value: str,
        field_name: str,
        min_length: int | None = None,
        max_length: int | None = None,
    ) -> None:
        if min_length is not None and len(value) < min_length:
            raise ValidationError(
                f"{field_name} too short",
                details={field_name: f"Minimum length is {min_length}"},
            )
        if max_length is not None and len(value) > max_length:
            raise ValidationError(
                f"{field_name} too long",
                details={field_name: f"Maximum length is {max_length}"},
            )

    def _context(self, **context: Any) -> dict[str, Any]:
        return {"service": type(self).__name__, **context}

    def _log_operation(self, operation: str, **context: Any) -> None:
        self._logger.info(operation, extra=self._context(**context))

    def _log_debug(self, message: str, **context: Any) -> None:
        self._logger.debug(message, extra=self._context(**context))

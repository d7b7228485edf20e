"""
Application Exceptions.

Every error the services raise on purpose derives from ApplicationError
and carries a machine-readable code plus the HTTP status it maps to.
Anything else reaching the API is an unexpected failure (500).

    ValidationError      VAL_VALIDATION_ERROR  400
    AuthenticationError  AUTH_UNAUTHORIZED     401
    NotFoundError        RES_NOT_FOUND         404
    ConflictError        RES_CONFLICT          409
    DatabaseError        SYS_DATABASE_ERROR    503
"""

from typing import Any


class ApplicationError(Exception):
    """Base exception for all application errors."""

    code = "SYS_INTERNAL_ERROR"
    status_code = 500
    default_message = "Internal error"

    def __init__(
        self,
        message: str | None = None,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.default_message
        if code is not None:
            self.code = code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(ApplicationError):
    """Input broke a business rule (blank title, weak password, ...)."""

    code = "VAL_VALIDATION_ERROR"
    status_code = 400
    default_message = "Validation failed"

    def __init__(self, message: str | None = None, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, details=details)


class AuthenticationError(ApplicationError):
    """Missing, invalid or expired bearer token, or bad credentials."""

    code = "AUTH_UNAUTHORIZED"
    status_code = 401
    default_message = "Authentication required"


class NotFoundError(ApplicationError):
    """Absent, deleted, or owned by someone else. Callers cannot tell which."""

    code = "RES_NOT_FOUND"
    status_code = 404
    default_message = "Resource not found"


class ConflictError(ApplicationError):
    code = "RES_CONFLICT"
    status_code = 409
    default_message = "Resource conflict"


class DatabaseError(ApplicationError):
    """The store failed; request-path operations are not retried."""

    code = "SYS_DATABASE_ERROR"
    status_code = 503
    default_message = "Database error"

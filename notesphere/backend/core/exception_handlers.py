"""
Exception Handlers.

Every error leaving the API, whether raised by a service, by FastAPI's
request validation, by routing, or unexpectedly, is rendered as the
ErrorResponse envelope with the request id in its metadata.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from notesphere.backend.core.exceptions import ApplicationError, ValidationError
from notesphere.backend.core.logging import get_logger
from notesphere.backend.schemas.base import ErrorDetail, ErrorResponse, ResponseMetadata

logger = get_logger(__name__)

# Error codes for exceptions raised by Starlette itself
HTTP_ERROR_CODES: dict[int, str] = {
    401: "AUTH_UNAUTHORIZED",
    403: "AUTH_FORBIDDEN",
    404: "RES_NOT_FOUND",
    405: "REQ_METHOD_NOT_ALLOWED",
}


def _get_request_id(request: Request) -> str | None:
    if hasattr(request.state, "request_id"):
        return request.state.request_id
    return request.headers.get("x-request-id")


def _where(request: Request) -> dict[str, str]:
    return {"path": request.url.path, "method": request.method}


def _envelope(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: dict | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ErrorResponse(
        error=ErrorDetail(code=code, message=message, details=details),
        metadata=ResponseMetadata(request_id=_get_request_id(request)),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"), headers=headers)


def _exposed_details(exc: ApplicationError) -> dict | None:
    """Only validation errors carry client-facing details, and only when the feature flag allows it."""
    from notesphere.backend.core.config import get_app_config

    if not isinstance(exc, ValidationError) or not exc.details:
        return None
    return exc.details if get_app_config().features.api_detailed_errors else None


async def application_error_handler(request: Request, exc: ApplicationError) -> JSONResponse:
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "Request failed",
        extra={"code": exc.code, "message": exc.message, "status": exc.status_code, **_where(request)},
    )

    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return _envelope(request, exc.status_code, exc.code, exc.message, _exposed_details(exc), headers)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Unknown routes, wrong methods, and the HTTPBearer 401/403."""
    logger.warning("HTTP error", extra={"status": exc.status_code, **_where(request)})
    return _envelope(
        request,
        exc.status_code,
        HTTP_ERROR_CODES.get(exc.status_code, "REQ_HTTP_ERROR"),
        str(exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    field_errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ())),
            "message": err.get("msg", "Validation error"),
            "type": err.get("type", "unknown"),
        }
        for err in exc.errors()
    ]
    logger.warning("Request validation failed", extra={"error_count": len(field_errors), **_where(request)})
    return _envelope(
        request,
        422,
        "VAL_REQUEST_INVALID",
        "Request validation failed",
        {"validation_errors": field_errors},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Generic 500. The exception itself only goes to the log."""
    logger.exception("Unhandled exception", extra={"exception_type": type(exc).__name__, **_where(request)})
    return _envelope(request, 500, "SYS_INTERNAL_ERROR", "An unexpected error occurred")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApplicationError, application_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

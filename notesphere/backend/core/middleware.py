"""
Request Context Middleware.

Assigns every request an id, tags it with its caller, times it, and
binds request_id, source, method and path into the structlog context
for the duration of the request.

Headers:
    X-Request-ID     echoed back, generated when absent
    X-Frontend-ID    caller tag, one of VALID_SOURCES, otherwise "unknown"
    X-Response-Time  added to the response, in milliseconds
"""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from notesphere.backend.core.logging import VALID_SOURCES, get_logger

logger = get_logger(__name__)


def _caller_source(request: Request) -> str:
    source = request.headers.get("X-Frontend-ID", "unknown").lower()
    return source if source in VALID_SOURCES else "unknown"


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        source = _caller_source(request)
        request.state.request_id = request_id
        request.state.source = source

        started = time.perf_counter()

        def elapsed_ms() -> int:
            return int((time.perf_counter() - started) * 1000)

        with structlog.contextvars.bound_contextvars(
            request_id=request_id,
            source=source,
            method=request.method,
            path=request.url.path,
        ):
            try:
                response = await call_next(request)
            except Exception as exc:
                logger.error(
                    "Request failed with exception",
                    extra={"duration_ms": elapsed_ms(), "error_type": type(exc).__name__},
                )
                raise

            duration_ms = elapsed_ms()
            logger.debug(
                "Request completed",
                extra={"status_code": response.status_code, "duration_ms": duration_ms},
            )

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms}ms"
        return response

"""
Health Check Endpoints.

/health is liveness only. /health/ready pings the database and answers
503 when it fails or does not answer in time.
"""

import asyncio
import time
from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from notesphere.backend.core.logging import get_logger
from notesphere.backend.core.utils import utc_now

router = APIRouter()
logger = get_logger(__name__)


async def check_database(timeout: float | None = None) -> dict[str, Any]:
    """Ping the database; report latency on success and the reason on failure."""
    from notesphere.backend.core.database import check_database as ping_database

    started = time.perf_counter()
    try:
        await asyncio.wait_for(ping_database(), timeout=timeout)
    except asyncio.TimeoutError:
        return {"status": "unhealthy", "error": f"timed out after {timeout}s"}
    except Exception as e:
        logger.warning("Database health check failed", extra={"error": str(e)})
        return {"status": "unhealthy", "error": str(e)}

    return {"status": "healthy", "latency_ms": int((time.perf_counter() - started) * 1000)}


@router.get("/health")
async def health_check() -> dict[str, str]:
    return {"status": "healthy"}


@router.get("/health/ready", response_model=None)
async def readiness_check() -> dict[str, Any] | JSONResponse:
    from notesphere.backend.core.config import get_app_config

    timeout = get_app_config().observability.health_checks.ready_timeout_seconds
    database = await check_database(timeout)
    body = {
        "status": database["status"],
        "checks": {"database": database},
        "timestamp": utc_now().isoformat(),
    }

    if database["status"] == "healthy":
        return body
    logger.warning("Readiness check failed", extra={"checks": body["checks"]})
    return JSONResponse(status_code=503, content=body)

"""
FastAPI Dependencies.

Shared dependencies for request handling.
"""

import uuid
from typing import Annotated

from fastapi import Depends, Header, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from notesphere.backend.core.config import get_app_config
from notesphere.backend.core.database import get_db_session
from notesphere.backend.core.exceptions import AuthenticationError
from notesphere.backend.core.logging import get_logger
from notesphere.backend.core.security import decode_token
from notesphere.backend.services.audit import AuditContext

logger = get_logger(__name__)

# Type alias for database session dependency
DbSession = Annotated[AsyncSession, Depends(get_db_session)]

bearer_scheme = HTTPBearer(auto_error=False)


async def get_request_id(request: Request, x_request_id: str | None = Header(None)) -> str:
    """
    Request ID for tracing and correlation.

    Prefers the ID assigned by RequestContextMiddleware.
    """
    return getattr(request.state, "request_id", None) or x_request_id or str(uuid.uuid4())


RequestId = Annotated[str, Depends(get_request_id)]


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    """
    Owner ID from the bearer token's `sub` claim.

    Raises:
        AuthenticationError: If the header is missing or the token is invalid
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError("Authentication required")
    payload = decode_token(credentials.credentials)
    return str(payload["sub"])


CurrentUserId = Annotated[str, Depends(get_current_user_id)]


def get_audit_context(
    request: Request,
    user_agent: str | None = Header(None),
) -> AuditContext:
    """Client IP and User-Agent for audit entries."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        ip = forwarded.split(",")[0].strip()
    else:
        ip = request.client.host if request.client else None
    return AuditContext(ip=ip, user_agent=user_agent)


AuditCtx = Annotated[AuditContext, Depends(get_audit_context)]


def get_fulltext_enabled() -> bool:
    """Whether indexed search is enabled in features.yaml."""
    return get_app_config().features.fulltext_search_enabled

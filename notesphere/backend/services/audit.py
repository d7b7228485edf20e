"""
Audit Logger.

Best-effort audit trail for note lifecycle events. An entry is written in
a SAVEPOINT after the mutation it describes has been flushed, so a failed
audit write is rolled back on its own and the mutation still commits.
"""

import json
from dataclasses import dataclass
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from notesphere.backend.core.logging import get_logger
from notesphere.backend.models.audit import AuditAction, AuditLog
from notesphere.backend.repositories.audit import AuditRepository

logger = get_logger(__name__)

USER_AGENT_MAX_LENGTH = 512
IP_MAX_LENGTH = 64


def _clip(value: str | None, max_length: int) -> str | None:
    if not value:
        return None
    return value[:max_length]


@dataclass(frozen=True)
class AuditContext:
    """Client details captured by the endpoint layer."""

    ip: str | None = None
    user_agent: str | None = None


class AuditLogger:
    """Appends audit entries without ever failing the caller."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.repo = AuditRepository(session)

    async def record(
        self,
        user_id: str,
        action: AuditAction,
        note_id: str | None = None,
        context: AuditContext | None = None,
        payload: dict[str, Any] | None = None,
    ) -> bool:
        """
        Append one entry.

        Returns:
            True when the entry was written, False when the write failed
            and was logged with audit_event="audit_write_failed"
        """
        context = context or AuditContext()
        entry = AuditLog(
            user_id=user_id,
            note_id=note_id,
            action=action,
            ip=_clip(context.ip, IP_MAX_LENGTH),
            user_agent=_clip(context.user_agent, USER_AGENT_MAX_LENGTH),
            payload=json.dumps(payload) if payload is not None else None,
        )

        try:
            async with self.session.begin_nested():
                await self.repo.append(entry)
        except SQLAlchemyError as e:
            logger.error(
                "Audit write failed",
                extra={
                    "audit_event": "audit_write_failed",
                    "action": action.value,
                    "user_id": user_id,
                    "note_id": note_id,
                    "error": str(e),
                },
            )
            return False

        logger.debug(
            "Audit entry written",
            extra={"action": action.value, "user_id": user_id, "note_id": note_id},
        )
        return True

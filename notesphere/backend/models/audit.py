"""
Audit Log Model.

Append-only record of note lifecycle events. note_id is a weak reference
without a foreign key so entries survive a purge of the note.
"""

import enum
from datetime import datetime
from uuid import uuid4

from sqlalchemy import DateTime, Enum, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from notesphere.backend.core.utils import utc_now
from notesphere.backend.models.base import Base


class AuditAction(str, enum.Enum):
    """Auditable note actions."""

    NOTE_CREATED = "NoteCreated"
    NOTE_UPDATED = "NoteUpdated"
    NOTE_SOFT_DELETED = "NoteSoftDeleted"
    NOTE_RESTORED = "NoteRestored"
    NOTE_PURGED = "NotePurged"


class AuditLog(Base):
    """Audit log entry."""

    __tablename__ = "audit_logs"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    note_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    action: Mapped[AuditAction] = mapped_column(
        Enum(
            AuditAction,
            name="audit_action",
            native_enum=False,
            length=32,
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
    )
    ip: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(512), nullable=True)
    payload: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=utc_now,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<AuditLog(action={self.action.value}, note_id={self.note_id})>"

"""
Lifecycle Manager.

Owns the note state machine:

    Active --soft_delete--> Deleted --restore--> Active
                            Deleted --purge----> Purged (terminal)

Transitions that do not apply to the note's current state are silent
no-ops that return False and write no audit entry. Each successful
transition writes exactly one entry. The retention sweep purges across
all owners and only reports an aggregate count.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from notesphere.backend.core.logging import get_logger, log_with_source
from notesphere.backend.models.audit import AuditAction
from notesphere.backend.repositories.note import NoteRepository
from notesphere.backend.services.audit import AuditContext, AuditLogger
from notesphere.backend.services.base import BaseService

logger = get_logger(__name__)


class LifecycleManager(BaseService):
    """Soft-delete, restore, purge and retention sweep."""

    def __init__(
        self,
        session: AsyncSession,
        notes: NoteRepository | None = None,
        audit: AuditLogger | None = None,
    ) -> None:
        super().__init__(session)
        self.notes = notes or NoteRepository(session)
        self.audit = audit or AuditLogger(session)

    async def soft_delete(
        self,
        owner_id: str,
        note_id: str,
        context: AuditContext | None = None,
    ) -> bool:
        """Move an active note to the trash."""
        changed = await self.notes.soft_delete(owner_id, note_id)
        if not changed:
            self._log_debug("Soft delete skipped, note not active", note_id=note_id)
            return False
        await self.audit.record(owner_id, AuditAction.NOTE_SOFT_DELETED, note_id=note_id, context=context)
        self._log_operation("Note moved to trash", note_id=note_id)
        return True

    async def restore(
        self,
        owner_id: str,
        note_id: str,
        context: AuditContext | None = None,
    ) -> bool:
        """Bring a trashed note back to active."""
        changed = await self.notes.restore(owner_id, note_id)
        if not changed:
            self._log_debug("Restore skipped, note not in trash", note_id=note_id)
            return False
        await self.audit.record(owner_id, AuditAction.NOTE_RESTORED, note_id=note_id, context=context)
        self._log_operation("Note restored", note_id=note_id)
        return True

    async def purge(
        self,
        owner_id: str,
        note_id: str,
        context: AuditContext | None = None,
    ) -> bool:
        """Permanently delete a trashed note."""
        changed = await self.notes.purge(owner_id, note_id)
        if not changed:
            self._log_debug("Purge skipped, note not in trash", note_id=note_id)
            return False
        await self.audit.record(owner_id, AuditAction.NOTE_PURGED, note_id=note_id, context=context)
        self._log_operation("Note purged", note_id=note_id)
        return True

    async def sweep_expired(self, retention_days: int) -> int:
        """
        Purge every note that has been in the trash longer than retention_days.

        Returns:
            Number of notes purged
        """
        purged = await self.notes.purge_expired(retention_days)
        log_with_source(
            logger,
            "tasks",
            "info",
            "Expired notes purged",
            purged=purged,
            retention_days=retention_days,
        )
        return purged

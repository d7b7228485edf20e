"""
Audit Repository.

Append-only storage for audit entries. There is no read API beyond
what tests need to inspect the table.
"""

from notesphere.backend.models.audit import AuditLog
from notesphere.backend.repositories.base import BaseRepository


class AuditRepository(BaseRepository[AuditLog]):
    """Repository for AuditLog model."""

    model = AuditLog

    async def append(self, entry: AuditLog) -> None:
        """Insert one entry and flush it. The session decides when it commits."""
        self.session.add(entry)
        await self.session.flush()

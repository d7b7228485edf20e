"""
Note Service.

Business logic layer for notes: validation, search orchestration, audit
of content changes, and delegation of state transitions to the
LifecycleManager. Every operation is scoped to the calling owner; notes
belonging to someone else behave exactly like notes that do not exist.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from notesphere.backend.core.exceptions import NotFoundError, ValidationError
from notesphere.backend.core.pagination import PagedResult
from notesphere.backend.models.audit import AuditAction
from notesphere.backend.models.note import TITLE_MAX_LENGTH, Note, normalize_tags
from notesphere.backend.repositories.note import NoteRepository, NoteStats
from notesphere.backend.repositories.note_query import NoteQueryBuilder
from notesphere.backend.schemas.note import NoteCreate, NoteQuery, NoteUpdate
from notesphere.backend.services.audit import AuditContext, AuditLogger
from notesphere.backend.services.base import BaseService
from notesphere.backend.services.lifecycle import LifecycleManager


def _audit_payload(note: Note) -> dict[str, Any]:
    return {
        "title": note.title,
        "tags": note.tags,
        "is_pinned": note.is_pinned,
        "is_archived": note.is_archived,
    }


class NoteService(BaseService):
    """
    Service for note business logic.

    Lifecycle operations (soft_delete, restore, purge) are silent no-ops
    when they do not apply to the note's current state.
    """

    def __init__(self, session: AsyncSession, fulltext_enabled: bool = True) -> None:
        super().__init__(session)
        self.notes = NoteRepository(session, fulltext_enabled=fulltext_enabled)
        self.audit = AuditLogger(session)
        self.lifecycle = LifecycleManager(session, notes=self.notes, audit=self.audit)

    def _validate_note(self, title: str | None, content: str | None) -> str:
        """Validate title and content; returns the trimmed title."""
        if title is None or not title.strip():
            raise ValidationError(
                "Title is required",
                details={"title": "Title must not be empty"},
            )
        title = title.strip()
        self._validate_string_length(title, "title", max_length=TITLE_MAX_LENGTH)
        if content is None:
            raise ValidationError(
                "Content is required",
                details={"content": "Content must be provided"},
            )
        return title

    async def search(self, owner_id: str, query: NoteQuery) -> PagedResult[Note]:
        """Search the owner's notes. Returns one page and the matching total."""
        plan = NoteQueryBuilder(owner_id).build(query)
        self._log_debug(
            "Searching notes",
            has_search=plan.has_search,
            page=plan.page,
            page_size=plan.page_size,
        )
        return await self._execute_db_operation("search_notes", self.notes.search(plan))

    async def get(self, owner_id: str, note_id: str) -> Note:
        """
        Get an active note.

        Raises:
            NotFoundError: If the note is absent, deleted or not owned by owner_id
        """
        note = await self._execute_db_operation("get_note", self.notes.get(owner_id, note_id))
        if note is None:
            raise NotFoundError("Note not found")
        return note

    async def create(
        self,
        owner_id: str,
        data: NoteCreate,
        context: AuditContext | None = None,
    ) -> Note:
        """
        Create a note and record a NoteCreated audit entry.

        Raises:
            ValidationError: If title is blank or too long, or content is missing
        """
        title = self._validate_note(data.title, data.content)

        note = Note(
            owner_id=owner_id,
            title=title,
            content=data.content,
            is_pinned=data.is_pinned,
            is_archived=data.is_archived,
        )
        note.tags = data.tags

        note = await self._execute_db_operation("create_note", self.notes.insert(note))
        await self.audit.record(
            owner_id,
            AuditAction.NOTE_CREATED,
            note_id=note.id,
            context=context,
            payload=_audit_payload(note),
        )

        self._log_operation("Note created", note_id=note.id)
        return note

    async def update(
        self,
        owner_id: str,
        note_id: str,
        data: NoteUpdate,
        context: AuditContext | None = None,
    ) -> Note:
        """
        Replace an active note's title, content and tags.

        Omitted pinned/archived flags keep their current values.

        Raises:
            ValidationError: If title is blank or too long, or content is missing
            NotFoundError: If the note is absent, deleted or not owned by owner_id
        """
        title = self._validate_note(data.title, data.content)

        values: dict[str, Any] = {"title": title, "content": data.content}
        if data.is_pinned is not None:
            values["is_pinned"] = data.is_pinned
        if data.is_archived is not None:
            values["is_archived"] = data.is_archived

        updated = await self._execute_db_operation(
            "update_note",
            self.notes.update(owner_id, note_id, values, tags=normalize_tags(data.tags)),
        )
        if not updated:
            raise NotFoundError("Note not found")

        note = await self.get(owner_id, note_id)
        await self.audit.record(
            owner_id,
            AuditAction.NOTE_UPDATED,
            note_id=note_id,
            context=context,
            payload=_audit_payload(note),
        )

        self._log_operation("Note updated", note_id=note_id)
        return note

    async def soft_delete(
        self,
        owner_id: str,
        note_id: str,
        context: AuditContext | None = None,
    ) -> None:
        """Move a note to the trash. No-op unless the note is active."""
        await self._execute_db_operation(
            "soft_delete_note",
            self.lifecycle.soft_delete(owner_id, note_id, context),
        )

    async def restore(
        self,
        owner_id: str,
        note_id: str,
        context: AuditContext | None = None,
    ) -> None:
        """Restore a trashed note. No-op unless the note is in the trash."""
        await self._execute_db_operation(
            "restore_note",
            self.lifecycle.restore(owner_id, note_id, context),
        )

    async def purge(
        self,
        owner_id: str,
        note_id: str,
        context: AuditContext | None = None,
    ) -> None:
        """Permanently delete a trashed note. No-op unless the note is in the trash."""
        await self._execute_db_operation(
            "purge_note",
            self.lifecycle.purge(owner_id, note_id, context),
        )

    async def stats(self, owner_id: str) -> NoteStats:
        """Dashboard counters, computed at call time."""
        return await self._execute_db_operation("note_stats", self.notes.stats(owner_id))

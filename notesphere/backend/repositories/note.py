"""
Note Repository.

Data access layer for notes. Every operation is scoped to an owner, and
every state change is a single conditional statement whose affected row
count tells the caller whether the transition happened. Concurrent callers
racing on the same note therefore see exactly one winner.

Tag membership rows in note_tags are kept in sync with tags_json here.
"""

import json
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import and_, case, delete, distinct, func, insert, select, update
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from notesphere.backend.core.logging import get_logger
from notesphere.backend.core.pagination import PagedResult
from notesphere.backend.core.utils import utc_now
from notesphere.backend.models.note import Note, NoteTag, normalize_tags
from notesphere.backend.repositories.base import BaseRepository
from notesphere.backend.repositories.fulltext import (
    fulltext_clause,
    is_fulltext_unavailable,
    needs_savepoint,
    supports_fulltext,
)
from notesphere.backend.repositories.note_query import SearchPlan

logger = get_logger(__name__)

RECENT_ACTIVITY_DAYS = 7


@dataclass
class NoteStats:
    """Per-owner note counters, computed at call time."""

    total_notes: int
    active_notes: int
    pinned_notes: int
    archived_notes: int
    deleted_notes: int
    distinct_tags_used: int
    updated_last_7_days: int


class NoteRepository(BaseRepository[Note]):
    """Repository for Note model."""

    model = Note

    def __init__(self, session: AsyncSession, fulltext_enabled: bool = True) -> None:
        super().__init__(session)
        self.fulltext_enabled = fulltext_enabled

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get(self, owner_id: str, note_id: str) -> Note | None:
        """Get an active (not deleted) note owned by owner_id."""
        result = await self.session.execute(
            select(Note)
            .where(
                Note.id == note_id,
                Note.owner_id == owner_id,
                Note.is_deleted.is_(False),
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def search(self, plan: SearchPlan) -> PagedResult[Note]:
        """
        Execute a search plan and return one page plus the matching total.

        With search text, indexed full-text search is tried first. If the
        backend reports that the capability is missing, the same plan runs
        again with a substring match. Any other database error propagates.
        """
        if not plan.has_search:
            return await self._fetch_page(plan, None)

        dialect_name = self.dialect_name
        clause = None
        if self.fulltext_enabled and supports_fulltext(dialect_name):
            # None when no search term has a letter or digit
            clause = fulltext_clause(dialect_name, list(plan.search_terms))

        if clause is not None:
            try:
                if needs_savepoint(dialect_name):
                    async with self.session.begin_nested():
                        return await self._fetch_page(plan, clause)
                return await self._fetch_page(plan, clause)
            except DBAPIError as e:
                if not is_fulltext_unavailable(e, dialect_name):
                    raise
                logger.warning(
                    "Full-text search unavailable, using substring match",
                    extra={
                        "search_event": "fulltext_unavailable",
                        "dialect": dialect_name,
                        "error": str(e.orig),
                    },
                )

        return await self._fetch_page(plan, plan.substring_clause())

    async def _fetch_page(
        self,
        plan: SearchPlan,
        search_clause: ColumnElement[bool] | None,
    ) -> PagedResult[Note]:
        result = await self.session.execute(plan.select_page(search_clause))
        items = list(result.scalars().all())
        total = (await self.session.execute(plan.select_count(search_clause))).scalar_one()
        return PagedResult(items=items, total=total, page=plan.page, page_size=plan.page_size)

    async def stats(self, owner_id: str, now: datetime | None = None) -> NoteStats:
        """Dashboard counters for one owner."""
        now = now or utc_now()
        recent_cutoff = now - timedelta(days=RECENT_ACTIVITY_DAYS)
        live = Note.is_deleted.is_(False)

        def count_where(*conditions: Any) -> Any:
            return func.coalesce(func.sum(case((and_(*conditions), 1), else_=0)), 0)

        row = (
            await self.session.execute(
                select(
                    count_where(live).label("total_notes"),
                    count_where(live, Note.is_archived.is_(False)).label("active_notes"),
                    count_where(live, Note.is_pinned.is_(True), Note.is_archived.is_(False)).label(
                        "pinned_notes"
                    ),
                    count_where(live, Note.is_archived.is_(True)).label("archived_notes"),
                    count_where(Note.is_deleted.is_(True)).label("deleted_notes"),
                    count_where(live, Note.updated_at >= recent_cutoff).label("updated_last_7_days"),
                ).where(Note.owner_id == owner_id)
            )
        ).one()

        distinct_tags = (
            await self.session.execute(
                select(func.count(distinct(NoteTag.tag)))
                .select_from(NoteTag)
                .join(Note, Note.id == NoteTag.note_id)
                .where(NoteTag.owner_id == owner_id, live)
            )
        ).scalar_one()

        return NoteStats(
            total_notes=int(row.total_notes),
            active_notes=int(row.active_notes),
            pinned_notes=int(row.pinned_notes),
            archived_notes=int(row.archived_notes),
            deleted_notes=int(row.deleted_notes),
            distinct_tags_used=int(distinct_tags),
            updated_last_7_days=int(row.updated_last_7_days),
        )

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def insert(self, note: Note) -> Note:
        """Persist a new note and its tag membership."""
        note = await self.add(note)
        await self._replace_tags(note.id, note.owner_id, note.tags)
        return note

    async def update(
        self,
        owner_id: str,
        note_id: str,
        values: dict[str, Any],
        tags: list[str] | None = None,
        now: datetime | None = None,
    ) -> bool:
        """
        Update an active note.

        Returns:
            False when the note is absent, deleted or owned by someone else
        """
        values = dict(values)
        values["updated_at"] = now or utc_now()
        if tags is not None:
            tags = normalize_tags(tags)
            values["tags_json"] = json.dumps(tags)

        result = await self.session.execute(
            update(Note)
            .where(
                Note.id == note_id,
                Note.owner_id == owner_id,
                Note.is_deleted.is_(False),
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return False

        if tags is not None:
            await self._replace_tags(note_id, owner_id, tags)
        return True

    async def soft_delete(self, owner_id: str, note_id: str, now: datetime | None = None) -> bool:
        """Move an active note to the trash. False when it is not active."""
        now = now or utc_now()
        result = await self.session.execute(
            update(Note)
            .where(
                Note.id == note_id,
                Note.owner_id == owner_id,
                Note.is_deleted.is_(False),
            )
            .values(is_deleted=True, deleted_at=now, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def restore(self, owner_id: str, note_id: str, now: datetime | None = None) -> bool:
        """Bring a trashed note back. False when it is not in the trash."""
        result = await self.session.execute(
            update(Note)
            .where(
                Note.id == note_id,
                Note.owner_id == owner_id,
                Note.is_deleted.is_(True),
            )
            .values(is_deleted=False, deleted_at=None, updated_at=now or utc_now())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def purge(self, owner_id: str, note_id: str) -> bool:
        """Hard-delete a trashed note. Active notes are never purged."""
        result = await self.session.execute(
            delete(Note)
            .where(
                Note.id == note_id,
                Note.owner_id == owner_id,
                Note.is_deleted.is_(True),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return False
        await self.session.execute(delete(NoteTag).where(NoteTag.note_id == note_id))
        return True

    async def purge_expired(self, retention_days: int, now: datetime | None = None) -> int:
        """
        Hard-delete every note, for all owners, trashed more than retention_days ago.

        Returns:
            Number of notes purged
        """
        cutoff = (now or utc_now()) - timedelta(days=retention_days)
        result = await self.session.execute(
            delete(Note)
            .where(
                Note.is_deleted.is_(True),
                Note.deleted_at < cutoff,
            )
            .execution_options(synchronize_session=False)
        )
        purged = result.rowcount or 0
        if purged:
            await self.session.execute(
                delete(NoteTag)
                .where(NoteTag.note_id.not_in(select(Note.id)))
                .execution_options(synchronize_session=False)
            )
        return purged

    async def _replace_tags(self, note_id: str, owner_id: str, tags: list[str]) -> None:
        await self.session.execute(delete(NoteTag).where(NoteTag.note_id == note_id))
        if tags:
            await self.session.execute(
                insert(NoteTag),
                [
                    {"note_id": note_id, "owner_id": owner_id, "tag": tag.lower()}
                    for tag in tags
                ],
            )

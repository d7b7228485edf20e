"""
Integration Tests for NoteRepository.

Conditional state changes, tag membership and counters against a real
SQLite database.
"""

from datetime import timedelta

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from notesphere.backend.core.utils import utc_now
from notesphere.backend.models.note import Note, NoteTag
from notesphere.backend.repositories.note import NoteRepository


async def _tag_rows(session: AsyncSession, note_id: str) -> list[str]:
    result = await session.execute(select(NoteTag.tag).where(NoteTag.note_id == note_id))
    return sorted(result.scalars().all())


class TestDeletionInvariant:
    """deleted_at is set exactly when is_deleted is true."""

    @pytest.mark.asyncio
    async def test_flag_without_timestamp_is_rejected(self, db_session: AsyncSession, owner_id):
        with pytest.raises(IntegrityError):
            async with db_session.begin_nested():
                db_session.add(Note(owner_id=owner_id, title="Bad", content="", is_deleted=True))
                await db_session.flush()

    @pytest.mark.asyncio
    async def test_timestamp_without_flag_is_rejected(self, db_session: AsyncSession, owner_id):
        with pytest.raises(IntegrityError):
            async with db_session.begin_nested():
                db_session.add(
                    Note(owner_id=owner_id, title="Bad", content="", deleted_at=utc_now())
                )
                await db_session.flush()


class TestSoftDelete:
    """Tests for NoteRepository.soft_delete."""

    @pytest.mark.asyncio
    async def test_soft_delete_sets_both_fields(self, db_session, make_note, load_note, owner_id):
        note = await make_note(title="Plan")
        repo = NoteRepository(db_session)

        assert await repo.soft_delete(owner_id, note.id) is True

        stored = await load_note(note.id)
        assert stored.is_deleted is True
        assert stored.deleted_at is not None

    @pytest.mark.asyncio
    async def test_second_soft_delete_is_noop(self, db_session, make_note, load_note, owner_id):
        note = await make_note(title="Plan")
        repo = NoteRepository(db_session)
        first = utc_now() - timedelta(hours=1)

        assert await repo.soft_delete(owner_id, note.id, now=first) is True
        assert await repo.soft_delete(owner_id, note.id) is False

        stored = await load_note(note.id)
        assert stored.deleted_at == first

    @pytest.mark.asyncio
    async def test_other_owner_cannot_soft_delete(
        self, db_session, make_note, load_note, other_owner_id
    ):
        note = await make_note(title="Plan")

        assert await NoteRepository(db_session).soft_delete(other_owner_id, note.id) is False
        assert (await load_note(note.id)).is_deleted is False


class TestRestoreAndPurge:
    """Tests for restore and purge."""

    @pytest.mark.asyncio
    async def test_restore_clears_both_fields(self, db_session, make_note, load_note, owner_id):
        note = await make_note(title="Plan")
        repo = NoteRepository(db_session)
        await repo.soft_delete(owner_id, note.id)

        assert await repo.restore(owner_id, note.id) is True

        stored = await load_note(note.id)
        assert stored.is_deleted is False
        assert stored.deleted_at is None

    @pytest.mark.asyncio
    async def test_restore_active_note_is_noop(self, db_session, make_note, owner_id):
        note = await make_note(title="Plan")

        assert await NoteRepository(db_session).restore(owner_id, note.id) is False

    @pytest.mark.asyncio
    async def test_purge_active_note_is_noop(self, db_session, make_note, load_note, owner_id):
        note = await make_note(title="Plan")

        assert await NoteRepository(db_session).purge(owner_id, note.id) is False
        assert await load_note(note.id) is not None

    @pytest.mark.asyncio
    async def test_purge_removes_row_and_tags(self, db_session, make_note, load_note, owner_id):
        note = await make_note(title="Plan", tags=["Work", "ideas"])
        repo = NoteRepository(db_session)
        await repo.soft_delete(owner_id, note.id)

        assert await repo.purge(owner_id, note.id) is True

        assert await load_note(note.id) is None
        assert await _tag_rows(db_session, note.id) == []

    @pytest.mark.asyncio
    async def test_purge_unknown_note_is_noop(self, db_session, owner_id):
        assert await NoteRepository(db_session).purge(owner_id, "missing") is False


class TestUpdate:
    """Tests for NoteRepository.update."""

    @pytest.mark.asyncio
    async def test_update_replaces_tag_rows(self, db_session, make_note, load_note, owner_id):
        note = await make_note(title="Plan", tags=["Work", "ideas"])

        updated = await NoteRepository(db_session).update(
            owner_id, note.id, {"title": "Plan v2", "content": "x"}, tags=["Home", "home", "Ideas"]
        )

        assert updated is True
        stored = await load_note(note.id)
        assert stored.tags == ["Home", "Ideas"]
        assert await _tag_rows(db_session, note.id) == ["home", "ideas"]

    @pytest.mark.asyncio
    async def test_update_deleted_note_is_refused(self, db_session, make_note, owner_id):
        note = await make_note(title="Plan")
        repo = NoteRepository(db_session)
        await repo.soft_delete(owner_id, note.id)

        assert await repo.update(owner_id, note.id, {"title": "x", "content": ""}) is False

    @pytest.mark.asyncio
    async def test_update_bumps_updated_at(self, db_session, make_note, load_note, owner_id):
        note = await make_note(title="Plan")
        later = utc_now() + timedelta(minutes=5)

        await NoteRepository(db_session).update(
            owner_id, note.id, {"title": "Plan", "content": "x"}, now=later
        )

        assert (await load_note(note.id)).updated_at == later


class TestPurgeExpired:
    """Tests for NoteRepository.purge_expired."""

    @pytest.mark.asyncio
    async def test_only_notes_past_the_window_are_purged(
        self, db_session, make_note, load_note, trash_note_at, other_owner_id
    ):
        now = utc_now()
        expired = await make_note(title="Expired", tags=["old"])
        recent = await make_note(title="Recent", tags=["new"])
        active = await make_note(title="Active")
        elsewhere = await make_note(title="Elsewhere", owner_id=other_owner_id)
        await trash_note_at(expired.id, now - timedelta(days=31))
        await trash_note_at(recent.id, now - timedelta(days=29))
        await trash_note_at(elsewhere.id, now - timedelta(days=45))

        purged = await NoteRepository(db_session).purge_expired(30, now=now)

        assert purged == 2
        assert await load_note(expired.id) is None
        assert await load_note(elsewhere.id) is None
        assert await load_note(recent.id) is not None
        assert await load_note(active.id) is not None
        assert await _tag_rows(db_session, expired.id) == []
        assert await _tag_rows(db_session, recent.id) == ["new"]

    @pytest.mark.asyncio
    async def test_nothing_to_purge(self, db_session, make_note):
        await make_note(title="Active")

        assert await NoteRepository(db_session).purge_expired(30) == 0


class TestStats:
    """Tests for NoteRepository.stats."""

    @pytest.mark.asyncio
    async def test_counters(self, db_session, make_note, trash_note_at, owner_id):
        now = utc_now()
        await make_note(title="A", is_pinned=True, tags=["work"])
        await make_note(title="B", is_pinned=True, is_archived=True, tags=["Work", "home"])
        trashed = await make_note(title="C", tags=["gone"])
        await trash_note_at(trashed.id, now)

        stats = await NoteRepository(db_session).stats(owner_id, now=now)

        assert stats.total_notes == 2
        assert stats.active_notes == 1
        assert stats.pinned_notes == 1
        assert stats.archived_notes == 1
        assert stats.deleted_notes == 1
        assert stats.distinct_tags_used == 2
        assert stats.updated_last_7_days == 2

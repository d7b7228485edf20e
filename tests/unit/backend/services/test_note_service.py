"""
Unit Tests for Note Service.

Tests the NoteService business logic with mocked repositories.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from notesphere.backend.core.exceptions import NotFoundError, ValidationError
from notesphere.backend.core.pagination import PagedResult
from notesphere.backend.models.audit import AuditAction
from notesphere.backend.repositories.note_query import SearchPlan
from notesphere.backend.schemas.note import NoteCreate, NoteQuery, NoteUpdate
from notesphere.backend.services.audit import AuditContext
from notesphere.backend.services.note import NoteService

OWNER = "owner-1"


@pytest.fixture
def service(mock_db_session):
    service = NoteService(mock_db_session)
    service.audit.record = AsyncMock(return_value=True)
    return service


def _stored(note):
    note.id = "note-1"
    return note


class TestNoteServiceCreate:
    """Tests for note creation."""

    async def test_creates_note_with_trimmed_title_and_normalized_tags(self, service):
        with patch.object(service.notes, "insert", AsyncMock(side_effect=_stored)) as mock_insert:
            note = await service.create(
                OWNER,
                NoteCreate(title="  Plan  ", content="Goals", tags=["Work", "work", " ideas "]),
            )

        mock_insert.assert_awaited_once()
        assert note.owner_id == OWNER
        assert note.title == "Plan"
        assert note.content == "Goals"
        assert note.tags == ["Work", "ideas"]
        assert note.is_deleted is not True

    async def test_records_created_audit_entry(self, service):
        context = AuditContext(ip="10.0.0.1", user_agent="pytest")

        with patch.object(service.notes, "insert", AsyncMock(side_effect=_stored)):
            await service.create(OWNER, NoteCreate(title="Plan", content="", is_pinned=True), context)

        service.audit.record.assert_awaited_once_with(
            OWNER,
            AuditAction.NOTE_CREATED,
            note_id="note-1",
            context=context,
            payload={"title": "Plan", "tags": [], "is_pinned": True, "is_archived": False},
        )

    @pytest.mark.parametrize("title", [None, "", "   "])
    async def test_rejects_blank_title(self, service, title):
        with patch.object(service.notes, "insert", AsyncMock()) as mock_insert:
            with pytest.raises(ValidationError, match="Title is required"):
                await service.create(OWNER, NoteCreate(title=title, content="c"))

        mock_insert.assert_not_awaited()
        service.audit.record.assert_not_awaited()

    async def test_rejects_title_over_200_characters(self, service):
        with pytest.raises(ValidationError, match="title too long"):
            await service.create(OWNER, NoteCreate(title="x" * 201, content="c"))

    async def test_accepts_title_of_exactly_200_characters(self, service):
        with patch.object(service.notes, "insert", AsyncMock(side_effect=_stored)):
            note = await service.create(OWNER, NoteCreate(title="x" * 200, content="c"))
        assert len(note.title) == 200

    async def test_rejects_missing_content(self, service):
        with pytest.raises(ValidationError, match="Content is required"):
            await service.create(OWNER, NoteCreate(title="Plan"))

    async def test_empty_content_is_allowed(self, service):
        with patch.object(service.notes, "insert", AsyncMock(side_effect=_stored)):
            note = await service.create(OWNER, NoteCreate(title="Plan", content=""))
        assert note.content == ""


class TestNoteServiceGet:
    """Tests for getting notes."""

    async def test_returns_note_when_found(self, service):
        found = MagicMock(id="note-1")
        with patch.object(service.notes, "get", AsyncMock(return_value=found)) as mock_get:
            assert await service.get(OWNER, "note-1") is found
        mock_get.assert_awaited_once_with(OWNER, "note-1")

    async def test_raises_not_found(self, service):
        with patch.object(service.notes, "get", AsyncMock(return_value=None)):
            with pytest.raises(NotFoundError, match="Note not found"):
                await service.get(OWNER, "missing")


class TestNoteServiceUpdate:
    """Tests for note updates."""

    async def test_updates_and_records_audit(self, service):
        updated = MagicMock(title="New", tags=["a"], is_pinned=False, is_archived=False)

        with (
            patch.object(service.notes, "update", AsyncMock(return_value=True)) as mock_update,
            patch.object(service.notes, "get", AsyncMock(return_value=updated)),
        ):
            result = await service.update(
                OWNER,
                "note-1",
                NoteUpdate(title=" New ", content="Body", tags=["a", "A"]),
            )

        assert result is updated
        mock_update.assert_awaited_once_with(
            OWNER,
            "note-1",
            {"title": "New", "content": "Body"},
            tags=["a"],
        )
        assert service.audit.record.await_args.args[1] == AuditAction.NOTE_UPDATED

    async def test_omitted_tags_clear_tags(self, service):
        with (
            patch.object(service.notes, "update", AsyncMock(return_value=True)) as mock_update,
            patch.object(service.notes, "get", AsyncMock(return_value=MagicMock(tags=[]))),
        ):
            await service.update(OWNER, "note-1", NoteUpdate(title="T", content="C"))

        assert mock_update.await_args.kwargs["tags"] == []

    async def test_flags_are_passed_only_when_given(self, service):
        with (
            patch.object(service.notes, "update", AsyncMock(return_value=True)) as mock_update,
            patch.object(service.notes, "get", AsyncMock(return_value=MagicMock(tags=[]))),
        ):
            await service.update(OWNER, "note-1", NoteUpdate(title="T", content="C", is_archived=True))

        values = mock_update.await_args.args[2]
        assert values["is_archived"] is True
        assert "is_pinned" not in values

    async def test_missing_or_deleted_note_raises_not_found(self, service):
        with patch.object(service.notes, "update", AsyncMock(return_value=False)):
            with pytest.raises(NotFoundError):
                await service.update(OWNER, "note-1", NoteUpdate(title="T", content="C"))

        service.audit.record.assert_not_awaited()

    async def test_validation_happens_before_update(self, service):
        with patch.object(service.notes, "update", AsyncMock()) as mock_update:
            with pytest.raises(ValidationError):
                await service.update(OWNER, "note-1", NoteUpdate(title="", content="C"))

        mock_update.assert_not_awaited()


class TestNoteServiceSearch:
    """Tests for search orchestration."""

    async def test_builds_plan_for_owner(self, service):
        page = PagedResult(items=[], total=0, page=2, page_size=5)

        with patch.object(service.notes, "search", AsyncMock(return_value=page)) as mock_search:
            result = await service.search(OWNER, NoteQuery(search="goals", page=2, page_size=5))

        assert result is page
        plan = mock_search.await_args.args[0]
        assert isinstance(plan, SearchPlan)
        assert plan.owner_id == OWNER
        assert plan.search_terms == ("goals",)
        assert (plan.page, plan.page_size) == (2, 5)


class TestNoteServiceLifecycle:
    """Lifecycle operations delegate to the LifecycleManager."""

    @pytest.mark.parametrize("operation", ["soft_delete", "restore", "purge"])
    async def test_delegates(self, service, operation):
        context = AuditContext(ip="1.2.3.4")
        with patch.object(service.lifecycle, operation, AsyncMock(return_value=False)) as mock_op:
            result = await getattr(service, operation)(OWNER, "note-1", context)

        assert result is None
        mock_op.assert_awaited_once_with(OWNER, "note-1", context)

    def test_lifecycle_shares_repository_and_audit(self, service):
        assert service.lifecycle.notes is service.notes
        assert service.lifecycle.audit is service.audit

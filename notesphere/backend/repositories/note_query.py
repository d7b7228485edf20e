"""
Note Query Builder.

Turns a NoteQuery into an executable search plan without touching the
database. The plan carries the filter predicate, a whitelisted ordering
with an id tie-breaker, and page bounds; the note repository combines it
with a search clause for whichever search tier it ends up using.

Filter order:
    owner -> deletion state -> pinned -> archived -> tag
"""

from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import Select, and_, exists, func, or_, select
from sqlalchemy.sql.elements import ColumnElement

from notesphere.backend.core.pagination import normalize_page, normalize_page_size
from notesphere.backend.core.utils import escape_like
from notesphere.backend.models.note import Note, NoteTag
from notesphere.backend.repositories.fulltext import tokenize

SORT_COLUMNS = {
    "title": Note.title,
    "createdat": Note.created_at,
    "created_at": Note.created_at,
    "updatedat": Note.updated_at,
    "updated_at": Note.updated_at,
}
DEFAULT_SORT_COLUMN = Note.updated_at


@dataclass(frozen=True, eq=False)
class SearchPlan:
    """Immutable description of one search request."""

    owner_id: str
    filters: tuple[ColumnElement[bool], ...]
    order_by: tuple[Any, ...]
    page: int
    page_size: int
    search_text: str | None = None
    search_terms: tuple[str, ...] = field(default_factory=tuple)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def has_search(self) -> bool:
        return bool(self.search_text)

    def substring_clause(self) -> ColumnElement[bool]:
        """Case-insensitive substring match on title or content, matched literally."""
        pattern = f"%{escape_like(self.search_text or '')}%"
        return or_(
            Note.title.ilike(pattern, escape="\\"),
            Note.content.ilike(pattern, escape="\\"),
        )

    def _where(self, search_clause: ColumnElement[bool] | None) -> list[ColumnElement[bool]]:
        clauses = list(self.filters)
        if search_clause is not None:
            clauses.append(search_clause)
        return clauses

    def select_page(self, search_clause: ColumnElement[bool] | None = None) -> Select:
        """Statement for the requested page."""
        return (
            select(Note)
            .where(*self._where(search_clause))
            .order_by(*self.order_by)
            .offset(self.offset)
            .limit(self.page_size)
        )

    def select_count(self, search_clause: ColumnElement[bool] | None = None) -> Select:
        """Count statement using the same predicate as select_page()."""
        return (
            select(func.count())
            .select_from(Note)
            .where(*self._where(search_clause))
        )


class NoteQueryBuilder:
    """
    Builds SearchPlans for one owner.

    Usage:
        plan = NoteQueryBuilder(owner_id).build(query)
    """

    def __init__(self, owner_id: str) -> None:
        self.owner_id = owner_id

    def build(self, query: Any) -> SearchPlan:
        """
        Build a plan from a NoteQuery (or anything with the same attributes).

        Unknown sort fields fall back to updated_at; direction is descending
        unless it is "asc" in any case. Page and page size are normalized,
        never rejected.
        """
        search_text = (getattr(query, "search", None) or "").strip() or None
        return SearchPlan(
            owner_id=self.owner_id,
            filters=tuple(self._filters(query)),
            order_by=self._order_by(
                getattr(query, "sort_by", None),
                getattr(query, "sort_dir", None),
            ),
            page=normalize_page(getattr(query, "page", None)),
            page_size=normalize_page_size(getattr(query, "page_size", None)),
            search_text=search_text,
            search_terms=tuple(tokenize(search_text)),
        )

    def _filters(self, query: Any) -> list[ColumnElement[bool]]:
        filters: list[ColumnElement[bool]] = [Note.owner_id == self.owner_id]

        if getattr(query, "only_deleted", False):
            filters.append(Note.is_deleted.is_(True))
        elif not getattr(query, "include_deleted", False):
            filters.append(Note.is_deleted.is_(False))

        pinned = getattr(query, "pinned", None)
        if pinned is not None:
            filters.append(Note.is_pinned.is_(bool(pinned)))

        archived = getattr(query, "archived", None)
        if archived is not None:
            filters.append(Note.is_archived.is_(bool(archived)))

        tag = (getattr(query, "tag", None) or "").strip()
        if tag:
            filters.append(self.tag_clause(tag))

        return filters

    @staticmethod
    def tag_clause(tag: str) -> ColumnElement[bool]:
        """Exact, case-insensitive tag membership."""
        return exists().where(
            and_(
                NoteTag.note_id == Note.id,
                NoteTag.tag == tag.strip().lower(),
            )
        )

    @staticmethod
    def _order_by(sort_by: str | None, sort_dir: str | None) -> tuple[Any, ...]:
        column = SORT_COLUMNS.get((sort_by or "").strip().lower(), DEFAULT_SORT_COLUMN)
        ascending = (sort_dir or "").strip().lower() == "asc"
        if ascending:
            return (column.asc(), Note.id.asc())
        return (column.desc(), Note.id.desc())

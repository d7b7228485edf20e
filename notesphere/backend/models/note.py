"""
Note Model.

A note belongs to exactly one user for its whole life. Deletion is soft
first: is_deleted and deleted_at move together, which the table also
enforces with a CHECK constraint. Purging removes the row.

Tags keep their display spelling and order in tags_json; the lower-cased
membership used for filtering lives in note_tags.
"""

import json
from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from notesphere.backend.models.base import Base, TimestampMixin, UUIDMixin

TITLE_MAX_LENGTH = 200


def normalize_tags(tags: Iterable[str] | None) -> list[str]:
    """
    Trim tags, drop empty ones and remove case-insensitive duplicates.

    The first spelling of a tag wins and the original order is kept.
    """
    normalized: list[str] = []
    seen: set[str] = set()
    for tag in tags or ():
        if tag is None:
            continue
        value = tag.strip()
        if not value:
            continue
        key = value.lower()
        if key in seen:
            continue
        seen.add(key)
        normalized.append(value)
    return normalized


class Note(UUIDMixin, TimestampMixin, Base):
    """Note database model."""

    __tablename__ = "notes"
    __table_args__ = (
        CheckConstraint(
            "(is_deleted AND deleted_at IS NOT NULL) OR (NOT is_deleted AND deleted_at IS NULL)",
            name="ck_notes_deleted_at_matches_flag",
        ),
        Index("ix_notes_owner_deleted_updated", "owner_id", "is_deleted", "updated_at"),
    )

    owner_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(
        String(TITLE_MAX_LENGTH),
        nullable=False,
    )
    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
    )
    tags_json: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="[]",
    )
    is_pinned: Mapped[bool] = mapped_column(default=False, nullable=False)
    is_archived: Mapped[bool] = mapped_column(default=False, nullable=False)
    is_deleted: Mapped[bool] = mapped_column(default=False, nullable=False)
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime,
        nullable=True,
        default=None,
    )

    @property
    def tags(self) -> list[str]:
        """Tags in display spelling and original order."""
        if not self.tags_json:
            return []
        try:
            value = json.loads(self.tags_json)
        except ValueError:
            return []
        return [str(tag) for tag in value] if isinstance(value, list) else []

    @tags.setter
    def tags(self, value: Iterable[str] | None) -> None:
        self.tags_json = json.dumps(normalize_tags(value))

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, title={self.title!r}, deleted={self.is_deleted})>"


class NoteTag(Base):
    """Lower-cased tag membership of a note, used for exact tag filtering."""

    __tablename__ = "note_tags"
    __table_args__ = (
        Index("ix_note_tags_owner_tag", "owner_id", "tag"),
    )

    note_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("notes.id", ondelete="CASCADE"),
        primary_key=True,
    )
    tag: Mapped[str] = mapped_column(String(200), primary_key=True)
    owner_id: Mapped[str] = mapped_column(String(36), nullable=False)

    def __repr__(self) -> str:
        return f"<NoteTag(note_id={self.note_id}, tag={self.tag!r})>"

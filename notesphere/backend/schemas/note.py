"""
Note Schemas.

Pydantic schemas for note API request/response validation.
Title and content rules are enforced by NoteService so that every caller,
not only the HTTP layer, gets the same ValidationError.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from notesphere.backend.core.utils import as_utc


class NoteCreate(BaseModel):
    """Schema for creating a new note."""

    title: str | None = Field(
        default=None,
        description="Note title, 1-200 characters after trimming",
        examples=["Quarterly plan"],
    )
    content: str | None = Field(
        default=None,
        description="Note content",
        examples=["Goals for the next quarter"],
    )
    tags: list[str] = Field(default_factory=list, description="Tags, de-duplicated case-insensitively")
    is_pinned: bool = False
    is_archived: bool = False


class NoteUpdate(BaseModel):
    """
    Schema for replacing a note's editable fields.

    Title and content are required. Omitted pinned/archived flags keep their
    current values; tags are replaced by the given list.
    """

    title: str | None = None
    content: str | None = None
    tags: list[str] | None = None
    is_pinned: bool | None = None
    is_archived: bool | None = None


class NoteQuery(BaseModel):
    """
    Search parameters for one request.

    Paging values are normalized by the query builder rather than rejected.
    """

    search: str | None = None
    sort_by: str | None = None
    sort_dir: str | None = None
    pinned: bool | None = None
    archived: bool | None = None
    tag: str | None = None
    page: int | None = None
    page_size: int | None = None
    include_deleted: bool = False
    only_deleted: bool = False


class NoteResponse(BaseModel):
    """Schema for note in API responses."""

    id: str = Field(description="Note unique identifier")
    title: str
    content: str
    tags: list[str]
    is_pinned: bool
    is_archived: bool
    is_deleted: bool
    deleted_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("created_at", "updated_at", "deleted_at")
    def _serialize_utc(self, value: datetime | None) -> datetime | None:
        return as_utc(value)

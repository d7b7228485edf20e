"""
Notes API Endpoints.

REST API endpoints for searching, editing and the trash lifecycle of the
current user's notes. Every route requires a bearer token.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query

from notesphere.backend.core.dependencies import (
    AuditCtx,
    CurrentUserId,
    DbSession,
    RequestId,
    get_fulltext_enabled,
)
from notesphere.backend.core.pagination import create_paginated_response
from notesphere.backend.schemas.base import ApiResponse, ResponseMetadata
from notesphere.backend.schemas.note import NoteCreate, NoteQuery, NoteResponse, NoteUpdate
from notesphere.backend.services.note import NoteService

router = APIRouter()


def get_note_service(
    db: DbSession,
    fulltext_enabled: bool = Depends(get_fulltext_enabled),
) -> NoteService:
    return NoteService(db, fulltext_enabled=fulltext_enabled)


Notes = Annotated[NoteService, Depends(get_note_service)]


def get_note_query(
    search: str | None = Query(default=None, description="Full-text search text"),
    sort_by: str | None = Query(default=None, description="title, createdAt or updatedAt"),
    sort_dir: str | None = Query(default=None, description="asc or desc"),
    pinned: bool | None = Query(default=None),
    archived: bool | None = Query(default=None),
    tag: str | None = Query(default=None, description="Exact tag, case-insensitive"),
    page: int | None = Query(default=None, description="1-based page number"),
    page_size: int | None = Query(default=None, description="Clamped to 5-100"),
    include_deleted: bool = Query(default=False),
    only_deleted: bool = Query(default=False),
) -> NoteQuery:
    return NoteQuery(
        search=search,
        sort_by=sort_by,
        sort_dir=sort_dir,
        pinned=pinned,
        archived=archived,
        tag=tag,
        page=page,
        page_size=page_size,
        include_deleted=include_deleted,
        only_deleted=only_deleted,
    )


SearchQuery = Annotated[NoteQuery, Depends(get_note_query)]


@router.get(
    "",
    summary="Search notes",
    description="Paginated search with filters, sorting and full-text search.",
)
async def search_notes(
    owner_id: CurrentUserId,
    service: Notes,
    query: SearchQuery,
    request_id: RequestId,
) -> dict[str, Any]:
    result = await service.search(owner_id, query)
    return create_paginated_response(result, NoteResponse, request_id=request_id)


@router.get(
    "/trash",
    summary="List trashed notes",
    description="Search restricted to soft-deleted notes.",
)
async def list_trash(
    owner_id: CurrentUserId,
    service: Notes,
    query: SearchQuery,
    request_id: RequestId,
) -> dict[str, Any]:
    trash_query = query.model_copy(update={"only_deleted": True, "include_deleted": True})
    result = await service.search(owner_id, trash_query)
    return create_paginated_response(result, NoteResponse, request_id=request_id)


@router.get(
    "/{note_id}",
    response_model=ApiResponse[NoteResponse],
    summary="Get a note",
)
async def get_note(
    note_id: str,
    owner_id: CurrentUserId,
    service: Notes,
    request_id: RequestId,
) -> ApiResponse[NoteResponse]:
    note = await service.get(owner_id, note_id)
    return ApiResponse(
        data=NoteResponse.model_validate(note),
        metadata=ResponseMetadata(request_id=request_id),
    )


@router.post(
    "",
    response_model=ApiResponse[NoteResponse],
    status_code=201,
    summary="Create a note",
)
async def create_note(
    data: NoteCreate,
    owner_id: CurrentUserId,
    service: Notes,
    context: AuditCtx,
    request_id: RequestId,
) -> ApiResponse[NoteResponse]:
    note = await service.create(owner_id, data, context)
    return ApiResponse(
        data=NoteResponse.model_validate(note),
        metadata=ResponseMetadata(request_id=request_id),
    )


@router.put(
    "/{note_id}",
    response_model=ApiResponse[NoteResponse],
    summary="Update a note",
    description="Replace title, content and tags. Omitted pinned/archived flags are kept.",
)
async def update_note(
    note_id: str,
    data: NoteUpdate,
    owner_id: CurrentUserId,
    service: Notes,
    context: AuditCtx,
    request_id: RequestId,
) -> ApiResponse[NoteResponse]:
    note = await service.update(owner_id, note_id, data, context)
    return ApiResponse(
        data=NoteResponse.model_validate(note),
        metadata=ResponseMetadata(request_id=request_id),
    )


@router.delete(
    "/{note_id}",
    status_code=204,
    summary="Move a note to the trash",
)
async def delete_note(
    note_id: str,
    owner_id: CurrentUserId,
    service: Notes,
    context: AuditCtx,
) -> None:
    await service.soft_delete(owner_id, note_id, context)


@router.post(
    "/{note_id}/restore",
    status_code=204,
    summary="Restore a note from the trash",
)
async def restore_note(
    note_id: str,
    owner_id: CurrentUserId,
    service: Notes,
    context: AuditCtx,
) -> None:
    await service.restore(owner_id, note_id, context)


@router.delete(
    "/{note_id}/purge",
    status_code=204,
    summary="Permanently delete a trashed note",
)
async def purge_note(
    note_id: str,
    owner_id: CurrentUserId,
    service: Notes,
    context: AuditCtx,
) -> None:
    await service.purge(owner_id, note_id, context)

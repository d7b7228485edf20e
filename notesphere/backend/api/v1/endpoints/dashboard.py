"""
Dashboard API Endpoints.
"""

from fastapi import APIRouter

from notesphere.backend.core.dependencies import CurrentUserId, DbSession, RequestId
from notesphere.backend.schemas.base import ApiResponse, ResponseMetadata
from notesphere.backend.schemas.dashboard import DashboardStatsResponse
from notesphere.backend.services.note import NoteService

router = APIRouter()


@router.get(
    "/stats",
    response_model=ApiResponse[DashboardStatsResponse],
    summary="Note statistics",
    description="Counters for the current user, computed at request time.",
)
async def get_stats(
    owner_id: CurrentUserId,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[DashboardStatsResponse]:
    stats = await NoteService(db).stats(owner_id)
    return ApiResponse(
        data=DashboardStatsResponse.model_validate(stats),
        metadata=ResponseMetadata(request_id=request_id),
    )

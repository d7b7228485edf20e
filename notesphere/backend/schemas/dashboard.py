"""
Dashboard Schemas.
"""

from pydantic import BaseModel, ConfigDict


class DashboardStatsResponse(BaseModel):
    """Note counters for the current user."""

    total_notes: int
    active_notes: int
    pinned_notes: int
    archived_notes: int
    deleted_notes: int
    distinct_tags_used: int
    updated_last_7_days: int

    model_config = ConfigDict(from_attributes=True)

"""
API Version 1 Router.

Aggregates all v1 endpoint routers.
"""

from fastapi import APIRouter

from notesphere.backend.api.v1.endpoints import auth, dashboard, notes

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(notes.router, prefix="/notes", tags=["notes"])
router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])

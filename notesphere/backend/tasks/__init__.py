"""
Background Tasks Package.

Two ways to run the trash retention sweep:

1. In-process (default): RetentionSweeper, an asyncio task started by the
   FastAPI lifespan (notesphere.backend.tasks.retention).
2. Scheduled: purge_expired_notes on the taskiq scheduler with a Redis
   broker (notesphere.backend.tasks.scheduled), for multi-process
   deployments with the in-process sweeper disabled.

Task functions can be called directly without Redis:

    from notesphere.backend.tasks.scheduled import purge_expired_notes
    result = await purge_expired_notes(retention_days=30)
"""

from notesphere.backend.tasks.retention import RetentionSweeper, run_sweep
from notesphere.backend.tasks.scheduled import (
    build_scheduled_tasks,
    purge_expired_notes,
    register_scheduled_tasks,
)

__all__ = [
    "RetentionSweeper",
    "run_sweep",
    "build_scheduled_tasks",
    "purge_expired_notes",
    "register_scheduled_tasks",
]

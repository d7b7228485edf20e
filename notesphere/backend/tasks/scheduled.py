"""
Scheduled Background Tasks.

Cron-driven tasks for deployments that run several API processes and
disable the in-process retention sweeper
(features.retention_inprocess_sweeper_enabled: false). The schedule comes
from config/settings/retention.yaml; the TaskiqScheduler reads it through
LabelScheduleSource.

Usage:
    from notesphere.backend.tasks.scheduled import register_scheduled_tasks
    register_scheduled_tasks()

    taskiq worker notesphere.backend.tasks.broker:broker
    taskiq scheduler notesphere.backend.tasks.scheduler:scheduler
"""

from typing import Any

from notesphere.backend.core.logging import get_logger
from notesphere.backend.core.utils import utc_now

logger = get_logger(__name__)


async def purge_expired_notes(retention_days: int = 30) -> dict[str, Any]:
    """
    Permanently delete notes trashed more than retention_days ago, for all users.

    Returns:
        Sweep statistics
    """
    from notesphere.backend.core.database import get_session_factory
    from notesphere.backend.tasks.retention import run_sweep

    started_at = utc_now()
    purged = await run_sweep(get_session_factory(), retention_days)

    result = {
        "status": "completed",
        "purged": purged,
        "retention_days": retention_days,
        "started_at": started_at.isoformat(),
        "completed_at": utc_now().isoformat(),
    }
    logger.info("Scheduled retention sweep completed", extra={"source": "tasks", **result})
    return result


def build_scheduled_tasks() -> dict[str, dict[str, Any]]:
    """Schedule metadata for every scheduled task, read from retention.yaml."""
    from notesphere.backend.core.config import get_app_config

    retention = get_app_config().retention
    return {
        "purge_expired_notes": {
            "function": purge_expired_notes,
            "schedule": [
                {
                    "cron": retention.scheduled_cron,
                    "kwargs": {"retention_days": retention.retention_days},
                }
            ],
            "retry_on_error": False,
            "description": "Purge notes whose trash retention has expired",
        },
    }


def register_scheduled_tasks() -> dict[str, Any]:
    """
    Register scheduled task functions with the Taskiq broker.

    Returns:
        Dict mapping task names to registered task objects
    """
    from notesphere.backend.tasks.broker import get_broker

    broker = get_broker()
    registered = {}

    for task_name, config in build_scheduled_tasks().items():
        registered[task_name] = broker.task(
            task_name=task_name,
            schedule=config["schedule"],
            retry_on_error=config.get("retry_on_error", False),
        )(config["function"])

    logger.info(
        "Scheduled tasks registered",
        extra={"task_count": len(registered), "tasks": list(registered.keys())},
    )
    return registered

"""
Taskiq scheduler for the retention sweep.

LabelScheduleSource reads the cron label that register_scheduled_tasks()
attaches from retention.yaml.

Usage:
    taskiq scheduler notesphere.backend.tasks.scheduler:scheduler

Run a single scheduler process; each one enqueues its own sweep per tick.
"""

from functools import lru_cache
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from taskiq import TaskiqScheduler


@lru_cache(maxsize=1)
def get_scheduler() -> "TaskiqScheduler":
    from taskiq import TaskiqScheduler
    from taskiq.schedule_sources import LabelScheduleSource

    from notesphere.backend.tasks.broker import get_worker_broker

    broker = get_worker_broker()
    return TaskiqScheduler(broker=broker, sources=[LabelScheduleSource(broker)])


def __getattr__(name: str):
    if name == "scheduler":
        return get_scheduler()
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

"""
Taskiq broker for the scheduled retention sweep.

Redis connection details come from database.yaml (redis section) and
REDIS_PASSWORD in config/.env. Nothing connects until a worker starts.

Usage:
    taskiq worker notesphere.backend.tasks.broker:broker
"""

from functools import lru_cache
from typing import TYPE_CHECKING

from notesphere.backend.core.config import get_app_config, get_redis_url
from notesphere.backend.core.logging import get_logger

if TYPE_CHECKING:
    from taskiq_redis import ListQueueBroker

logger = get_logger(__name__)


def create_broker() -> "ListQueueBroker":
    from taskiq import TaskiqEvents
    from taskiq_redis import ListQueueBroker, RedisAsyncResultBackend

    redis_url = get_redis_url()
    settings = get_app_config().database.redis.broker

    broker = ListQueueBroker(url=redis_url, queue_name=settings.queue_name).with_result_backend(
        RedisAsyncResultBackend(redis_url=redis_url, result_ex_time=settings.result_expiry_seconds)
    )

    async def on_worker_startup(_state) -> None:
        from notesphere.backend.core.logging import setup_logging

        setup_logging()
        logger.info("Taskiq worker started", extra={"queue_name": settings.queue_name})

    async def on_worker_shutdown(_state) -> None:
        from notesphere.backend.core.database import dispose_engine

        await dispose_engine()
        logger.info("Taskiq worker stopped")

    broker.add_event_handler(TaskiqEvents.WORKER_STARTUP, on_worker_startup)
    broker.add_event_handler(TaskiqEvents.WORKER_SHUTDOWN, on_worker_shutdown)
    return broker


@lru_cache(maxsize=1)
def get_broker() -> "ListQueueBroker":
    return create_broker()


@lru_cache(maxsize=1)
def get_worker_broker() -> "ListQueueBroker":
    """The broker with scheduled tasks registered, which worker and scheduler both need."""
    from notesphere.backend.tasks.scheduled import register_scheduled_tasks

    broker = get_broker()
    register_scheduled_tasks()
    return broker


def __getattr__(name: str):
    # `taskiq worker ...:broker` resolves this lazily
    if name == "broker":
        return get_worker_broker()
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

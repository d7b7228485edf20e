"""
Retention Sweeper.

Long-lived asyncio task that permanently deletes notes that have been in
the trash longer than the retention window. Started and stopped from the
FastAPI lifespan.

    wait initial_delay -> sweep -> wait interval -> sweep -> ...

Each sweep opens its own session and commits on its own. A failed sweep
is logged and the loop carries on with the next cycle. Shutdown sets an
event: waits end immediately, a sweep already running is allowed to
finish.

Usage:
    sweeper = RetentionSweeper.from_config(get_session_factory(), config.retention)
    sweeper.start()
    ...
    await sweeper.stop()
"""

import asyncio
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from notesphere.backend.core.logging import get_logger, log_with_source
from notesphere.backend.services.lifecycle import LifecycleManager

logger = get_logger(__name__)


async def run_sweep(
    session_factory: async_sessionmaker[AsyncSession],
    retention_days: int,
) -> int:
    """
    Run a single retention sweep in its own session.

    Returns:
        Number of notes purged
    """
    async with session_factory() as session:
        manager = LifecycleManager(session)
        purged = await manager.sweep_expired(retention_days)
        await session.commit()
    return purged


class RetentionSweeper:
    """Periodic purge of expired trash, cancellable through an asyncio.Event."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        retention_days: int = 30,
        initial_delay: float = 10.0,
        interval: float = 24 * 60 * 60,
    ) -> None:
        self.session_factory = session_factory
        self.retention_days = retention_days
        self.initial_delay = initial_delay
        self.interval = interval
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    @classmethod
    def from_config(
        cls,
        session_factory: async_sessionmaker[AsyncSession],
        retention: Any,
    ) -> "RetentionSweeper":
        """Build from the retention.yaml schema."""
        return cls(
            session_factory,
            retention_days=retention.retention_days,
            initial_delay=retention.initial_delay_seconds,
            interval=retention.interval_hours * 60 * 60,
        )

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the sweep loop on the running event loop."""
        if self.running:
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(self._run(), name="retention-sweeper")

    async def stop(self) -> None:
        """Signal shutdown and wait for the loop to exit."""
        self._stop_event.set()
        task, self._task = self._task, None
        if task is not None:
            await task

    async def run_once(self) -> int:
        return await run_sweep(self.session_factory, self.retention_days)

    async def _wait(self, timeout: float) -> bool:
        """Sleep up to timeout seconds. True when shutdown was requested."""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return False
        return True

    async def _run(self) -> None:
        log_with_source(
            logger,
            "tasks",
            "info",
            "Retention sweeper started",
            retention_days=self.retention_days,
            initial_delay=self.initial_delay,
            interval=self.interval,
        )

        if not await self._wait(self.initial_delay):
            while True:
                try:
                    await self.run_once()
                except Exception:
                    logger.exception(
                        "Retention sweep failed",
                        extra={"source": "tasks", "retention_days": self.retention_days},
                    )
                if await self._wait(self.interval):
                    break

        log_with_source(logger, "tasks", "info", "Retention sweeper stopped")

"""Sweep Scheduler: recurring background runner for the expiration sweep.

Invariants:
    - At most one sweep runs at a time (is_running latch); overlapping ticks are skipped
    - Each tick opens its own session from the manager and closes it afterwards
    - An unexpected tick failure drops the cached manager so the next tick re-resolves it
    - The loop never dies on a failed tick; only stop() ends it

Design Decisions:
    - Explicit task object with start/stop, owned by the app lifespan
    - Sweep construction injected (sweep_factory) so infrastructure stays free of use cases
"""

import asyncio
import logging
from contextlib import suppress
from datetime import datetime, timezone
from typing import Callable, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from forum_moderation.core.sweep_report import SweepResult
from forum_moderation.infrastructure.database import DatabaseSessionManager

logger = logging.getLogger(__name__)


class SweepRunner(Protocol):
    async def execute(self, now: datetime | None = None) -> SweepResult: ...


class SanctionsSweepTask:
    """Runs the expiration sweep on a fixed interval."""

    def __init__(
        self,
        manager_provider: Callable[[], DatabaseSessionManager],
        sweep_factory: Callable[[AsyncSession], SweepRunner],
        interval_minutes: float = 30,
        initial_delay_seconds: float = 5,
    ):
        self._manager_provider = manager_provider
        self._sweep_factory = sweep_factory
        self.interval_seconds = interval_minutes * 60
        self.initial_delay_seconds = initial_delay_seconds
        self._manager: DatabaseSessionManager | None = None
        self._task: asyncio.Task | None = None
        self.is_running = False
        self.last_run_at: datetime | None = None
        self.last_result: SweepResult | None = None
        self.last_error: str | None = None

    @property
    def is_scheduled(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.is_scheduled:
            logger.debug("Sweep task already scheduled")
            return
        self._task = asyncio.create_task(self._loop(), name="sanctions-sweep")
        logger.info(
            f"Sanctions sweep scheduled every {self.interval_seconds / 60:g} minutes",
        )

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Sanctions sweep stopped")

    async def _loop(self) -> None:
        await asyncio.sleep(self.initial_delay_seconds)
        while True:
            await self.run_once()
            await asyncio.sleep(self.interval_seconds)

    async def run_once(self) -> SweepResult | None:
        """Run one sweep now; returns None when skipped or failed."""
        if self.is_running:
            logger.warning("Sanctions sweep already running; skipping tick")
            return None

        self.is_running = True
        self.last_run_at = datetime.now(timezone.utc)
        try:
            if self._manager is None:
                self._manager = self._manager_provider()
            async with self._manager.session() as db:
                result = await self._sweep_factory(db).execute()
            self.last_result = result
            self.last_error = None
            return result
        except Exception as e:
            self._manager = None
            self.last_error = str(e)
            logger.error(
                f"Sanctions sweep failed: {e}",
                extra={"error_code": "SWEEP_FAILED"},
            )
            return None
        finally:
            self.is_running = False

    def get_status(self) -> dict:
        return {
            "is_running": self.is_running,
            "is_scheduled": self.is_scheduled,
            "interval_minutes": self.interval_seconds / 60,
            "last_run_at": self.last_run_at.isoformat() if self.last_run_at else None,
            "last_result": self.last_result.to_dict() if self.last_result else None,
            "last_error": self.last_error,
        }


# Registered by the app lifespan
sweep_task: SanctionsSweepTask | None = None


def init_sweep_task(*args, **kwargs) -> SanctionsSweepTask:
    global sweep_task
    sweep_task = SanctionsSweepTask(*args, **kwargs)
    return sweep_task


def get_sweep_task() -> SanctionsSweepTask:
    """FastAPI dependency for the registered sweep task."""
    if sweep_task is None:
        raise RuntimeError("Sweep task not initialized")
    return sweep_task

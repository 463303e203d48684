"""
Daily wall-clock trigger running inside the asyncio event loop.
"""
import asyncio
import datetime as dt
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


def next_run_at(hour: int, now: dt.datetime) -> dt.datetime:
    """The next ``hour``:00 strictly after *now* (local time)."""
    candidate = now.replace(hour=hour, minute=0, second=0, microsecond=0)
    if candidate <= now:
        candidate += dt.timedelta(days=1)
    return candidate


def seconds_until_next_run(hour: int, now: dt.datetime) -> float:
    return (next_run_at(hour, now) - now).total_seconds()


class DailyScheduler:
    """Calls *job* once a day at *hour*:00 until stopped. Job errors are logged."""

    def __init__(
        self,
        hour: int,
        job: Callable[[], Awaitable[object]],
        clock: Callable[[], dt.datetime] = dt.datetime.now,
    ):
        self.hour = hour
        self.job = job
        self.clock = clock
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._loop())
        logger.info("Daily sync scheduled for %02d:00, next run at %s",
                    self.hour, next_run_at(self.hour, self.clock()))

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(seconds_until_next_run(self.hour, self.clock()))
            logger.info("Running scheduled sync")
            try:
                await self.job()
            except Exception:
                logger.exception("Scheduled sync failed")

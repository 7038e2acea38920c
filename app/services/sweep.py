import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from app.cache import db as cache_db
from app.core.config import settings

logger = logging.getLogger(__name__)


class CacheSweeper:
    """
    Periodic removal of cache entries older than the retention window.

    Runs once when started and then every ``interval``. A failed sweep is
    logged and the schedule carries on.
    """

    def __init__(
        self,
        interval: timedelta = timedelta(hours=settings.CACHE_SWEEP_INTERVAL_HOURS),
        retention: timedelta = timedelta(days=settings.CACHE_RETENTION_DAYS),
        cache=cache_db,
    ):
        self.interval = interval
        self.retention = retention
        self.cache = cache
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def sweep(self, now: Optional[datetime] = None) -> int:
        """Delete expired entries once. Returns the number removed."""
        cutoff = (now or datetime.now(timezone.utc)) - self.retention
        before = self.cache.count()
        removed = self.cache.purge_old(cutoff)
        logger.info("Cache sweep: %d entries before, %d removed, %d after", before, removed, self.cache.count())
        return removed

    async def _run(self) -> None:
        while True:
            try:
                await asyncio.to_thread(self.sweep)
            except Exception:
                logger.exception("Cache sweep failed")
            await asyncio.sleep(self.interval.total_seconds())

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="cache-sweeper")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

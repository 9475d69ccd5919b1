import asyncio
import time
from typing import Optional

from pollproxy.core.logging import get_logger
from pollproxy.fetch.base import FetchOutcome
from pollproxy.fetch.fetcher import UpstreamFetcher

logger = get_logger("pollproxy.scheduler")


class PollScheduler:
    """
    Single-worker polling loop.

    Fetches immediately, then once per interval measured from the start of
    the previous tick. Fetches never overlap: a tick requested while one is
    in flight is skipped.
    """

    def __init__(self, fetcher: UpstreamFetcher, interval: float = 60):
        self.fetcher = fetcher
        self.interval = interval
        self.skipped_ticks = 0
        self._lock = asyncio.Lock()
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    async def tick(self) -> Optional[FetchOutcome]:
        """Run one fetch unless another is still in flight."""
        if self._lock.locked():
            self.skipped_ticks += 1
            logger.warning("fetch still in flight, skipping tick", skipped_ticks=self.skipped_ticks)
            return None
        async with self._lock:
            return await self.fetcher.fetch_once()

    async def run(self) -> None:
        logger.info("scheduler started", interval=self.interval)
        while True:
            started = time.monotonic()
            try:
                await self.tick()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("unexpected error during scheduled fetch")
            elapsed = time.monotonic() - started
            await asyncio.sleep(max(0.0, self.interval - elapsed))

    def start(self) -> asyncio.Task:
        if not self.running:
            self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("scheduler stopped")

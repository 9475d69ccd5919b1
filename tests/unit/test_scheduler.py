import asyncio
from datetime import datetime, timezone

from pollproxy.fetch.base import FetchSuccess
from pollproxy.services.scheduler import PollScheduler

class StubFetcher:
    """Fetcher double that records how many fetches overlap"""

    def __init__(self, delay=0.0, fail_first=False):
        self.delay = delay
        self.fail_first = fail_first
        self.calls = 0
        self.in_flight = 0
        self.max_in_flight = 0
        self.release = None

    async def fetch_once(self):
        self.calls += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.release is not None:
                await self.release.wait()
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.fail_first and self.calls == 1:
                raise RuntimeError("boom")
            return FetchSuccess(payload={"n": self.calls}, fetched_at=datetime.now(timezone.utc))
        finally:
            self.in_flight -= 1

class TestTick:
    """Manual ticks never overlap"""

    def test_tick_runs_fetch(self):
        fetcher = StubFetcher()
        scheduler = PollScheduler(fetcher, interval=60)

        outcome = asyncio.run(scheduler.tick())

        assert outcome.payload == {"n": 1}
        assert fetcher.calls == 1

    def test_tick_skipped_while_fetch_in_flight(self):
        fetcher = StubFetcher()
        scheduler = PollScheduler(fetcher, interval=60)

        async def scenario():
            fetcher.release = asyncio.Event()
            first = asyncio.create_task(scheduler.tick())
            await asyncio.sleep(0.01)
            assert scheduler.busy
            second = await scheduler.tick()
            fetcher.release.set()
            return await first, second

        first, second = asyncio.run(scenario())
        assert first is not None
        assert second is None
        assert fetcher.calls == 1
        assert scheduler.skipped_ticks == 1

class TestLoop:
    """The polling loop fetches immediately and then periodically"""

    def test_fetches_immediately_on_start(self):
        fetcher = StubFetcher()
        scheduler = PollScheduler(fetcher, interval=60)

        async def scenario():
            scheduler.start()
            await asyncio.sleep(0.05)
            await scheduler.stop()

        asyncio.run(scenario())
        assert fetcher.calls == 1
        assert not scheduler.running

    def test_repeats_without_overlap(self):
        fetcher = StubFetcher(delay=0.02)
        scheduler = PollScheduler(fetcher, interval=0.01)

        async def scenario():
            scheduler.start()
            assert scheduler.running
            await asyncio.sleep(0.2)
            await scheduler.stop()

        asyncio.run(scenario())
        assert fetcher.calls >= 3
        assert fetcher.max_in_flight == 1

    def test_loop_survives_unexpected_error(self):
        fetcher = StubFetcher(fail_first=True)
        scheduler = PollScheduler(fetcher, interval=0.01)

        async def scenario():
            scheduler.start()
            await asyncio.sleep(0.1)
            await scheduler.stop()

        asyncio.run(scenario())
        assert fetcher.calls >= 2

    def test_stop_without_start(self):
        scheduler = PollScheduler(StubFetcher(), interval=60)
        asyncio.run(scheduler.stop())
        assert not scheduler.running

import time
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI

from pollproxy.api.routes import router
from pollproxy.cache.store import ResultCache
from pollproxy.core.config import settings
from pollproxy.core.logging import configure_logging, get_logger
from pollproxy.fetch.codecs import CodecRegistry, build_registry
from pollproxy.fetch.fetcher import UpstreamFetcher
from pollproxy.services.scheduler import PollScheduler

logger = get_logger("pollproxy.main")

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.
    Start the polling loop on startup, cancel it on shutdown.
    """
    if app.state.start_scheduler:
        logger.info("fetching initial data", url=settings.UPSTREAM_URL)
        app.state.scheduler.start()

    yield

    logger.info("shutting down")
    await app.state.scheduler.stop()

def create_app(
    start_scheduler: bool = True,
    registry: Optional[CodecRegistry] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Build the application with its single cache, fetcher and scheduler."""
    app = FastAPI(
        title="Poll Proxy",
        description="Polls one upstream JSON endpoint and re-serves the latest result",
        version="1.0.0",
        lifespan=lifespan,
    )

    cache = ResultCache()
    registry = registry or build_registry()
    fetcher = UpstreamFetcher(
        url=settings.UPSTREAM_URL,
        headers=settings.upstream_headers(),
        registry=registry,
        cache=cache,
        timeout=settings.REQUEST_TIMEOUT,
        preview_chars=settings.RAW_PREVIEW_CHARS,
        transport=transport,
    )

    app.state.started_at = time.monotonic()
    app.state.start_scheduler = start_scheduler
    app.state.cache = cache
    app.state.registry = registry
    app.state.fetcher = fetcher
    app.state.scheduler = PollScheduler(fetcher, interval=settings.POLL_INTERVAL_SECONDS)

    app.include_router(router)
    return app

def main() -> None:
    import uvicorn

    configure_logging(settings.LOG_LEVEL, json_output=settings.LOG_JSON)
    logger.info("starting server", host=settings.HOST, port=settings.PORT)
    uvicorn.run(create_app(), host=settings.HOST, port=settings.PORT, log_config=None)

if __name__ == "__main__":
    main()

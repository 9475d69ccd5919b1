import time
from datetime import datetime, timezone

from fastapi import APIRouter, Request

from pollproxy.schemas import HealthResponse

router = APIRouter()

@router.get("/")
async def root():
    """Root endpoint listing available endpoints"""
    return {
        "message": "RugPlay API Fetcher",
        "endpoints": {
            "/data": "Get the latest fetched data",
            "/health": "Health check",
        },
    }

@router.get("/data")
async def latest_data(request: Request):
    """
    Latest cached upstream payload.

    Serves the last good payload even when the most recent fetch failed;
    ``error`` then carries the failure message.
    """
    view = request.app.state.cache.read()
    return view.model_dump(mode="json", by_alias=True)

@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """Health check endpoint"""
    state = request.app.state
    cache_state = state.cache.state
    return HealthResponse(
        uptime=round(time.monotonic() - state.started_at, 3),
        timestamp=datetime.now(timezone.utc),
        codecs=state.registry.capabilities(),
        attempts=cache_state.attempts,
        failures=cache_state.failures,
    )

import asyncio
import pytest
import httpx
from pollproxy.cache.store import ResultCache
from pollproxy.fetch.codecs import CodecUnavailable, build_registry
from pollproxy.fetch.fetcher import UpstreamFetcher

UPSTREAM_URL = "https://upstream.test/api/coin/HTTP?timeframe=1m"

def make_upstream(body: bytes, encoding=None, status_code=200, delay=0.0):
    """Mock upstream returning ``body`` as-is, without httpx decoding it"""
    headers = {"Content-Type": "application/json"}
    if encoding:
        headers["Content-Encoding"] = encoding

    async def handler(request):
        if delay:
            await asyncio.sleep(delay)
        return httpx.Response(status_code, headers=headers, stream=httpx.ByteStream(body))

    return httpx.MockTransport(handler)

@pytest.fixture
def registry():
    """Registry with zstd forced unavailable, independent of installed packages"""
    return build_registry(zstd=CodecUnavailable(reason="zstandard package not installed"))

@pytest.fixture
def cache():
    return ResultCache()

@pytest.fixture
def make_fetcher(registry, cache):
    """Factory building a fetcher against a mock transport"""
    def _make(transport, timeout=5.0):
        return UpstreamFetcher(
            url=UPSTREAM_URL,
            headers={"User-Agent": "pollproxy-tests", "Accept-Encoding": "gzip, deflate, br, zstd"},
            registry=registry,
            cache=cache,
            timeout=timeout,
            transport=transport,
        )
    return _make

@pytest.fixture
def mock_upstream():
    return make_upstream

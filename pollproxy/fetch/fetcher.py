import asyncio
import json
import time
from datetime import datetime, timezone
from typing import Dict, Optional, Tuple

import httpx

from pollproxy.cache.store import ResultCache
from pollproxy.core.errors import CodecUnavailableError, DecompressionError
from pollproxy.core.logging import get_logger
from pollproxy.fetch.base import FetchErrorKind, FetchFailure, FetchOutcome, FetchSuccess
from pollproxy.fetch.codecs import CodecRegistry

logger = get_logger("pollproxy.fetcher")


def _reject_constant(name: str):
    raise ValueError(f"invalid JSON constant {name}")


class UpstreamFetcher:
    """
    Fetches the upstream JSON document, one request at a time.

    The raw (still encoded) body is read in full, decompressed through the
    codec registry and parsed as JSON. Every attempt ends in exactly one
    FetchOutcome written to the result cache.
    """

    def __init__(
        self,
        url: str,
        headers: Dict[str, str],
        registry: CodecRegistry,
        cache: ResultCache,
        timeout: float = 30,
        preview_chars: int = 200,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.headers = dict(headers)
        self.registry = registry
        self.cache = cache
        self.timeout = timeout
        self.preview_chars = preview_chars
        self._transport = transport

    async def fetch_once(self) -> FetchOutcome:
        """Run one request/response cycle and store its outcome."""
        attempt = self.cache.begin_attempt()
        started = time.monotonic()
        logger.info("fetch started", url=self.url, attempt=attempt)

        outcome, size = await self._attempt()

        elapsed = round(time.monotonic() - started, 3)
        applied = self.cache.update(outcome, attempt=attempt)
        if isinstance(outcome, FetchSuccess):
            logger.info(
                "fetch succeeded",
                attempt=attempt,
                fetched_at=outcome.fetched_at.isoformat(),
                size=size,
                payload_type=type(outcome.payload).__name__,
                elapsed=elapsed,
                applied=applied,
            )
        else:
            logger.error(
                "fetch failed",
                attempt=attempt,
                kind=outcome.kind.value,
                error=outcome.message,
                size=size,
                elapsed=elapsed,
                applied=applied,
            )
        return outcome

    async def _attempt(self) -> Tuple[FetchOutcome, Optional[int]]:
        """Return the outcome and the raw body size, None when no body arrived."""
        try:
            status_code, encoding, body = await asyncio.wait_for(self._download(), timeout=self.timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            return FetchFailure(FetchErrorKind.TIMEOUT, f"Request timeout after {self.timeout:g}s"), None
        except httpx.HTTPError as e:
            return FetchFailure(FetchErrorKind.TRANSPORT, f"Request error: {type(e).__name__}: {e}"), None
        except OSError as e:
            return FetchFailure(FetchErrorKind.TRANSPORT, f"Request error: {e}"), None

        if status_code >= 400:
            logger.warning("upstream returned error status", status_code=status_code, size=len(body))
        return self.decode(encoding, body), len(body)

    async def _download(self) -> Tuple[int, Optional[str], bytes]:
        async with httpx.AsyncClient(
            timeout=self.timeout,
            headers=self.headers,
            transport=self._transport,
        ) as client:
            async with client.stream("GET", self.url) as response:
                # aiter_raw skips httpx's own content decoding
                chunks = []
                async for chunk in response.aiter_raw():
                    chunks.append(chunk)
                encodings = response.headers.get_list("content-encoding")
                encoding = encodings[0].strip() if encodings else None
                return response.status_code, encoding, b"".join(chunks)

    def decode(self, encoding: Optional[str], body: bytes) -> FetchOutcome:
        """Decompress and parse a raw body into an outcome."""
        try:
            decoded = self.registry.decompress(encoding, body)
        except (CodecUnavailableError, DecompressionError) as e:
            return FetchFailure(FetchErrorKind.DECOMPRESSION, f"Decompression error: {e.message}")

        try:
            text = decoded.decode("utf-8")
            payload = json.loads(text, parse_constant=_reject_constant)
        except (UnicodeDecodeError, ValueError) as e:
            preview = decoded[: self.preview_chars].decode("utf-8", errors="replace")
            return FetchFailure(
                FetchErrorKind.PARSE,
                f"JSON parse error: {e}; raw response: {preview!r}",
            )

        return FetchSuccess(payload=payload, fetched_at=datetime.now(timezone.utc))

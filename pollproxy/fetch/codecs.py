"""
Content-encoding codecs.

Maps a ``Content-Encoding`` identifier to a decompression function. gzip,
deflate and br are always present; zstd depends on the optional
``zstandard`` package, which is probed once when the registry is built.
"""

import gzip
import zlib
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Union

import brotli

from pollproxy.core.errors import CodecUnavailableError, DecompressionError
from pollproxy.core.logging import get_logger

logger = get_logger("pollproxy.codecs")

Decompress = Callable[[bytes], bytes]


@dataclass(frozen=True)
class CodecAvailable:
    decompress: Decompress


@dataclass(frozen=True)
class CodecUnavailable:
    reason: str


Codec = Union[CodecAvailable, CodecUnavailable]


def _gunzip(data: bytes) -> bytes:
    return gzip.decompress(data)


def _inflate(data: bytes) -> bytes:
    # Servers send both zlib-wrapped and raw deflate under the same name
    try:
        return zlib.decompress(data)
    except zlib.error:
        return zlib.decompress(data, -zlib.MAX_WBITS)


def _unbrotli(data: bytes) -> bytes:
    return brotli.decompress(data)


def probe_zstd() -> Codec:
    """Try to load the zstd codec. Called once, at startup."""
    try:
        import zstandard  # optional dependency
    except ImportError as e:
        logger.warning("zstd codec unavailable", reason=str(e))
        return CodecUnavailable(reason=f"zstandard package not installed: {e}")

    def _unzstd(data: bytes) -> bytes:
        # decompressobj handles frames without a declared content size
        dobj = zstandard.ZstdDecompressor().decompressobj()
        output = dobj.decompress(data)
        if not dobj.eof:
            raise zstandard.ZstdError("incomplete zstd frame")
        return output

    logger.info("zstd codec available", version=getattr(zstandard, "__version__", "unknown"))
    return CodecAvailable(decompress=_unzstd)


class CodecRegistry:
    """Immutable mapping of encoding identifiers to codecs."""

    def __init__(self, codecs: Dict[str, Codec]):
        self._codecs = dict(codecs)

    def resolve(self, encoding: Optional[str]) -> Optional[Codec]:
        """Return the codec for ``encoding``, or None to pass bytes through.

        Lookup is case-sensitive and uses the header value verbatim.
        """
        if not encoding:
            return None
        return self._codecs.get(encoding)

    def decompress(self, encoding: Optional[str], data: bytes) -> bytes:
        codec = self.resolve(encoding)
        if codec is None:
            return data
        if isinstance(codec, CodecUnavailable):
            raise CodecUnavailableError(
                f"Codec '{encoding}' unavailable ({codec.reason}); received {len(data)} bytes",
                encoding=encoding,
                size=len(data),
            )
        try:
            return codec.decompress(data)
        except Exception as e:
            raise DecompressionError(
                f"Failed to decompress {encoding} body of {len(data)} bytes: {e}",
                encoding=encoding,
                size=len(data),
            ) from e

    def is_available(self, encoding: str) -> bool:
        return isinstance(self._codecs.get(encoding), CodecAvailable)

    def capabilities(self) -> Dict[str, bool]:
        return {name: isinstance(codec, CodecAvailable) for name, codec in self._codecs.items()}


def build_registry(zstd: Optional[Codec] = None) -> CodecRegistry:
    """Build the registry, probing for zstd unless a capability is given."""
    if zstd is None:
        zstd = probe_zstd()
    return CodecRegistry({
        "gzip": CodecAvailable(decompress=_gunzip),
        "deflate": CodecAvailable(decompress=_inflate),
        "br": CodecAvailable(decompress=_unbrotli),
        "zstd": zstd,
    })

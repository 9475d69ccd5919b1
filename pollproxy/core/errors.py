"""
Error types raised inside the fetch pipeline.

None of these leave the fetch executor: they are converted to a
``FetchFailure`` and surfaced through the result cache.
"""

from typing import Optional


class PollProxyError(Exception):
    """Base exception for the polling proxy."""

    def __init__(self, message: str, encoding: Optional[str] = None, size: Optional[int] = None):
        self.message = message
        self.encoding = encoding
        self.size = size
        super().__init__(message)


class CodecUnavailableError(PollProxyError):
    """The encoding is recognized but its codec could not be loaded at startup."""


class DecompressionError(PollProxyError):
    """The compressed stream is malformed or truncated."""

"""
In-memory result cache shared by the fetcher and the HTTP routes.

State lives in one immutable snapshot that ``update`` swaps in a single
assignment, so readers never see a half-written outcome and never wait on
an in-flight fetch.
"""

from dataclasses import dataclass, replace
from typing import Optional

from pollproxy.fetch.base import FetchFailure, FetchOutcome, FetchSuccess
from pollproxy.schemas import CacheStatus, CacheView


@dataclass(frozen=True)
class CacheState:
    latest: Optional[FetchOutcome] = None
    last_success: Optional[FetchSuccess] = None
    applied_attempt: int = 0
    attempts: int = 0
    failures: int = 0


class ResultCache:
    def __init__(self):
        self._state = CacheState()
        self._next_attempt = 0

    @property
    def state(self) -> CacheState:
        return self._state

    def begin_attempt(self) -> int:
        """Allocate an id for a fetch attempt that is about to start"""
        self._next_attempt += 1
        return self._next_attempt

    def update(self, outcome: FetchOutcome, attempt: Optional[int] = None) -> bool:
        """
        Record the outcome of a fetch attempt.

        Outcomes from an attempt older than one already applied are dropped
        and False is returned. A failure keeps the last successful payload.
        """
        current = self._state
        if attempt is None:
            attempt = self.begin_attempt()
        if attempt <= current.applied_attempt:
            return False

        if isinstance(outcome, FetchSuccess):
            new_state = replace(
                current,
                latest=outcome,
                last_success=outcome,
                applied_attempt=attempt,
                attempts=current.attempts + 1,
            )
        else:
            new_state = replace(
                current,
                latest=outcome,
                applied_attempt=attempt,
                attempts=current.attempts + 1,
                failures=current.failures + 1,
            )
        self._state = new_state
        return True

    def read(self) -> CacheView:
        state = self._state
        success = state.last_success
        latest = state.latest

        error = None
        error_kind = None
        if isinstance(latest, FetchFailure):
            error = latest.message
            error_kind = latest.kind.value

        if success is not None:
            status = CacheStatus.SUCCESS
        elif latest is not None:
            status = CacheStatus.ERROR
        else:
            status = CacheStatus.NO_DATA

        return CacheView(
            data=success.payload if success else None,
            last_fetch_time=success.fetched_at if success else None,
            error=error,
            error_kind=error_kind,
            status=status,
        )

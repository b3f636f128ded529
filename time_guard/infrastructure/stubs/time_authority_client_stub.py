"""Stub TimeAuthorityClient for development and testing.

Answers from a queue of scripted responses first, then from an optional
``now_ms`` callable standing in for the authority's clock. Every call is
recorded with its refresh flag.

WARNING: This stub is for development/testing only.
Production should use HttpxTimeAuthorityClient.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable

from time_guard.application.ports.time_authority_client import TimeAuthorityClient
from time_guard.domain.errors import TimeSyncError
from time_guard.domain.models.anchor import TimeSample


class TimeAuthorityClientStub(TimeAuthorityClient):
    """In-memory time authority.

    Attributes:
        refresh_calls: Refresh flag of every fetch_time() call, in order.
        unreachable: When True, every call raises TimeSyncError.
    """

    def __init__(
        self,
        *,
        now_ms: Callable[[], float] | None = None,
        tolerance_ms: float | None = None,
        max_offline_ms: float | None = None,
    ) -> None:
        self._now_ms = now_ms
        self._tolerance_ms = tolerance_ms
        self._max_offline_ms = max_offline_ms
        self._scripted: deque[TimeSample | Exception] = deque()
        self.refresh_calls: list[bool] = []
        self.unreachable = False
        self.closed = False

    @property
    def call_count(self) -> int:
        return len(self.refresh_calls)

    def queue_sample(self, sample: TimeSample) -> None:
        """Answer the next unanswered call with ``sample``."""
        self._scripted.append(sample)

    def queue_time(self, server_unix_ms: float) -> None:
        self.queue_sample(
            TimeSample(
                server_unix_ms=server_unix_ms,
                tolerance_ms=self._tolerance_ms,
                max_offline_ms=self._max_offline_ms,
            )
        )

    def queue_error(self, error: Exception | None = None) -> None:
        """Fail the next unanswered call with ``error`` (default TimeSyncError)."""
        self._scripted.append(error or TimeSyncError("Time authority unreachable"))

    async def fetch_time(self, *, refresh: bool = False) -> TimeSample:
        self.refresh_calls.append(refresh)
        if self.unreachable:
            raise TimeSyncError("Time authority unreachable")
        if self._scripted:
            scripted = self._scripted.popleft()
            if isinstance(scripted, Exception):
                raise scripted
            return scripted
        if self._now_ms is None:
            raise TimeSyncError("No scripted response and no authority clock")
        return TimeSample(
            server_unix_ms=self._now_ms(),
            tolerance_ms=self._tolerance_ms,
            max_offline_ms=self._max_offline_ms,
        )

    async def aclose(self) -> None:
        self.closed = True

"""Clock-trust errors.

Failures that never cross the guard's public API:

- ``TimeSyncError``: sync paths catch it and fold it into the trust state as
  the ``NETWORK`` reason.
- ``BroadcastTransportError``: the guard logs it and keeps running as a
  single instance.

``ClockLockedError`` is different. It is a control-flow signal raised by the
outbound request hook while the guard is locked. The calling HTTP layer is
expected to catch it and prompt the user to resynchronize; it is not a bug.
"""

from __future__ import annotations

from time_guard.domain.exceptions import TimeGuardError

CLOCK_LOCKED_MESSAGE = "time-guard-locked"


class ClockLockedError(TimeGuardError):
    """Raised when an outgoing request is blocked because clock trust is lost.

    The ``is_time_guard_locked`` marker lets callers tell this apart from
    transport errors without importing the class.

    Attributes:
        method: HTTP method of the blocked request, if known.
        url: URL of the blocked request, if known.
    """

    is_time_guard_locked = True

    def __init__(self, method: str | None = None, url: str | None = None) -> None:
        self.method = method
        self.url = url
        super().__init__(CLOCK_LOCKED_MESSAGE)


class TimeSyncError(TimeGuardError):
    """Raised when the time authority is unreachable or its answer is unusable.

    Attributes:
        status_code: HTTP status of the failed response, None for transport
            or parse failures.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class BroadcastTransportError(TimeGuardError):
    """Raised when a broadcast transport cannot reach its medium."""

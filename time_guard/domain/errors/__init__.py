"""Domain errors for time-guard."""

from time_guard.domain.errors.time_guard import (
    CLOCK_LOCKED_MESSAGE,
    BroadcastTransportError,
    ClockLockedError,
    TimeSyncError,
)

__all__: list[str] = [
    "CLOCK_LOCKED_MESSAGE",
    "BroadcastTransportError",
    "ClockLockedError",
    "TimeSyncError",
]

"""
Domain layer - pure clock-trust logic for time-guard.

This layer contains:
- Value objects (Anchor, TrustThresholds, TimeSample)
- Trust state models (TrustState, BroadcastSnapshot)
- Domain exceptions

CRITICAL: This layer must NOT import from application, infrastructure, or api.
Only stdlib and typing imports are allowed.
"""

from time_guard.domain.errors import (
    BroadcastTransportError,
    ClockLockedError,
    TimeSyncError,
)
from time_guard.domain.exceptions import TimeGuardError

__all__: list[str] = [
    "TimeGuardError",
    "ClockLockedError",
    "TimeSyncError",
    "BroadcastTransportError",
]

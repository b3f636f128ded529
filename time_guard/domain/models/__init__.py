"""Domain models for time-guard."""

from time_guard.domain.models.anchor import (
    DEFAULT_MAX_OFFLINE_MS,
    DEFAULT_TOLERANCE_MS,
    Anchor,
    TimeSample,
    TrustThresholds,
)
from time_guard.domain.models.broadcast_snapshot import (
    TIME_GUARD_STATE_MESSAGE_TYPE,
    BroadcastSnapshot,
)
from time_guard.domain.models.trust_state import (
    HysteresisAccumulator,
    TrustReason,
    TrustState,
    TrustStatus,
)

__all__: list[str] = [
    "Anchor",
    "BroadcastSnapshot",
    "DEFAULT_MAX_OFFLINE_MS",
    "DEFAULT_TOLERANCE_MS",
    "HysteresisAccumulator",
    "TIME_GUARD_STATE_MESSAGE_TYPE",
    "TimeSample",
    "TrustReason",
    "TrustState",
    "TrustStatus",
    "TrustThresholds",
]

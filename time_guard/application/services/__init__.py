"""Application services for time-guard."""

from time_guard.application.services.broadcast_coordinator import (
    BroadcastCoordinator,
    anchor_from_peer,
    merge_peer_state,
    should_adopt,
)
from time_guard.application.services.drift_detector import (
    CLOSE_HYST_MS,
    DEFAULT_SAMPLE_INTERVAL_MS,
    OPEN_HYST_MS,
    DriftDetector,
)
from time_guard.application.services.request_gate import (
    CLIENT_REPORTED_TIME_HEADER,
    CLOCK_REJECTED_STATUS,
    RequestGate,
    is_clock_rejection,
    should_block,
)
from time_guard.application.services.sync_protocol import SyncProtocol
from time_guard.application.services.time_guard_service import (
    LifecycleEvent,
    TimeGuardService,
)
from time_guard.application.services.trust_state_machine import (
    SnapshotPublisher,
    StateListener,
    TrustStateMachine,
)
from time_guard.application.services.virtual_clock import VirtualClock

__all__: list[str] = [
    "BroadcastCoordinator",
    "CLIENT_REPORTED_TIME_HEADER",
    "CLOCK_REJECTED_STATUS",
    "CLOSE_HYST_MS",
    "DEFAULT_SAMPLE_INTERVAL_MS",
    "DriftDetector",
    "LifecycleEvent",
    "OPEN_HYST_MS",
    "RequestGate",
    "SnapshotPublisher",
    "StateListener",
    "SyncProtocol",
    "TimeGuardService",
    "TrustStateMachine",
    "VirtualClock",
    "anchor_from_peer",
    "is_clock_rejection",
    "merge_peer_state",
    "should_adopt",
    "should_block",
]

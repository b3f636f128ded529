"""Application ports (abstract interfaces) for time-guard."""

from time_guard.application.ports.broadcast_transport import (
    BroadcastTransport,
    MessageHandler,
)
from time_guard.application.ports.device_clock import DeviceClockProtocol
from time_guard.application.ports.scheduler import (
    PeriodicCallback,
    ScheduledHandle,
    SchedulerProtocol,
)
from time_guard.application.ports.shared_key_value_store import (
    ChangeListener,
    SharedKeyValueStore,
)
from time_guard.application.ports.time_authority_client import TimeAuthorityClient

__all__: list[str] = [
    "BroadcastTransport",
    "ChangeListener",
    "DeviceClockProtocol",
    "MessageHandler",
    "PeriodicCallback",
    "ScheduledHandle",
    "SchedulerProtocol",
    "SharedKeyValueStore",
    "TimeAuthorityClient",
]

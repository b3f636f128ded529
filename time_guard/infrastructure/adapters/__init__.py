"""Infrastructure adapters for time-guard.

Production implementations of the application ports:
- SystemDeviceClock: wall and monotonic clocks of the host
- HttpxTimeAuthorityClient: GET /time over httpx
- AsyncioScheduler: periodic asyncio tasks
- LocalChannelTransport / RedisPubSubTransport / SharedStorageTransport:
  broadcast transports, chosen by select_transport()
"""

from time_guard.infrastructure.adapters.asyncio_scheduler import (
    AsyncioScheduledHandle,
    AsyncioScheduler,
)
from time_guard.infrastructure.adapters.httpx_time_authority_client import (
    NO_STORE_HEADERS,
    HttpxTimeAuthorityClient,
)
from time_guard.infrastructure.adapters.in_memory_shared_store import (
    InMemorySharedStore,
)
from time_guard.infrastructure.adapters.local_channel_transport import (
    LocalChannelHub,
    LocalChannelTransport,
)
from time_guard.infrastructure.adapters.redis_pubsub_transport import (
    RedisPubSubTransport,
)
from time_guard.infrastructure.adapters.shared_storage_transport import (
    SharedStorageTransport,
)
from time_guard.infrastructure.adapters.system_clock import SystemDeviceClock
from time_guard.infrastructure.adapters.transport_selection import select_transport

__all__ = [
    "AsyncioScheduledHandle",
    "AsyncioScheduler",
    "HttpxTimeAuthorityClient",
    "InMemorySharedStore",
    "LocalChannelHub",
    "LocalChannelTransport",
    "NO_STORE_HEADERS",
    "RedisPubSubTransport",
    "SharedStorageTransport",
    "SystemDeviceClock",
    "select_transport",
]

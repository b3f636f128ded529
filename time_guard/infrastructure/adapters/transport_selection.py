"""Pick the broadcast transport for a configuration.

- "redis": RedisPubSubTransport (requires redis_url)
- "local": LocalChannelTransport, the direct in-process channel
- "storage": SharedStorageTransport over a shared key-value store
- "auto": Redis when a URL is configured, otherwise the local channel
"""

from __future__ import annotations

from structlog import get_logger

from time_guard.application.ports.broadcast_transport import BroadcastTransport
from time_guard.application.ports.shared_key_value_store import SharedKeyValueStore
from time_guard.config.time_guard_config import TimeGuardConfig
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

logger = get_logger()


def select_transport(
    config: TimeGuardConfig,
    *,
    hub: LocalChannelHub | None = None,
    store: SharedKeyValueStore | None = None,
) -> BroadcastTransport:
    """Build the broadcast transport ``config`` asks for.

    Args:
        config: Guard configuration (transport, channel_name, redis_url).
        hub: Hub for the local channel (default: the shared default hub).
        store: Store for the storage fallback (default: the shared default store).

    Returns:
        An unstarted BroadcastTransport.
    """
    kind = config.transport
    if kind == "auto":
        kind = "redis" if config.redis_url else "local"

    if kind == "redis":
        transport: BroadcastTransport = RedisPubSubTransport(
            channel_name=config.channel_name, redis_url=config.redis_url
        )
    elif kind == "storage":
        transport = SharedStorageTransport(
            store=store or InMemorySharedStore.get_instance(),
            key=config.channel_name,
        )
    else:
        transport = LocalChannelTransport(channel_name=config.channel_name, hub=hub)

    logger.debug(
        "broadcast_transport_selected",
        transport=kind,
        channel=config.channel_name,
    )
    return transport

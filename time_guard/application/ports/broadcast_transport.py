"""Broadcast Transport port - cross-instance messaging for trust snapshots.

Every transport carries the same text message (a JSON-encoded
``TIME_GUARD_STATE`` envelope) so the coordinator does not care which one is
in use. Implementations:

- LocalChannelTransport: named in-process pub/sub channel (primary)
- RedisPubSubTransport: the same channel over Redis pub/sub
- SharedStorageTransport: shared key-value entry + change notification
  (fallback)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable

MessageHandler = Callable[[str], None]


class BroadcastTransport(ABC):
    """Abstract pub/sub transport between guard instances."""

    @property
    @abstractmethod
    def channel_name(self) -> str:
        """Name of the channel (or storage key) used."""
        ...

    @abstractmethod
    async def start(self, on_message: MessageHandler) -> None:
        """Begin delivering peer messages to ``on_message``.

        Messages published by this transport itself must not be delivered
        back to it where the medium allows telling them apart.
        """
        ...

    @abstractmethod
    def publish(self, message: str) -> None:
        """Publish a message to every peer.

        Must not block; transports with network I/O queue the message.
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Stop delivery and release resources."""
        ...

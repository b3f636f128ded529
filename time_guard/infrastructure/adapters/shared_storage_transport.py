"""Shared-storage broadcast transport (fallback).

Used when no direct pub/sub channel is available. Publishing writes the
message under the channel key; peers observe the change notification and
read the new value. The writer is never notified of its own write.
"""

from __future__ import annotations

from collections.abc import Callable
from uuid import uuid4

from time_guard.application.ports.broadcast_transport import (
    BroadcastTransport,
    MessageHandler,
)
from time_guard.application.ports.shared_key_value_store import SharedKeyValueStore


class SharedStorageTransport(BroadcastTransport):
    """BroadcastTransport over a SharedKeyValueStore entry."""

    def __init__(
        self,
        *,
        store: SharedKeyValueStore,
        key: str = "time-guard",
    ) -> None:
        self._store = store
        self._key = key
        self._origin = str(uuid4())
        self._on_message: MessageHandler | None = None
        self._unwatch: Callable[[], None] | None = None

    @property
    def channel_name(self) -> str:
        return self._key

    @property
    def origin(self) -> str:
        return self._origin

    async def start(self, on_message: MessageHandler) -> None:
        if self._unwatch is not None:
            return
        self._on_message = on_message
        self._unwatch = self._store.watch(self._origin, self._on_change)

    def _on_change(self, key: str, value: str, origin: str) -> None:
        if key != self._key or not value or self._on_message is None:
            return
        self._on_message(value)

    def publish(self, message: str) -> None:
        self._store.set(self._key, message, origin=self._origin)

    async def close(self) -> None:
        if self._unwatch is not None:
            self._unwatch()
            self._unwatch = None
        self._on_message = None

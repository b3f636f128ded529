"""In-memory shared key-value store with change notifications.

Models a browser's shared storage: a write notifies every watcher except the
writer, and rewriting an unchanged value notifies nobody.

Instance Management:
- InMemorySharedStore.get_instance(name) returns a named store
- InMemorySharedStore.reset_all() clears all stores (for test cleanup)
"""

from __future__ import annotations

from collections.abc import Callable

from structlog import get_logger

from time_guard.application.ports.shared_key_value_store import (
    ChangeListener,
    SharedKeyValueStore,
)

logger = get_logger()


class InMemorySharedStore(SharedKeyValueStore):
    """Process-local SharedKeyValueStore."""

    _instances: dict[str, InMemorySharedStore] = {}

    def __init__(self) -> None:
        self._values: dict[str, str] = {}
        self._watchers: list[tuple[str, ChangeListener]] = []

    @classmethod
    def get_instance(cls, name: str = "default") -> InMemorySharedStore:
        if name not in cls._instances:
            cls._instances[name] = cls()
        return cls._instances[name]

    @classmethod
    def reset_all(cls) -> None:
        cls._instances.clear()

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str, *, origin: str) -> None:
        if self._values.get(key) == value:
            return
        self._values[key] = value
        for watcher_origin, listener in list(self._watchers):
            if watcher_origin == origin:
                continue
            try:
                listener(key, value, origin)
            except Exception as e:
                logger.error(
                    "shared_store_listener_failed",
                    key=key,
                    error=str(e),
                    exc_info=True,
                )

    def watch(self, origin: str, listener: ChangeListener) -> Callable[[], None]:
        entry = (origin, listener)
        self._watchers.append(entry)

        def unwatch() -> None:
            if entry in self._watchers:
                self._watchers.remove(entry)

        return unwatch

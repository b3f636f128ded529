"""Shared Key-Value Store port - storage with change notifications.

Backs the fallback broadcast transport. Semantics follow a browser's shared
storage: a write notifies every watcher except the writer, and writing the
value that is already stored notifies nobody.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable

# (key, new_value, origin) -> None
ChangeListener = Callable[[str, str, str], None]


class SharedKeyValueStore(ABC):
    """Abstract shared key-value store observed via change events."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value, or None."""
        ...

    @abstractmethod
    def set(self, key: str, value: str, *, origin: str) -> None:
        """Store ``value`` and notify watchers other than ``origin``."""
        ...

    @abstractmethod
    def watch(self, origin: str, listener: ChangeListener) -> Callable[[], None]:
        """Register ``listener`` for changes not made by ``origin``.

        Returns:
            A function that removes the listener.
        """
        ...

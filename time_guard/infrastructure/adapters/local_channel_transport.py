"""In-process named pub/sub channel.

The direct broadcast transport for instances sharing one process (several
guards under test, embedded workers). A message posted on a channel reaches
every other member of that channel, never the sender, and is delivered
synchronously during ``publish()``.

Instance Management:
- LocalChannelHub.get_instance(name) returns a named hub (for test isolation)
- LocalChannelHub.reset_all() clears all hubs (for test cleanup)
"""

from __future__ import annotations

from collections.abc import Callable
from uuid import uuid4

from structlog import get_logger

from time_guard.application.ports.broadcast_transport import (
    BroadcastTransport,
    MessageHandler,
)

logger = get_logger()


class LocalChannelHub:
    """Registry of named channels and their members."""

    # Registry of named hubs for test isolation
    _instances: dict[str, LocalChannelHub] = {}

    def __init__(self) -> None:
        self._members: dict[str, dict[str, MessageHandler]] = {}

    @classmethod
    def get_instance(cls, name: str = "default") -> LocalChannelHub:
        """Get or create a named hub.

        Args:
            name: Hub name (default: "default").

        Returns:
            The LocalChannelHub for the given name.
        """
        if name not in cls._instances:
            cls._instances[name] = cls()
        return cls._instances[name]

    @classmethod
    def reset_all(cls) -> None:
        """Reset all hubs (for test cleanup)."""
        cls._instances.clear()

    def member_count(self, channel_name: str) -> int:
        return len(self._members.get(channel_name, {}))

    def join(
        self, channel_name: str, member_id: str, handler: MessageHandler
    ) -> Callable[[], None]:
        """Add a member to a channel.

        Returns:
            A function removing the member.
        """
        self._members.setdefault(channel_name, {})[member_id] = handler

        def leave() -> None:
            members = self._members.get(channel_name)
            if members is not None:
                members.pop(member_id, None)

        return leave

    def post(self, channel_name: str, sender_id: str, message: str) -> int:
        """Deliver ``message`` to every member except the sender.

        A failing member is logged and does not stop delivery to the rest.

        Returns:
            Number of members the message was delivered to.
        """
        delivered = 0
        for member_id, handler in list(self._members.get(channel_name, {}).items()):
            if member_id == sender_id:
                continue
            try:
                handler(message)
            except Exception as e:
                logger.error(
                    "local_channel_delivery_failed",
                    channel=channel_name,
                    member_id=member_id,
                    error=str(e),
                    exc_info=True,
                )
                continue
            delivered += 1
        return delivered


class LocalChannelTransport(BroadcastTransport):
    """BroadcastTransport over a LocalChannelHub channel."""

    def __init__(
        self,
        *,
        channel_name: str = "time-guard",
        hub: LocalChannelHub | None = None,
    ) -> None:
        self._channel_name = channel_name
        self._hub = hub or LocalChannelHub.get_instance()
        self._member_id = str(uuid4())
        self._leave: Callable[[], None] | None = None

    @property
    def channel_name(self) -> str:
        return self._channel_name

    @property
    def member_id(self) -> str:
        return self._member_id

    async def start(self, on_message: MessageHandler) -> None:
        if self._leave is not None:
            return
        self._leave = self._hub.join(self._channel_name, self._member_id, on_message)

    def publish(self, message: str) -> None:
        self._hub.post(self._channel_name, self._member_id, message)

    async def close(self) -> None:
        if self._leave is not None:
            self._leave()
            self._leave = None

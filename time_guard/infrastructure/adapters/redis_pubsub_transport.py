"""Redis pub/sub broadcast transport.

Carries the same ``TIME_GUARD_STATE`` text messages as the in-process
channel, so guards in different processes (or hosts) reconcile through one
Redis channel.

Redis echoes a publisher's own messages back to its subscription. That is
harmless: an instance's own snapshot is never newer than its state, so the
coordinator ignores it.

Publishing never blocks: messages are queued and a writer task sends them
in order.

A lost subscription is re-established with exponential backoff; messages
published by peers while it was down are not replayed.
"""

from __future__ import annotations

import asyncio
import contextlib

import redis.asyncio as aioredis
from redis.exceptions import RedisError
from structlog import get_logger

from time_guard.application.ports.broadcast_transport import (
    BroadcastTransport,
    MessageHandler,
)
from time_guard.domain.errors import BroadcastTransportError

logger = get_logger()

RESUBSCRIBE_INITIAL_DELAY_SECONDS: float = 1.0
RESUBSCRIBE_MAX_DELAY_SECONDS: float = 30.0


class RedisPubSubTransport(BroadcastTransport):
    """BroadcastTransport over a Redis pub/sub channel.

    Usage:
        transport = RedisPubSubTransport(
            channel_name="time-guard",
            redis_url="redis://localhost:6379/0",
        )
        await transport.start(handler)
        transport.publish(message)
        await transport.close()
    """

    def __init__(
        self,
        *,
        channel_name: str = "time-guard",
        redis_url: str | None = None,
        client: aioredis.Redis | None = None,
        resubscribe_delay_seconds: float = RESUBSCRIBE_INITIAL_DELAY_SECONDS,
        max_resubscribe_delay_seconds: float = RESUBSCRIBE_MAX_DELAY_SECONDS,
    ) -> None:
        """Initialize the transport.

        Args:
            channel_name: Redis channel to publish and subscribe on.
            redis_url: Connection URL, used when no client is given.
            client: Optional existing Redis client (owned by the caller).
            resubscribe_delay_seconds: First backoff after losing the
                subscription; doubles on each failed attempt.
            max_resubscribe_delay_seconds: Backoff ceiling.

        Raises:
            ValueError: If neither redis_url nor client is provided.
        """
        if client is None and not redis_url:
            raise ValueError("RedisPubSubTransport requires redis_url or client")
        self._channel_name = channel_name
        self._owns_client = client is None
        self._client = client if client is not None else aioredis.from_url(redis_url)
        self._resubscribe_delay = resubscribe_delay_seconds
        self._max_resubscribe_delay = max_resubscribe_delay_seconds
        self._outgoing: asyncio.Queue[str] = asyncio.Queue()
        self._pubsub: aioredis.client.PubSub | None = None
        self._subscribed = False
        self._on_message: MessageHandler | None = None
        self._reader_task: asyncio.Task[None] | None = None
        self._writer_task: asyncio.Task[None] | None = None
        self._log = logger.bind(channel=channel_name)

    @property
    def channel_name(self) -> str:
        return self._channel_name

    @property
    def is_running(self) -> bool:
        return self._reader_task is not None

    @property
    def is_subscribed(self) -> bool:
        """False while the subscription is lost and being re-established."""
        return self._subscribed

    async def start(self, on_message: MessageHandler) -> None:
        """Subscribe and start the reader and writer tasks.

        Raises:
            BroadcastTransportError: If Redis cannot be reached.
        """
        if self._reader_task is not None:
            return
        try:
            self._pubsub = await self._subscribe()
        except (RedisError, OSError) as e:
            self._log.error("redis_subscribe_failed", error=str(e))
            raise BroadcastTransportError(f"Redis subscribe failed: {e}") from e
        self._on_message = on_message
        self._reader_task = asyncio.create_task(
            self._read_loop(), name=f"redis-broadcast-reader:{self._channel_name}"
        )
        self._writer_task = asyncio.create_task(
            self._write_loop(), name=f"redis-broadcast-writer:{self._channel_name}"
        )
        self._log.info("redis_broadcast_started")

    async def _subscribe(self) -> aioredis.client.PubSub:
        pubsub = self._client.pubsub(ignore_subscribe_messages=True)
        try:
            await pubsub.subscribe(self._channel_name)
        except (RedisError, OSError):
            with contextlib.suppress(RedisError, OSError):
                await pubsub.aclose()
            raise
        self._subscribed = True
        return pubsub

    def publish(self, message: str) -> None:
        self._outgoing.put_nowait(message)

    async def _write_loop(self) -> None:
        while True:
            message = await self._outgoing.get()
            try:
                await self._client.publish(self._channel_name, message)
            except RedisError as e:
                self._log.warning("redis_publish_failed", error=str(e))
            finally:
                self._outgoing.task_done()

    async def _read_loop(self) -> None:
        while self._pubsub is not None:
            try:
                async for item in self._pubsub.listen():
                    if item.get("type") != "message":
                        continue
                    self._deliver(item.get("data"))
                return
            except (RedisError, OSError) as e:
                self._subscribed = False
                self._log.error("redis_subscription_lost", error=str(e))
            await self._resubscribe()

    async def _resubscribe(self) -> None:
        """Replace the lost subscription, backing off until Redis answers."""
        stale, self._pubsub = self._pubsub, None
        if stale is not None:
            with contextlib.suppress(RedisError, OSError):
                await stale.aclose()

        delay = self._resubscribe_delay
        while True:
            await asyncio.sleep(delay)
            try:
                self._pubsub = await self._subscribe()
            except (RedisError, OSError) as e:
                delay = min(delay * 2, self._max_resubscribe_delay)
                self._log.warning(
                    "redis_resubscribe_failed", error=str(e), retry_in_seconds=delay
                )
                continue
            self._log.info("redis_resubscribed")
            return

    def _deliver(self, data: object) -> None:
        if isinstance(data, bytes):
            data = data.decode("utf-8", errors="replace")
        if not isinstance(data, str) or self._on_message is None:
            return
        try:
            self._on_message(data)
        except Exception as e:
            self._log.error("redis_delivery_failed", error=str(e), exc_info=True)

    async def flush(self) -> None:
        """Wait until every queued message has been handed to Redis."""
        await self._outgoing.join()

    async def close(self) -> None:
        for task in (self._reader_task, self._writer_task):
            if task is not None:
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        self._reader_task = None
        self._writer_task = None

        if self._pubsub is not None:
            with contextlib.suppress(RedisError):
                await self._pubsub.unsubscribe(self._channel_name)
            await self._pubsub.aclose()
            self._pubsub = None
        self._subscribed = False

        if self._owns_client:
            await self._client.aclose()
        self._on_message = None

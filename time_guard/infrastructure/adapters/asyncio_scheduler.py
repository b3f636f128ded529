"""asyncio scheduler - production SchedulerProtocol.

Each periodic job is its own asyncio task, so a slow heartbeat (hung /time
request) delays only the next heartbeat, never the skew sampler.
"""

from __future__ import annotations

import asyncio
import contextlib
import inspect

from structlog import get_logger

from time_guard.application.ports.scheduler import (
    PeriodicCallback,
    ScheduledHandle,
    SchedulerProtocol,
)

logger = get_logger()


class AsyncioScheduledHandle(ScheduledHandle):
    """Handle wrapping the asyncio task of one periodic job."""

    def __init__(self, name: str, task: asyncio.Task[None]) -> None:
        self._name = name
        self._task = task
        self._cancelled = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def task(self) -> asyncio.Task[None]:
        return self._task

    def cancel(self) -> None:
        self._cancelled = True
        self._task.cancel()


class AsyncioScheduler(SchedulerProtocol):
    """Runs periodic callbacks as asyncio tasks on the running loop."""

    def __init__(self) -> None:
        self._handles: list[AsyncioScheduledHandle] = []

    @property
    def handles(self) -> list[AsyncioScheduledHandle]:
        return list(self._handles)

    def call_every(
        self,
        interval_ms: float,
        callback: PeriodicCallback,
        *,
        name: str,
    ) -> ScheduledHandle:
        """Start a periodic task. Must be called from a running event loop."""
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")
        task = asyncio.get_running_loop().create_task(
            self._run(interval_ms, callback, name), name=name
        )
        handle = AsyncioScheduledHandle(name, task)
        self._handles.append(handle)
        return handle

    async def _run(
        self, interval_ms: float, callback: PeriodicCallback, name: str
    ) -> None:
        log = logger.bind(task=name, interval_ms=interval_ms)
        log.debug("scheduled_task_started")
        while True:
            await asyncio.sleep(interval_ms / 1000.0)
            try:
                result = callback()
                if inspect.isawaitable(result):
                    await result
            except asyncio.CancelledError:
                raise
            except Exception as e:
                log.error("scheduled_task_failed", error=str(e), exc_info=True)

    async def aclose(self) -> None:
        for handle in self._handles:
            handle.cancel()
        for handle in self._handles:
            with contextlib.suppress(asyncio.CancelledError):
                await handle.task
        self._handles.clear()

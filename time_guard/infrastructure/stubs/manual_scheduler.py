"""Manually driven SchedulerProtocol for deterministic tests.

Nothing runs on its own. ``advance(ms)`` moves the scheduler's time forward
and runs every task that falls due, in chronological order; ``fire(name)``
runs one task immediately. Pair it with a fake device clock through
``on_advance`` so clocks and timers move together.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable
from dataclasses import dataclass, field

from structlog import get_logger

from time_guard.application.ports.scheduler import (
    PeriodicCallback,
    ScheduledHandle,
    SchedulerProtocol,
)

logger = get_logger()


@dataclass
class ManualScheduledHandle(ScheduledHandle):
    """A registered periodic task."""

    task_name: str
    interval_ms: float
    callback: PeriodicCallback
    next_due_ms: float
    sequence: int
    run_count: int = 0
    is_cancelled: bool = field(default=False)

    @property
    def name(self) -> str:
        return self.task_name

    @property
    def cancelled(self) -> bool:
        return self.is_cancelled

    def cancel(self) -> None:
        self.is_cancelled = True


class ManualScheduler(SchedulerProtocol):
    """SchedulerProtocol whose time only moves when told to.

    Args:
        on_advance: Called with each time step in milliseconds before the
            tasks due at the new time run (e.g. ``fake_clock.advance``).
    """

    def __init__(self, on_advance: Callable[[float], None] | None = None) -> None:
        self._on_advance = on_advance
        self._now_ms = 0.0
        self._handles: list[ManualScheduledHandle] = []
        self._sequence = 0

    @property
    def now_ms(self) -> float:
        return self._now_ms

    @property
    def handles(self) -> list[ManualScheduledHandle]:
        return [h for h in self._handles if not h.is_cancelled]

    def get_handle(self, name: str) -> ManualScheduledHandle | None:
        for handle in self.handles:
            if handle.task_name == name:
                return handle
        return None

    def call_every(
        self,
        interval_ms: float,
        callback: PeriodicCallback,
        *,
        name: str,
    ) -> ScheduledHandle:
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")
        self._sequence += 1
        handle = ManualScheduledHandle(
            task_name=name,
            interval_ms=interval_ms,
            callback=callback,
            next_due_ms=self._now_ms + interval_ms,
            sequence=self._sequence,
        )
        self._handles.append(handle)
        return handle

    async def advance(self, ms: float) -> None:
        """Move time forward by ``ms``, running due tasks in order."""
        target = self._now_ms + ms
        while True:
            due = [h for h in self.handles if h.next_due_ms <= target]
            if not due:
                break
            handle = min(due, key=lambda h: (h.next_due_ms, h.sequence))
            self._step_to(handle.next_due_ms)
            handle.next_due_ms += handle.interval_ms
            await self._run(handle)
        self._step_to(target)

    async def fire(self, name: str) -> int:
        """Run every live task named ``name`` now.

        Returns:
            Number of tasks run.
        """
        fired = 0
        for handle in self.handles:
            if handle.task_name == name:
                await self._run(handle)
                fired += 1
        return fired

    def _step_to(self, when_ms: float) -> None:
        delta = when_ms - self._now_ms
        if delta <= 0:
            return
        self._now_ms = when_ms
        if self._on_advance is not None:
            self._on_advance(delta)

    async def _run(self, handle: ManualScheduledHandle) -> None:
        handle.run_count += 1
        try:
            result = handle.callback()
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(
                "scheduled_task_failed",
                task=handle.task_name,
                error=str(e),
                exc_info=True,
            )

    async def aclose(self) -> None:
        for handle in self._handles:
            handle.cancel()
        self._handles.clear()

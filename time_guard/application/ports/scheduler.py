"""Scheduler port - periodic tasks with cancelable handles.

The guard runs two periodic jobs (skew sampling and heartbeat resync). They
are installed through this port so tests can drive them deterministically
instead of waiting on real timers.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

# A periodic callback may be plain or a coroutine function.
PeriodicCallback = Callable[[], Awaitable[None] | None]


class ScheduledHandle(ABC):
    """Handle for a periodic task."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Name the task was registered with."""
        ...

    @property
    @abstractmethod
    def cancelled(self) -> bool:
        """Whether cancel() has been called."""
        ...

    @abstractmethod
    def cancel(self) -> None:
        """Stop the task. Idempotent."""
        ...


class SchedulerProtocol(ABC):
    """Abstract interface for running callbacks on a fixed period."""

    @abstractmethod
    def call_every(
        self,
        interval_ms: float,
        callback: PeriodicCallback,
        *,
        name: str,
    ) -> ScheduledHandle:
        """Run ``callback`` every ``interval_ms`` milliseconds.

        The first call happens one interval after registration. Exceptions
        raised by the callback are logged and do not stop the schedule.

        Args:
            interval_ms: Period in milliseconds, must be positive.
            callback: Plain or async callable taking no arguments.
            name: Task name for logging and inspection.

        Returns:
            A handle that cancels the task.
        """
        ...

    async def aclose(self) -> None:
        """Cancel every task started by this scheduler."""
        return None

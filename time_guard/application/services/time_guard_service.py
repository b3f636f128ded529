"""Time guard service - the public surface of the clock guard.

One instance per runtime context (see ``time_guard.bootstrap.time_guard``).
Collaborators only read its snapshot or call its entry points; they never
touch internal state.

Public surface:
- ``await init()``: idempotent start; never raises
- ``get_state()``: current BroadcastSnapshot
- ``subscribe(callback)``: returns an unsubscribe function
- ``await retry_sync()``: explicit recovery, returns whether trust is back
- ``flag_backend_428()``: force-lock after a server clock rejection
- ``request_interceptor()`` / ``response_interceptor()`` (and async
  variants), ``install_httpx(client)``
- ``handle_lifecycle_event(event)``: resync on visible/focus/online

Lifecycle: periodic sampling and heartbeat tasks and the broadcast
subscription are installed exactly once, even if ``init()`` is called again.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from enum import Enum
from uuid import uuid4

import httpx
from structlog import get_logger

from time_guard.application.ports.broadcast_transport import BroadcastTransport
from time_guard.application.ports.device_clock import DeviceClockProtocol
from time_guard.application.ports.scheduler import ScheduledHandle, SchedulerProtocol
from time_guard.application.ports.time_authority_client import TimeAuthorityClient
from time_guard.application.services.broadcast_coordinator import BroadcastCoordinator
from time_guard.application.services.drift_detector import DriftDetector
from time_guard.application.services.request_gate import RequestGate
from time_guard.application.services.sync_protocol import SyncProtocol
from time_guard.application.services.trust_state_machine import (
    StateListener,
    TrustStateMachine,
)
from time_guard.application.services.virtual_clock import VirtualClock
from time_guard.config.time_guard_config import TimeGuardConfig
from time_guard.domain.errors import TimeSyncError
from time_guard.domain.models.anchor import TrustThresholds
from time_guard.domain.models.broadcast_snapshot import BroadcastSnapshot
from time_guard.domain.models.trust_state import TrustReason, TrustState

logger = get_logger()

# Skew changes at or below this are not worth a notification.
SKEW_NOTIFY_EPSILON_MS: float = 1.0


class LifecycleEvent(str, Enum):
    """Host transitions that warrant an immediate resync.

    Values:
        VISIBILITY: The host became visible again (only resyncs when visible).
        FOCUS: The host regained focus.
        ONLINE: Network connectivity came back.
    """

    VISIBILITY = "visibilitychange"
    FOCUS = "focus"
    ONLINE = "online"


class TimeGuardService:
    """Clock-integrity guard: virtual clock, drift lock, cross-instance trust.

    Example:
        >>> guard = TimeGuardService(
        ...     config=config,
        ...     device_clock=SystemDeviceClock(),
        ...     time_client=HttpxTimeAuthorityClient.from_config(config),
        ...     scheduler=AsyncioScheduler(),
        ...     transport=LocalChannelTransport(channel_name=config.channel_name),
        ... )
        >>> await guard.init()
        >>> guard.install_httpx(api_client)
        >>> if guard.get_state().locked:
        ...     await guard.retry_sync()
    """

    def __init__(
        self,
        *,
        config: TimeGuardConfig,
        device_clock: DeviceClockProtocol,
        time_client: TimeAuthorityClient,
        scheduler: SchedulerProtocol,
        transport: BroadcastTransport,
        instance_id: str | None = None,
    ) -> None:
        self._config = config
        self._device_clock = device_clock
        self._time_client = time_client
        self._scheduler = scheduler
        self._instance_id = instance_id or str(uuid4())
        self._log = logger.bind(instance_id=self._instance_id, component="time_guard")

        self._virtual_clock = VirtualClock(device_clock)
        self._detector = DriftDetector(
            sample_interval_ms=config.sample_interval_ms,
            open_hysteresis_ms=config.open_hysteresis_ms,
            close_hysteresis_ms=config.close_hysteresis_ms,
        )
        self._machine = TrustStateMachine(
            virtual_clock=self._virtual_clock,
            thresholds=TrustThresholds(
                tolerance_ms=config.default_tolerance_ms,
                max_offline_ms=config.default_max_offline_ms,
            ),
        )
        self._sync = SyncProtocol(
            client=time_client,
            virtual_clock=self._virtual_clock,
            drift_detector=self._detector,
            state_machine=self._machine,
        )
        self._coordinator = BroadcastCoordinator(
            transport=transport,
            state_machine=self._machine,
            virtual_clock=self._virtual_clock,
        )
        self._gate = RequestGate(
            state_reader=lambda: self._machine.state,
            device_clock=device_clock,
            on_clock_rejected=self.flag_backend_428,
        )

        self._initialized = False
        self._hooks_installed = False
        self._handles: list[ScheduledHandle] = []
        self._pending_resyncs: set[asyncio.Task[None]] = set()

    # =========================================================================
    # Inspection
    # =========================================================================

    @property
    def instance_id(self) -> str:
        return self._instance_id

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def hooks_installed(self) -> bool:
        return self._hooks_installed

    @property
    def trust_state(self) -> TrustState:
        return self._machine.state

    @property
    def thresholds(self) -> TrustThresholds:
        return self._machine.thresholds

    @property
    def virtual_clock(self) -> VirtualClock:
        return self._virtual_clock

    @property
    def drift_detector(self) -> DriftDetector:
        return self._detector

    @property
    def coordinator(self) -> BroadcastCoordinator:
        return self._coordinator

    @property
    def request_gate(self) -> RequestGate:
        return self._gate

    def virtual_now(self) -> float:
        return self._virtual_clock.virtual_now()

    def get_state(self) -> BroadcastSnapshot:
        """Return a snapshot of the current trust state."""
        return self._machine.snapshot()

    def subscribe(self, callback: StateListener) -> Callable[[], None]:
        """Register ``callback`` for every published state change.

        Returns:
            A function that unsubscribes ``callback``.
        """
        return self._machine.subscribe(callback)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def init(self) -> None:
        """Start the guard. Idempotent; never raises.

        Performs the initial sync. On success the clock is trusted if the skew
        is within tolerance; on failure the guard locks with NETWORK. Either
        way the periodic tasks are installed so the guard keeps watching and
        a later ``retry_sync()`` can recover. A broadcast transport that
        cannot start leaves the guard running as a single instance.
        """
        if self._initialized:
            self._log.debug("time_guard_already_initialized")
            return
        self._initialized = True

        connected = await self._coordinator.start()

        try:
            await self._sync.initial_sync()
        except TimeSyncError as e:
            self._log.error(
                "time_sync_failed",
                mode="initial",
                error=str(e),
                status_code=e.status_code,
            )
            self._machine.invalidate(TrustReason.NETWORK)
        else:
            self._sync.conclude_explicit_sync()

        self._install_lifecycle_hooks()
        state = self._machine.state
        self._log.info(
            "time_guard_initialized",
            status=state.status.value,
            reason=state.reason.value if state.reason else None,
            locked=state.locked,
            skew_ms=state.skew_ms,
            broadcast_connected=connected,
        )

    def _install_lifecycle_hooks(self) -> None:
        if self._hooks_installed:
            return
        self._hooks_installed = True

        self._handles.append(
            self._scheduler.call_every(
                self._config.heartbeat_interval_ms,
                self.heartbeat_resync,
                name="time_guard_heartbeat",
            )
        )
        self._handles.append(
            self._scheduler.call_every(
                self._config.sample_interval_ms,
                self.sample,
                name="time_guard_skew_sample",
            )
        )

    async def aclose(self) -> None:
        """Cancel periodic tasks and close the transport.

        The guard normally lives for the whole process; this exists for tests
        and graceful shutdown.
        """
        for handle in self._handles:
            handle.cancel()
        self._handles.clear()
        for task in list(self._pending_resyncs):
            task.cancel()
        if self._pending_resyncs:
            await asyncio.gather(*self._pending_resyncs, return_exceptions=True)
        self._pending_resyncs.clear()
        await self._coordinator.close()
        await self._time_client.aclose()
        self._hooks_installed = False

    def handle_lifecycle_event(
        self, event: LifecycleEvent, *, visible: bool = True
    ) -> asyncio.Task[None] | None:
        """React to a host lifecycle transition with a heartbeat resync.

        Args:
            event: The transition that happened.
            visible: For VISIBILITY, whether the host is now visible.

        Returns:
            The scheduled resync task, or None if no resync was needed.
        """
        if event is LifecycleEvent.VISIBILITY and not visible:
            return None
        task = asyncio.create_task(self.heartbeat_resync())
        self._pending_resyncs.add(task)
        task.add_done_callback(self._on_resync_done)
        return task

    def _on_resync_done(self, task: asyncio.Task[None]) -> None:
        self._pending_resyncs.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self._log.error(
                "lifecycle_resync_failed", error=str(error), exc_info=error
            )

    # =========================================================================
    # Sync entry points
    # =========================================================================

    async def heartbeat_resync(self) -> None:
        """Refresh the anchor; never clears the lock."""
        await self._sync.heartbeat_resync()

    async def retry_sync(self) -> bool:
        """Explicitly resynchronize; the only way to clear the lock.

        Returns:
            True if the clock is trusted again.
        """
        return await self._sync.retry_sync()

    def flag_backend_428(self) -> None:
        """Force-lock after an application server rejected our clock."""
        self._log.warning("clock_rejected_by_backend")
        self._machine.invalidate(TrustReason.BACKEND_428)

    # =========================================================================
    # Sampling
    # =========================================================================

    def sample(self) -> BroadcastSnapshot:
        """Take one drift sample; publish only meaningful changes.

        A change is meaningful when status, reason or lock moved, or the skew
        moved by more than a millisecond.
        """
        previous = self._machine.state
        current = self._sync.resample(previous)
        changed = (
            current.status is not previous.status
            or current.reason is not previous.reason
            or current.locked != previous.locked
            or abs(current.skew_ms - previous.skew_ms) > SKEW_NOTIFY_EPSILON_MS
        )
        return self._machine.apply(current, notify=changed)

    # =========================================================================
    # Request gate
    # =========================================================================

    def request_interceptor(self) -> Callable[[httpx.Request], None]:
        """Outbound hook for ``httpx.Client``."""
        return self._gate.request_hook

    def response_interceptor(self) -> Callable[[httpx.Response], None]:
        """Inbound hook for ``httpx.Client``."""
        return self._gate.response_hook

    def async_request_interceptor(self) -> Callable[[httpx.Request], Awaitable[None]]:
        """Outbound hook for ``httpx.AsyncClient``."""
        return self._gate.async_request_hook

    def async_response_interceptor(
        self,
    ) -> Callable[[httpx.Response], Awaitable[None]]:
        """Inbound hook for ``httpx.AsyncClient``."""
        return self._gate.async_response_hook

    def install_httpx(self, client: httpx.Client | httpx.AsyncClient) -> None:
        """Attach both hooks to ``client``."""
        self._gate.attach(client)

"""Trust state machine - the single apply-and-notify step.

States: SYNCING -> OK | INVALID_CLOCK. INVALID_CLOCK is left only through a
successful explicit retry. Every externally observable mutation (sync
outcomes, drift samples, backend rejections, peer adoption) goes through
``apply()``, which in one synchronous step:

1. stores the new state,
2. notifies local subscribers with a fresh snapshot,
3. hands the same snapshot to the publisher (cross-instance broadcast).

No await happens between those steps, so no mutation is observable without
its broadcast.
"""

from __future__ import annotations

from collections.abc import Callable

from structlog import get_logger

from time_guard.application.services.virtual_clock import VirtualClock
from time_guard.domain.models.anchor import TimeSample, TrustThresholds
from time_guard.domain.models.broadcast_snapshot import BroadcastSnapshot
from time_guard.domain.models.trust_state import TrustReason, TrustState

logger = get_logger()

StateListener = Callable[[BroadcastSnapshot], None]
SnapshotPublisher = Callable[[BroadcastSnapshot], None]


class TrustStateMachine:
    """Holds the trust state and thresholds; publishes every change.

    Attributes:
        state: Current TrustState (read-only outside ``apply``).
        thresholds: Current TrustThresholds.
    """

    def __init__(
        self,
        *,
        virtual_clock: VirtualClock,
        thresholds: TrustThresholds | None = None,
        initial_state: TrustState | None = None,
    ) -> None:
        self._virtual_clock = virtual_clock
        self._thresholds = thresholds or TrustThresholds()
        self._state = initial_state or TrustState()
        self._listeners: list[StateListener] = []
        self._publisher: SnapshotPublisher | None = None

    @property
    def state(self) -> TrustState:
        return self._state

    @property
    def thresholds(self) -> TrustThresholds:
        return self._thresholds

    def update_thresholds(self, sample: TimeSample) -> None:
        """Override thresholds from a sync response.

        Not published on its own; the caller follows up with ``apply()`` in
        the same synchronous step.
        """
        self._thresholds = self._thresholds.merged_with(sample)

    def replace_thresholds(self, thresholds: TrustThresholds) -> None:
        self._thresholds = thresholds

    def bind_publisher(self, publisher: SnapshotPublisher | None) -> None:
        """Set the cross-instance publisher called on every notified change."""
        self._publisher = publisher

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a local listener.

        Returns:
            A function removing the listener. Calling it twice is harmless.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def snapshot(self) -> BroadcastSnapshot:
        """Build the published view of the current state."""
        anchor = self._virtual_clock.anchor
        return BroadcastSnapshot(
            status=self._state.status,
            reason=self._state.reason,
            skew_ms=self._state.skew_ms,
            locked=self._state.locked,
            last_sync_virtual_ms=self._state.last_sync_virtual_ms,
            server_time_at_sync_ms=(
                anchor.server_time_at_sync_ms if anchor is not None else None
            ),
            tolerance_ms=self._thresholds.tolerance_ms,
            max_offline_ms=self._thresholds.max_offline_ms,
            virtual_now_ms=self._virtual_clock.virtual_now(),
        )

    def apply(self, new_state: TrustState, *, notify: bool = True) -> BroadcastSnapshot:
        """Store ``new_state`` and, unless told otherwise, notify and publish.

        Args:
            new_state: The next trust state.
            notify: False to store silently (used by sample ticks that only
                moved the skew by a negligible amount).

        Returns:
            The snapshot of the stored state.
        """
        self._state = new_state
        snapshot = self.snapshot()
        if not notify:
            return snapshot

        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.error("state_listener_failed", error=str(e), exc_info=True)

        if self._publisher is not None:
            self._publisher(snapshot)
        return snapshot

    def invalidate(self, reason: TrustReason) -> BroadcastSnapshot:
        """Lock with ``reason`` and publish."""
        return self.apply(self._state.invalidated(reason))

    def mark_ok(self) -> BroadcastSnapshot:
        """Clear status and reason; the lock is left as it is."""
        return self.apply(self._state.marked_ok())

    def restore_trust(self, *, skew_ms: float) -> BroadcastSnapshot:
        """Clear the lock after a successful explicit sync and publish.

        The only path that sets ``locked`` to False.
        """
        logger.info("trust_restored", skew_ms=skew_ms)
        return self.apply(self._state.with_skew(skew_ms).restored())

"""Sync protocol - three ways of talking to the time authority.

Same wire call, different failure handling:

- ``initial_sync()``: used once by ``init()``. Failures propagate as
  TimeSyncError; the caller folds them into the NETWORK reason.
- ``heartbeat_resync()``: periodic and on lifecycle transitions. Refreshes
  the anchor and thresholds, re-samples drift, and never clears the lock.
  Errors are logged and folded into state.
- ``retry_sync()``: the caller-invoked recovery path and the only one that
  can clear the lock.

Separating "we can still observe the server" (heartbeat) from "the
application explicitly asked to be trusted again" (retry) keeps a transient
good sample right after tampering from silently unlocking the guard.
"""

from __future__ import annotations

from structlog import get_logger

from time_guard.application.ports.time_authority_client import TimeAuthorityClient
from time_guard.application.services.drift_detector import DriftDetector
from time_guard.application.services.trust_state_machine import TrustStateMachine
from time_guard.application.services.virtual_clock import VirtualClock
from time_guard.domain.errors import TimeSyncError
from time_guard.domain.models.anchor import TimeSample
from time_guard.domain.models.trust_state import TrustReason, TrustState

logger = get_logger()


class SyncProtocol:
    """Establishes and refreshes the virtual clock anchor.

    Example:
        >>> protocol = SyncProtocol(
        ...     client=client,
        ...     virtual_clock=virtual_clock,
        ...     drift_detector=detector,
        ...     state_machine=machine,
        ... )
        >>> await protocol.initial_sync()
        >>> protocol.conclude_explicit_sync()
        True
    """

    def __init__(
        self,
        *,
        client: TimeAuthorityClient,
        virtual_clock: VirtualClock,
        drift_detector: DriftDetector,
        state_machine: TrustStateMachine,
    ) -> None:
        self._client = client
        self._virtual_clock = virtual_clock
        self._detector = drift_detector
        self._machine = state_machine

    # =========================================================================
    # Entry points
    # =========================================================================

    async def initial_sync(self) -> TimeSample:
        """Fetch time once and anchor the clock.

        Nothing is published; ``init()`` concludes with
        ``conclude_explicit_sync()`` in the same synchronous step.

        Raises:
            TimeSyncError: If the authority cannot be reached or parsed.
        """
        sample = await self._client.fetch_time(refresh=False)
        self._anchor_to(sample)
        logger.info("time_sync_succeeded", mode="initial", server_unix_ms=sample.server_unix_ms)
        return sample

    async def heartbeat_resync(self) -> None:
        """Refresh the anchor without ever clearing the lock.

        Sends ``refresh=1`` when already locked or invalid. A response whose
        server time is not newer than the last adopted sync is stale (an
        overlapping, slower request) and is not adopted.
        """
        current = self._machine.state
        needs_refresh = current.locked or current.is_invalid
        try:
            sample = await self._client.fetch_time(refresh=needs_refresh)
        except TimeSyncError as e:
            logger.warning(
                "time_sync_failed",
                mode="heartbeat",
                error=str(e),
                status_code=e.status_code,
            )
            self._machine.apply(self.resample(self._machine.state))
            return

        last_sync = self._machine.state.last_sync_virtual_ms
        if last_sync is not None and sample.server_unix_ms <= last_sync:
            logger.debug(
                "stale_time_sample_ignored",
                server_unix_ms=sample.server_unix_ms,
                last_sync_virtual_ms=last_sync,
            )
            return

        self._anchor_to(sample)
        logger.info(
            "time_sync_succeeded",
            mode="heartbeat",
            server_unix_ms=sample.server_unix_ms,
            refresh=needs_refresh,
        )
        self._machine.apply(self.resample(self._machine.state))

    async def retry_sync(self) -> bool:
        """Explicitly resynchronize; the only path that can unlock.

        Returns:
            True if trust was restored (skew within tolerance), else False.
        """
        try:
            sample = await self._client.fetch_time(refresh=True)
        except TimeSyncError as e:
            logger.warning(
                "time_sync_failed",
                mode="retry",
                error=str(e),
                status_code=e.status_code,
            )
            self._machine.invalidate(TrustReason.NETWORK)
            return False

        self._anchor_to(sample)
        logger.info("time_sync_succeeded", mode="retry", server_unix_ms=sample.server_unix_ms)
        return self.conclude_explicit_sync()

    # =========================================================================
    # Shared steps
    # =========================================================================

    def conclude_explicit_sync(self) -> bool:
        """Decide trust right after an explicit sync and publish the result.

        Within tolerance the lock is cleared; otherwise the guard locks with
        SKEW_EXCEEDED. Hysteresis does not apply: the answer comes straight
        from the authority.
        """
        skew_ms = self._virtual_clock.skew_ms()
        if self._detector.is_within_tolerance(skew_ms, self._machine.thresholds):
            self._detector.reset()
            self._machine.restore_trust(skew_ms=skew_ms)
            return True

        logger.warning(
            "clock_skew_exceeded",
            skew_ms=skew_ms,
            tolerance_ms=self._machine.thresholds.tolerance_ms,
            mode="explicit_sync",
        )
        self._machine.apply(
            self._machine.state.with_skew(skew_ms).invalidated(TrustReason.SKEW_EXCEEDED)
        )
        return False

    def resample(self, state: TrustState) -> TrustState:
        """Run one drift sample against ``state`` using the current clocks."""
        return self._detector.sample(
            state,
            device_now_ms=self._virtual_clock.device_clock.wall_ms(),
            virtual_now_ms=self._virtual_clock.virtual_now(),
            thresholds=self._machine.thresholds,
            monotonic_now_ms=self._virtual_clock.device_clock.monotonic_ms(),
        )

    def _anchor_to(self, sample: TimeSample) -> None:
        """Replace the anchor and thresholds from a fresh sample.

        Stores the new freshness key without publishing; every caller applies
        and publishes before yielding to the event loop.
        """
        self._virtual_clock.set_anchor(self._virtual_clock.anchor_now(sample.server_unix_ms))
        self._machine.update_thresholds(sample)
        self._machine.apply(
            self._machine.state.with_last_sync(self._virtual_clock.virtual_now()),
            notify=False,
        )

"""Drift detector - skew sampling with opening hysteresis.

One sample per tick (default 1 per second):

1. ``skew = device_now - virtual_now``
2. ``is_bad = |skew| > tolerance``
3. Accumulate consecutive bad/good time: the monotonic time since the
   previous sample, capped at one sample interval, so out-of-band samples
   (heartbeats, lifecycle resyncs) cannot shorten the opening hysteresis
4. Max offline (highest priority): virtual time since the last sync beyond
   ``max_offline_ms`` locks with MAX_OFFLINE, whatever the skew
5. Already locked: status follows ``is_bad`` for information only, the lock
   is never touched here
6. Not locked: lock with SKEW_EXCEEDED once ``bad_accum_ms`` reaches the
   opening hysteresis; shorter bad runs are absorbed
7. Otherwise OK

The closing hysteresis is tracked (``good_accum_ms``) but never unlocks.
Clearing the lock is reserved for an explicit retry.
"""

from __future__ import annotations

from structlog import get_logger

from time_guard.domain.models.anchor import TrustThresholds
from time_guard.domain.models.trust_state import (
    HysteresisAccumulator,
    TrustReason,
    TrustState,
)

logger = get_logger()

DEFAULT_SAMPLE_INTERVAL_MS: float = 1_000.0
OPEN_HYST_MS: float = 1_200.0
CLOSE_HYST_MS: float = 1_500.0


class DriftDetector:
    """Classifies skew samples and decides lock escalation.

    The detector owns the hysteresis accumulator; the trust state itself is
    passed in and a new state is returned, so the caller decides when the
    change is applied and published.

    Attributes:
        sample_interval_ms: Most time credited to the accumulator per sample.
        open_hysteresis_ms: Consecutive bad time required to lock.
        close_hysteresis_ms: Consecutive good time that would re-validate
            trust if auto-unlock existed. Informational.
    """

    def __init__(
        self,
        *,
        sample_interval_ms: float = DEFAULT_SAMPLE_INTERVAL_MS,
        open_hysteresis_ms: float = OPEN_HYST_MS,
        close_hysteresis_ms: float = CLOSE_HYST_MS,
    ) -> None:
        if sample_interval_ms <= 0:
            raise ValueError(
                f"sample_interval_ms must be positive, got {sample_interval_ms}"
            )
        self.sample_interval_ms = sample_interval_ms
        self.open_hysteresis_ms = open_hysteresis_ms
        self.close_hysteresis_ms = close_hysteresis_ms
        self._accumulator = HysteresisAccumulator()
        self._last_sample_monotonic_ms: float | None = None

    @property
    def accumulator(self) -> HysteresisAccumulator:
        return self._accumulator

    @property
    def closing_window_satisfied(self) -> bool:
        """True once good samples have lasted the closing hysteresis."""
        return self._accumulator.good_accum_ms >= self.close_hysteresis_ms

    @staticmethod
    def measure_skew(device_now_ms: float, virtual_now_ms: float) -> float:
        return device_now_ms - virtual_now_ms

    @staticmethod
    def is_within_tolerance(skew_ms: float, thresholds: TrustThresholds) -> bool:
        return abs(skew_ms) <= thresholds.tolerance_ms

    @staticmethod
    def is_offline(
        state: TrustState, virtual_now_ms: float, thresholds: TrustThresholds
    ) -> bool:
        """True when the last sync is older than the staleness window.

        A guard that never synced is not offline; it is still syncing.
        """
        if state.last_sync_virtual_ms is None:
            return False
        return virtual_now_ms - state.last_sync_virtual_ms > thresholds.max_offline_ms

    def credited_ms(self, monotonic_now_ms: float | None) -> float:
        """Time to credit for a sample taken at ``monotonic_now_ms``.

        Without a monotonic reading, or for the first sample, a full interval.
        """
        if monotonic_now_ms is None:
            return self.sample_interval_ms
        previous, self._last_sample_monotonic_ms = (
            self._last_sample_monotonic_ms,
            monotonic_now_ms,
        )
        if previous is None:
            return self.sample_interval_ms
        return min(max(monotonic_now_ms - previous, 0.0), self.sample_interval_ms)

    def reset(self) -> None:
        """Forget accumulated runs (after trust is explicitly restored)."""
        self._accumulator.reset()

    def sample(
        self,
        state: TrustState,
        *,
        device_now_ms: float,
        virtual_now_ms: float,
        thresholds: TrustThresholds,
        monotonic_now_ms: float | None = None,
    ) -> TrustState:
        """Take one skew sample and return the resulting trust state.

        Args:
            state: Trust state before this sample.
            device_now_ms: Device wall clock reading.
            virtual_now_ms: Virtual clock reading.
            thresholds: Current tolerance and staleness window.
            monotonic_now_ms: Device monotonic reading; bounds the time
                credited to the accumulator.

        Returns:
            The trust state after applying the sampling rules. The lock is
            only ever set here, never cleared.
        """
        skew_ms = self.measure_skew(device_now_ms, virtual_now_ms)
        is_bad = not self.is_within_tolerance(skew_ms, thresholds)
        self._accumulator.record(is_bad, self.credited_ms(monotonic_now_ms))

        sampled = state.with_skew(skew_ms)

        if self.is_offline(sampled, virtual_now_ms, thresholds):
            if sampled.reason is not TrustReason.MAX_OFFLINE or not sampled.locked:
                logger.warning(
                    "clock_max_offline",
                    last_sync_virtual_ms=sampled.last_sync_virtual_ms,
                    virtual_now_ms=virtual_now_ms,
                    max_offline_ms=thresholds.max_offline_ms,
                )
            return sampled.invalidated(TrustReason.MAX_OFFLINE)

        if sampled.locked:
            if is_bad:
                return sampled.invalidated(TrustReason.SKEW_EXCEEDED)
            return sampled

        if is_bad and self._accumulator.bad_accum_ms >= self.open_hysteresis_ms:
            logger.warning(
                "clock_skew_exceeded",
                skew_ms=skew_ms,
                tolerance_ms=thresholds.tolerance_ms,
                bad_accum_ms=self._accumulator.bad_accum_ms,
            )
            return sampled.invalidated(TrustReason.SKEW_EXCEEDED)

        return sampled.marked_ok()

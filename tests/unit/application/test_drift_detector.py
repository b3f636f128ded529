"""Unit tests for DriftDetector sampling rules."""

import pytest

from time_guard.application.services.drift_detector import (
    CLOSE_HYST_MS,
    OPEN_HYST_MS,
    DriftDetector,
)
from time_guard.domain.models.anchor import TrustThresholds
from time_guard.domain.models.trust_state import TrustReason, TrustState, TrustStatus

THRESHOLDS = TrustThresholds(tolerance_ms=60_000, max_offline_ms=1_800_000)
SYNCED_AT = 1_000_000.0


@pytest.fixture
def detector() -> DriftDetector:
    return DriftDetector(sample_interval_ms=1_000)


@pytest.fixture
def trusted() -> TrustState:
    return TrustState(last_sync_virtual_ms=SYNCED_AT).restored()


def _sample(
    detector: DriftDetector,
    state: TrustState,
    *,
    skew_ms: float,
    elapsed_ms: float = 1_000,
) -> TrustState:
    virtual_now = SYNCED_AT + elapsed_ms
    return detector.sample(
        state,
        device_now_ms=virtual_now + skew_ms,
        virtual_now_ms=virtual_now,
        thresholds=THRESHOLDS,
    )


class TestConstants:
    def test_hysteresis_defaults(self) -> None:
        assert OPEN_HYST_MS == 1_200
        assert CLOSE_HYST_MS == 1_500

    def test_non_positive_interval_rejected(self) -> None:
        with pytest.raises(ValueError):
            DriftDetector(sample_interval_ms=0)


class TestTolerance:
    def test_skew_at_tolerance_is_good(self) -> None:
        assert DriftDetector.is_within_tolerance(60_000, THRESHOLDS)
        assert DriftDetector.is_within_tolerance(-60_000, THRESHOLDS)

    def test_skew_past_tolerance_is_bad(self) -> None:
        assert not DriftDetector.is_within_tolerance(60_001, THRESHOLDS)
        assert not DriftDetector.is_within_tolerance(-60_001, THRESHOLDS)

    def test_measure_skew(self) -> None:
        assert DriftDetector.measure_skew(1_301_000, 1_000_000) == 301_000


class TestOpeningHysteresis:
    def test_single_bad_sample_absorbed(
        self, detector: DriftDetector, trusted: TrustState
    ) -> None:
        result = _sample(detector, trusted, skew_ms=301_000)

        assert result.status is TrustStatus.OK
        assert result.locked is False
        assert result.skew_ms == 301_000

    def test_second_bad_sample_locks(
        self, detector: DriftDetector, trusted: TrustState
    ) -> None:
        first = _sample(detector, trusted, skew_ms=301_000)

        second = _sample(detector, first, skew_ms=301_000, elapsed_ms=2_000)

        assert second.status is TrustStatus.INVALID_CLOCK
        assert second.reason is TrustReason.SKEW_EXCEEDED
        assert second.locked is True

    def test_good_sample_breaks_bad_run(
        self, detector: DriftDetector, trusted: TrustState
    ) -> None:
        state = _sample(detector, trusted, skew_ms=301_000)
        state = _sample(detector, state, skew_ms=0, elapsed_ms=2_000)
        state = _sample(detector, state, skew_ms=301_000, elapsed_ms=3_000)

        assert state.locked is False
        assert detector.accumulator.bad_accum_ms == 1_000

    def test_good_samples_keep_ok(
        self, detector: DriftDetector, trusted: TrustState
    ) -> None:
        result = _sample(detector, trusted, skew_ms=500)

        assert result.is_ok
        assert result.locked is False


class TestElapsedCredit:
    def test_burst_of_samples_at_one_instant_does_not_lock(
        self, detector: DriftDetector, trusted: TrustState
    ) -> None:
        state = trusted
        for _ in range(5):
            state = detector.sample(
                state,
                device_now_ms=SYNCED_AT + 301_000,
                virtual_now_ms=SYNCED_AT,
                thresholds=THRESHOLDS,
                monotonic_now_ms=50_000,
            )

        assert state.locked is False
        assert detector.accumulator.bad_accum_ms == 1_000

    def test_long_gap_credits_at_most_one_interval(self, detector: DriftDetector) -> None:
        assert detector.credited_ms(0) == 1_000
        assert detector.credited_ms(250) == 250
        assert detector.credited_ms(3_600_000) == 1_000

    def test_without_monotonic_reading_full_interval_credited(
        self, detector: DriftDetector
    ) -> None:
        assert detector.credited_ms(None) == 1_000


class TestStickyLock:
    def test_good_samples_never_unlock(self, detector: DriftDetector) -> None:
        state = (
            TrustState(last_sync_virtual_ms=SYNCED_AT)
            .invalidated(TrustReason.SKEW_EXCEEDED)
        )

        for elapsed in (1_000, 2_000, 3_000, 4_000):
            state = _sample(detector, state, skew_ms=0, elapsed_ms=elapsed)

        assert detector.closing_window_satisfied
        assert state.status is TrustStatus.INVALID_CLOCK
        assert state.locked is True

    def test_backend_rejection_stays_locked_on_good_sample(
        self, detector: DriftDetector
    ) -> None:
        state = TrustState(last_sync_virtual_ms=SYNCED_AT).invalidated(
            TrustReason.BACKEND_428
        )

        result = _sample(detector, state, skew_ms=0)

        assert result.locked is True
        assert result.reason is TrustReason.BACKEND_428

    def test_locked_bad_sample_reports_skew_exceeded(
        self, detector: DriftDetector
    ) -> None:
        state = TrustState(last_sync_virtual_ms=SYNCED_AT).invalidated(
            TrustReason.NETWORK
        )

        result = _sample(detector, state, skew_ms=301_000)

        assert result.reason is TrustReason.SKEW_EXCEEDED
        assert result.locked is True

    def test_initial_lock_not_cleared_by_sampling(self, detector: DriftDetector) -> None:
        state = TrustState(last_sync_virtual_ms=SYNCED_AT)

        result = _sample(detector, state, skew_ms=0)

        assert result.locked is True


class TestMaxOffline:
    def test_stale_sync_locks_even_with_zero_skew(
        self, detector: DriftDetector, trusted: TrustState
    ) -> None:
        result = _sample(detector, trusted, skew_ms=0, elapsed_ms=1_800_001)

        assert result.status is TrustStatus.INVALID_CLOCK
        assert result.reason is TrustReason.MAX_OFFLINE
        assert result.locked is True

    def test_max_offline_wins_over_skew(
        self, detector: DriftDetector, trusted: TrustState
    ) -> None:
        state = _sample(detector, trusted, skew_ms=301_000)

        result = _sample(detector, state, skew_ms=301_000, elapsed_ms=1_900_000)

        assert result.reason is TrustReason.MAX_OFFLINE

    def test_exactly_at_window_is_not_offline(
        self, detector: DriftDetector, trusted: TrustState
    ) -> None:
        result = _sample(detector, trusted, skew_ms=0, elapsed_ms=1_800_000)

        assert result.is_ok

    def test_never_synced_is_not_offline(self, detector: DriftDetector) -> None:
        assert not DriftDetector.is_offline(TrustState(), 10**12, THRESHOLDS)

"""Trust state models.

TrustState is the guard's whole verdict about the local clock. It is an
immutable value; the state machine swaps one instance for the next.

Invariants:
- ``reason is not None`` implies ``status is TrustStatus.INVALID_CLOCK``
- ``locked`` is independent of ``status`` and sticky: transitions built here
  can set it, only ``restored()`` clears it
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum


class TrustStatus(Enum):
    """Whether the local clock is currently trusted.

    Values:
        SYNCING: No sync has resolved yet.
        OK: Skew within tolerance and authority recently reachable.
        INVALID_CLOCK: Trust lost; see TrustReason for why.
    """

    SYNCING = "syncing"
    OK = "ok"
    INVALID_CLOCK = "invalid-clock"


class TrustReason(Enum):
    """Why trust was lost. Mutually exclusive.

    Values:
        SKEW_EXCEEDED: Sustained drift past tolerance.
        MAX_OFFLINE: No successful sync within the staleness window.
        BACKEND_428: An application server rejected the client's time.
        NETWORK: The time authority could not be reached or parsed.
    """

    SKEW_EXCEEDED = "SKEW_EXCEEDED"
    MAX_OFFLINE = "MAX_OFFLINE"
    BACKEND_428 = "BACKEND_428"
    NETWORK = "NETWORK"


@dataclass(frozen=True)
class TrustState:
    """Immutable trust verdict.

    Attributes:
        status: Current TrustStatus.
        reason: Why trust was lost, None while not invalid.
        skew_ms: Device clock minus virtual clock at the last sample.
        locked: Fail-closed flag blocking outgoing traffic.
        last_sync_virtual_ms: Virtual time of the last adopted sync; the
            freshness key for cross-instance reconciliation.
    """

    status: TrustStatus = TrustStatus.SYNCING
    reason: TrustReason | None = None
    skew_ms: float = 0.0
    # Locked until the first sync proves the clock.
    locked: bool = True
    last_sync_virtual_ms: float | None = None

    def __post_init__(self) -> None:
        """Enforce the reason/status invariant."""
        if self.reason is not None and self.status is not TrustStatus.INVALID_CLOCK:
            raise ValueError(
                f"reason {self.reason.value} requires status invalid-clock, "
                f"got {self.status.value}"
            )

    @property
    def is_ok(self) -> bool:
        """True when the status is OK (the lock may still be set)."""
        return self.status is TrustStatus.OK

    @property
    def is_invalid(self) -> bool:
        """True when the status is INVALID_CLOCK."""
        return self.status is TrustStatus.INVALID_CLOCK

    def invalidated(self, reason: TrustReason) -> TrustState:
        """Return a locked INVALID_CLOCK state carrying ``reason``."""
        return replace(
            self, status=TrustStatus.INVALID_CLOCK, reason=reason, locked=True
        )

    def marked_ok(self) -> TrustState:
        """Return an OK state; the lock is left as it is."""
        return replace(self, status=TrustStatus.OK, reason=None)

    def restored(self) -> TrustState:
        """Return an OK, unlocked state.

        This is the only transition that clears the lock. Callers must have
        just completed an explicit sync with the skew inside tolerance.
        """
        return replace(self, status=TrustStatus.OK, reason=None, locked=False)

    def with_skew(self, skew_ms: float) -> TrustState:
        """Return a copy with a new skew reading."""
        return replace(self, skew_ms=skew_ms)

    def with_last_sync(self, last_sync_virtual_ms: float) -> TrustState:
        """Return a copy with a new sync freshness key."""
        return replace(self, last_sync_virtual_ms=last_sync_virtual_ms)


@dataclass
class HysteresisAccumulator:
    """Consecutive bad/good sample time.

    Each observation resets the opposite counter, so the counters measure
    uninterrupted runs only.
    """

    bad_accum_ms: float = 0.0
    good_accum_ms: float = 0.0

    def record(self, is_bad: bool, period_ms: float) -> None:
        if is_bad:
            self.bad_accum_ms += period_ms
            self.good_accum_ms = 0.0
        else:
            self.good_accum_ms += period_ms
            self.bad_accum_ms = 0.0

    def reset(self) -> None:
        self.bad_accum_ms = 0.0
        self.good_accum_ms = 0.0

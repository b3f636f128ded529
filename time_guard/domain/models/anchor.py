"""Clock anchoring value objects.

An Anchor pins the virtual clock to one observation of the time authority:
the server's time at sync and the local monotonic reading taken at the same
moment. Everything the guard believes about "now" is derived from it.

All values are milliseconds. Server times are Unix epoch milliseconds,
monotonic readings have an arbitrary origin and are only meaningful as
differences.
"""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_TOLERANCE_MS: float = 60_000.0
DEFAULT_MAX_OFFLINE_MS: float = 1_800_000.0


@dataclass(frozen=True)
class Anchor:
    """The (server time, local monotonic time) pair fixing the virtual clock.

    Replaced wholesale on every successful sync; never mutated.

    Attributes:
        server_time_at_sync_ms: Server Unix time when the sync was answered.
        local_monotonic_at_sync_ms: Local monotonic reading at that moment.
    """

    server_time_at_sync_ms: float
    local_monotonic_at_sync_ms: float

    def project(self, monotonic_now_ms: float) -> float:
        """Project the anchor forward to the given monotonic reading."""
        return self.server_time_at_sync_ms + (
            monotonic_now_ms - self.local_monotonic_at_sync_ms
        )


@dataclass(frozen=True)
class TimeSample:
    """One answer from the time authority.

    Attributes:
        server_unix_ms: Authority's current Unix time in milliseconds.
        tolerance_ms: Allowed skew, if the authority sent one.
        max_offline_ms: Allowed staleness, if the authority sent one.
    """

    server_unix_ms: float
    tolerance_ms: float | None = None
    max_offline_ms: float | None = None


@dataclass(frozen=True)
class TrustThresholds:
    """Limits the authority imposes on this client.

    Local defaults apply until the first sync; afterwards every sync response
    that carries a field overrides it.

    Attributes:
        tolerance_ms: Maximum absolute skew before a sample counts as bad.
        max_offline_ms: Maximum virtual time since the last sync.
    """

    tolerance_ms: float = DEFAULT_TOLERANCE_MS
    max_offline_ms: float = DEFAULT_MAX_OFFLINE_MS

    def __post_init__(self) -> None:
        """Validate thresholds."""
        if self.tolerance_ms < 0:
            raise ValueError(f"tolerance_ms must be non-negative, got {self.tolerance_ms}")
        if self.max_offline_ms <= 0:
            raise ValueError(
                f"max_offline_ms must be positive, got {self.max_offline_ms}"
            )

    def merged_with(self, sample: TimeSample) -> TrustThresholds:
        """Return thresholds overridden by whatever the sample carries."""
        return TrustThresholds(
            tolerance_ms=(
                self.tolerance_ms if sample.tolerance_ms is None else sample.tolerance_ms
            ),
            max_offline_ms=(
                self.max_offline_ms
                if sample.max_offline_ms is None
                else sample.max_offline_ms
            ),
        )

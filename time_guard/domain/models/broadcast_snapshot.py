"""BroadcastSnapshot - the published view of one guard instance.

This is what ``get_state()`` returns, what subscribers receive, and what is
sent to peer instances. It is TrustState plus the anchor-derived fields a
peer needs to rebuild the virtual clock.
"""

from __future__ import annotations

from dataclasses import dataclass

from time_guard.domain.models.trust_state import TrustReason, TrustState, TrustStatus

TIME_GUARD_STATE_MESSAGE_TYPE = "TIME_GUARD_STATE"


@dataclass(frozen=True)
class BroadcastSnapshot:
    """Serializable trust-state payload exchanged between instances.

    Attributes:
        status: Trust status at publication time.
        reason: Why trust was lost, if it was.
        skew_ms: Last measured skew.
        locked: Whether outgoing traffic is blocked.
        last_sync_virtual_ms: Freshness key; higher wins on reconciliation.
        server_time_at_sync_ms: Anchor server time, None before first sync.
        tolerance_ms: Current skew tolerance.
        max_offline_ms: Current staleness window.
        virtual_now_ms: Virtual clock reading at publication time.
    """

    status: TrustStatus
    reason: TrustReason | None
    skew_ms: float
    locked: bool
    last_sync_virtual_ms: float | None
    server_time_at_sync_ms: float | None
    tolerance_ms: float
    max_offline_ms: float
    virtual_now_ms: float

    def is_newer_than(self, last_sync_virtual_ms: float | None) -> bool:
        """True when this snapshot carries a strictly fresher sync.

        A snapshot that never synced is never newer; anything that synced is
        newer than a local state that never did.
        """
        if self.last_sync_virtual_ms is None:
            return False
        if last_sync_virtual_ms is None:
            return True
        return self.last_sync_virtual_ms > last_sync_virtual_ms

    def to_trust_state(self) -> TrustState:
        """Return the TrustState portion of this snapshot."""
        return TrustState(
            status=self.status,
            reason=self.reason,
            skew_ms=self.skew_ms,
            locked=self.locked,
            last_sync_virtual_ms=self.last_sync_virtual_ms,
        )

"""Broadcast coordinator - reconciles trust state across instances.

Publishing: every notified state change is encoded as a ``TIME_GUARD_STATE``
message and handed to the transport.

Receiving: a peer snapshot is adopted only if its ``last_sync_virtual_ms`` is
strictly newer than ours. The logical timestamp, not arrival order, decides,
so reconciliation is idempotent and commutative; a snapshot we published
ourselves is never newer than our own state and is a no-op.

Adoption copies the anchor equivalent, thresholds, status, reason and skew,
and merges the lock as ``local.locked or peer.locked``. No peer can unlock
an instance; only that instance's own successful retry can.
"""

from __future__ import annotations

from pydantic import ValidationError
from structlog import get_logger

from time_guard.application.dtos.broadcast import (
    decode_state_message,
    encode_state_message,
)
from time_guard.application.ports.broadcast_transport import BroadcastTransport
from time_guard.application.services.trust_state_machine import TrustStateMachine
from time_guard.application.services.virtual_clock import VirtualClock
from time_guard.domain.errors import BroadcastTransportError
from time_guard.domain.models.anchor import Anchor, TrustThresholds
from time_guard.domain.models.broadcast_snapshot import BroadcastSnapshot
from time_guard.domain.models.trust_state import TrustState

logger = get_logger()


def should_adopt(local: TrustState, peer: BroadcastSnapshot) -> bool:
    """True when ``peer`` carries a strictly fresher sync than ``local``."""
    return peer.is_newer_than(local.last_sync_virtual_ms)


def merge_peer_state(local: TrustState, peer: BroadcastSnapshot) -> TrustState:
    """Return the state to adopt from ``peer``, keeping the lock sticky."""
    adopted = peer.to_trust_state()
    return TrustState(
        status=adopted.status,
        reason=adopted.reason,
        skew_ms=adopted.skew_ms,
        locked=local.locked or adopted.locked,
        last_sync_virtual_ms=adopted.last_sync_virtual_ms,
    )


def anchor_from_peer(peer: BroadcastSnapshot, monotonic_now_ms: float) -> Anchor | None:
    """Rebuild an equivalent anchor on this instance's monotonic timeline.

    The peer's virtual clock had advanced ``virtual_now - server_time_at_sync``
    past its anchor when it published; back-date our monotonic reading by the
    same amount.
    """
    if peer.server_time_at_sync_ms is None:
        return None
    elapsed_ms = peer.virtual_now_ms - peer.server_time_at_sync_ms
    return Anchor(
        server_time_at_sync_ms=peer.server_time_at_sync_ms,
        local_monotonic_at_sync_ms=monotonic_now_ms - elapsed_ms,
    )


class BroadcastCoordinator:
    """Publishes local snapshots and adopts fresher peer snapshots."""

    def __init__(
        self,
        *,
        transport: BroadcastTransport,
        state_machine: TrustStateMachine,
        virtual_clock: VirtualClock,
    ) -> None:
        self._transport = transport
        self._machine = state_machine
        self._virtual_clock = virtual_clock
        self._started = False
        self._log = logger.bind(channel=transport.channel_name)

    @property
    def transport(self) -> BroadcastTransport:
        return self._transport

    @property
    def is_started(self) -> bool:
        return self._started

    async def start(self) -> bool:
        """Subscribe to peers and start publishing. Idempotent.

        If the transport cannot start, the failure is logged and the guard
        runs as a single instance: nothing is published or received.

        Returns:
            True if the coordinator is connected to its peers.
        """
        if self._started:
            self._log.debug("broadcast_already_started")
            return True
        transport_name = type(self._transport).__name__
        try:
            await self._transport.start(self.handle_message)
        except BroadcastTransportError as e:
            self._log.error(
                "broadcast_start_failed", transport=transport_name, error=str(e)
            )
            return False
        self._started = True
        self._machine.bind_publisher(self.publish)
        self._log.info("broadcast_started", transport=transport_name)
        return True

    async def close(self) -> None:
        """Stop publishing and release the transport, even one that never started."""
        self._started = False
        self._machine.bind_publisher(None)
        await self._transport.close()

    def publish(self, snapshot: BroadcastSnapshot) -> None:
        """Send ``snapshot`` to every peer.

        A transport failure is logged; the local state change already happened
        and peers will converge on the next publication.
        """
        try:
            self._transport.publish(encode_state_message(snapshot))
        except Exception as e:
            self._log.warning("broadcast_publish_failed", error=str(e))

    def handle_message(self, raw: str) -> None:
        """Decode a raw peer message and reconcile it."""
        try:
            peer = decode_state_message(raw)
        except (ValidationError, ValueError) as e:
            self._log.warning("broadcast_message_rejected", error=str(e))
            return
        self.reconcile(peer)

    def reconcile(self, peer: BroadcastSnapshot) -> bool:
        """Adopt ``peer`` if it is fresher.

        Returns:
            True if the snapshot was adopted.
        """
        local = self._machine.state
        if not should_adopt(local, peer):
            return False

        anchor = anchor_from_peer(peer, self._virtual_clock.device_clock.monotonic_ms())
        if anchor is not None:
            self._virtual_clock.set_anchor(anchor)
        self._machine.replace_thresholds(
            TrustThresholds(
                tolerance_ms=peer.tolerance_ms,
                max_offline_ms=peer.max_offline_ms,
            )
        )
        merged = merge_peer_state(local, peer)
        self._log.info(
            "peer_state_adopted",
            peer_last_sync_virtual_ms=peer.last_sync_virtual_ms,
            local_last_sync_virtual_ms=local.last_sync_virtual_ms,
            status=merged.status.value,
            locked=merged.locked,
        )
        self._machine.apply(merged)
        return True

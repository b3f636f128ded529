"""Cross-instance message models.

Envelope on the wire (identical for every transport)::

    {"type": "TIME_GUARD_STATE", "payload": {"status": "ok", "reason": null,
     "skewMs": 3, "locked": false, "lastSyncVirtualMs": 1000000, ...}}

Keys are camelCase to match the time authority's own JSON.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from time_guard.domain.models.broadcast_snapshot import (
    TIME_GUARD_STATE_MESSAGE_TYPE,
    BroadcastSnapshot,
)
from time_guard.domain.models.trust_state import TrustReason, TrustStatus


class TimeGuardStatePayload(BaseModel):
    """Wire form of a BroadcastSnapshot."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    status: TrustStatus
    reason: TrustReason | None = None
    skew_ms: float = Field(default=0.0, alias="skewMs", allow_inf_nan=False)
    locked: bool = False
    last_sync_virtual_ms: float | None = Field(
        default=None, alias="lastSyncVirtualMs", allow_inf_nan=False
    )
    server_time_at_sync_ms: float | None = Field(
        default=None, alias="serverTimeAtSync", allow_inf_nan=False
    )
    tolerance_ms: float = Field(..., alias="toleranceMs", ge=0, allow_inf_nan=False)
    max_offline_ms: float = Field(
        ..., alias="maxOfflineMs", gt=0, allow_inf_nan=False
    )
    virtual_now_ms: float = Field(..., alias="virtualNow", allow_inf_nan=False)

    @model_validator(mode="after")
    def _reason_requires_invalid_clock(self) -> TimeGuardStatePayload:
        if self.reason is not None and self.status is not TrustStatus.INVALID_CLOCK:
            raise ValueError("reason is only allowed with status invalid-clock")
        return self

    @classmethod
    def from_snapshot(cls, snapshot: BroadcastSnapshot) -> TimeGuardStatePayload:
        return cls(
            status=snapshot.status,
            reason=snapshot.reason,
            skew_ms=snapshot.skew_ms,
            locked=snapshot.locked,
            last_sync_virtual_ms=snapshot.last_sync_virtual_ms,
            server_time_at_sync_ms=snapshot.server_time_at_sync_ms,
            tolerance_ms=snapshot.tolerance_ms,
            max_offline_ms=snapshot.max_offline_ms,
            virtual_now_ms=snapshot.virtual_now_ms,
        )

    def to_snapshot(self) -> BroadcastSnapshot:
        return BroadcastSnapshot(
            status=self.status,
            reason=self.reason,
            skew_ms=self.skew_ms,
            locked=self.locked,
            last_sync_virtual_ms=self.last_sync_virtual_ms,
            server_time_at_sync_ms=self.server_time_at_sync_ms,
            tolerance_ms=self.tolerance_ms,
            max_offline_ms=self.max_offline_ms,
            virtual_now_ms=self.virtual_now_ms,
        )


class TimeGuardStateMessage(BaseModel):
    """``TIME_GUARD_STATE`` envelope."""

    model_config = ConfigDict(frozen=True)

    type: Literal["TIME_GUARD_STATE"] = TIME_GUARD_STATE_MESSAGE_TYPE
    payload: TimeGuardStatePayload


def encode_state_message(snapshot: BroadcastSnapshot) -> str:
    """Serialize a snapshot into the wire envelope."""
    message = TimeGuardStateMessage(
        payload=TimeGuardStatePayload.from_snapshot(snapshot)
    )
    return message.model_dump_json(by_alias=True)


def decode_state_message(raw: str | bytes) -> BroadcastSnapshot:
    """Parse a wire envelope.

    Raises:
        pydantic.ValidationError: If the message is not a valid
            ``TIME_GUARD_STATE`` envelope.
    """
    return TimeGuardStateMessage.model_validate_json(raw).payload.to_snapshot()

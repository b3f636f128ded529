"""Application DTOs (wire models).

Pydantic models here are shared with the API layer and the infrastructure
adapters, so dependencies flow inward (API/infrastructure -> application).
"""

from time_guard.application.dtos.broadcast import (
    TimeGuardStateMessage,
    TimeGuardStatePayload,
    decode_state_message,
    encode_state_message,
)
from time_guard.application.dtos.time_sync import TimeResponse

__all__: list[str] = [
    "TimeGuardStateMessage",
    "TimeGuardStatePayload",
    "TimeResponse",
    "decode_state_message",
    "encode_state_message",
]

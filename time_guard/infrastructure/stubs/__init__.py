"""Stub implementations for development and testing.

WARNING: These stubs are for development/testing only.
"""

from time_guard.infrastructure.stubs.manual_scheduler import (
    ManualScheduledHandle,
    ManualScheduler,
)
from time_guard.infrastructure.stubs.time_authority_client_stub import (
    TimeAuthorityClientStub,
)

__all__ = [
    "ManualScheduledHandle",
    "ManualScheduler",
    "TimeAuthorityClientStub",
]

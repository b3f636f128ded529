"""Bootstrap wiring for the process-wide time guard.

One guard per runtime context. The first ``get_time_guard()`` builds it from
the environment with production adapters; tests install their own with
``set_time_guard()`` and clear it with ``reset_time_guard()``.
"""

from __future__ import annotations

from time_guard.application.services.time_guard_service import TimeGuardService
from time_guard.config.time_guard_config import TimeGuardConfig
from time_guard.infrastructure.adapters.asyncio_scheduler import AsyncioScheduler
from time_guard.infrastructure.adapters.httpx_time_authority_client import (
    HttpxTimeAuthorityClient,
)
from time_guard.infrastructure.adapters.system_clock import SystemDeviceClock
from time_guard.infrastructure.adapters.transport_selection import select_transport

_time_guard: TimeGuardService | None = None


def build_time_guard(config: TimeGuardConfig) -> TimeGuardService:
    """Build an uninitialized guard with production adapters."""
    return TimeGuardService(
        config=config,
        device_clock=SystemDeviceClock(),
        time_client=HttpxTimeAuthorityClient.from_config(config),
        scheduler=AsyncioScheduler(),
        transport=select_transport(config),
    )


def get_time_guard() -> TimeGuardService:
    """Get the time guard instance (call ``await guard.init()`` once)."""
    global _time_guard
    if _time_guard is None:
        _time_guard = build_time_guard(TimeGuardConfig.from_environment())
    return _time_guard


def set_time_guard(guard: TimeGuardService) -> None:
    """Set custom time guard (testing override)."""
    global _time_guard
    _time_guard = guard


def reset_time_guard() -> None:
    """Reset time guard singleton."""
    global _time_guard
    _time_guard = None

"""
Pytest configuration and shared fixtures for time-guard tests.

Testing Standards:
- Async tests run under pytest-asyncio (auto mode enabled in pyproject.toml)
- Use AsyncMock for async function mocking
- Unit tests go in tests/unit/<layer>/
- Integration tests go in tests/integration/
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from time_guard.application.services.virtual_clock import VirtualClock
from time_guard.bootstrap.time_guard import reset_time_guard
from time_guard.infrastructure.adapters.in_memory_shared_store import (
    InMemorySharedStore,
)
from time_guard.infrastructure.adapters.local_channel_transport import LocalChannelHub
from tests.helpers.fake_device_clock import FakeDeviceClock


@pytest.fixture(autouse=True)
def _reset_registries() -> Iterator[None]:
    """Isolate named hubs, stores and the bootstrap singleton per test."""
    LocalChannelHub.reset_all()
    InMemorySharedStore.reset_all()
    reset_time_guard()
    yield
    LocalChannelHub.reset_all()
    InMemorySharedStore.reset_all()
    reset_time_guard()


@pytest.fixture
def project_version() -> str:
    """Provide the current project version for tests."""
    from time_guard import __version__

    return __version__


@pytest.fixture
def device_clock() -> FakeDeviceClock:
    """Device clock agreeing with a server at 1_000_000 ms."""
    return FakeDeviceClock(wall_ms=1_000_000, monotonic_ms=0)


@pytest.fixture
def virtual_clock(device_clock: FakeDeviceClock) -> VirtualClock:
    """Virtual clock over the fake device clock, not yet anchored."""
    return VirtualClock(device_clock)


@pytest.fixture
def hub() -> LocalChannelHub:
    """Fresh in-process channel hub."""
    return LocalChannelHub.get_instance("test")

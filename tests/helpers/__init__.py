"""Test helpers for time-guard tests.

This package contains reusable test utilities and fake implementations
for dependency injection in unit tests.

Helpers:
    FakeDeviceClock: Controllable wall and monotonic clocks
    build_guard: TimeGuardService wired with fakes and stubs

Usage:
    from tests.helpers import FakeDeviceClock
"""

from tests.helpers.fake_device_clock import FakeDeviceClock
from tests.helpers.guard_factory import GuardHarness, build_guard

__all__ = ["FakeDeviceClock", "GuardHarness", "build_guard"]

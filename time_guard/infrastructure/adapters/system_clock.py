"""System device clock - production DeviceClockProtocol."""

from __future__ import annotations

import time

from time_guard.application.ports.device_clock import DeviceClockProtocol


class SystemDeviceClock(DeviceClockProtocol):
    """Reads the operating system's wall and monotonic clocks."""

    def wall_ms(self) -> float:
        return time.time() * 1000.0

    def monotonic_ms(self) -> float:
        return time.monotonic() * 1000.0

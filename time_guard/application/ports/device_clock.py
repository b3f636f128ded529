"""Device Clock Protocol - interface for reading the local clocks.

The guard never calls ``time.time()`` or ``time.monotonic()`` directly. It
reads both clocks through this port so tests can move them independently:
advancing both simulates time passing, moving only the wall clock simulates
the user tampering with the system clock.

For production:
    Use SystemDeviceClock from time_guard.infrastructure.adapters

For testing:
    Use FakeDeviceClock from tests/helpers/fake_device_clock.py
"""

from abc import ABC, abstractmethod


class DeviceClockProtocol(ABC):
    """Abstract interface for the device's own clocks."""

    @abstractmethod
    def wall_ms(self) -> float:
        """Return the device wall clock as Unix epoch milliseconds.

        Returns:
            Milliseconds since the epoch as reported by the device. This is the
            value under suspicion; the user can change it at any time.
        """
        ...

    @abstractmethod
    def monotonic_ms(self) -> float:
        """Return a monotonic reading in milliseconds.

        Returns:
            Monotonically increasing milliseconds with an arbitrary origin.
            Only differences are meaningful.
        """
        ...

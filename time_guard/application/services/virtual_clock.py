"""Virtual clock - trusted "now" derived from the last anchor.

    virtual_now = server_time_at_sync + (monotonic_now - local_monotonic_at_sync)

Before the first sync there is no anchor and the raw device wall clock is
returned, so the guard is usable (distrustfully) from the start.
"""

from __future__ import annotations

from time_guard.application.ports.device_clock import DeviceClockProtocol
from time_guard.domain.models.anchor import Anchor


class VirtualClock:
    """Skew-corrected clock anchored to the time authority.

    Reads are pure: the result depends only on the current anchor and the
    device clocks. The anchor is replaced wholesale by the sync protocol or by
    adopting a fresher peer snapshot.

    Example:
        >>> clock = VirtualClock(device_clock)
        >>> clock.set_anchor(Anchor(1_000_000, device_clock.monotonic_ms()))
        >>> clock.virtual_now()
        1000000.0
    """

    def __init__(self, device_clock: DeviceClockProtocol) -> None:
        self._device_clock = device_clock
        self._anchor: Anchor | None = None

    @property
    def anchor(self) -> Anchor | None:
        """Current anchor, None before the first sync."""
        return self._anchor

    @property
    def device_clock(self) -> DeviceClockProtocol:
        return self._device_clock

    def set_anchor(self, anchor: Anchor) -> None:
        self._anchor = anchor

    def anchor_now(self, server_time_ms: float) -> Anchor:
        """Build an anchor pairing ``server_time_ms`` with the current monotonic reading."""
        return Anchor(
            server_time_at_sync_ms=server_time_ms,
            local_monotonic_at_sync_ms=self._device_clock.monotonic_ms(),
        )

    def virtual_now(self) -> float:
        """Return the best estimate of true time in Unix milliseconds."""
        if self._anchor is None:
            return self._device_clock.wall_ms()
        return self._anchor.project(self._device_clock.monotonic_ms())

    def skew_ms(self) -> float:
        """Return device wall clock minus virtual clock."""
        return self._device_clock.wall_ms() - self.virtual_now()

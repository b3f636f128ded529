"""Time Authority Client port - the network half of the sync protocol.

Wire contract:
    GET {base}/time[?refresh=1]
    -> {"serverUnixMs": number, "toleranceMs"?: number, "maxOfflineMs"?: number}

``refresh=1`` asks intermediaries to bypass any cache; the guard sends it
whenever it is already locked or invalid, and on every explicit retry.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from time_guard.domain.models.anchor import TimeSample


class TimeAuthorityClient(ABC):
    """Abstract client for the trusted time authority."""

    @abstractmethod
    async def fetch_time(self, *, refresh: bool = False) -> TimeSample:
        """Fetch the authority's current time and thresholds.

        Args:
            refresh: Send the cache-busting ``refresh=1`` query parameter.

        Returns:
            The parsed TimeSample.

        Raises:
            TimeSyncError: On transport failure, non-success status, or an
                unparseable body.
        """
        ...

    async def aclose(self) -> None:
        """Release network resources. Default implementation does nothing."""
        return None

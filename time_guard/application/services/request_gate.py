"""Request gate - httpx event hooks enforcing the clock lock.

Two pure decisions, and thin hooks built on them:

- ``should_block(state)``: outgoing calls fail with ClockLockedError while
  locked, before anything reaches the network. Otherwise the request is
  stamped with ``x-client-reported-time``.
- ``is_clock_rejection(status_code)``: a 428 from any application server is
  an authoritative clock rejection and force-locks the guard.

Usage:
    gate = guard.request_gate
    client = httpx.AsyncClient(
        event_hooks={
            "request": [gate.async_request_hook],
            "response": [gate.async_response_hook],
        }
    )
    # or: gate.attach(client)
"""

from __future__ import annotations

from collections.abc import Callable

import httpx
from structlog import get_logger

from time_guard.application.ports.device_clock import DeviceClockProtocol
from time_guard.domain.errors import ClockLockedError
from time_guard.domain.models.trust_state import TrustState

logger = get_logger()

CLIENT_REPORTED_TIME_HEADER = "x-client-reported-time"
CLOCK_REJECTED_STATUS = 428


def should_block(state: TrustState) -> bool:
    """True when outgoing traffic must be refused."""
    return state.locked


def is_clock_rejection(status_code: int) -> bool:
    """True when a response status means the server rejected our clock."""
    return status_code == CLOCK_REJECTED_STATUS


class RequestGate:
    """Outbound/inbound interceptors bound to one guard.

    Args:
        state_reader: Returns the guard's current TrustState.
        device_clock: Source of the reported device time.
        on_clock_rejected: Called when a response carries status 428.
    """

    def __init__(
        self,
        *,
        state_reader: Callable[[], TrustState],
        device_clock: DeviceClockProtocol,
        on_clock_rejected: Callable[[], None],
    ) -> None:
        self._state_reader = state_reader
        self._device_clock = device_clock
        self._on_clock_rejected = on_clock_rejected

    def request_hook(self, request: httpx.Request) -> None:
        """Block or stamp an outgoing request.

        Raises:
            ClockLockedError: If the guard is locked.
        """
        if should_block(self._state_reader()):
            logger.info(
                "request_blocked_clock_locked",
                method=request.method,
                url=str(request.url),
            )
            raise ClockLockedError(method=request.method, url=str(request.url))
        request.headers[CLIENT_REPORTED_TIME_HEADER] = str(
            int(self._device_clock.wall_ms())
        )

    def response_hook(self, response: httpx.Response) -> None:
        """Force-lock on a clock rejection."""
        if is_clock_rejection(response.status_code):
            self._on_clock_rejected()

    async def async_request_hook(self, request: httpx.Request) -> None:
        self.request_hook(request)

    async def async_response_hook(self, response: httpx.Response) -> None:
        self.response_hook(response)

    def attach(self, client: httpx.Client | httpx.AsyncClient) -> None:
        """Install the hooks on an existing client, sync or async."""
        if isinstance(client, httpx.AsyncClient):
            request_hook, response_hook = self.async_request_hook, self.async_response_hook
        else:
            request_hook, response_hook = self.request_hook, self.response_hook

        hooks = client.event_hooks
        client.event_hooks = {
            "request": [*hooks.get("request", []), request_hook],
            "response": [*hooks.get("response", []), response_hook],
        }

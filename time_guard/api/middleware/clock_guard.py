"""Clock guard middleware.

Rejects requests whose ``x-client-reported-time`` header is missing,
unparseable, or further from the server clock than the tolerance, with
``428 Precondition Required``. Clients treat a 428 as an authoritative clock
rejection and lock until they resynchronize, so the time endpoint itself is
always exempt.

Usage:
    from fastapi import FastAPI
    from time_guard.api.middleware.clock_guard import ClockGuardMiddleware

    app = FastAPI()
    app.add_middleware(
        ClockGuardMiddleware,
        now_ms=lambda: time.time() * 1000,
        tolerance_ms=60_000,
    )
"""

from __future__ import annotations

import math
from collections.abc import Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from time_guard.application.services.request_gate import (
    CLIENT_REPORTED_TIME_HEADER,
    CLOCK_REJECTED_STATUS,
)

CLOCK_REJECTED_DETAIL = "Client clock rejected; resynchronize with /time"


def parse_reported_time(raw: str | None) -> float | None:
    """Parse the client clock header; None when missing or not a finite number."""
    if raw is None:
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


class ClockGuardMiddleware(BaseHTTPMiddleware):
    """Middleware enforcing client clock tolerance on every guarded path.

    Attributes:
        _now_ms: Server clock in Unix milliseconds.
        _tolerance_ms: Allowed absolute difference.
        _exempt_paths: Paths never checked.
    """

    def __init__(
        self,
        app: Callable,
        now_ms: Callable[[], float],
        tolerance_ms: float,
        exempt_paths: tuple[str, ...] = ("/time",),
    ) -> None:
        """Initialize ClockGuardMiddleware.

        Args:
            app: The ASGI app to wrap.
            now_ms: Server clock in Unix milliseconds.
            tolerance_ms: Allowed absolute difference.
            exempt_paths: Paths never checked.
        """
        super().__init__(app)
        self._now_ms = now_ms
        self._tolerance_ms = tolerance_ms
        self._exempt_paths = frozenset(exempt_paths)

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        """Reject out-of-tolerance clocks, pass everything else through."""
        if request.url.path in self._exempt_paths:
            return await call_next(request)

        raw = request.headers.get(CLIENT_REPORTED_TIME_HEADER)
        reported_ms = parse_reported_time(raw)
        server_ms = self._now_ms()

        if reported_ms is None or abs(reported_ms - server_ms) > self._tolerance_ms:
            structlog.get_logger().warning(
                "client_clock_rejected",
                path=request.url.path,
                method=request.method,
                reported_time=raw,
                server_unix_ms=server_ms,
                tolerance_ms=self._tolerance_ms,
            )
            return JSONResponse(
                status_code=CLOCK_REJECTED_STATUS,
                content={"detail": CLOCK_REJECTED_DETAIL},
            )

        return await call_next(request)

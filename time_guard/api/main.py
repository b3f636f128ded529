"""FastAPI application entry point for the development time authority.

Serves ``GET /time`` and rejects application requests carrying an
out-of-tolerance client clock, which is everything the guard needs to run
end to end locally:

    uvicorn time_guard.api.main:app --port 8000
    TIME_GUARD_API_BASE=http://localhost:8000
"""

from __future__ import annotations

import time
from collections.abc import Callable

from fastapi import FastAPI

from time_guard.api.middleware.clock_guard import ClockGuardMiddleware
from time_guard.api.routes.clock_check import router as clock_check_router
from time_guard.api.routes.time import router as time_router
from time_guard.config.time_guard_config import TimeAuthorityServerConfig


def _system_now_ms() -> float:
    return time.time() * 1000.0


def create_app(
    config: TimeAuthorityServerConfig | None = None,
    now_ms: Callable[[], float] | None = None,
) -> FastAPI:
    """Build the time authority app.

    Args:
        config: Thresholds and exempt paths (default: from environment).
        now_ms: Authority clock (default: system wall clock).
    """
    config = config or TimeAuthorityServerConfig.from_environment()
    now_ms = now_ms or _system_now_ms

    application = FastAPI(
        title="Time Guard Authority",
        description="Development time authority for the clock guard",
        version="0.1.0",
    )
    application.state.time_authority_config = config
    application.state.now_ms = now_ms

    application.add_middleware(
        ClockGuardMiddleware,
        now_ms=now_ms,
        tolerance_ms=config.tolerance_ms,
        exempt_paths=config.exempt_paths,
    )
    application.include_router(time_router)
    application.include_router(clock_check_router)
    return application


app = create_app()

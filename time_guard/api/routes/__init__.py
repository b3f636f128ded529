"""API routes."""

from time_guard.api.routes.clock_check import router as clock_check_router
from time_guard.api.routes.time import router as time_router

__all__: list[str] = ["clock_check_router", "time_router"]

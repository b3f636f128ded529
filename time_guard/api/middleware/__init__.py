"""API middleware components."""

from time_guard.api.middleware.clock_guard import (
    CLOCK_REJECTED_DETAIL,
    ClockGuardMiddleware,
)

__all__: list[str] = ["CLOCK_REJECTED_DETAIL", "ClockGuardMiddleware"]

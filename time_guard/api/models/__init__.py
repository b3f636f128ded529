"""API response models."""

from time_guard.api.models.clock_check import ClockCheckResponse

__all__: list[str] = ["ClockCheckResponse"]

"""Time authority wire model.

Shared by the httpx client adapter (parsing) and the development API route
(serialization), so both ends agree on one schema.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from time_guard.domain.models.anchor import TimeSample


class TimeResponse(BaseModel):
    """Response body of ``GET /time``.

    Attributes:
        server_unix_ms: Authority's Unix time in milliseconds.
        tolerance_ms: Allowed absolute skew, optional.
        max_offline_ms: Allowed time since last sync, optional.
    """

    model_config = ConfigDict(populate_by_name=True)

    server_unix_ms: float = Field(
        ...,
        alias="serverUnixMs",
        description="Authority Unix time in milliseconds",
        allow_inf_nan=False,
    )
    tolerance_ms: float | None = Field(
        default=None,
        alias="toleranceMs",
        description="Maximum allowed absolute skew in milliseconds",
        ge=0,
        allow_inf_nan=False,
    )
    max_offline_ms: float | None = Field(
        default=None,
        alias="maxOfflineMs",
        description="Maximum virtual time since last sync in milliseconds",
        gt=0,
        allow_inf_nan=False,
    )

    def to_sample(self) -> TimeSample:
        """Convert to the domain TimeSample."""
        return TimeSample(
            server_unix_ms=self.server_unix_ms,
            tolerance_ms=self.tolerance_ms,
            max_offline_ms=self.max_offline_ms,
        )

"""Clock check response model."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ClockCheckResponse(BaseModel):
    """Result of a client clock check that passed the tolerance gate.

    Attributes:
        status: Always "accepted"; rejected clocks get a 428 instead.
        server_unix_ms: Authority time when the request was checked.
        client_reported_ms: Client clock taken from the request header.
        skew_ms: ``client_reported_ms - server_unix_ms``.
        tolerance_ms: Tolerance the authority enforces.
    """

    model_config = ConfigDict(populate_by_name=True)

    status: Literal["accepted"] = "accepted"
    server_unix_ms: float = Field(..., alias="serverUnixMs")
    client_reported_ms: float = Field(..., alias="clientReportedMs")
    skew_ms: float = Field(..., alias="skewMs")
    tolerance_ms: float = Field(..., alias="toleranceMs")

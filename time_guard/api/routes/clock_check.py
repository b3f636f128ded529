"""Clock check endpoint.

Guarded by the clock middleware like any application route: a request only
reaches the handler when its reported time is within tolerance. Clients can
call it to confirm the server accepts their clock before doing real work.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Annotated

from fastapi import APIRouter, Depends, Request

from time_guard.api.dependencies import get_now_ms, get_server_config
from time_guard.api.middleware.clock_guard import parse_reported_time
from time_guard.api.models.clock_check import ClockCheckResponse
from time_guard.application.services.request_gate import CLIENT_REPORTED_TIME_HEADER
from time_guard.config.time_guard_config import TimeAuthorityServerConfig

router = APIRouter(prefix="/v1", tags=["clock"])


@router.get(
    "/clock-check",
    response_model=ClockCheckResponse,
    response_model_by_alias=True,
    summary="Confirm the client clock is accepted",
)
async def clock_check(
    request: Request,
    config: Annotated[TimeAuthorityServerConfig, Depends(get_server_config)],
    now_ms: Annotated[Callable[[], float], Depends(get_now_ms)],
) -> ClockCheckResponse:
    server_ms = now_ms()
    reported = parse_reported_time(request.headers.get(CLIENT_REPORTED_TIME_HEADER))
    # Exempt deployments may let headerless requests through.
    client_ms = server_ms if reported is None else reported
    return ClockCheckResponse(
        server_unix_ms=server_ms,
        client_reported_ms=client_ms,
        skew_ms=client_ms - server_ms,
        tolerance_ms=config.tolerance_ms,
    )

"""Time authority endpoint.

``GET /time`` answers with the authority's Unix time and the thresholds it
imposes. Responses must never be cached: a cached time is a wrong time.
``refresh=1`` is accepted for intermediaries and has no effect here.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response

from time_guard.api.dependencies import get_now_ms, get_server_config
from time_guard.application.dtos.time_sync import TimeResponse
from time_guard.config.time_guard_config import TimeAuthorityServerConfig

router = APIRouter(tags=["time"])


@router.get(
    "/time",
    response_model=TimeResponse,
    response_model_by_alias=True,
    summary="Authoritative server time",
)
async def get_time(
    response: Response,
    config: Annotated[TimeAuthorityServerConfig, Depends(get_server_config)],
    now_ms: Annotated[Callable[[], float], Depends(get_now_ms)],
    refresh: Annotated[str | None, Query()] = None,
) -> TimeResponse:
    """Return server time with tolerance and staleness window."""
    response.headers["Cache-Control"] = "no-store"
    response.headers["Pragma"] = "no-cache"
    return TimeResponse(
        server_unix_ms=now_ms(),
        tolerance_ms=config.tolerance_ms,
        max_offline_ms=config.max_offline_ms,
    )

"""httpx client for the time authority endpoint.

Sends ``GET {base}/time`` with ``Cache-Control: no-store``, adding
``refresh=1`` when asked to bypass intermediary caches. The underlying
``httpx.AsyncClient`` keeps cookies between calls, so credentialed
deployments work by passing a client that already carries them.

Note:
    Do NOT install the request gate on the client used here. The guard must
    be able to reach /time while it is locked, otherwise it could never
    recover.
"""

from __future__ import annotations

import httpx
from pydantic import ValidationError
from structlog import get_logger

from time_guard.application.dtos.time_sync import TimeResponse
from time_guard.application.ports.time_authority_client import TimeAuthorityClient
from time_guard.config.time_guard_config import TimeGuardConfig
from time_guard.domain.errors import TimeSyncError
from time_guard.domain.models.anchor import TimeSample

log = get_logger()

NO_STORE_HEADERS = {
    "Cache-Control": "no-store",
    "Pragma": "no-cache",
}


class HttpxTimeAuthorityClient(TimeAuthorityClient):
    """TimeAuthorityClient over httpx.

    Usage:
        client = HttpxTimeAuthorityClient.from_config(config)
        sample = await client.fetch_time(refresh=True)
        await client.aclose()
    """

    def __init__(
        self,
        *,
        time_url: str,
        timeout_seconds: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            time_url: Full URL of the time endpoint.
            timeout_seconds: Request timeout; None disables timeouts. Ignored
                when ``client`` is given.
            client: Optional shared AsyncClient (owned by the caller).
        """
        self._time_url = time_url
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout_seconds))

    @classmethod
    def from_config(
        cls, config: TimeGuardConfig, *, client: httpx.AsyncClient | None = None
    ) -> HttpxTimeAuthorityClient:
        return cls(
            time_url=config.time_url,
            timeout_seconds=config.request_timeout_seconds,
            client=client,
        )

    @property
    def time_url(self) -> str:
        return self._time_url

    async def fetch_time(self, *, refresh: bool = False) -> TimeSample:
        """Fetch and parse the authority's time.

        Raises:
            TimeSyncError: Transport failure, non-2xx status, or invalid body.
        """
        params = {"refresh": "1"} if refresh else None
        try:
            response = await self._client.get(
                self._time_url,
                params=params,
                headers=NO_STORE_HEADERS,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise TimeSyncError(f"Time authority unreachable: {e}") from e

        if not response.is_success:
            raise TimeSyncError(
                f"Time authority returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            body = TimeResponse.model_validate_json(response.content)
        except ValidationError as e:
            raise TimeSyncError(
                f"Invalid time authority response: {e.error_count()} error(s)",
                status_code=response.status_code,
            ) from e

        log.debug(
            "time_authority_response",
            server_unix_ms=body.server_unix_ms,
            tolerance_ms=body.tolerance_ms,
            max_offline_ms=body.max_offline_ms,
            refresh=refresh,
        )
        return body.to_sample()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

"""Time guard configuration.

Defaults match the reference deployment; every value can be overridden via
environment variables for tuning.

Environment Variables (client guard):
- TIME_GUARD_API_BASE: Base URL of the time authority (default: "")
- TIME_GUARD_HEARTBEAT_MS: Resync period (default: 300000)
- TIME_GUARD_SAMPLE_MS: Skew sampling period (default: 1000)
- TIME_GUARD_OPEN_HYST_MS: Consecutive bad time before locking (default: 1200)
- TIME_GUARD_CLOSE_HYST_MS: Consecutive good time, informational (default: 1500)
- TIME_GUARD_TOLERANCE_MS: Skew tolerance until the first sync (default: 60000)
- TIME_GUARD_MAX_OFFLINE_MS: Staleness window until the first sync (default: 1800000)
- TIME_GUARD_CHANNEL: Broadcast channel / storage key (default: "time-guard")
- TIME_GUARD_TRANSPORT: auto | local | redis | storage (default: auto)
- TIME_GUARD_REDIS_URL: Redis URL for cross-process broadcast (default: unset)
- TIME_GUARD_REQUEST_TIMEOUT_SECONDS: /time timeout (default: unset, no timeout)

Environment Variables (development time authority):
- TIME_AUTHORITY_TOLERANCE_MS: Tolerance advertised and enforced (default: 60000)
- TIME_AUTHORITY_MAX_OFFLINE_MS: Staleness window advertised (default: 1800000)
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass

TRANSPORT_CHOICES = ("auto", "local", "redis", "storage")


def _get_float_env(key: str, default: float, *, positive: bool = False) -> float:
    """Get float environment variable with default.

    Args:
        key: Environment variable name.
        default: Default value if not set, invalid or out of range.
        positive: Require a value above zero; otherwise non-negative.

    Returns:
        Parsed float value or default.
    """
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        parsed = float(value)
    except ValueError:
        return default
    if not math.isfinite(parsed) or parsed < 0 or (positive and parsed == 0):
        return default
    return parsed


def _get_optional_float_env(key: str) -> float | None:
    value = os.environ.get(key)
    if value is None or not value.strip():
        return None
    try:
        parsed = float(value)
    except ValueError:
        return None
    if not math.isfinite(parsed) or parsed <= 0:
        return None
    return parsed


def _get_str_env(key: str, default: str | None) -> str | None:
    value = os.environ.get(key)
    if value is None or not value.strip():
        return default
    return value.strip()


@dataclass(frozen=True)
class TimeGuardConfig:
    """Configuration for the client-side clock guard.

    Attributes:
        api_base: Base URL of the time authority, without trailing slash.
        heartbeat_interval_ms: Period of the background resync.
        sample_interval_ms: Period of the skew sampler.
        open_hysteresis_ms: Consecutive out-of-tolerance time before locking.
        close_hysteresis_ms: Consecutive in-tolerance time; never unlocks.
        default_tolerance_ms: Tolerance until the authority sends one.
        default_max_offline_ms: Staleness window until the authority sends one.
        channel_name: Broadcast channel name and shared-storage key.
        transport: Which broadcast transport to use.
        redis_url: Redis URL; enables the Redis transport under "auto".
        request_timeout_seconds: Timeout for /time calls, None for none.
    """

    api_base: str = ""
    heartbeat_interval_ms: float = 5 * 60 * 1000
    sample_interval_ms: float = 1_000
    open_hysteresis_ms: float = 1_200
    close_hysteresis_ms: float = 1_500
    default_tolerance_ms: float = 60_000
    default_max_offline_ms: float = 1_800_000
    channel_name: str = "time-guard"
    transport: str = "auto"
    redis_url: str | None = None
    request_timeout_seconds: float | None = None

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.api_base.endswith("/"):
            # Frozen dataclass: normalize through object.__setattr__.
            object.__setattr__(self, "api_base", self.api_base.rstrip("/"))
        if self.heartbeat_interval_ms <= 0:
            raise ValueError(
                f"heartbeat_interval_ms must be positive, got {self.heartbeat_interval_ms}"
            )
        if self.sample_interval_ms <= 0:
            raise ValueError(
                f"sample_interval_ms must be positive, got {self.sample_interval_ms}"
            )
        if self.open_hysteresis_ms < 0:
            raise ValueError(
                f"open_hysteresis_ms must be non-negative, got {self.open_hysteresis_ms}"
            )
        if self.close_hysteresis_ms < 0:
            raise ValueError(
                f"close_hysteresis_ms must be non-negative, got {self.close_hysteresis_ms}"
            )
        if self.default_tolerance_ms < 0:
            raise ValueError(
                f"default_tolerance_ms must be non-negative, got {self.default_tolerance_ms}"
            )
        if self.default_max_offline_ms <= 0:
            raise ValueError(
                f"default_max_offline_ms must be positive, got {self.default_max_offline_ms}"
            )
        if not self.channel_name:
            raise ValueError("channel_name must not be empty")
        if self.transport not in TRANSPORT_CHOICES:
            raise ValueError(
                f"transport must be one of {TRANSPORT_CHOICES}, got {self.transport!r}"
            )
        if self.transport == "redis" and not self.redis_url:
            raise ValueError("transport 'redis' requires redis_url")
        if self.request_timeout_seconds is not None and self.request_timeout_seconds <= 0:
            raise ValueError(
                "request_timeout_seconds must be positive when set, "
                f"got {self.request_timeout_seconds}"
            )

    @property
    def time_url(self) -> str:
        """Full URL of the time endpoint."""
        return f"{self.api_base}/time"

    @classmethod
    def from_environment(cls) -> TimeGuardConfig:
        """Create config from environment variables with defaults.

        Invalid or out-of-range values fall back to the defaults, and
        ``redis`` without a URL falls back to ``auto``.
        """
        redis_url = _get_str_env("TIME_GUARD_REDIS_URL", None)
        transport = (_get_str_env("TIME_GUARD_TRANSPORT", cls.transport) or cls.transport).lower()
        if transport not in TRANSPORT_CHOICES:
            transport = cls.transport
        if transport == "redis" and not redis_url:
            transport = "auto"
        return cls(
            api_base=_get_str_env("TIME_GUARD_API_BASE", cls.api_base) or "",
            heartbeat_interval_ms=_get_float_env(
                "TIME_GUARD_HEARTBEAT_MS", cls.heartbeat_interval_ms, positive=True
            ),
            sample_interval_ms=_get_float_env(
                "TIME_GUARD_SAMPLE_MS", cls.sample_interval_ms, positive=True
            ),
            open_hysteresis_ms=_get_float_env("TIME_GUARD_OPEN_HYST_MS", cls.open_hysteresis_ms),
            close_hysteresis_ms=_get_float_env(
                "TIME_GUARD_CLOSE_HYST_MS", cls.close_hysteresis_ms
            ),
            default_tolerance_ms=_get_float_env(
                "TIME_GUARD_TOLERANCE_MS", cls.default_tolerance_ms
            ),
            default_max_offline_ms=_get_float_env(
                "TIME_GUARD_MAX_OFFLINE_MS", cls.default_max_offline_ms, positive=True
            ),
            channel_name=_get_str_env("TIME_GUARD_CHANNEL", cls.channel_name) or cls.channel_name,
            transport=transport,
            redis_url=redis_url,
            request_timeout_seconds=_get_optional_float_env(
                "TIME_GUARD_REQUEST_TIMEOUT_SECONDS"
            ),
        )


@dataclass(frozen=True)
class TimeAuthorityServerConfig:
    """Configuration for the development time authority.

    Attributes:
        tolerance_ms: Tolerance advertised on /time and enforced on requests.
        max_offline_ms: Staleness window advertised on /time.
        exempt_paths: Paths the clock middleware never rejects.
    """

    tolerance_ms: float = 60_000
    max_offline_ms: float = 1_800_000
    exempt_paths: tuple[str, ...] = ("/time", "/docs", "/redoc", "/openapi.json")

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.tolerance_ms < 0:
            raise ValueError(f"tolerance_ms must be non-negative, got {self.tolerance_ms}")
        if self.max_offline_ms <= 0:
            raise ValueError(f"max_offline_ms must be positive, got {self.max_offline_ms}")

    @classmethod
    def from_environment(cls) -> TimeAuthorityServerConfig:
        """Create config from environment variables with defaults."""
        return cls(
            tolerance_ms=_get_float_env("TIME_AUTHORITY_TOLERANCE_MS", cls.tolerance_ms),
            max_offline_ms=_get_float_env(
                "TIME_AUTHORITY_MAX_OFFLINE_MS", cls.max_offline_ms, positive=True
            ),
        )


DEFAULT_TIME_GUARD_CONFIG = TimeGuardConfig()

# Fast timers for tests and local demos.
TEST_TIME_GUARD_CONFIG = TimeGuardConfig(
    heartbeat_interval_ms=5_000,
    sample_interval_ms=100,
)

"""Configuration module for time-guard.

Available Configurations:
- TimeGuardConfig: Client guard timers, thresholds and broadcast transport
- TimeAuthorityServerConfig: Development time authority
"""

from time_guard.config.time_guard_config import (
    DEFAULT_TIME_GUARD_CONFIG,
    TEST_TIME_GUARD_CONFIG,
    TimeAuthorityServerConfig,
    TimeGuardConfig,
)

__all__ = [
    "TimeGuardConfig",
    "TimeAuthorityServerConfig",
    "DEFAULT_TIME_GUARD_CONFIG",
    "TEST_TIME_GUARD_CONFIG",
]

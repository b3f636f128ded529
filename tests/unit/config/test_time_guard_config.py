"""Unit tests for time guard configuration."""

import pytest

from time_guard.config.time_guard_config import (
    DEFAULT_TIME_GUARD_CONFIG,
    TEST_TIME_GUARD_CONFIG,
    TimeAuthorityServerConfig,
    TimeGuardConfig,
)


class TestTimeGuardConfigDefaults:
    def test_defaults(self) -> None:
        config = DEFAULT_TIME_GUARD_CONFIG

        assert config.heartbeat_interval_ms == 300_000
        assert config.sample_interval_ms == 1_000
        assert config.open_hysteresis_ms == 1_200
        assert config.close_hysteresis_ms == 1_500
        assert config.default_tolerance_ms == 60_000
        assert config.default_max_offline_ms == 1_800_000
        assert config.channel_name == "time-guard"
        assert config.transport == "auto"
        assert config.request_timeout_seconds is None

    def test_fast_test_config(self) -> None:
        assert TEST_TIME_GUARD_CONFIG.heartbeat_interval_ms == 5_000
        assert TEST_TIME_GUARD_CONFIG.sample_interval_ms == 100

    def test_trailing_slash_stripped(self) -> None:
        config = TimeGuardConfig(api_base="https://api.test/")

        assert config.api_base == "https://api.test"
        assert config.time_url == "https://api.test/time"

    def test_empty_base_gives_relative_url(self) -> None:
        assert TimeGuardConfig().time_url == "/time"


class TestTimeGuardConfigValidation:
    @pytest.mark.parametrize(
        "overrides",
        [
            {"heartbeat_interval_ms": 0},
            {"sample_interval_ms": -1},
            {"open_hysteresis_ms": -1},
            {"close_hysteresis_ms": -1},
            {"default_tolerance_ms": -1},
            {"default_max_offline_ms": 0},
            {"channel_name": ""},
            {"transport": "carrier-pigeon"},
            {"transport": "redis"},
            {"request_timeout_seconds": 0},
        ],
    )
    def test_invalid_values_rejected(self, overrides: dict[str, object]) -> None:
        with pytest.raises(ValueError):
            TimeGuardConfig(**overrides)  # type: ignore[arg-type]


class TestFromEnvironment:
    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TIME_GUARD_API_BASE", "https://api.test")
        monkeypatch.setenv("TIME_GUARD_HEARTBEAT_MS", "60000")
        monkeypatch.setenv("TIME_GUARD_TOLERANCE_MS", "5000")
        monkeypatch.setenv("TIME_GUARD_TRANSPORT", "REDIS")
        monkeypatch.setenv("TIME_GUARD_REDIS_URL", "redis://cache:6379/0")
        monkeypatch.setenv("TIME_GUARD_REQUEST_TIMEOUT_SECONDS", "2.5")

        config = TimeGuardConfig.from_environment()

        assert config.time_url == "https://api.test/time"
        assert config.heartbeat_interval_ms == 60_000
        assert config.default_tolerance_ms == 5_000
        assert config.transport == "redis"
        assert config.redis_url == "redis://cache:6379/0"
        assert config.request_timeout_seconds == 2.5

    def test_invalid_values_fall_back(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TIME_GUARD_SAMPLE_MS", "often")
        monkeypatch.setenv("TIME_GUARD_TRANSPORT", "smoke-signals")
        monkeypatch.setenv("TIME_GUARD_REQUEST_TIMEOUT_SECONDS", "")

        config = TimeGuardConfig.from_environment()

        assert config.sample_interval_ms == 1_000
        assert config.transport == "auto"
        assert config.request_timeout_seconds is None

    @pytest.mark.parametrize(
        ("key", "value", "field", "expected"),
        [
            ("TIME_GUARD_SAMPLE_MS", "0", "sample_interval_ms", 1_000),
            ("TIME_GUARD_HEARTBEAT_MS", "-10", "heartbeat_interval_ms", 300_000),
            ("TIME_GUARD_TOLERANCE_MS", "-5", "default_tolerance_ms", 60_000),
            ("TIME_GUARD_MAX_OFFLINE_MS", "0", "default_max_offline_ms", 1_800_000),
            ("TIME_GUARD_OPEN_HYST_MS", "nan", "open_hysteresis_ms", 1_200),
            ("TIME_GUARD_REQUEST_TIMEOUT_SECONDS", "-1", "request_timeout_seconds", None),
        ],
    )
    def test_out_of_range_values_fall_back(
        self,
        monkeypatch: pytest.MonkeyPatch,
        key: str,
        value: str,
        field: str,
        expected: float | None,
    ) -> None:
        monkeypatch.setenv(key, value)

        config = TimeGuardConfig.from_environment()

        assert getattr(config, field) == expected

    def test_redis_without_url_falls_back_to_auto(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("TIME_GUARD_TRANSPORT", "redis")
        monkeypatch.delenv("TIME_GUARD_REDIS_URL", raising=False)

        config = TimeGuardConfig.from_environment()

        assert config.transport == "auto"
        assert config.redis_url is None


class TestTimeAuthorityServerConfig:
    def test_defaults_exempt_time_endpoint(self) -> None:
        config = TimeAuthorityServerConfig()

        assert "/time" in config.exempt_paths
        assert config.tolerance_ms == 60_000

    def test_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TIME_AUTHORITY_TOLERANCE_MS", "1000")
        monkeypatch.setenv("TIME_AUTHORITY_MAX_OFFLINE_MS", "2000")

        config = TimeAuthorityServerConfig.from_environment()

        assert (config.tolerance_ms, config.max_offline_ms) == (1_000, 2_000)

    def test_out_of_range_environment_falls_back(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("TIME_AUTHORITY_TOLERANCE_MS", "-1")
        monkeypatch.setenv("TIME_AUTHORITY_MAX_OFFLINE_MS", "0")

        config = TimeAuthorityServerConfig.from_environment()

        assert (config.tolerance_ms, config.max_offline_ms) == (60_000, 1_800_000)

    def test_invalid_values_rejected(self) -> None:
        with pytest.raises(ValueError):
            TimeAuthorityServerConfig(tolerance_ms=-1)

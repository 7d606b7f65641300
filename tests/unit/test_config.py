"""Tests for dockutil.config — environment variable loading and validation.

Covers:
  - Default values when no DOCKUTIL_* env vars are set
  - Each config field read from its corresponding DOCKUTIL_* env var
  - Numeric clamping (min/max bounds)
  - Invalid values raise ValueError
  - Boolean parsing for various truthy/falsy strings
"""

from __future__ import annotations

import pytest

from dockutil.config import load_config
from dockutil.models.config import DockUtilConfig

_VARS = (
    "QUERY_TIMEOUT",
    "CACHE_DURATION",
    "INSPECT_CACHE_SIZE",
    "COLLECT_NETWORK",
    "INIT_MAX_ATTEMPTS",
    "INIT_BACKOFF_INITIAL",
    "INIT_BACKOFF_MAX",
    "INIT_COOLDOWN",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _VARS:
        monkeypatch.delenv(f"DOCKUTIL_{name}", raising=False)


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------


class TestConfigDefaults:
    def test_returns_config_type(self) -> None:
        assert isinstance(load_config(), DockUtilConfig)

    def test_docker_defaults(self) -> None:
        docker = load_config().docker
        assert docker.query_timeout_s == 5.0
        assert docker.cache_duration_s == 10.0
        assert docker.inspect_cache_size == 4096
        assert docker.collect_network is True

    def test_retry_defaults(self) -> None:
        retry = load_config().retry
        assert retry.max_attempts == 5
        assert retry.initial_delay_s == 1.0
        assert retry.max_delay_s == 30.0
        assert retry.cooldown_s == 300.0

    def test_log_default_level(self) -> None:
        assert load_config().log.level == "info"


# ---------------------------------------------------------------------------
# Overrides
# ---------------------------------------------------------------------------


class TestConfigOverrides:
    def test_query_timeout(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DOCKUTIL_QUERY_TIMEOUT", "2.5")
        assert load_config().docker.query_timeout_s == 2.5

    def test_cache_duration(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DOCKUTIL_CACHE_DURATION", "30")
        assert load_config().docker.cache_duration_s == 30.0

    def test_retry_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DOCKUTIL_INIT_MAX_ATTEMPTS", "9")
        monkeypatch.setenv("DOCKUTIL_INIT_BACKOFF_INITIAL", "2")
        monkeypatch.setenv("DOCKUTIL_INIT_BACKOFF_MAX", "20")
        monkeypatch.setenv("DOCKUTIL_INIT_COOLDOWN", "120")
        retry = load_config().retry
        assert (retry.max_attempts, retry.initial_delay_s, retry.max_delay_s, retry.cooldown_s) == (9, 2.0, 20.0, 120.0)

    def test_zero_cooldown_means_permanent(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DOCKUTIL_INIT_COOLDOWN", "0")
        assert load_config().retry.cooldown_s is None

    def test_backoff_max_not_below_initial(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DOCKUTIL_INIT_BACKOFF_INITIAL", "10")
        monkeypatch.setenv("DOCKUTIL_INIT_BACKOFF_MAX", "5")
        assert load_config().retry.max_delay_s == 10.0

    def test_log_level_case_insensitive(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DOCKUTIL_LOG_LEVEL", "DEBUG")
        assert load_config().log.level == "debug"

    def test_blank_value_uses_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DOCKUTIL_QUERY_TIMEOUT", "  ")
        assert load_config().docker.query_timeout_s == 5.0


# ---------------------------------------------------------------------------
# Clamping
# ---------------------------------------------------------------------------


class TestConfigClamping:
    def test_query_timeout_clamped_low(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DOCKUTIL_QUERY_TIMEOUT", "0.01")
        assert load_config().docker.query_timeout_s == 1.0

    def test_query_timeout_clamped_high(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DOCKUTIL_QUERY_TIMEOUT", "9999")
        assert load_config().docker.query_timeout_s == 300.0

    def test_max_attempts_clamped_low(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DOCKUTIL_INIT_MAX_ATTEMPTS", "0")
        assert load_config().retry.max_attempts == 1


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestConfigValidation:
    def test_non_numeric_timeout_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DOCKUTIL_QUERY_TIMEOUT", "soon")
        with pytest.raises(ValueError, match="DOCKUTIL_QUERY_TIMEOUT"):
            load_config()

    def test_non_integer_attempts_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DOCKUTIL_INIT_MAX_ATTEMPTS", "2.5")
        with pytest.raises(ValueError):
            load_config()

    def test_unknown_log_level_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DOCKUTIL_LOG_LEVEL", "verbose")
        with pytest.raises(ValueError):
            load_config()

    def test_bad_boolean_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DOCKUTIL_COLLECT_NETWORK", "maybe")
        with pytest.raises(ValueError):
            load_config()


class TestBooleanParsing:
    @pytest.mark.parametrize("value", ["1", "true", "TRUE", "yes", "on"])
    def test_truthy(self, monkeypatch: pytest.MonkeyPatch, value: str) -> None:
        monkeypatch.setenv("DOCKUTIL_COLLECT_NETWORK", value)
        assert load_config().docker.collect_network is True

    @pytest.mark.parametrize("value", ["0", "false", "False", "no", "off"])
    def test_falsy(self, monkeypatch: pytest.MonkeyPatch, value: str) -> None:
        monkeypatch.setenv("DOCKUTIL_COLLECT_NETWORK", value)
        assert load_config().docker.collect_network is False

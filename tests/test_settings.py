"""Tests for environment-driven run configuration."""

import pytest

from invite_triage.config.exceptions import ConfigError
from invite_triage.config.settings import REQUIRED_SETTINGS, RunConfig

OPTIONAL = [
    "ALERT_RECIPIENT",
    "MAILBOX_EXPORT_PATH",
    "STATE_DB_URL",
    "BATCH_SIZE",
    "LOOKBACK_HOURS",
    "MAX_THREADS",
    "MAX_OUTPUT_TOKENS",
    "CONFIDENCE_THRESHOLD",
    "ALERT_RETENTION_DAYS",
    "DRY_RUN",
]


@pytest.fixture
def env(monkeypatch):
    for key in REQUIRED_SETTINGS + OPTIONAL:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("GEMINI_API_KEY", "k")
    monkeypatch.setenv("GEMINI_MODEL", "gemini-test")
    monkeypatch.setenv("MAILBOX_ADDRESS", "me@example.com")
    return monkeypatch


def test_defaults(env):
    cfg = RunConfig.from_env()
    assert cfg.batch_size == 30
    assert cfg.lookback_hours == 24
    assert cfg.max_threads == 100
    assert cfg.max_output_tokens == 8192
    assert cfg.confidence_threshold == pytest.approx(0.7)
    assert cfg.retention_days == 30
    assert cfg.dry_run is False
    assert cfg.recipient == "me@example.com"


def test_overrides(env):
    env.setenv("BATCH_SIZE", "5")
    env.setenv("CONFIDENCE_THRESHOLD", "0.8")
    env.setenv("ALERT_RECIPIENT", "alerts@example.com")
    env.setenv("DRY_RUN", "TRUE")

    cfg = RunConfig.from_env()
    assert cfg.batch_size == 5
    assert cfg.confidence_threshold == pytest.approx(0.8)
    assert cfg.recipient == "alerts@example.com"
    assert cfg.dry_run is True


def test_unparsable_number_falls_back_to_default(env):
    env.setenv("LOOKBACK_HOURS", "a day")
    assert RunConfig.from_env().lookback_hours == 24


def test_all_missing_settings_reported(env):
    env.delenv("GEMINI_API_KEY")
    env.setenv("MAILBOX_ADDRESS", "   ")

    with pytest.raises(ConfigError) as exc_info:
        RunConfig.from_env()

    message = str(exc_info.value)
    assert "GEMINI_API_KEY" in message
    assert "MAILBOX_ADDRESS" in message
    assert "GEMINI_MODEL" not in message


def test_negative_batch_size_rejected(env):
    env.setenv("BATCH_SIZE", "-3")
    with pytest.raises(ConfigError):
        RunConfig.from_env()


@pytest.mark.parametrize("value", ["nan", "inf", "-0.1", "1.5"])
def test_threshold_outside_unit_interval_rejected(env, value):
    env.setenv("CONFIDENCE_THRESHOLD", value)
    with pytest.raises(ConfigError):
        RunConfig.from_env()


@pytest.mark.parametrize("value", ["0", "1"])
def test_threshold_bounds_accepted(env, value):
    env.setenv("CONFIDENCE_THRESHOLD", value)
    assert RunConfig.from_env().confidence_threshold == float(value)


def test_zero_batch_size_rejected(env):
    env.setenv("BATCH_SIZE", "0")
    with pytest.raises(ConfigError):
        RunConfig.from_env()

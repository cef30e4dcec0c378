from __future__ import annotations

import pytest

from ofgem_watch_agent.config import DEFAULT_STATE_FILE, DEFAULT_SUBJECT, load_config

ENV_KEYS = [
    "SMTP_PASSWORD",
    "NOTIFY_EMAILS",
    "SENDER_EMAIL",
    "SMTP_HOST",
    "SMTP_PORT",
    "SMTP_USERNAME",
    "OFGEM_API_URL",
    "OFGEM_SEARCH_URL",
    "OFGEM_BASE_URL",
    "POLL_INTERVAL_MINUTES",
    "REQUEST_TIMEOUT_SECONDS",
    "MAX_RETRIES",
    "RATE_LIMIT_DELAY_SECONDS",
    "RETRY_DELAY_SECONDS",
    "STATE_FILE",
    "TARGET_KEYWORDS",
    "MAX_RUNTIME_MINUTES",
    "EMAIL_SUBJECT",
]


@pytest.fixture
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


@pytest.fixture
def required_env(clean_env):
    clean_env.setenv("SMTP_PASSWORD", "app-password")
    clean_env.setenv("NOTIFY_EMAILS", "a@example.com, b@example.com,")
    clean_env.setenv("SENDER_EMAIL", "Ofgem Watch <watch@example.com>")
    return clean_env


def test_defaults(required_env):
    config = load_config()
    assert config.notification.recipients == ("a@example.com", "b@example.com")
    assert config.notification.subject == DEFAULT_SUBJECT
    assert config.notification.keywords == ()
    assert config.smtp.username == "Ofgem Watch <watch@example.com>"
    assert config.smtp.port == 587
    assert config.fetch.max_retries == 3
    assert config.fetch.timeout_seconds == 30
    assert config.poll.interval_minutes == 5
    assert config.poll.state_file == DEFAULT_STATE_FILE
    assert config.poll.max_runtime_minutes is None
    assert config.source.base_url == "https://www.ofgem.gov.uk"


def test_overrides(required_env):
    required_env.setenv("TARGET_KEYWORDS", "price cap, RIIO")
    required_env.setenv("MAX_RUNTIME_MINUTES", "55")
    required_env.setenv("MAX_RETRIES", "5")
    required_env.setenv("SMTP_PORT", "465")
    required_env.setenv("SMTP_USERNAME", "login@example.com")
    required_env.setenv("STATE_FILE", "/var/lib/watch/state.json")

    config = load_config()

    assert config.notification.keywords == ("price cap", "RIIO")
    assert config.poll.max_runtime_minutes == 55
    assert config.fetch.max_retries == 5
    assert config.smtp.port == 465
    assert config.smtp.username == "login@example.com"
    assert config.poll.state_file == "/var/lib/watch/state.json"


def test_missing_required_values_are_all_reported(clean_env):
    with pytest.raises(ValueError) as excinfo:
        load_config()
    message = str(excinfo.value)
    for key in ("SMTP_PASSWORD", "NOTIFY_EMAILS", "SENDER_EMAIL"):
        assert key in message


def test_malformed_number_is_a_config_error(required_env):
    required_env.setenv("POLL_INTERVAL_MINUTES", "often")
    with pytest.raises(ValueError, match="POLL_INTERVAL_MINUTES"):
        load_config()


def test_negative_retries_rejected(required_env):
    required_env.setenv("MAX_RETRIES", "-1")
    with pytest.raises(ValueError, match="MAX_RETRIES"):
        load_config()


@pytest.mark.parametrize("key", ["POLL_INTERVAL_MINUTES", "REQUEST_TIMEOUT_SECONDS", "RETRY_DELAY_SECONDS"])
@pytest.mark.parametrize("value", ["inf", "nan", "-inf"])
def test_non_finite_numbers_rejected(required_env, key, value):
    required_env.setenv(key, value)
    with pytest.raises(ValueError, match=key):
        load_config()

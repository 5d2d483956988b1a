import pytest

from interview_bot.config.settings import Settings, load_settings

from helpers import GROUP, group_id


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "CHANNEL_ACCESS_TOKEN", "CHANNEL_SECRET", "ORG_TIMEZONE", "CRON_API_KEY", "GROUP_ID", "GROUP_IDS",
        "ENABLE_CONTACT_TRACKING", "RECIPIENT_POLICY", "REMINDER_INTERVAL_SECONDS", "HTTP_PORT", "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    settings = load_settings()

    assert settings.org_timezone == "Asia/Taipei"
    assert settings.http_port == 3000
    assert settings.reminder_interval_seconds == 600
    assert settings.line_configured is False
    assert settings.effective_recipient_policy() == "broadcast"


def test_env_overrides(clean_env):
    clean_env.setenv("CHANNEL_ACCESS_TOKEN", "abc")
    clean_env.setenv("GROUP_ID", GROUP)
    clean_env.setenv("GROUP_IDS", f"{group_id(2)}, {GROUP} ,")
    clean_env.setenv("ENABLE_CONTACT_TRACKING", "false")
    clean_env.setenv("HTTP_PORT", "8080")
    clean_env.setenv("LOG_LEVEL", "info")

    settings = load_settings()

    assert settings.line_configured is True
    assert settings.fallback_group_ids() == [GROUP, group_id(2)]
    assert settings.effective_recipient_policy() == "legacy"
    assert settings.http_port == 8080
    assert settings.log_level == "INFO"


def test_invalid_values_fall_back(clean_env):
    clean_env.setenv("RECIPIENT_POLICY", "everyone")
    clean_env.setenv("ORG_TIMEZONE", "Mars/Olympus")
    clean_env.setenv("REMINDER_INTERVAL_SECONDS", "soon")

    settings = load_settings()

    assert settings.recipient_policy == "auto"
    assert settings.org_timezone == "Asia/Taipei"
    assert settings.reminder_interval_seconds == 600


def test_explicit_policy_wins():
    assert Settings(recipient_policy="broadcast", enable_contact_tracking=False).effective_recipient_policy() == "broadcast"

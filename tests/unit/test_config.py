from __future__ import annotations

import pytest

from waves.config import DEFAULT_EXPO_PUSH_URL, DEFAULT_RESEND_BASE_URL, get_settings

_MANAGED_VARS = (
  "WAVES_RESEND_API_KEY",
  "RESEND_API_KEY",
  "WAVES_NOTIFICATIONS_FROM_EMAIL",
  "NOTIFICATIONS_FROM_EMAIL",
  "WAVES_NOTIFICATION_MAX_ATTEMPTS",
  "WAVES_DISPATCH_BATCH_LIMIT",
  "WAVES_DISPATCH_INTERVAL_SECONDS",
  "WAVES_NOTIFICATION_SCHEDULER_ENABLED",
  "WAVES_FANOUT_RSVP_LIMIT",
  "WAVES_PROVIDER_TIMEOUT_SECONDS",
  "WAVES_RESEND_BASE_URL",
  "WAVES_EXPO_PUSH_URL",
  "WAVES_EMAIL_ESCAPE_HTML",
  "WAVES_TASK_SECRET",
)


@pytest.fixture
def clean_env(monkeypatch):
  for name in _MANAGED_VARS:
    monkeypatch.delenv(name, raising=False)
  get_settings.cache_clear()
  yield monkeypatch
  get_settings.cache_clear()


def test_settings_defaults(clean_env):
  settings = get_settings()

  assert settings.resend_api_key is None
  assert settings.notifications_from_email is None
  assert settings.resend_base_url == DEFAULT_RESEND_BASE_URL
  assert settings.expo_push_url == DEFAULT_EXPO_PUSH_URL
  assert settings.notification_max_attempts == 3
  assert settings.dispatch_batch_limit == 100
  assert settings.dispatch_interval_seconds == 60
  assert settings.notification_scheduler_enabled is True
  assert settings.fanout_rsvp_limit == 3000
  assert settings.provider_timeout_seconds is None
  assert settings.email_escape_html is False
  assert settings.task_secret is None


def test_settings_accepts_unprefixed_provider_credentials(clean_env):
  clean_env.setenv("RESEND_API_KEY", "re_live")
  clean_env.setenv("NOTIFICATIONS_FROM_EMAIL", "updates@makewaves.test")
  clean_env.setenv("WAVES_RESEND_BASE_URL", "https://resend.internal/")

  settings = get_settings()

  assert settings.resend_api_key == "re_live"
  assert settings.notifications_from_email == "updates@makewaves.test"
  assert settings.resend_base_url == "https://resend.internal"


def test_settings_prefers_prefixed_credentials(clean_env):
  clean_env.setenv("RESEND_API_KEY", "re_plain")
  clean_env.setenv("WAVES_RESEND_API_KEY", "re_prefixed")

  assert get_settings().resend_api_key == "re_prefixed"


@pytest.mark.parametrize(
  ("name", "value"),
  [("WAVES_NOTIFICATION_MAX_ATTEMPTS", "0"), ("WAVES_DISPATCH_BATCH_LIMIT", "251"), ("WAVES_DISPATCH_INTERVAL_SECONDS", "-1"), ("WAVES_PROVIDER_TIMEOUT_SECONDS", "0"), ("WAVES_FANOUT_RSVP_LIMIT", "abc")],
)
def test_settings_rejects_invalid_numbers(clean_env, name, value):
  clean_env.setenv(name, value)

  with pytest.raises(ValueError):
    get_settings()


def test_settings_parses_flags_and_timeout(clean_env):
  clean_env.setenv("WAVES_NOTIFICATION_SCHEDULER_ENABLED", "off")
  clean_env.setenv("WAVES_EMAIL_ESCAPE_HTML", "yes")
  clean_env.setenv("WAVES_PROVIDER_TIMEOUT_SECONDS", "2.5")

  settings = get_settings()

  assert settings.notification_scheduler_enabled is False
  assert settings.email_escape_html is True
  assert settings.provider_timeout_seconds == 2.5

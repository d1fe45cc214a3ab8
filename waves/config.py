"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from waves.utils.env import default_env_path, load_env_file

load_env_file(default_env_path(), override=False)

DEFAULT_RESEND_BASE_URL = "https://api.resend.com"
DEFAULT_EXPO_PUSH_URL = "https://exp.host/--/api/v2/push/send"


@dataclass(frozen=True)
class Settings:
  """Typed settings for the waves notification service."""

  environment: str
  debug: bool
  log_dir: str
  log_max_bytes: int
  log_backup_count: int
  pg_dsn: str | None
  pg_connect_timeout: int
  task_secret: str | None
  resend_api_key: str | None
  notifications_from_email: str | None
  resend_base_url: str
  email_escape_html: bool
  expo_push_url: str
  provider_timeout_seconds: float | None
  notification_max_attempts: int
  dispatch_batch_limit: int
  dispatch_interval_seconds: int
  notification_scheduler_enabled: bool
  fanout_rsvp_limit: int


@dataclass(frozen=True)
class DatabaseSettings:
  """Typed settings for database connectivity."""

  debug: bool
  pg_dsn: str | None
  pg_connect_timeout: int


def _parse_bool(raw: str | None, *, default: bool = False) -> bool:
  """Parse a boolean-ish string from environment variables."""
  if raw is None or raw.strip() == "":
    return default

  return raw.strip().lower() in {"1", "true", "yes", "on"}


def _optional_str(raw: str | None) -> str | None:
  if raw is None:
    return None
  value = raw.strip()
  if value == "":
    return None
  return value


def _positive_int(name: str, default: str) -> int:
  value = int(os.getenv(name, default))
  if value <= 0:
    raise ValueError(f"{name} must be a positive integer.")
  return value


def _optional_positive_float(name: str) -> float | None:
  raw = _optional_str(os.getenv(name))
  if raw is None:
    return None

  value = float(raw)
  if value <= 0:
    raise ValueError(f"{name} must be positive when provided.")
  return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process."""
  environment = os.getenv("WAVES_ENV", "development").lower()
  debug = _parse_bool(os.getenv("WAVES_DEBUG"))

  log_max_bytes = _positive_int("WAVES_LOG_MAX_BYTES", "5242880")  # 5MB default
  log_backup_count = int(os.getenv("WAVES_LOG_BACKUP_COUNT", "10"))
  if log_backup_count < 0:
    raise ValueError("WAVES_LOG_BACKUP_COUNT must be zero or a positive integer.")

  # Provider credentials are optional; deliveries are skipped rather than failing startup.
  resend_api_key = _optional_str(os.getenv("WAVES_RESEND_API_KEY") or os.getenv("RESEND_API_KEY"))
  notifications_from_email = _optional_str(os.getenv("WAVES_NOTIFICATIONS_FROM_EMAIL") or os.getenv("NOTIFICATIONS_FROM_EMAIL"))

  notification_max_attempts = _positive_int("WAVES_NOTIFICATION_MAX_ATTEMPTS", "3")
  dispatch_batch_limit = _positive_int("WAVES_DISPATCH_BATCH_LIMIT", "100")
  if dispatch_batch_limit > 250:
    raise ValueError("WAVES_DISPATCH_BATCH_LIMIT must not exceed 250.")

  return Settings(
    environment=environment,
    debug=debug,
    log_dir=(os.getenv("WAVES_LOG_DIR") or "./logs").strip(),
    log_max_bytes=log_max_bytes,
    log_backup_count=log_backup_count,
    pg_dsn=os.getenv("WAVES_PG_DSN") or os.getenv("DATABASE_URL"),
    pg_connect_timeout=_positive_int("WAVES_PG_CONNECT_TIMEOUT", "5"),
    task_secret=_optional_str(os.getenv("WAVES_TASK_SECRET")),
    resend_api_key=resend_api_key,
    notifications_from_email=notifications_from_email,
    resend_base_url=(os.getenv("WAVES_RESEND_BASE_URL") or DEFAULT_RESEND_BASE_URL).strip().rstrip("/"),
    email_escape_html=_parse_bool(os.getenv("WAVES_EMAIL_ESCAPE_HTML")),
    expo_push_url=(os.getenv("WAVES_EXPO_PUSH_URL") or DEFAULT_EXPO_PUSH_URL).strip(),
    provider_timeout_seconds=_optional_positive_float("WAVES_PROVIDER_TIMEOUT_SECONDS"),
    notification_max_attempts=notification_max_attempts,
    dispatch_batch_limit=dispatch_batch_limit,
    dispatch_interval_seconds=_positive_int("WAVES_DISPATCH_INTERVAL_SECONDS", "60"),
    notification_scheduler_enabled=_parse_bool(os.getenv("WAVES_NOTIFICATION_SCHEDULER_ENABLED"), default=True),
    fanout_rsvp_limit=_positive_int("WAVES_FANOUT_RSVP_LIMIT", "3000"),
  )


@lru_cache(maxsize=1)
def get_database_settings() -> DatabaseSettings:
  """Load database settings without requiring the rest of the runtime configuration."""
  # Keep database configuration isolated so migrations and offline scripts don't require unrelated env vars.
  pg_connect_timeout = _positive_int("WAVES_PG_CONNECT_TIMEOUT", "5")
  pg_dsn = os.getenv("WAVES_PG_DSN") or os.getenv("DATABASE_URL")
  return DatabaseSettings(debug=_parse_bool(os.getenv("WAVES_DEBUG")), pg_dsn=pg_dsn, pg_connect_timeout=pg_connect_timeout)

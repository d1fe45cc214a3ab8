"""Factory helpers for notification services."""

from __future__ import annotations

import httpx
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from waves.config import Settings
from waves.notifications.delivery_repo import NotificationDeliveryRepository
from waves.notifications.dispatcher import NotificationDispatcher
from waves.notifications.email_sender import ResendConfig, ResendEmailSender
from waves.notifications.push_sender import ExpoPushConfig, ExpoPushSender


def build_email_sender(settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None) -> ResendEmailSender:
  # Missing credentials are reported per delivery as skipped, not at construction.
  config = ResendConfig(
    api_key=settings.resend_api_key, from_address=settings.notifications_from_email, base_url=settings.resend_base_url, timeout_seconds=settings.provider_timeout_seconds, escape_html=settings.email_escape_html
  )
  return ResendEmailSender(config=config, transport=transport)


def build_push_sender(settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None) -> ExpoPushSender:
  return ExpoPushSender(config=ExpoPushConfig(url=settings.expo_push_url, timeout_seconds=settings.provider_timeout_seconds), transport=transport)


def build_notification_dispatcher(settings: Settings, *, session_factory: async_sessionmaker[AsyncSession] | None = None, transport: httpx.AsyncBaseTransport | None = None) -> NotificationDispatcher:
  """Construct a dispatcher wired to the database and both channel providers."""
  repo = NotificationDeliveryRepository(session_factory)
  return NotificationDispatcher(
    repo=repo, email_sender=build_email_sender(settings, transport=transport), push_sender=build_push_sender(settings, transport=transport), max_attempts=settings.notification_max_attempts
  )

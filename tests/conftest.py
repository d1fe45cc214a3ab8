"""Test configuration: isolated settings and an in-memory database for the notification pipeline."""

from __future__ import annotations

import datetime
import os
import uuid

os.environ.setdefault("WAVES_ENV", "test")
os.environ.setdefault("WAVES_NOTIFICATION_SCHEDULER_ENABLED", "false")

import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import waves.schema.db_models  # noqa: E402, F401
from waves.config import Settings  # noqa: E402
from waves.core.database import Base  # noqa: E402
from waves.schema.community import Event, EventMessage, EventMessageKind, Profile, Rsvp, RsvpStatus  # noqa: E402
from waves.schema.notifications import DeliveryChannel, DeliveryStatus, NotificationDelivery  # noqa: E402

T0 = datetime.datetime(2026, 3, 1, 12, 0, tzinfo=datetime.UTC)


@pytest.fixture
def anyio_backend():
  return "asyncio"


@pytest.fixture
def make_settings():
  """Build a Settings instance with test defaults and per-test overrides."""

  def _make(**overrides) -> Settings:
    values = {
      "environment": "test",
      "debug": False,
      "log_dir": "./logs",
      "log_max_bytes": 5242880,
      "log_backup_count": 1,
      "pg_dsn": None,
      "pg_connect_timeout": 5,
      "task_secret": "task-secret",
      "resend_api_key": "re_test_key",
      "notifications_from_email": "Make Waves <updates@makewaves.test>",
      "resend_base_url": "https://api.resend.com",
      "email_escape_html": False,
      "expo_push_url": "https://exp.host/--/api/v2/push/send",
      "provider_timeout_seconds": None,
      "notification_max_attempts": 3,
      "dispatch_batch_limit": 100,
      "dispatch_interval_seconds": 60,
      "notification_scheduler_enabled": False,
      "fanout_rsvp_limit": 3000,
    }
    values.update(overrides)
    return Settings(**values)

  return _make


@pytest.fixture
async def session_factory(anyio_backend):
  engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool, connect_args={"check_same_thread": False})
  async with engine.begin() as conn:
    await conn.run_sync(Base.metadata.create_all)
  try:
    yield async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)
  finally:
    await engine.dispose()


class CommunityBuilder:
  """Seed profiles, events, RSVPs, messages and deliveries for a test."""

  def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
    self._session_factory = session_factory
    self._counter = 0

  def _next_slug(self, prefix: str) -> str:
    self._counter += 1
    return f"{prefix}-{self._counter}"

  async def _save(self, *rows):
    async with self._session_factory() as session:
      session.add_all(rows)
      await session.commit()
    return rows[0] if len(rows) == 1 else rows

  async def profile(self, *, display_name: str = "Attendee", email: str | None = None, expo_push_token: str | None = None) -> Profile:
    return await self._save(Profile(slug=self._next_slug("profile"), display_name=display_name, email=email, expo_push_token=expo_push_token, created_at=T0))

  async def event(self, *, organizer: Profile, title: str = "Sunset Paddle") -> Event:
    return await self._save(Event(slug=self._next_slug("event"), title=title, organizer_profile_id=organizer.id, created_at=T0))

  async def rsvp(self, *, event: Event, attendee: Profile, created_at: datetime.datetime = T0, status: RsvpStatus = RsvpStatus.GOING) -> Rsvp:
    return await self._save(Rsvp(event_id=event.id, attendee_profile_id=attendee.id, status=status, created_at=created_at))

  async def message(self, *, event: Event, author: Profile, body: str = "Meet at the north beach.", kind: EventMessageKind = EventMessageKind.ANNOUNCEMENT) -> EventMessage:
    return await self._save(EventMessage(event_id=event.id, author_profile_id=author.id, body=body, kind=kind, created_at=T0))

  async def delivery(
    self,
    *,
    event_id: uuid.UUID | None = None,
    event_message_id: uuid.UUID | None = None,
    recipient_profile_id: uuid.UUID | None = None,
    channel: DeliveryChannel = DeliveryChannel.EMAIL,
    status: DeliveryStatus = DeliveryStatus.PENDING,
    attempt_count: int = 0,
    next_attempt_at: datetime.datetime = T0,
    created_at: datetime.datetime = T0,
  ) -> NotificationDelivery:
    return await self._save(
      NotificationDelivery(
        event_id=event_id or uuid.uuid4(),
        event_message_id=event_message_id or uuid.uuid4(),
        recipient_profile_id=recipient_profile_id or uuid.uuid4(),
        channel=channel,
        status=status,
        attempt_count=attempt_count,
        next_attempt_at=next_attempt_at,
        created_at=created_at,
      )
    )


@pytest.fixture
def community(session_factory):
  return CommunityBuilder(session_factory)

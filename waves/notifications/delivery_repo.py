"""Repository for notification delivery records: enqueue, ready-queue selection and outcome writes."""

from __future__ import annotations

import datetime
import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from waves.core.database import require_session_factory, utc_now
from waves.notifications.contracts import DEFAULT_EVENT_TITLE, DEFAULT_MESSAGE_BODY, DEFAULT_RECIPIENT_NAME, AttemptOutcome, DeliveryRecordView, EnqueueResult, PendingDelivery
from waves.notifications.fanout import DEFAULT_RSVP_SCAN_LIMIT, queue_message_deliveries
from waves.schema.community import Event, EventMessage, Profile
from waves.schema.notifications import DeliveryStatus, NotificationDelivery

logger = logging.getLogger(__name__)

DEFAULT_READY_LIMIT = 50
MAX_READY_LIMIT = 250
BACKOFF_BASE = datetime.timedelta(seconds=30)
BACKOFF_CAP = datetime.timedelta(minutes=30)

_TERMINAL_STATUS_BY_OUTCOME = {AttemptOutcome.SENT: DeliveryStatus.SENT, AttemptOutcome.FAILED: DeliveryStatus.FAILED, AttemptOutcome.SKIPPED: DeliveryStatus.SKIPPED}


def clamp_ready_limit(limit: int | None) -> int:
  """Clamp a caller-supplied batch size to [1, 250], defaulting to 50."""
  if limit is None:
    return DEFAULT_READY_LIMIT
  return max(1, min(int(limit), MAX_READY_LIMIT))


def compute_backoff(attempt_count: int) -> datetime.timedelta:
  """Return the retry delay after `attempt_count` attempts: 2**n * 30s, capped at 30 minutes."""
  # The cap is reached long before 2**16, so bound the exponent to keep the arithmetic small.
  exponent = min(max(attempt_count, 0), 16)
  return min(BACKOFF_CAP, BACKOFF_BASE * (2**exponent))


def _to_view(row: NotificationDelivery) -> DeliveryRecordView:
  return DeliveryRecordView(
    id=row.id,
    event_id=row.event_id,
    event_message_id=row.event_message_id,
    recipient_profile_id=row.recipient_profile_id,
    channel=row.channel,
    status=row.status,
    attempt_count=row.attempt_count,
    next_attempt_at=row.next_attempt_at,
    last_attempt_at=row.last_attempt_at,
    provider_message_id=row.provider_message_id,
    error=row.error,
    created_at=row.created_at,
  )


def _to_pending(delivery: NotificationDelivery, recipient: Profile | None, event: Event | None, message: EventMessage | None) -> PendingDelivery:
  # Deleted collaborators degrade to placeholder text instead of failing the batch.
  return PendingDelivery(
    delivery_id=delivery.id,
    channel=delivery.channel,
    attempt_count=delivery.attempt_count,
    recipient_email=recipient.email if recipient and recipient.email else None,
    expo_push_token=recipient.expo_push_token if recipient and recipient.expo_push_token else None,
    recipient_name=recipient.display_name if recipient else DEFAULT_RECIPIENT_NAME,
    event_title=event.title if event else DEFAULT_EVENT_TITLE,
    message_body=message.body if message else DEFAULT_MESSAGE_BODY,
  )


class NotificationDeliveryRepository:
  """Persist and query notification deliveries using SQLAlchemy."""

  def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
    self._session_factory = session_factory or require_session_factory()

  async def enqueue_for_message(self, *, event_id: uuid.UUID, event_message_id: uuid.UUID, rsvp_limit: int = DEFAULT_RSVP_SCAN_LIMIT, now: datetime.datetime | None = None) -> EnqueueResult:
    """Fan a message out to its RSVP'd recipients in a dedicated transaction."""
    async with self._session_factory() as session:
      queued = await queue_message_deliveries(session, event_id=event_id, event_message_id=event_message_id, rsvp_limit=rsvp_limit, now=now)
      await session.commit()
    return EnqueueResult(queued=queued)

  async def list_ready(self, *, limit: int | None = None, now: datetime.datetime | None = None) -> list[PendingDelivery]:
    """Return up to `limit` pending deliveries whose next attempt is due, oldest schedule first."""
    batch_size = clamp_ready_limit(limit)
    cutoff = now or utc_now()
    stmt = (
      select(NotificationDelivery, Profile, Event, EventMessage)
      .outerjoin(Profile, Profile.id == NotificationDelivery.recipient_profile_id)
      .outerjoin(Event, Event.id == NotificationDelivery.event_id)
      .outerjoin(EventMessage, EventMessage.id == NotificationDelivery.event_message_id)
      .where(NotificationDelivery.status == DeliveryStatus.PENDING, NotificationDelivery.next_attempt_at <= cutoff)
      .order_by(NotificationDelivery.next_attempt_at.asc(), NotificationDelivery.created_at.asc(), NotificationDelivery.id.asc())
      .limit(batch_size)
    )
    async with self._session_factory() as session:
      result = await session.execute(stmt)
      return [_to_pending(delivery, recipient, event, message) for delivery, recipient, event, message in result.all()]

  async def record_attempt(self, delivery_id: uuid.UUID, *, outcome: AttemptOutcome, attempted_at: datetime.datetime | None = None, provider_message_id: str | None = None, error: str | None = None) -> DeliveryRecordView | None:
    """Apply one dispatch attempt outcome to a delivery record.

    Returns None when the record no longer exists. Records that are already
    terminal are left untouched so overlapping dispatch runs cannot rewrite them.
    """
    attempted = attempted_at or utc_now()
    async with self._session_factory() as session:
      row = await session.get(NotificationDelivery, delivery_id, with_for_update=True)
      if row is None:
        return None

      if row.status.is_terminal:
        logger.warning("Ignoring %s outcome for delivery_id=%s already in terminal status=%s", outcome.value, delivery_id, row.status.value)
        return _to_view(row)

      next_attempt_count = row.attempt_count + 1
      row.attempt_count = next_attempt_count
      row.last_attempt_at = attempted
      if error:
        row.error = error

      if outcome is AttemptOutcome.RETRY:
        row.next_attempt_at = attempted + compute_backoff(next_attempt_count)
      else:
        row.status = _TERMINAL_STATUS_BY_OUTCOME[outcome]
        row.next_attempt_at = attempted
        if provider_message_id:
          row.provider_message_id = provider_message_id

      view = _to_view(row)
      await session.commit()
      return view

  async def get(self, delivery_id: uuid.UUID) -> DeliveryRecordView | None:
    async with self._session_factory() as session:
      row = await session.get(NotificationDelivery, delivery_id)
      return _to_view(row) if row else None

  async def list_for_message(self, event_message_id: uuid.UUID) -> list[DeliveryRecordView]:
    """List every delivery created for one message."""
    stmt = select(NotificationDelivery).where(NotificationDelivery.event_message_id == event_message_id).order_by(NotificationDelivery.created_at.asc(), NotificationDelivery.id.asc())
    async with self._session_factory() as session:
      result = await session.execute(stmt)
      return [_to_view(row) for row in result.scalars()]

  async def list_for_recipient(self, recipient_profile_id: uuid.UUID, *, limit: int = 50) -> list[DeliveryRecordView]:
    """List the most recent deliveries addressed to one profile."""
    stmt = select(NotificationDelivery).where(NotificationDelivery.recipient_profile_id == recipient_profile_id).order_by(NotificationDelivery.created_at.desc()).limit(clamp_ready_limit(limit))
    async with self._session_factory() as session:
      result = await session.execute(stmt)
      return [_to_view(row) for row in result.scalars()]

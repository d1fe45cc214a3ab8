"""Fan-out of an event-wide message into pending per-recipient delivery records."""

from __future__ import annotations

import datetime
import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from waves.core.database import utc_now
from waves.notifications.contracts import DeliverySourceNotFoundError
from waves.schema.community import Event, EventMessage, Profile, Rsvp
from waves.schema.notifications import DeliveryChannel, DeliveryStatus, NotificationDelivery

logger = logging.getLogger(__name__)

DEFAULT_RSVP_SCAN_LIMIT = 3000


def _pending_record(*, event_id: uuid.UUID, event_message_id: uuid.UUID, recipient_profile_id: uuid.UUID, channel: DeliveryChannel, now: datetime.datetime) -> NotificationDelivery:
  return NotificationDelivery(
    event_id=event_id,
    event_message_id=event_message_id,
    recipient_profile_id=recipient_profile_id,
    channel=channel,
    status=DeliveryStatus.PENDING,
    attempt_count=0,
    next_attempt_at=now,
    created_at=now,
  )


async def queue_message_deliveries(session: AsyncSession, *, event_id: uuid.UUID, event_message_id: uuid.UUID, rsvp_limit: int = DEFAULT_RSVP_SCAN_LIMIT, now: datetime.datetime | None = None) -> int:
  """Add one pending delivery per eligible channel for every RSVP'd recipient except the author.

  Runs inside the caller's transaction and does not commit. Only the most recent
  `rsvp_limit` RSVPs are considered; recipients beyond the cap are not notified.
  """
  event = await session.get(Event, event_id)
  if event is None:
    raise DeliverySourceNotFoundError("Cannot queue notifications because the event was not found.", code="EVENT_NOT_FOUND")

  message = await session.get(EventMessage, event_message_id)
  if message is None or message.event_id != event_id:
    raise DeliverySourceNotFoundError("Cannot queue notifications because the event message was not found.", code="MESSAGE_NOT_FOUND")

  rsvp_stmt = select(Rsvp.attendee_profile_id).where(Rsvp.event_id == event_id).order_by(Rsvp.created_at.desc()).limit(rsvp_limit)
  attendee_ids: list[uuid.UUID] = []
  seen: set[uuid.UUID] = set()
  for attendee_id in (await session.execute(rsvp_stmt)).scalars():
    # The author never hears about their own message, and each attendee is considered once.
    if attendee_id == message.author_profile_id or attendee_id in seen:
      continue
    seen.add(attendee_id)
    attendee_ids.append(attendee_id)

  if not attendee_ids:
    return 0

  profiles_result = await session.execute(select(Profile).where(Profile.id.in_(attendee_ids)))
  profiles_by_id = {profile.id: profile for profile in profiles_result.scalars()}

  queued_at = now or utc_now()
  queued = 0
  for attendee_id in attendee_ids:
    recipient = profiles_by_id.get(attendee_id)
    if recipient is None:
      continue

    if recipient.email:
      session.add(_pending_record(event_id=event_id, event_message_id=event_message_id, recipient_profile_id=recipient.id, channel=DeliveryChannel.EMAIL, now=queued_at))
      queued += 1

    if recipient.expo_push_token:
      session.add(_pending_record(event_id=event_id, event_message_id=event_message_id, recipient_profile_id=recipient.id, channel=DeliveryChannel.PUSH, now=queued_at))
      queued += 1

  await session.flush()
  logger.info("Queued notification deliveries event_id=%s event_message_id=%s recipients=%d queued=%d", event_id, event_message_id, len(attendee_ids), queued)
  return queued

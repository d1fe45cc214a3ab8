"""Organizer-authored event-wide messages and their notification hand-off."""

from __future__ import annotations

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from waves.core.database import utc_now
from waves.notifications.contracts import NotificationError
from waves.notifications.dispatcher import NotificationDispatcher
from waves.notifications.fanout import DEFAULT_RSVP_SCAN_LIMIT, queue_message_deliveries
from waves.notifications.scheduler import trigger_dispatch_now
from waves.schema.community import Event, EventMessage, EventMessageKind

logger = logging.getLogger(__name__)

IMMEDIATE_DISPATCH_LIMIT = 100


class EventMessageError(NotificationError):
  """Raised when an event message cannot be sent."""

  code = "EVENT_MESSAGE_ERROR"


async def send_event_message(
  session: AsyncSession,
  *,
  event_id: uuid.UUID,
  author_profile_id: uuid.UUID,
  body: str,
  kind: EventMessageKind | str = EventMessageKind.ANNOUNCEMENT,
  rsvp_limit: int = DEFAULT_RSVP_SCAN_LIMIT,
  dispatcher: NotificationDispatcher | None = None,
  dispatch_limit: int = IMMEDIATE_DISPATCH_LIMIT,
) -> uuid.UUID:
  """Persist an organizer message, queue its deliveries and kick off a dispatch batch.

  The message row and its delivery records commit together. The dispatch trigger
  only fires after the commit so the batch can see the new records.
  """
  event = await session.get(Event, event_id)
  if event is None:
    raise EventMessageError("Event not found.", code="EVENT_NOT_FOUND")

  if event.organizer_profile_id != author_profile_id:
    raise EventMessageError("Only the event organizer can send event-wide messages.", code="NOT_EVENT_ORGANIZER")

  trimmed_body = body.strip()
  if not trimmed_body:
    raise EventMessageError("Message body is required.", code="EMPTY_MESSAGE")

  now = utc_now()
  message = EventMessage(event_id=event_id, author_profile_id=author_profile_id, body=trimmed_body, kind=EventMessageKind(kind), created_at=now)
  session.add(message)
  await session.flush()

  queued = await queue_message_deliveries(session, event_id=event_id, event_message_id=message.id, rsvp_limit=rsvp_limit, now=now)
  await session.commit()
  logger.info("Event message sent event_id=%s event_message_id=%s queued=%d", event_id, message.id, queued)

  if dispatcher is not None:
    trigger_dispatch_now(dispatcher, limit=dispatch_limit)

  return message.id

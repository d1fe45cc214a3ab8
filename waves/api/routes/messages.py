from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from waves.api.deps import get_notification_dispatcher, require_task_secret
from waves.config import Settings, get_settings
from waves.core.database import get_db
from waves.notifications.dispatcher import NotificationDispatcher
from waves.schema.community import EventMessageKind
from waves.services.event_messages import send_event_message

router = APIRouter(prefix="/events", tags=["events"], dependencies=[Depends(require_task_secret)])


class EventMessagePayload(BaseModel):
  author_profile_id: uuid.UUID
  body: str
  kind: EventMessageKind = EventMessageKind.ANNOUNCEMENT


@router.post("/{event_id}/messages", status_code=status.HTTP_201_CREATED)
async def create_event_message(
  event_id: uuid.UUID,
  payload: EventMessagePayload,
  session: Annotated[AsyncSession, Depends(get_db)],
  dispatcher: Annotated[NotificationDispatcher, Depends(get_notification_dispatcher)],
  settings: Annotated[Settings, Depends(get_settings)],
) -> dict[str, uuid.UUID]:
  """Send an organizer message to every RSVP'd attendee of the event."""
  message_id = await send_event_message(
    session, event_id=event_id, author_profile_id=payload.author_profile_id, body=payload.body, kind=payload.kind, rsvp_limit=settings.fanout_rsvp_limit, dispatcher=dispatcher, dispatch_limit=settings.dispatch_batch_limit
  )
  return {"event_message_id": message_id}

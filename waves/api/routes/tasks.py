from __future__ import annotations

import logging
import uuid
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel

from waves.api.deps import get_delivery_repo, get_notification_dispatcher, require_task_secret
from waves.config import Settings, get_settings
from waves.notifications.delivery_repo import NotificationDeliveryRepository
from waves.notifications.dispatcher import NotificationDispatcher

router = APIRouter(prefix="/tasks", tags=["tasks"], dependencies=[Depends(require_task_secret)])
logger = logging.getLogger(__name__)


class DispatchPayload(BaseModel):
  # Out-of-range values are clamped by the selector, not rejected.
  limit: int | None = None


class EnqueuePayload(BaseModel):
  event_id: uuid.UUID
  event_message_id: uuid.UUID


@router.post("/dispatch-notifications", status_code=status.HTTP_200_OK)
async def dispatch_notifications_task(dispatcher: Annotated[NotificationDispatcher, Depends(get_notification_dispatcher)], payload: DispatchPayload | None = None) -> dict[str, int]:
  """Run one dispatch batch synchronously and return its counters."""
  limit = payload.limit if payload else None
  summary = await dispatcher.dispatch_pending(limit=limit)
  return summary.as_dict()


@router.post("/enqueue-message-notifications", status_code=status.HTTP_200_OK)
async def enqueue_message_notifications_task(
  payload: EnqueuePayload, repo: Annotated[NotificationDeliveryRepository, Depends(get_delivery_repo)], settings: Annotated[Settings, Depends(get_settings)]
) -> dict[str, int]:
  """Fan an existing message out to its recipients."""
  result = await repo.enqueue_for_message(event_id=payload.event_id, event_message_id=payload.event_message_id, rsvp_limit=settings.fanout_rsvp_limit)
  return {"queued": result.queued}


@router.get("/notification-deliveries", status_code=status.HTTP_200_OK)
async def list_notification_deliveries(event_message_id: Annotated[uuid.UUID, Query()], repo: Annotated[NotificationDeliveryRepository, Depends(get_delivery_repo)]) -> list[dict[str, Any]]:
  records = await repo.list_for_message(event_message_id)
  return [record.as_dict() for record in records]

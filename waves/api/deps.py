"""Shared FastAPI dependencies for internal auth and notification collaborators."""

from __future__ import annotations

import logging
import secrets
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status

from waves.config import Settings, get_settings
from waves.notifications.delivery_repo import NotificationDeliveryRepository
from waves.notifications.dispatcher import NotificationDispatcher
from waves.notifications.factory import build_notification_dispatcher

logger = logging.getLogger(__name__)


async def require_task_secret(
  request: Request, settings: Annotated[Settings, Depends(get_settings)], authorization: str | None = Header(default=None), x_waves_task_secret: str | None = Header(default=None)
) -> None:
  """Reject internal calls that do not present the shared task secret."""
  # Secure-by-default: internal endpoints stay closed until a secret is configured.
  if not settings.task_secret:
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Task authentication is not configured.")
  expected_auth = f"Bearer {settings.task_secret}"
  shared_secret_valid = secrets.compare_digest((x_waves_task_secret or ""), settings.task_secret)
  bearer_valid = secrets.compare_digest((authorization or ""), expected_auth)
  if not shared_secret_valid and not bearer_valid:
    logger.warning("Unauthorized access attempt to %s", request.url.path)
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid task secret.")


def get_delivery_repo() -> NotificationDeliveryRepository:
  return NotificationDeliveryRepository()


def get_notification_dispatcher(request: Request, settings: Annotated[Settings, Depends(get_settings)]) -> NotificationDispatcher:
  """Reuse the dispatcher built at startup, or build one on demand."""
  dispatcher = getattr(request.app.state, "notification_dispatcher", None)
  if dispatcher is None:
    dispatcher = build_notification_dispatcher(settings)
  return dispatcher

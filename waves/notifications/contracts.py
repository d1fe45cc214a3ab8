"""Contracts shared by the notification fan-out, senders and dispatcher."""

from __future__ import annotations

import datetime
import uuid
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Protocol

from waves.schema.notifications import DeliveryChannel, DeliveryStatus

DEFAULT_RECIPIENT_NAME = "Community member"
DEFAULT_EVENT_TITLE = "Make Waves event"
DEFAULT_MESSAGE_BODY = "You have a new event update."


class SendOutcome(str, Enum):
  """Classification a channel sender returns for one delivery."""

  SENT = "sent"
  FAILED = "failed"
  SKIPPED = "skipped"


class AttemptOutcome(str, Enum):
  """Outcome written back to a delivery record after one dispatch attempt."""

  SENT = "sent"
  FAILED = "failed"
  SKIPPED = "skipped"
  RETRY = "retry"


@dataclass(frozen=True)
class SendResult:
  """Result of translating one delivery into a provider call."""

  outcome: SendOutcome
  provider_message_id: str | None = None
  error: str | None = None


@dataclass(frozen=True)
class PendingDelivery:
  """A ready delivery joined with everything a sender needs."""

  delivery_id: uuid.UUID
  channel: DeliveryChannel
  attempt_count: int
  recipient_email: str | None
  expo_push_token: str | None
  recipient_name: str
  event_title: str
  message_body: str


@dataclass(frozen=True)
class EmailNotification:
  """Represents an email notification payload."""

  to_address: str | None
  to_name: str
  event_title: str
  body: str


@dataclass(frozen=True)
class PushNotification:
  """Represents a push notification payload."""

  expo_push_token: str | None
  event_title: str
  body: str


@dataclass(frozen=True)
class DeliveryRecordView:
  """Read model of a persisted delivery record."""

  id: uuid.UUID
  event_id: uuid.UUID
  event_message_id: uuid.UUID
  recipient_profile_id: uuid.UUID
  channel: DeliveryChannel
  status: DeliveryStatus
  attempt_count: int
  next_attempt_at: datetime.datetime
  last_attempt_at: datetime.datetime | None
  provider_message_id: str | None
  error: str | None
  created_at: datetime.datetime

  def as_dict(self) -> dict[str, object]:
    payload = asdict(self)
    payload["channel"] = self.channel.value
    payload["status"] = self.status.value
    return payload


@dataclass(frozen=True)
class EnqueueResult:
  """Number of delivery records created by a fan-out."""

  queued: int


class NotificationError(Exception):
  """Base class for notification pipeline errors that carry a machine-readable code."""

  code = "NOTIFICATION_ERROR"

  def __init__(self, message: str, *, code: str | None = None) -> None:
    super().__init__(message)
    self.message = message
    if code is not None:
      self.code = code


class DeliverySourceNotFoundError(NotificationError):
  """Raised when fan-out is asked to queue deliveries for a missing event or message."""

  code = "NOT_FOUND"


class EmailSender(Protocol):
  """Delivery contract for sending email notifications."""

  async def send(self, notification: EmailNotification) -> SendResult:
    """Send an email notification and classify the provider response."""


class PushSender(Protocol):
  """Delivery contract for sending push notifications."""

  async def send(self, notification: PushNotification) -> SendResult:
    """Send a push notification and classify the provider response."""

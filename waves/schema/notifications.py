"""SQLAlchemy model for per-recipient notification delivery records."""

from __future__ import annotations

import datetime
import uuid
from enum import Enum

from sqlalchemy import Enum as SAEnum
from sqlalchemy import Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from waves.core.database import Base, UTCDateTime, utc_now


class DeliveryChannel(str, Enum):
  EMAIL = "email"
  PUSH = "push"


class DeliveryStatus(str, Enum):
  PENDING = "pending"
  SENT = "sent"
  FAILED = "failed"
  SKIPPED = "skipped"

  @property
  def is_terminal(self) -> bool:
    return self is not DeliveryStatus.PENDING


def _enum_values(enum_cls: type[Enum]) -> list[str]:
  return [member.value for member in enum_cls]


class NotificationDelivery(Base):
  """One delivery attempt stream per (message, recipient, channel).

  Source references are plain columns rather than foreign keys: records are an
  audit trail and outlive deleted events or messages.
  """

  __tablename__ = "notification_deliveries"
  __table_args__ = (
    Index("ix_notification_deliveries_status_next_attempt_at", "status", "next_attempt_at"),
    Index("ix_notification_deliveries_recipient_profile_id_created_at", "recipient_profile_id", "created_at"),
    Index("ix_notification_deliveries_event_message_id", "event_message_id"),
  )

  id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
  event_id: Mapped[uuid.UUID] = mapped_column(nullable=False)
  event_message_id: Mapped[uuid.UUID] = mapped_column(nullable=False)
  recipient_profile_id: Mapped[uuid.UUID] = mapped_column(nullable=False)
  channel: Mapped[DeliveryChannel] = mapped_column(SAEnum(DeliveryChannel, name="notification_channel", values_callable=_enum_values, validate_strings=True), nullable=False)
  status: Mapped[DeliveryStatus] = mapped_column(SAEnum(DeliveryStatus, name="notification_delivery_status", values_callable=_enum_values, validate_strings=True), nullable=False, default=DeliveryStatus.PENDING)
  provider_message_id: Mapped[str | None] = mapped_column(String, nullable=True)
  error: Mapped[str | None] = mapped_column(Text, nullable=True)
  attempt_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
  next_attempt_at: Mapped[datetime.datetime] = mapped_column(UTCDateTime(), nullable=False)
  last_attempt_at: Mapped[datetime.datetime | None] = mapped_column(UTCDateTime(), nullable=True)
  created_at: Mapped[datetime.datetime] = mapped_column(UTCDateTime(), nullable=False, default=utc_now)

"""SQLAlchemy models for the community entities the notification pipeline reads.

Profiles, events, RSVPs and event messages are owned by the CRUD layer; only the
columns the delivery pipeline and message send path need are mapped here.
"""

from __future__ import annotations

import datetime
import uuid
from enum import Enum

from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from waves.core.database import Base, UTCDateTime, utc_now


class RsvpStatus(str, Enum):
  GOING = "going"
  INTERESTED = "interested"


class EventMessageKind(str, Enum):
  ANNOUNCEMENT = "announcement"
  UPDATE = "update"


def _enum_values(enum_cls: type[Enum]) -> list[str]:
  return [member.value for member in enum_cls]


class Profile(Base):
  __tablename__ = "profiles"

  id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
  slug: Mapped[str] = mapped_column(String, unique=True, nullable=False)
  display_name: Mapped[str] = mapped_column(String, nullable=False)
  email: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
  expo_push_token: Mapped[str | None] = mapped_column(String, nullable=True)
  updated_at: Mapped[datetime.datetime | None] = mapped_column(UTCDateTime(), nullable=True)
  created_at: Mapped[datetime.datetime] = mapped_column(UTCDateTime(), nullable=False, default=utc_now)


class Event(Base):
  __tablename__ = "events"

  id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
  slug: Mapped[str] = mapped_column(String, unique=True, nullable=False)
  title: Mapped[str] = mapped_column(String, nullable=False)
  organizer_profile_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("profiles.id"), index=True, nullable=False)
  attendee_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
  created_at: Mapped[datetime.datetime] = mapped_column(UTCDateTime(), nullable=False, default=utc_now)


class Rsvp(Base):
  __tablename__ = "rsvps"
  __table_args__ = (
    UniqueConstraint("event_id", "attendee_profile_id", name="ux_rsvps_event_id_attendee_profile_id"),
    Index("ix_rsvps_event_id_created_at", "event_id", "created_at"),
    Index("ix_rsvps_attendee_profile_id_created_at", "attendee_profile_id", "created_at"),
  )

  id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
  event_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
  attendee_profile_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
  status: Mapped[RsvpStatus] = mapped_column(SAEnum(RsvpStatus, name="rsvp_status", values_callable=_enum_values, validate_strings=True), nullable=False)
  note: Mapped[str | None] = mapped_column(Text, nullable=True)
  created_at: Mapped[datetime.datetime] = mapped_column(UTCDateTime(), nullable=False, default=utc_now)


class EventMessage(Base):
  __tablename__ = "event_messages"
  __table_args__ = (Index("ix_event_messages_event_id_created_at", "event_id", "created_at"),)

  id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
  event_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
  author_profile_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("profiles.id"), nullable=False)
  body: Mapped[str] = mapped_column(Text, nullable=False)
  kind: Mapped[EventMessageKind] = mapped_column(SAEnum(EventMessageKind, name="event_message_kind", values_callable=_enum_values, validate_strings=True), nullable=False, default=EventMessageKind.ANNOUNCEMENT)
  created_at: Mapped[datetime.datetime] = mapped_column(UTCDateTime(), nullable=False, default=utc_now)

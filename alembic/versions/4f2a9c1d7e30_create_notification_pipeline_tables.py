"""Create community and notification delivery tables.

Revision ID: 4f2a9c1d7e30
Revises:
Create Date: 2026-10-19 09:12:41.204117
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "4f2a9c1d7e30"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
  """Upgrade schema."""
  op.create_table(
    "profiles",
    sa.Column("id", sa.Uuid(), nullable=False),
    sa.Column("slug", sa.String(), nullable=False),
    sa.Column("display_name", sa.String(), nullable=False),
    sa.Column("email", sa.String(), nullable=True),
    sa.Column("expo_push_token", sa.String(), nullable=True),
    sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.PrimaryKeyConstraint("id"),
    sa.UniqueConstraint("slug"),
  )
  op.create_index(op.f("ix_profiles_email"), "profiles", ["email"], unique=False)

  op.create_table(
    "events",
    sa.Column("id", sa.Uuid(), nullable=False),
    sa.Column("slug", sa.String(), nullable=False),
    sa.Column("title", sa.String(), nullable=False),
    sa.Column("organizer_profile_id", sa.Uuid(), nullable=False),
    sa.Column("attendee_count", sa.Integer(), nullable=False, server_default="0"),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.ForeignKeyConstraint(["organizer_profile_id"], ["profiles.id"]),
    sa.PrimaryKeyConstraint("id"),
    sa.UniqueConstraint("slug"),
  )
  op.create_index(op.f("ix_events_organizer_profile_id"), "events", ["organizer_profile_id"], unique=False)

  op.create_table(
    "rsvps",
    sa.Column("id", sa.Uuid(), nullable=False),
    sa.Column("event_id", sa.Uuid(), nullable=False),
    sa.Column("attendee_profile_id", sa.Uuid(), nullable=False),
    sa.Column("status", sa.Enum("going", "interested", name="rsvp_status"), nullable=False),
    sa.Column("note", sa.Text(), nullable=True),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.ForeignKeyConstraint(["event_id"], ["events.id"], ondelete="CASCADE"),
    sa.ForeignKeyConstraint(["attendee_profile_id"], ["profiles.id"], ondelete="CASCADE"),
    sa.PrimaryKeyConstraint("id"),
    sa.UniqueConstraint("event_id", "attendee_profile_id", name="ux_rsvps_event_id_attendee_profile_id"),
  )
  op.create_index("ix_rsvps_event_id_created_at", "rsvps", ["event_id", "created_at"], unique=False)
  op.create_index("ix_rsvps_attendee_profile_id_created_at", "rsvps", ["attendee_profile_id", "created_at"], unique=False)

  op.create_table(
    "event_messages",
    sa.Column("id", sa.Uuid(), nullable=False),
    sa.Column("event_id", sa.Uuid(), nullable=False),
    sa.Column("author_profile_id", sa.Uuid(), nullable=False),
    sa.Column("body", sa.Text(), nullable=False),
    sa.Column("kind", sa.Enum("announcement", "update", name="event_message_kind"), nullable=False),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.ForeignKeyConstraint(["event_id"], ["events.id"], ondelete="CASCADE"),
    sa.ForeignKeyConstraint(["author_profile_id"], ["profiles.id"]),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index("ix_event_messages_event_id_created_at", "event_messages", ["event_id", "created_at"], unique=False)

  # Delivery records keep plain id columns so they survive deletion of their sources.
  op.create_table(
    "notification_deliveries",
    sa.Column("id", sa.Uuid(), nullable=False),
    sa.Column("event_id", sa.Uuid(), nullable=False),
    sa.Column("event_message_id", sa.Uuid(), nullable=False),
    sa.Column("recipient_profile_id", sa.Uuid(), nullable=False),
    sa.Column("channel", sa.Enum("email", "push", name="notification_channel"), nullable=False),
    sa.Column("status", sa.Enum("pending", "sent", "failed", "skipped", name="notification_delivery_status"), nullable=False),
    sa.Column("provider_message_id", sa.String(), nullable=True),
    sa.Column("error", sa.Text(), nullable=True),
    sa.Column("attempt_count", sa.Integer(), nullable=False, server_default="0"),
    sa.Column("next_attempt_at", sa.DateTime(timezone=True), nullable=False),
    sa.Column("last_attempt_at", sa.DateTime(timezone=True), nullable=True),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index("ix_notification_deliveries_status_next_attempt_at", "notification_deliveries", ["status", "next_attempt_at"], unique=False)
  op.create_index("ix_notification_deliveries_recipient_profile_id_created_at", "notification_deliveries", ["recipient_profile_id", "created_at"], unique=False)
  op.create_index("ix_notification_deliveries_event_message_id", "notification_deliveries", ["event_message_id"], unique=False)


def downgrade() -> None:
  """Downgrade schema."""
  op.drop_index("ix_notification_deliveries_event_message_id", table_name="notification_deliveries")
  op.drop_index("ix_notification_deliveries_recipient_profile_id_created_at", table_name="notification_deliveries")
  op.drop_index("ix_notification_deliveries_status_next_attempt_at", table_name="notification_deliveries")
  op.drop_table("notification_deliveries")
  op.drop_index("ix_event_messages_event_id_created_at", table_name="event_messages")
  op.drop_table("event_messages")
  op.drop_index("ix_rsvps_attendee_profile_id_created_at", table_name="rsvps")
  op.drop_index("ix_rsvps_event_id_created_at", table_name="rsvps")
  op.drop_table("rsvps")
  op.drop_index(op.f("ix_events_organizer_profile_id"), table_name="events")
  op.drop_table("events")
  op.drop_index(op.f("ix_profiles_email"), table_name="profiles")
  op.drop_table("profiles")

  bind = op.get_bind()
  for enum_name in ("notification_delivery_status", "notification_channel", "event_message_kind", "rsvp_status"):
    sa.Enum(name=enum_name).drop(bind, checkfirst=True)

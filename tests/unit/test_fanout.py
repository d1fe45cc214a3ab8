from __future__ import annotations

import datetime
import uuid

import pytest
from sqlalchemy import select

from waves.notifications.contracts import DeliverySourceNotFoundError
from waves.notifications.delivery_repo import NotificationDeliveryRepository
from waves.notifications.fanout import queue_message_deliveries
from waves.schema.notifications import DeliveryChannel, DeliveryStatus, NotificationDelivery

NOW = datetime.datetime(2026, 3, 2, 9, 30, tzinfo=datetime.UTC)


async def _deliveries(session_factory) -> list[NotificationDelivery]:
  async with session_factory() as session:
    result = await session.execute(select(NotificationDelivery))
    return list(result.scalars())


@pytest.mark.anyio
async def test_fanout_creates_one_record_per_available_channel(session_factory, community):
  organizer = await community.profile(display_name="Organizer", email="org@example.com", expo_push_token="ExponentPushToken[org]")
  both = await community.profile(display_name="Both", email="both@example.com", expo_push_token="ExponentPushToken[both]")
  email_only = await community.profile(display_name="Email", email="email@example.com")
  neither = await community.profile(display_name="Neither")
  event = await community.event(organizer=organizer)
  for attendee in (organizer, both, email_only, neither):
    await community.rsvp(event=event, attendee=attendee)
  message = await community.message(event=event, author=organizer)

  result = await NotificationDeliveryRepository(session_factory).enqueue_for_message(event_id=event.id, event_message_id=message.id, now=NOW)

  assert result.queued == 3
  records = await _deliveries(session_factory)
  assert sorted((record.recipient_profile_id, record.channel) for record in records) == sorted(
    [(both.id, DeliveryChannel.EMAIL), (both.id, DeliveryChannel.PUSH), (email_only.id, DeliveryChannel.EMAIL)]
  )
  for record in records:
    assert record.status is DeliveryStatus.PENDING
    assert record.attempt_count == 0
    assert record.next_attempt_at == NOW
    assert record.created_at == NOW
    assert record.event_id == event.id
    assert record.event_message_id == message.id
    assert record.provider_message_id is None
    assert record.error is None


@pytest.mark.anyio
async def test_fanout_excludes_author_even_with_contact_info(session_factory, community):
  organizer = await community.profile(email="org@example.com", expo_push_token="ExponentPushToken[org]")
  event = await community.event(organizer=organizer)
  await community.rsvp(event=event, attendee=organizer)
  message = await community.message(event=event, author=organizer)

  result = await NotificationDeliveryRepository(session_factory).enqueue_for_message(event_id=event.id, event_message_id=message.id)

  assert result.queued == 0
  assert await _deliveries(session_factory) == []


@pytest.mark.anyio
async def test_fanout_only_scans_most_recent_rsvps(session_factory, community):
  organizer = await community.profile()
  event = await community.event(organizer=organizer)
  early = await community.profile(email="early@example.com")
  late = await community.profile(email="late@example.com")
  base = datetime.datetime(2026, 3, 1, tzinfo=datetime.UTC)
  await community.rsvp(event=event, attendee=early, created_at=base)
  await community.rsvp(event=event, attendee=late, created_at=base + datetime.timedelta(minutes=5))
  message = await community.message(event=event, author=organizer)

  async with session_factory() as session:
    queued = await queue_message_deliveries(session, event_id=event.id, event_message_id=message.id, rsvp_limit=1)
    await session.commit()

  assert queued == 1
  records = await _deliveries(session_factory)
  assert [record.recipient_profile_id for record in records] == [late.id]


@pytest.mark.anyio
async def test_fanout_does_not_commit_caller_transaction(session_factory, community):
  organizer = await community.profile()
  attendee = await community.profile(email="a@example.com")
  event = await community.event(organizer=organizer)
  await community.rsvp(event=event, attendee=attendee)
  message = await community.message(event=event, author=organizer)

  async with session_factory() as session:
    queued = await queue_message_deliveries(session, event_id=event.id, event_message_id=message.id)
    await session.rollback()

  assert queued == 1
  assert await _deliveries(session_factory) == []


@pytest.mark.anyio
async def test_fanout_rejects_missing_event_or_message(session_factory, community):
  organizer = await community.profile()
  event = await community.event(organizer=organizer)
  other_event = await community.event(organizer=organizer)
  message = await community.message(event=other_event, author=organizer)
  repo = NotificationDeliveryRepository(session_factory)

  with pytest.raises(DeliverySourceNotFoundError) as missing_event:
    await repo.enqueue_for_message(event_id=uuid.uuid4(), event_message_id=message.id)
  assert missing_event.value.code == "EVENT_NOT_FOUND"

  with pytest.raises(DeliverySourceNotFoundError) as missing_message:
    await repo.enqueue_for_message(event_id=event.id, event_message_id=uuid.uuid4())
  assert missing_message.value.code == "MESSAGE_NOT_FOUND"

  # A message belonging to a different event is treated as not found.
  with pytest.raises(DeliverySourceNotFoundError):
    await repo.enqueue_for_message(event_id=event.id, event_message_id=message.id)

  assert await _deliveries(session_factory) == []

"""Dispatch loop that drains ready deliveries through the channel senders."""

from __future__ import annotations

import datetime
import logging
from collections.abc import Callable
from dataclasses import asdict, dataclass

from waves.core.database import utc_now
from waves.notifications.contracts import AttemptOutcome, EmailNotification, EmailSender, PendingDelivery, PushNotification, PushSender, SendOutcome, SendResult
from waves.notifications.delivery_repo import NotificationDeliveryRepository
from waves.schema.notifications import DeliveryChannel

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3


@dataclass
class DispatchSummary:
  """Counters accumulated over one dispatch batch."""

  processed: int = 0
  sent: int = 0
  failed: int = 0
  skipped: int = 0
  requeued: int = 0

  def as_dict(self) -> dict[str, int]:
    return asdict(self)


class NotificationDispatcher:
  """Send ready deliveries one at a time and write each outcome back to the store.

  Delivery is at-least-once: records are not claimed before sending, so a crash
  between a send and its outcome write, or two overlapping runs, can send twice.
  """

  def __init__(self, *, repo: NotificationDeliveryRepository, email_sender: EmailSender, push_sender: PushSender, max_attempts: int = DEFAULT_MAX_ATTEMPTS, clock: Callable[[], datetime.datetime] = utc_now) -> None:
    if max_attempts < 1:
      raise ValueError("max_attempts must be at least 1.")
    self._repo = repo
    self._email_sender = email_sender
    self._push_sender = push_sender
    self._max_attempts = max_attempts
    self._clock = clock

  async def dispatch_pending(self, limit: int | None = None) -> DispatchSummary:
    """Process one batch of ready deliveries and return the summary counters.

    Per-record failures are recorded and counted; only selector or store
    failures propagate.
    """
    pending = await self._repo.list_ready(limit=limit, now=self._clock())
    summary = DispatchSummary()

    for delivery in pending:
      summary.processed += 1
      should_retry_after_failure = delivery.attempt_count + 1 < self._max_attempts
      result = await self._send(delivery)

      if result.outcome is SendOutcome.SENT:
        await self._repo.record_attempt(delivery.delivery_id, outcome=AttemptOutcome.SENT, attempted_at=self._clock(), provider_message_id=result.provider_message_id)
        summary.sent += 1
        continue

      if result.outcome is SendOutcome.SKIPPED:
        # Skips are terminal regardless of the remaining attempt budget.
        await self._repo.record_attempt(delivery.delivery_id, outcome=AttemptOutcome.SKIPPED, attempted_at=self._clock(), error=result.error)
        summary.skipped += 1
        continue

      if should_retry_after_failure:
        logger.warning("Delivery failed; requeueing delivery_id=%s channel=%s attempt=%d error=%s", delivery.delivery_id, delivery.channel.value, delivery.attempt_count + 1, result.error)
        await self._repo.record_attempt(delivery.delivery_id, outcome=AttemptOutcome.RETRY, attempted_at=self._clock(), error=result.error)
        summary.requeued += 1
        continue

      logger.warning("Delivery failed permanently delivery_id=%s channel=%s attempts=%d error=%s", delivery.delivery_id, delivery.channel.value, delivery.attempt_count + 1, result.error)
      await self._repo.record_attempt(delivery.delivery_id, outcome=AttemptOutcome.FAILED, attempted_at=self._clock(), error=result.error)
      summary.failed += 1

    if summary.processed:
      logger.info("Notification dispatch finished processed=%d sent=%d failed=%d skipped=%d requeued=%d", summary.processed, summary.sent, summary.failed, summary.skipped, summary.requeued)
    return summary

  async def _send(self, delivery: PendingDelivery) -> SendResult:
    """Invoke the channel sender, treating unexpected exceptions as a failed attempt."""
    try:
      if delivery.channel is DeliveryChannel.EMAIL:
        return await self._email_sender.send(EmailNotification(to_address=delivery.recipient_email, to_name=delivery.recipient_name, event_title=delivery.event_title, body=delivery.message_body))
      return await self._push_sender.send(PushNotification(expo_push_token=delivery.expo_push_token, event_title=delivery.event_title, body=delivery.message_body))
    except Exception as exc:  # noqa: BLE001
      logger.error("Channel sender raised delivery_id=%s channel=%s: %s", delivery.delivery_id, delivery.channel.value, exc, exc_info=True)
      return SendResult(outcome=SendOutcome.FAILED, error=f"{type(exc).__name__}: {exc}")

"""Push notification delivery through the Expo push gateway."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from waves.notifications.contracts import PushNotification, PushSender, SendOutcome, SendResult

logger = logging.getLogger(__name__)

MAX_PUSH_BODY_CHARS = 180


@dataclass(frozen=True)
class ExpoPushConfig:
  """Configuration for the Expo push gateway; no credentials are required."""

  url: str = "https://exp.host/--/api/v2/push/send"
  timeout_seconds: float | None = None


class ExpoPushSender(PushSender):
  """Expo-backed push sender that classifies gateway tickets into outcomes."""

  def __init__(self, *, config: ExpoPushConfig, transport: httpx.AsyncBaseTransport | None = None) -> None:
    self._config = config
    self._transport = transport

  def _build_client(self) -> httpx.AsyncClient:
    if self._config.timeout_seconds is not None:
      return httpx.AsyncClient(transport=self._transport, timeout=self._config.timeout_seconds)
    return httpx.AsyncClient(transport=self._transport)

  async def send(self, notification: PushNotification) -> SendResult:
    """Send one push message and classify the first ticket in the response."""
    if not notification.expo_push_token:
      return SendResult(outcome=SendOutcome.SKIPPED, error="Expo push token is missing.")

    payload = {
      "to": notification.expo_push_token,
      "title": f"Event update: {notification.event_title}",
      "body": notification.body[:MAX_PUSH_BODY_CHARS],
      "sound": "default",
      "data": {"eventTitle": notification.event_title},
    }
    headers = {"Accept": "application/json", "Accept-Encoding": "gzip, deflate", "Content-Type": "application/json"}

    try:
      async with self._build_client() as client:
        response = await client.post(self._config.url, json=payload, headers=headers)
    except httpx.HTTPError as exc:
      logger.warning("Expo push request failed: %s", exc)
      return SendResult(outcome=SendOutcome.FAILED, error=f"Expo push request failed: {exc!s}")

    if not response.is_success:
      logger.warning("Expo push request failed status=%s", response.status_code)
      return SendResult(outcome=SendOutcome.FAILED, error=f"Expo push error ({response.status_code}): {response.text}")

    ticket = _first_ticket(response)
    if ticket.get("status") != "ok":
      message = ticket.get("message")
      return SendResult(outcome=SendOutcome.FAILED, error=str(message) if message else "Expo push response did not return ok status.")

    ticket_id = ticket.get("id")
    return SendResult(outcome=SendOutcome.SENT, provider_message_id=str(ticket_id) if ticket_id else None)


def _first_ticket(response: httpx.Response) -> dict[str, Any]:
  """Return the first push ticket, accepting both the list and single-object `data` shapes."""
  try:
    body = response.json()
  except ValueError:
    return {}

  data = body.get("data") if isinstance(body, dict) else None
  if isinstance(data, list):
    data = data[0] if data else None

  return data if isinstance(data, dict) else {}

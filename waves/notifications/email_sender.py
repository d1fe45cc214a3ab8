"""Email delivery through the Resend HTTP API.

The sender never raises for provider problems: every response is classified into
a `SendResult` so the dispatcher can decide between retrying and giving up.
"""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass

import httpx

from waves.notifications.contracts import EmailNotification, EmailSender, SendOutcome, SendResult

logger = logging.getLogger(__name__)

API_KEY_SETTING = "WAVES_RESEND_API_KEY"
FROM_EMAIL_SETTING = "WAVES_NOTIFICATIONS_FROM_EMAIL"


@dataclass(frozen=True)
class ResendConfig:
  """Resend configuration needed to send emails."""

  api_key: str | None
  from_address: str | None
  base_url: str = "https://api.resend.com"
  timeout_seconds: float | None = None
  escape_html: bool = False

  def missing_settings(self) -> list[str]:
    missing: list[str] = []
    if not self.api_key:
      missing.append(API_KEY_SETTING)
    if not self.from_address:
      missing.append(FROM_EMAIL_SETTING)
    return missing


def build_subject(event_title: str) -> str:
  return f"New update: {event_title}"


def build_html(*, recipient_name: str, body: str, escape: bool = False) -> str:
  """Render the update email body.

  The message body is interpolated as-is unless `escape` is set, so organizer
  text containing markup reaches the recipient unchanged.
  """
  if escape:
    recipient_name = html.escape(recipient_name)
    body = html.escape(body)
  return f"<p>Hi {recipient_name},</p><p>{body}</p>"


class ResendEmailSender(EmailSender):
  """Resend-backed email sender using the provider API."""

  def __init__(self, *, config: ResendConfig, transport: httpx.AsyncBaseTransport | None = None) -> None:
    self._config = config
    self._transport = transport

  def _build_client(self) -> httpx.AsyncClient:
    if self._config.timeout_seconds is not None:
      return httpx.AsyncClient(transport=self._transport, timeout=self._config.timeout_seconds)
    return httpx.AsyncClient(transport=self._transport)

  async def send(self, notification: EmailNotification) -> SendResult:
    """Send an email using the Resend API and classify the response."""
    if not notification.to_address:
      return SendResult(outcome=SendOutcome.SKIPPED, error="Recipient email is missing.")

    missing = self._config.missing_settings()
    if missing:
      return SendResult(outcome=SendOutcome.SKIPPED, error=f"{' or '.join(missing)} is not configured.")

    payload = {
      "from": self._config.from_address,
      "to": [notification.to_address],
      "subject": build_subject(notification.event_title),
      "html": build_html(recipient_name=notification.to_name, body=notification.body, escape=self._config.escape_html),
    }
    headers = {"Authorization": f"Bearer {self._config.api_key}", "Content-Type": "application/json"}

    try:
      async with self._build_client() as client:
        response = await client.post(f"{self._config.base_url}/emails", json=payload, headers=headers)
    except httpx.HTTPError as exc:
      logger.warning("Resend email request failed: %s", exc)
      return SendResult(outcome=SendOutcome.FAILED, error=f"Email provider request failed: {exc!s}")

    if not response.is_success:
      logger.warning("Resend email request failed status=%s", response.status_code)
      return SendResult(outcome=SendOutcome.FAILED, error=f"Email provider error ({response.status_code}): {response.text}")

    return SendResult(outcome=SendOutcome.SENT, provider_message_id=_extract_message_id(response))


def _extract_message_id(response: httpx.Response) -> str | None:
  """Read the provider message id from a success response when one is present."""
  try:
    body = response.json()
  except ValueError:
    return None

  if not isinstance(body, dict):
    return None

  message_id = body.get("id")
  return str(message_id) if message_id else None

"""Push token registration for profiles."""

from __future__ import annotations

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from waves.core.database import utc_now
from waves.notifications.contracts import NotificationError
from waves.schema.community import Profile


class ProfileNotFoundError(NotificationError):
  """Raised when a push token change targets an unknown profile."""

  code = "PROFILE_NOT_FOUND"


async def _require_profile(session: AsyncSession, profile_id: uuid.UUID) -> Profile:
  profile = await session.get(Profile, profile_id)
  if profile is None:
    raise ProfileNotFoundError("Profile not found.")
  return profile


async def register_push_token(session: AsyncSession, *, profile_id: uuid.UUID, expo_push_token: str) -> None:
  """Store the device's Expo push token so future messages fan out to the push channel."""
  token = expo_push_token.strip()
  if not token:
    raise ValueError("Expo push token must not be empty.")

  profile = await _require_profile(session, profile_id)
  profile.expo_push_token = token
  profile.updated_at = utc_now()
  await session.commit()


async def clear_push_token(session: AsyncSession, *, profile_id: uuid.UUID) -> None:
  # Deliveries already queued for the push channel will be skipped at send time.
  profile = await _require_profile(session, profile_id)
  profile.expo_push_token = None
  profile.updated_at = utc_now()
  await session.commit()

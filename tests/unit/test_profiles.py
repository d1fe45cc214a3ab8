from __future__ import annotations

import uuid

import pytest

from waves.schema.community import Profile
from waves.services.profiles import ProfileNotFoundError, clear_push_token, register_push_token


@pytest.mark.anyio
async def test_register_and_clear_push_token(session_factory, community):
  profile = await community.profile()

  async with session_factory() as session:
    await register_push_token(session, profile_id=profile.id, expo_push_token="  ExponentPushToken[xyz]  ")

  async with session_factory() as session:
    stored = await session.get(Profile, profile.id)
  assert stored.expo_push_token == "ExponentPushToken[xyz]"
  assert stored.updated_at is not None

  async with session_factory() as session:
    await clear_push_token(session, profile_id=profile.id)

  async with session_factory() as session:
    assert (await session.get(Profile, profile.id)).expo_push_token is None


@pytest.mark.anyio
async def test_register_push_token_rejects_blank_token(session_factory, community):
  profile = await community.profile()

  async with session_factory() as session:
    with pytest.raises(ValueError):
      await register_push_token(session, profile_id=profile.id, expo_push_token="   ")


@pytest.mark.anyio
async def test_push_token_changes_require_existing_profile(session_factory):
  async with session_factory() as session:
    with pytest.raises(ProfileNotFoundError):
      await register_push_token(session, profile_id=uuid.uuid4(), expo_push_token="ExponentPushToken[xyz]")
    with pytest.raises(ProfileNotFoundError):
      await clear_push_token(session, profile_id=uuid.uuid4())

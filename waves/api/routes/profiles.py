from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from waves.api.deps import require_task_secret
from waves.core.database import get_db
from waves.services.profiles import clear_push_token, register_push_token

router = APIRouter(prefix="/profiles", tags=["profiles"], dependencies=[Depends(require_task_secret)])


class PushTokenPayload(BaseModel):
  expo_push_token: str


@router.put("/{profile_id}/push-token", status_code=status.HTTP_204_NO_CONTENT)
async def put_push_token(profile_id: uuid.UUID, payload: PushTokenPayload, session: Annotated[AsyncSession, Depends(get_db)]) -> Response:
  try:
    await register_push_token(session, profile_id=profile_id, expo_push_token=payload.expo_push_token)
  except ValueError as exc:
    raise HTTPException(status_code=422, detail=str(exc)) from exc
  return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{profile_id}/push-token", status_code=status.HTTP_204_NO_CONTENT)
async def delete_push_token(profile_id: uuid.UUID, session: Annotated[AsyncSession, Depends(get_db)]) -> Response:
  await clear_push_token(session, profile_id=profile_id)
  return Response(status_code=status.HTTP_204_NO_CONTENT)

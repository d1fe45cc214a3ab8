from __future__ import annotations

import datetime
from collections.abc import AsyncGenerator

from sqlalchemy import DateTime
from sqlalchemy.engine import Dialect
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator

from waves.config import get_database_settings


class Base(DeclarativeBase):
  pass


class UTCDateTime(TypeDecorator[datetime.datetime]):
  """Timezone-aware datetime column that always round-trips as UTC.

  Postgres `timestamptz` already returns aware values; SQLite drops the offset,
  so naive values read back are interpreted as UTC.
  """

  impl = DateTime(timezone=True)
  cache_ok = True

  def process_bind_param(self, value: datetime.datetime | None, dialect: Dialect) -> datetime.datetime | None:
    if value is None:
      return None
    if value.tzinfo is None:
      raise ValueError("UTCDateTime requires timezone-aware datetimes.")
    return value.astimezone(datetime.UTC)

  def process_result_value(self, value: datetime.datetime | None, dialect: Dialect) -> datetime.datetime | None:
    if value is None:
      return None
    if value.tzinfo is None:
      return value.replace(tzinfo=datetime.UTC)
    return value.astimezone(datetime.UTC)


def utc_now() -> datetime.datetime:
  """Return the current time as an aware UTC datetime."""
  return datetime.datetime.now(datetime.UTC)


engine = None
SessionLocal = None


def _database_url() -> str | None:
  """Build the SQLAlchemy database URL while keeping settings evaluation minimal."""
  settings = get_database_settings()
  database_url = settings.pg_dsn
  if database_url and database_url.startswith("postgresql://"):
    database_url = database_url.replace("postgresql://", "postgresql+asyncpg://", 1)

  return database_url


DATABASE_URL = _database_url()


def get_db_engine():  # type: ignore
  global engine
  settings = get_database_settings()
  database_url = _database_url()
  if engine is None and database_url:
    connect_args = {"timeout": settings.pg_connect_timeout} if database_url.startswith("postgresql+asyncpg://") else {}
    engine = create_async_engine(database_url, echo=settings.debug, future=True, connect_args=connect_args)
  return engine


def get_session_factory():  # type: ignore
  global SessionLocal
  if SessionLocal is None:
    db_engine = get_db_engine()
    if db_engine:
      SessionLocal = async_sessionmaker(bind=db_engine, expire_on_commit=False, class_=AsyncSession)
  return SessionLocal


def require_session_factory() -> async_sessionmaker[AsyncSession]:
  """Return the configured session factory or fail loudly when the database is not configured."""
  session_factory = get_session_factory()
  if session_factory is None:
    raise RuntimeError("Database connection is not configured (WAVES_PG_DSN is missing).")
  return session_factory


async def get_db() -> AsyncGenerator[AsyncSession]:
  """Dependency to get a database session."""
  session_factory = require_session_factory()
  async with session_factory() as session:
    try:
      yield session
    finally:
      await session.close()

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from waves.core.logging import _initialize_logging
from waves.notifications.factory import build_notification_dispatcher
from waves.notifications.scheduler import build_dispatch_scheduler, cancel_background_dispatches


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
  """Set up logging, the shared dispatcher and the periodic dispatch schedule."""
  from waves.config import get_settings

  settings = get_settings()
  logger = logging.getLogger("waves.core.lifespan")

  try:
    _initialize_logging(settings)
    logger.info("Startup complete - logging verified.")
  except Exception:  # noqa: BLE001
    logger.warning("Initial logging setup failed; continuing with default handlers.", exc_info=True)

  scheduler = None
  if settings.pg_dsn:
    dispatcher = build_notification_dispatcher(settings)
    app.state.notification_dispatcher = dispatcher
    if settings.notification_scheduler_enabled:
      scheduler = build_dispatch_scheduler(settings, lambda: dispatcher)
      scheduler.start()
  else:
    logger.warning("WAVES_PG_DSN is not configured; notification dispatch is disabled.")

  try:
    yield
  finally:
    if scheduler is not None:
      scheduler.shutdown(wait=False)
      logger.info("Notification dispatch scheduler stopped.")
    # Immediate triggers started by request handlers are torn down with the app.
    await cancel_background_dispatches()

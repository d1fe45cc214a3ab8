"""Periodic and on-demand triggers for the notification dispatch loop."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from waves.config import Settings
from waves.notifications.dispatcher import DispatchSummary, NotificationDispatcher

logger = logging.getLogger(__name__)

DISPATCH_JOB_ID = "dispatch-notifications"

DispatcherFactory = Callable[[], NotificationDispatcher]

# Strong references keep fire-and-forget tasks alive until they finish.
_background_tasks: set[asyncio.Task[DispatchSummary | None]] = set()


async def run_scheduled_dispatch(dispatcher_factory: DispatcherFactory, limit: int) -> DispatchSummary | None:
  """Run one dispatch batch, logging failures so the schedule keeps firing."""
  try:
    dispatcher = dispatcher_factory()
    return await dispatcher.dispatch_pending(limit=limit)
  except Exception:  # noqa: BLE001
    logger.exception("Scheduled notification dispatch failed")
    return None


def build_dispatch_scheduler(settings: Settings, dispatcher_factory: DispatcherFactory) -> AsyncIOScheduler:
  """Create an (unstarted) scheduler that dispatches ready deliveries on a fixed interval."""
  scheduler = AsyncIOScheduler(
    timezone="UTC",
    job_defaults={
      "coalesce": True,  # Collapse missed runs into one
      "max_instances": 1,  # Never overlap two runs in this process
      "misfire_grace_time": settings.dispatch_interval_seconds,
    },
  )
  scheduler.add_job(
    run_scheduled_dispatch,
    trigger=IntervalTrigger(seconds=settings.dispatch_interval_seconds),
    id=DISPATCH_JOB_ID,
    name="Dispatch pending notifications",
    kwargs={"dispatcher_factory": dispatcher_factory, "limit": settings.dispatch_batch_limit},
    replace_existing=True,
  )
  logger.info("Notification dispatch scheduled every %ds limit=%d", settings.dispatch_interval_seconds, settings.dispatch_batch_limit)
  return scheduler


def trigger_dispatch_now(dispatcher: NotificationDispatcher, *, limit: int) -> asyncio.Task[DispatchSummary | None]:
  """Start a dispatch batch in the background without waiting for it."""
  task = asyncio.create_task(run_scheduled_dispatch(lambda: dispatcher, limit))
  _background_tasks.add(task)
  task.add_done_callback(_background_tasks.discard)
  task.add_done_callback(_log_task_error)
  return task


async def cancel_background_dispatches() -> int:
  """Cancel in-flight immediate dispatches and wait for them to unwind; returns how many were pending."""
  pending = [task for task in _background_tasks if not task.done()]
  for task in pending:
    task.cancel()
  if pending:
    await asyncio.gather(*pending, return_exceptions=True)
    logger.info("Cancelled %d in-flight notification dispatch task(s)", len(pending))
  return len(pending)


def _log_task_error(task: asyncio.Task[DispatchSummary | None]) -> None:
  """Log background task exceptions to avoid silent dispatch failures."""
  if task.cancelled():
    logger.warning("Background notification dispatch task was cancelled")
    return
  try:
    _ = task.result()
  except Exception as exc:  # noqa: BLE001
    logger.error("Background notification dispatch task failed: %s", exc, exc_info=True)

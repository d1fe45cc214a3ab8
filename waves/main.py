from __future__ import annotations

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError

from waves.api.routes import messages, profiles, tasks
from waves.core.exceptions import global_exception_handler, http_exception_handler, notification_error_handler, request_validation_exception_handler
from waves.core.lifespan import lifespan
from waves.core.middleware import RequestLoggingMiddleware
from waves.notifications.contracts import NotificationError

app = FastAPI(lifespan=lifespan, docs_url=None, redoc_url=None, openapi_url=None)

app.add_exception_handler(Exception, global_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(NotificationError, notification_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)

app.add_middleware(RequestLoggingMiddleware)


@app.get("/health", include_in_schema=False)
async def health_check() -> dict[str, str]:
  """Return a simple health status."""
  return {"status": "ok"}


app.include_router(tasks.router, prefix="/internal")
app.include_router(messages.router, prefix="/internal")
app.include_router(profiles.router, prefix="/internal")

import logging
from typing import Any

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from waves.notifications.contracts import NotificationError

logger = logging.getLogger("uvicorn.error")

_STATUS_BY_ERROR_CODE = {
  "NOT_FOUND": status.HTTP_404_NOT_FOUND,
  "EVENT_NOT_FOUND": status.HTTP_404_NOT_FOUND,
  "MESSAGE_NOT_FOUND": status.HTTP_404_NOT_FOUND,
  "PROFILE_NOT_FOUND": status.HTTP_404_NOT_FOUND,
  "NOT_EVENT_ORGANIZER": status.HTTP_403_FORBIDDEN,
  "EMPTY_MESSAGE": 422,
}


def _error_payload(detail: Any, *, request_id: str | None = None) -> dict[str, Any]:
  """Build an error payload, attaching the request id so clients can quote it."""
  payload: dict[str, Any] = {"detail": detail}
  if request_id:
    payload["requestId"] = request_id
  return payload


def _sanitize_validation_errors(errors: Any) -> list[dict[str, Any]]:
  """Return validation errors without raw input payloads."""
  sanitized: list[dict[str, Any]] = []
  for error in errors:
    scrubbed = {key: value for key, value in error.items() if key != "input"}
    # ctx can hold exception instances that are not JSON serializable.
    if "ctx" in scrubbed and isinstance(scrubbed["ctx"], dict):
      scrubbed["ctx"] = {key: str(value) for key, value in scrubbed["ctx"].items() if key != "input"}
    sanitized.append(scrubbed)

  return sanitized


def status_for_error_code(code: str) -> int:
  return _STATUS_BY_ERROR_CODE.get(code, status.HTTP_400_BAD_REQUEST)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
  """Global exception handler to catch unhandled errors."""
  request_id = getattr(request.state, "request_id", None)
  logger.error("Global exception request_id=%s path=%s error_type=%s", request_id, request.url.path, type(exc).__name__, exc_info=True)
  return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=_error_payload("Internal Server Error", request_id=request_id))


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
  """Log request validation errors for debugging without leaking payloads."""
  request_id = getattr(request.state, "request_id", None)
  sanitized_errors = _sanitize_validation_errors(exc.errors())
  logger.warning("Request validation failed request_id=%s path=%s method=%s errors=%s", request_id, request.url.path, request.method, sanitized_errors)
  return JSONResponse(status_code=422, content=_error_payload(sanitized_errors, request_id=request_id))


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
  """Handle FastAPI HTTPExceptions while hiding 5xx diagnostics from callers."""
  request_id = getattr(request.state, "request_id", None)
  if exc.status_code >= 500:
    logger.error("HTTPException request_id=%s path=%s status_code=%s detail=%s", request_id, request.url.path, exc.status_code, exc.detail, exc_info=True)
    return JSONResponse(status_code=exc.status_code, content=_error_payload("Internal Server Error", request_id=request_id))

  return JSONResponse(status_code=exc.status_code, content=_error_payload(exc.detail, request_id=request_id), headers=getattr(exc, "headers", None))


async def notification_error_handler(request: Request, exc: NotificationError) -> JSONResponse:
  """Map domain errors to client responses carrying their machine-readable code."""
  request_id = getattr(request.state, "request_id", None)
  status_code = status_for_error_code(exc.code)
  logger.info("Domain error request_id=%s path=%s code=%s status_code=%s", request_id, request.url.path, exc.code, status_code)
  return JSONResponse(status_code=status_code, content=_error_payload({"code": exc.code, "message": exc.message}, request_id=request_id))

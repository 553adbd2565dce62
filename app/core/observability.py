import json
import logging
import time
import traceback
from contextvars import ContextVar
from typing import Any
from uuid import uuid4

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from app.core.config import settings

REQUEST_ID_HEADER = "X-Request-ID"
# Health and readiness checks are only logged at DEBUG.
QUIET_PATHS = frozenset({"/health", "/ready"})

request_id_ctx: ContextVar[str] = ContextVar("request_id", default="-")
logger = logging.getLogger("garment_erp.api")


def setup_observability() -> None:
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(settings.log_level)
    logger.propagate = False


def get_request_id() -> str:
    return request_id_ctx.get()


def log_event(event: str, *, level: int = logging.INFO, **fields: Any) -> None:
    """Emit one JSON log line tagged with the current request id."""
    if not logger.isEnabledFor(level):
        return
    fields.setdefault("request_id", get_request_id())
    logger.log(level, json.dumps({"event": event, **fields}, default=str))


def _request_id_for(request: Request) -> str:
    return getattr(request.state, "request_id", None) or get_request_id()


def error_envelope(
    request: Request,
    status_code: int,
    message: str,
    *,
    details: list[dict] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        headers=headers,
        content={
            "success": False,
            "message": message,
            "request_id": _request_id_for(request),
            "details": details,
        },
    )


async def request_logging_middleware(request: Request, call_next):
    request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())
    request.state.request_id = request_id
    token = request_id_ctx.set(request_id)
    started = time.perf_counter()
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
    finally:
        log_event(
            "request",
            level=logging.DEBUG if request.url.path in QUIET_PATHS else logging.INFO,
            method=request.method,
            path=request.url.path,
            status_code=status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        request_id_ctx.reset(token)


async def http_exception_handler(request: Request, exc: HTTPException):
    if isinstance(exc.detail, str):
        return error_envelope(request, exc.status_code, exc.detail, headers=exc.headers)
    return error_envelope(request, exc.status_code, "HTTP error", details=exc.detail, headers=exc.headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = []
    for err in exc.errors():
        # Drop the "body"/"query"/"path" prefix; items.0.quantity reads better.
        location = [str(part) for part in err.get("loc", ()) if part not in {"body", "query", "path"}]
        details.append(
            {
                "field": ".".join(location) or "body",
                "message": err.get("msg", "Invalid value"),
                "type": err.get("type"),
            }
        )
    return error_envelope(request, 400, "Validation failed", details=details)


async def integrity_error_handler(request: Request, exc: IntegrityError):
    # A unique or foreign key constraint fired after the route's own checks,
    # usually two writers racing. get_db rolls the session back on close.
    log_event(
        "db.integrity_error",
        level=logging.WARNING,
        path=request.url.path,
        error=str(exc.orig),
    )
    return error_envelope(request, 400, "Request conflicts with existing data")


async def unhandled_exception_handler(request: Request, exc: Exception):
    log_event(
        "unhandled_exception",
        level=logging.ERROR,
        request_id=_request_id_for(request),
        method=request.method,
        path=request.url.path,
        error=str(exc),
        traceback="".join(traceback.format_exception(type(exc), exc, exc.__traceback__, limit=10)),
    )
    return error_envelope(request, 500, "Internal server error")

"""Structured JSON logging for the HR portal.

Each record is one JSON object on stdout. ``RequestLoggingMiddleware`` emits a
``request`` line per call and tags it with the caller's id and role; auth and
authorization outcomes go to the ``security`` logger via
:func:`log_security_event`.
"""

from __future__ import annotations

import json
import logging
import sys
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional, Tuple

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from hrportal.core.security import read_token_identity

REQUEST_ID_HEADER = "X-Request-Id"

_CONTEXT_KEYS = (
    "request_id",
    "user_id",
    "role",
    "client",
    "path",
    "method",
    "status_code",
    "latency_ms",
    "event",
)
_ENTITY_KEYS = ("timesheet_id", "project_id", "target_user_id")

security_logger = logging.getLogger("security")


class JsonFormatter(logging.Formatter):
    def __init__(self, service: Optional[str] = None, environment: Optional[str] = None) -> None:
        super().__init__()
        self._static = {key: value for key, value in (("service", service), ("env", environment)) if value}

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **self._static,
        }
        for key in _CONTEXT_KEYS + _ENTITY_KEYS:
            value = getattr(record, key, None)
            if value is not None:
                payload[key] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(
    level: str = "INFO",
    *,
    service: Optional[str] = None,
    environment: Optional[str] = None,
) -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter(service=service, environment=environment))
    logging.basicConfig(level=level.upper(), handlers=[handler], force=True)
    # The request line below replaces uvicorn's access log.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def _identity(request: Request) -> Tuple[Optional[int], Optional[str]]:
    """(user_id, role) for log lines, preferring what authentication already resolved."""
    user_id = getattr(request.state, "user_id", None)
    if user_id is not None:
        return user_id, getattr(request.state, "role", None)
    scheme, _, token = (request.headers.get("authorization") or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None, None
    return read_token_identity(token.strip())


def log_security_event(event: str, request: Request, *, level: int = logging.INFO, **fields: Any) -> None:
    """Record an authentication or authorization outcome on the ``security`` logger."""
    extra: Dict[str, Any] = {
        "event": event,
        "request_id": getattr(request.state, "request_id", None) or request.headers.get("x-request-id"),
        "path": request.url.path,
        "method": request.method,
        "client": request.client.host if request.client else None,
    }
    extra.update(fields)
    security_logger.log(level, event, extra=extra)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app,
        logger_name: str = "request",
        quiet_paths: Iterable[str] = ("/healthz", "/metrics"),
    ) -> None:
        super().__init__(app)
        self.logger = logging.getLogger(logger_name)
        self.quiet_paths = frozenset(quiet_paths)

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        request.state.request_id = request_id
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            self.logger.exception("unhandled_exception", extra=self._fields(request, start))
            raise

        fields = self._fields(request, start, status_code=response.status_code)
        level = logging.DEBUG if request.url.path in self.quiet_paths else logging.INFO
        self.logger.log(level, "request", extra=fields)

        if response.status_code == 403 and fields["user_id"] is not None:
            log_security_event(
                "forbidden",
                request,
                level=logging.WARNING,
                user_id=fields["user_id"],
                role=fields["role"],
                status_code=response.status_code,
            )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    @staticmethod
    def _fields(request: Request, start: float, **more: Any) -> Dict[str, Any]:
        user_id, role = _identity(request)
        fields: Dict[str, Any] = {
            "request_id": request.state.request_id,
            "path": request.url.path,
            "method": request.method,
            "latency_ms": round((time.perf_counter() - start) * 1000, 2),
            "user_id": user_id,
            "role": role,
        }
        fields.update(more)
        return fields

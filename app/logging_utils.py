"""
JSON logging and the per-request log line.

Every record carries ts, level and, inside a request, the request_id.
Message routes add operation/result/ids via log_message_outcome().
"""

import logging
import sys
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from pythonjsonlogger import jsonlogger

from app.metrics import record_http_request


request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

_UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record.setdefault("ts", datetime.now(timezone.utc).isoformat(timespec="milliseconds"))
        log_record["level"] = record.levelname
        request_id = request_id_ctx.get()
        if request_id and "request_id" not in log_record:
            log_record["request_id"] = request_id


def setup_logging(log_level: str = "INFO") -> logging.Logger:
    """Send root and uvicorn logs to stdout as JSON."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(CustomJsonFormatter("%(ts)s %(level)s %(name)s %(message)s"))

    root = logging.getLogger()
    root.setLevel(log_level.upper())
    root.handlers = [handler]

    for name in _UVICORN_LOGGERS:
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers = [handler]
        uvicorn_logger.propagate = False

    # RequestLoggingMiddleware writes the access line
    logging.getLogger("uvicorn.access").disabled = True
    return root


def _route_path(request: Request) -> str:
    """Matched route template, so ids don't end up as metric labels."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """One log line and one metrics sample per request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        token = request_id_ctx.set(request_id)
        logger = logging.getLogger("app.requests")
        start = time.perf_counter()
        log_data = {"request_id": request_id, "method": request.method, "path": request.url.path}

        try:
            try:
                response = await call_next(request)
            except Exception:
                log_data.update(status=500, latency_ms=round((time.perf_counter() - start) * 1000, 2))
                logger.exception("Request failed", extra=log_data)
                raise

            latency = time.perf_counter() - start
            response.headers["X-Request-ID"] = request_id
            if request.url.path != "/metrics":
                record_http_request(request.method, _route_path(request), response.status_code, latency)

            log_data.update(status=response.status_code, latency_ms=round(latency * 1000, 2))
            log_data.update(getattr(request.state, "outcome_log_data", {}))

            if response.status_code >= 500:
                level = logging.ERROR
            elif response.status_code >= 400:
                level = logging.WARNING
            else:
                level = logging.INFO
            logger.log(level, "Request completed", extra=log_data)
            return response
        finally:
            request_id_ctx.reset(token)


def log_message_outcome(
    request: Request,
    operation: str,
    result: str,
    organization_id: Optional[str] = None,
    message_id: Optional[str] = None,
) -> None:
    """Attach a create/update/delete outcome to this request's log line."""
    data = {"operation": operation, "result": result}
    if organization_id is not None:
        data["organization_id"] = organization_id
    if message_id is not None:
        data["message_id"] = message_id
    request.state.outcome_log_data = data

"""
Logging setup with per-request ids.

The request id lives in a ContextVar so log lines emitted anywhere during a
request can carry it without threading it through every call.
"""

from __future__ import annotations

import logging
import sys
import uuid
from contextvars import ContextVar
from typing import Optional

request_id_context: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(request_id)s] %(name)s: %(message)s"


class RequestIdFilter(logging.Filter):
    """Stamp `record.request_id` from the current context ("-" outside a request)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_context.get() or "-"
        return True


def set_request_id(request_id: Optional[str] = None) -> str:
    if not request_id:
        request_id = uuid.uuid4().hex[:12]
    request_id_context.set(request_id)
    return request_id


def get_request_id() -> Optional[str]:
    return request_id_context.get()


def setup_logging(log_level: str = "INFO") -> None:
    level = str(log_level).upper()
    app_logger = logging.getLogger("stockdb")
    app_logger.setLevel(level)

    # Import-time setup can run more than once (reload, tests).
    if any(isinstance(f, RequestIdFilter) for h in app_logger.handlers for f in h.filters):
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.addFilter(RequestIdFilter())
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    app_logger.addHandler(handler)

    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

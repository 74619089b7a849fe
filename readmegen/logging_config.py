"""
Structured JSON logging with per-request correlation fields.

Usage:
    Call ``setup_logging()`` once at startup.
    The middleware in ``main.py`` sets ``request_id`` and ``collect()`` sets
    ``repository`` in ``contextvars`` as soon as the URL is parsed, so every
    later log line carries both, including lines emitted from concurrent
    candidate-file fetches.
"""

from __future__ import annotations

import contextvars
import json
import logging
import sys
import uuid
from datetime import datetime, timezone

request_id_ctx: contextvars.ContextVar[str] = contextvars.ContextVar(
    "request_id", default="-"
)
repository_ctx: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "repository", default=None
)


class JSONFormatter(logging.Formatter):
    """Emit each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": request_id_ctx.get(),
        }
        repository = repository_ctx.get()
        if repository:
            log_entry["repository"] = repository
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


def setup_logging(level: str = "INFO") -> None:
    """Route the root logger to stdout as JSON, replacing prior handlers."""
    root = logging.getLogger()
    root.setLevel(level.upper())

    for h in root.handlers[:]:
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    root.addHandler(handler)

    # httpx logs each outbound call at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def new_request_id() -> str:
    """Generate and return a new request id (short UUID)."""
    return uuid.uuid4().hex[:12]

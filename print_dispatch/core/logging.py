"""
Logging utilities for Print Dispatch.

- RequestIdFilter attaches request_id and path (when in a Flask request context)
- JsonFormatter emits structured logs when PRINTDISPATCH_JSON_LOGS=true,
  including job flow fields (event, job_id, printer_id, operation)
- configure_logging() initializes root logging with journald or console and
  integrates with Flask's logger
"""

from __future__ import annotations

import logging
import os
from typing import Optional

# Structured fields passed via `extra=` that the JSON formatter carries over.
EVENT_FIELDS = ("event", "job_id", "printer_id", "operation")


class RequestIdFilter(logging.Filter):
    """
    Attach request-scoped metadata (request_id, path) to log records.
    Safely degrades outside of a Flask request context.
    """

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        from flask import g, has_request_context, request  # lazy import

        if has_request_context():
            record.request_id = getattr(g, "request_id", "-")
            record.path = request.path
        else:
            record.request_id = "-"
            record.path = "-"
        return True


class JsonFormatter(logging.Formatter):
    """
    JSON formatter with timestamp, level, message, request_id, path and any
    job flow fields attached to the record.
    """

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        from json import dumps

        base = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "msg": record.getMessage(),
            "request_id": getattr(record, "request_id", "-"),
        }
        path = getattr(record, "path", None)
        if path is not None:
            base["path"] = path
        for key in EVENT_FIELDS:
            val = getattr(record, key, None)
            if val is not None:
                base[key] = val
        if record.exc_info:
            base["exc"] = self.formatException(record.exc_info)
        return dumps(base, ensure_ascii=False)


def configure_logging(app_name: Optional[str] = None) -> logging.Logger:
    """
    Configure root logging for the application.

    Behavior:
    - Sets root logger to INFO
    - Clears any existing handlers to avoid duplicates on reload
    - Chooses JSON or plain formatter based on PRINTDISPATCH_JSON_LOGS
    - Prefer systemd's JournalHandler, fallback to StreamHandler
    - Adds RequestIdFilter so formatters can reference %(request_id)s
    - Ensures the Flask app logger (named after app_name) propagates to root
      with no handlers of its own

    Returns the configured root logger.
    """
    root = logging.getLogger()
    root.setLevel(logging.INFO)

    # Avoid duplicate logs in dev reloads or repeated factory calls
    root.handlers = []

    json_logs = os.environ.get("PRINTDISPATCH_JSON_LOGS", "false").lower() in ("1", "true", "yes")
    formatter: logging.Formatter
    if json_logs:
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter("[%(asctime)s] %(levelname)s %(request_id)s %(message)s")

    # Prefer systemd journal when available
    try:
        from systemd.journal import JournalHandler  # type: ignore

        handler: logging.Handler = JournalHandler()
    except ImportError:
        handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    handler.addFilter(RequestIdFilter())
    root.addHandler(handler)

    if app_name:
        app_logger = logging.getLogger(app_name)
        app_logger.handlers = []
        app_logger.propagate = True

    return root


__all__ = ["EVENT_FIELDS", "JsonFormatter", "RequestIdFilter", "configure_logging"]

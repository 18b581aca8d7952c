"""
Log output for CodePulse.

Everything goes to stdout through a single root handler. With
ENVIRONMENT=production each record is one JSON object per line, shaped for
Cloud Logging (`severity` and `message` at the top level). Any other
environment gets plain text with the worker thread name, so interleaved job
workers stay readable in a terminal.

Job-scoped records carry `extra={"job_id": ...}`; the JSON output lifts it to
a top-level key.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone

TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(threadName)s %(name)s: %(message)s"
TEXT_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Chatty below WARNING: per-request access lines, SQL echo, outbound calls
QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "httpx")


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload = {
            "timestamp": created.isoformat(),
            "severity": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "thread": record.threadName,
        }
        job_id = getattr(record, "job_id", None)
        if job_id is not None:
            payload["job_id"] = job_id
        if record.exc_info and record.exc_info[0] is not None:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def _build_formatter(environment: str) -> logging.Formatter:
    if environment == "production":
        return JSONFormatter()
    return logging.Formatter(TEXT_FORMAT, datefmt=TEXT_DATEFMT)


def setup_logging() -> None:
    """Install the stdout handler. Safe to call again; old handlers are dropped."""
    level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    environment = os.getenv("ENVIRONMENT", "development").lower()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_build_formatter(environment))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level_name, logging.INFO))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

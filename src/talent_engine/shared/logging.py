"""
Structured JSON logging.

Every document carries the request correlation id and, inside a retention
or offboarding pass, the tenant being processed.
"""

import json
import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any

from talent_engine.config import get_settings

correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)
tenant_id_var: ContextVar[str | None] = ContextVar("tenant_id", default=None)

# LogRecord attributes that are never copied into the JSON document.
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__
) | {"message", "asctime"}

_QUIET_LOGGERS = ("httpx", "httpcore")
_SQLALCHEMY_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "sqlalchemy.dialects")


@contextmanager
def tenant_context(tenant_id: str) -> Iterator[None]:
    """Tag every log record emitted inside the block with ``tenant_id``."""
    token = tenant_id_var.set(tenant_id)
    try:
        yield
    finally:
        tenant_id_var.reset(token)


class StructuredFormatter(logging.Formatter):
    """Render a record as one JSON line.

    Fields passed through ``extra={...}`` are merged in; a field that
    collides with a base key is emitted as ``extra_<key>``.
    """

    def format(self, record: logging.LogRecord) -> str:
        document: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, var in (("correlation_id", correlation_id_var), ("tenant_id", tenant_id_var)):
            value = var.get()
            if value:
                document[key] = value

        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRS:
                continue
            document[f"extra_{key}" if key in document and key != "tenant_id" else key] = value

        if record.exc_info:
            document["exception"] = self.formatException(record.exc_info)

        return json.dumps(document, default=str)


def _stdout_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter())
    return handler


def get_logger(name: str) -> logging.Logger:
    """Return a module logger writing JSON to stdout.

    Args:
        name: Logger name (typically __name__).
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.addHandler(_stdout_handler())
        logger.propagate = False
    logger.setLevel(get_settings().log_level.upper())
    return logger


def setup_logging() -> None:
    """Install the JSON handler on the root logger and quiet chatty libraries."""
    root = logging.getLogger()
    root.setLevel(get_settings().log_level.upper())
    root.handlers = [_stdout_handler()]

    # SQLALCHEMY_LOG_LEVEL=INFO/DEBUG turns on statement logging.
    sqlalchemy_level = os.getenv("SQLALCHEMY_LOG_LEVEL", "").strip().upper() or "WARNING"
    for name in _SQLALCHEMY_LOGGERS:
        logging.getLogger(name).setLevel(sqlalchemy_level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

"""
inala/core/logging.py

Purpose: Logging configuration

- JSON lines in production, coloured single lines elsewhere
- Every record can carry tenant / user / entity context
- LogContext scopes that context to a block of work (a sale, a payout)
"""

import logging
import sys
import json
from contextvars import ContextVar
from datetime import datetime
from typing import Dict, Any
from inala.core.config import settings


CONTEXT_FIELDS = ("tenant_id", "user_id", "entity_id", "action")

# Drivers and servers that are chatty at INFO
QUIET_LOGGERS = ("httpx", "motor", "pymongo", "uvicorn.access")

LEVEL_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
RESET = "\033[0m"


def _record_context(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        field: getattr(record, field)
        for field in CONTEXT_FIELDS
        if getattr(record, field, None) is not None
    }


class StructuredFormatter(logging.Formatter):
    """
    One JSON object per line, tagged with the deployment environment
    and whatever tenant context the record carries.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.utcfromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
            "environment": settings.ENVIRONMENT,
            **_record_context(record),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class DevelopmentFormatter(logging.Formatter):
    """Readable coloured output for local work."""

    def format(self, record: logging.LogRecord) -> str:
        color = LEVEL_COLORS.get(record.levelname, RESET)
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")

        message = f"{color}[{timestamp}] {record.levelname:<8}{RESET} {record.name}: {record.getMessage()}"

        context = _record_context(record)
        if context:
            message += " [" + " ".join(f"{key}={value}" for key, value in context.items()) + "]"

        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)

        return message


def setup_logging() -> logging.Logger:
    """
    Installs a single stdout handler on the root logger.
    Safe to call more than once.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter() if settings.is_production else DevelopmentFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger = logging.getLogger("inala")
    logger.info(f"Logging configured ({settings.ENVIRONMENT}, level={settings.LOG_LEVEL})")
    return logger


def get_logger(name: str) -> logging.Logger:
    """Returns a logger under the `inala` namespace, wired for LogContext."""
    logger = logging.getLogger(name if name.startswith("inala") else f"inala.{name}")
    if not any(isinstance(f, _ContextFilter) for f in logger.filters):
        logger.addFilter(_ContextFilter())
    return logger


_log_context: ContextVar[Dict[str, Any]] = ContextVar("inala_log_context", default={})


class _ContextFilter(logging.Filter):
    """Fills in context fields the call site did not pass via `extra`."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _log_context.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


class LogContext:
    """
    Stamps records logged inside the block with the given context.
    Scoped to the current task, so concurrent requests do not mix.

    Usage:
        with LogContext(tenant_id="inala-butchery", entity_id="tx_01"):
            logger.info("Sale recorded")
    """

    def __init__(self, **context):
        self.context = {k: v for k, v in context.items() if v is not None}
        self._token = None

    def __enter__(self):
        self._token = _log_context.set({**_log_context.get(), **self.context})
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        _log_context.reset(self._token)

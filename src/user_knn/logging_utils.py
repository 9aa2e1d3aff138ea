from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Iterable


class JsonFormatter(logging.Formatter):
    """
    Structured JSON formatter: one JSON object per log record.

    Only the whitelisted ``extra`` keys below are copied into the payload,
    so arbitrary LogRecord internals never leak into the output.
    """

    _extra_keys: Iterable[str] = (
        # Observability / HTTP request context
        "event",
        "request_id",
        "method",
        "path",
        "status_code",
        "duration_ms",
        "code",
        # Domain context
        "user_id",
        "limit",
        "results",
        "neighbors",
        "users",
        "items",
        "rows",
        "columns",
        "column",
        "source",
        "exception_type",
        # Infra
        "attempt",
        "collection",
        "env_var",
        "missing_columns",
        "max_retries",
        "db_name",
        "skipped",
        "error_type",
    )

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in self._extra_keys:
            if hasattr(record, key):
                payload[key] = getattr(record, key)

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logger(name: str = "user_knn", level: int | str = logging.INFO) -> logging.Logger:
    """
    Configure and return a logger with JSON formatting.

    The logger gets exactly one stdout handler and does not propagate, so
    repeated calls never duplicate output.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())

    logger.handlers = [handler]
    logger.propagate = False
    return logger


def set_package_log_level(level: int | str, package: str = "src.user_knn") -> None:
    """
    Apply ``level`` to the package logger and every module logger below it.

    Module loggers set their own level in :func:`configure_logger`, so
    changing the parent alone would not reach them.
    """
    logging.getLogger(package).setLevel(level)
    for name, existing in logging.root.manager.loggerDict.items():
        if name.startswith(package + ".") and isinstance(existing, logging.Logger):
            existing.setLevel(level)

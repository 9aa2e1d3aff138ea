from __future__ import annotations

import logging
import os
import sys

from src.user_knn.logging_utils import JsonFormatter


class DropHealthcheckAccessLogs(logging.Filter):
    """Filter that removes uvicorn access logs for the probe endpoints."""
    _paths = ("/v1/health", "/v1/ready")

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        return not any(path in message for path in self._paths)


def configure_app_logging(level: int | str | None = None) -> None:
    """
    Route every module's logs (root logger included) through one JSON
    stdout handler. The level defaults to ``USER_KNN_LOG_LEVEL`` or INFO.
    """
    if level is None:
        level = os.getenv("USER_KNN_LOG_LEVEL", "INFO").upper()

    root = logging.getLogger()
    root.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())

    root.handlers = [handler]

    uvicorn_access = logging.getLogger("uvicorn.access")
    if not any(isinstance(f, DropHealthcheckAccessLogs) for f in uvicorn_access.filters):
        uvicorn_access.addFilter(DropHealthcheckAccessLogs())

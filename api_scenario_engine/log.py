"""Structured JSON logging for the analysis engine."""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from .config import Settings

PACKAGE_LOGGER = "api_scenario_engine"

_RECORD_FIELDS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        for key, value in vars(record).items():
            if key not in _RECORD_FIELDS and not key.startswith("_"):
                entry[key] = value
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = str(record.exc_info[1])
        return json.dumps(entry, default=str)


def setup_logging(settings: Settings | None = None) -> logging.Logger:
    """Attach a single stream handler to the package logger.

    Args:
        settings: Log level and format; read from the environment when omitted.

    Returns:
        The configured package logger.
    """
    settings = settings or Settings.from_env()
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(getattr(logging, settings.log_level, logging.INFO))
    logger.handlers.clear()

    handler = logging.StreamHandler()
    if settings.log_json:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    logger.addHandler(handler)
    return logger

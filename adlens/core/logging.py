"""AdLens — Structured JSON Logging.

One JSON object per line on stdout. Upstream fetch logs carry the
collection, page, attempt and status code as top-level fields so retries
can be filtered per collection.
"""

import logging
import json
import sys
from datetime import datetime, timezone
from adlens.config import settings

LOG_CONTEXT_FIELDS = ("collection", "page", "attempt", "status_code")


class JSONFormatter(logging.Formatter):
    """Formats a record as JSON, lifting known context fields to the top level."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        # Upstream fetch context passed via `extra=`
        for key in LOG_CONTEXT_FIELDS:
            if hasattr(record, key):
                log_entry[key] = getattr(record, key)
        return json.dumps(log_entry)


def get_logger(name: str) -> logging.Logger:
    """Return a named logger with structured JSON handler."""
    logger = logging.getLogger(f"adlens.{name}")
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)
    logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    return logger

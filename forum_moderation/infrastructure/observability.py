"""Structured Logging: JSON formatter and setup for moderation audit trails.

Invariants:
    - Every record carries timestamp, level, logger name and message
    - Moderation extras (actor_id, target_user_id, sanction_id, error_code) surface when present
    - Sweep summaries carry their counters (processed, updated_users, errors, execution_time_ms)

Design Decisions:
    - Stdlib logging with a JSON formatter; setup_logging runs once from the lifespan
    - Text format kept for local development (LOG_FORMAT=text)
"""

import logging
import json
from datetime import datetime, timezone

EXTRA_FIELDS = (
    "actor_id", "target_user_id", "sanction_id", "error_code", "path",
    "processed", "updated_users", "errors", "execution_time_ms",
)


class JSONFormatter(logging.Formatter):

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in EXTRA_FIELDS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", fmt: str = "json"):
    """Configure root logging for the application."""
    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
        ))
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))

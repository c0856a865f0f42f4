from __future__ import annotations

import json
import logging
import sys
from typing import Any, Dict


APP_LOGGER = "rtfmon"

_RESERVED = {
    "args", "msg", "levelname", "levelno", "pathname", "filename", "module",
    "exc_info", "exc_text", "stack_info", "lineno", "funcName", "created",
    "msecs", "relativeCreated", "thread", "threadName", "processName", "process",
    "name", "taskName",
}


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: Dict[str, Any] = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S%z"),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        # Attach any extra contextual fields
        for key, value in record.__dict__.items():
            if key in _RESERVED:
                continue
            payload[key] = value
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", third_party_level: str = "WARNING") -> None:
    """Send JSON lines to stdout; ``level`` applies to rtfmon loggers only."""
    root = logging.getLogger()
    root.setLevel(third_party_level.upper())
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    root.handlers.clear()
    root.addHandler(handler)

    logging.getLogger(APP_LOGGER).setLevel(level.upper())

    # Connection pool chatter from requests
    noisy = logging.getLogger("urllib3")
    noisy.propagate = False
    noisy.setLevel(logging.WARNING)

"""
Structured logging utilities for application-wide logging
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional

from .config import LoggingSettings


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging"""

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "process": record.process,
        }

        # Add exception info if present
        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        # Add extra fields if present
        if hasattr(record, "extra_data"):
            log_obj.update(record.extra_data)

        return json.dumps(log_obj, default=str)


TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(settings: Optional[LoggingSettings] = None) -> logging.Logger:
    """Attach a stdout handler to the ``homecare`` logger.

    Safe to call more than once; the handler is only installed the first time.
    """
    settings = settings or LoggingSettings()
    logger = logging.getLogger("homecare")
    logger.setLevel(settings.level)

    if not any(getattr(h, "_homecare_handler", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler._homecare_handler = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    else:
        handler = next(h for h in logger.handlers if getattr(h, "_homecare_handler", False))

    if settings.format == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    return logger

"""
Logging setup for the blog data-access layer.

Library modules only create `logging.getLogger(__name__)` loggers; the
process entry point decides the output format once:

    from blogdata.core.observability import configure_logging

    configure_logging(settings.app_log_level, structured=True)
"""

import json
import logging
from datetime import UTC, datetime
from typing import Any

from blogdata.core.errors import BlogDataError

PLAIN_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

# Attributes set by LogRecord itself; anything else arrived through `extra=`.
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class StructuredFormatter(logging.Formatter):
    """
    Render each record as one JSON object.

    Keys: timestamp (UTC, ISO 8601), level, logger, message, service, source
    (file/line/function), `error` when the record carries an exception, and
    `extra` for fields passed through `logger.x(..., extra={...})`. A
    BlogDataError's `details` are copied into `error.details`.
    """

    def __init__(self, service: str | None = None) -> None:
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "source": {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            },
        }
        if self.service:
            entry["service"] = self.service

        if record.exc_info and record.exc_info[1] is not None:
            exc = record.exc_info[1]
            error: dict[str, Any] = {"type": type(exc).__name__, "message": str(exc)}
            if isinstance(exc, BlogDataError) and exc.details:
                error["details"] = exc.details
            entry["error"] = error

        extra = {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRS}
        if extra:
            entry["extra"] = extra

        return json.dumps(entry, default=str)


def configure_logging(
    level: str = "INFO", *, structured: bool = True, service: str | None = None
) -> None:
    """
    Replace the root handlers with a single stderr handler.

    Args:
        level: Level name; unknown names fall back to INFO
        structured: JSON lines when True, PLAIN_FORMAT text otherwise
        service: Value of the `service` key in JSON output
    """
    handler = logging.StreamHandler()
    handler.setFormatter(
        StructuredFormatter(service) if structured else logging.Formatter(PLAIN_FORMAT)
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.getLevelName(level.upper()) if _known_level(level) else logging.INFO)
    root.addHandler(handler)


def _known_level(level: str) -> bool:
    return isinstance(logging.getLevelName(level.upper()), int)

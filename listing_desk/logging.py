"""Logging setup for listing-desk.

Action log lines carry their context as ``extra`` attributes::

    logger.info("feature succeeded", extra={"action": "feature", "targets": ["p1"]})

The standard formatter appends that context to the message; the JSON
formatter lifts it to top-level keys so log pipelines can filter on it.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, TextIO

ACTION_CONTEXT_KEYS = ("action", "targets", "role", "owner_id", "error_kind", "compensated")

QUIET_LOGGERS = ("confluent_kafka", "psycopg", "faker")


def action_context(record: logging.LogRecord) -> dict[str, Any]:
    """Action context attached to ``record`` via ``extra``, in key order."""
    return {
        key: getattr(record, key)
        for key in ACTION_CONTEXT_KEYS
        if getattr(record, key, None) is not None
    }


class ActionFormatter(logging.Formatter):
    """Plain-text formatter with a trailing ``[key=value ...]`` context block."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = action_context(record)
        if not context:
            return line
        pairs = " ".join(
            f"{key}={','.join(value) if isinstance(value, (list, tuple)) else value}"
            for key, value in context.items()
        )
        return f"{line} [{pairs}]"


class JsonFormatter(logging.Formatter):
    """One JSON object per line, action context as top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log_data.update(action_context(record))

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(
    level: str = "INFO",
    format_type: str = "standard",
    stream: TextIO | None = None,
) -> None:
    """Configure the root logger for listing-desk.

    Parameters
    ----------
    level : str
        Log level name; unknown names fall back to INFO.
    format_type : str
        ``"standard"`` or ``"json"``.
    stream : TextIO | None
        Where to write; stdout when ``None``.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    formatter = JsonFormatter() if format_type == "json" else ActionFormatter()

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    logging.getLogger("listing_desk").setLevel(log_level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

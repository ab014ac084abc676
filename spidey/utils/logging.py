"""
JSON structured logging.

Emits one JSON object per record for machine parsing. Records logged while a
polling loop is active carry the connection name, so the pages, errors and
handler output of one crawler/parser pair can be followed in mixed output.
"""

import json
import logging
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

connection_var: ContextVar[str | None] = ContextVar("connection", default=None)


def set_connection(name: str) -> None:
    connection_var.set(name)


def get_connection() -> str | None:
    return connection_var.get()


def clear_connection() -> None:
    connection_var.set(None)


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        log_obj: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        current_connection = get_connection()
        if current_connection:
            log_obj["connection"] = current_connection

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_data"):
            log_obj["data"] = record.extra_data

        return json.dumps(log_obj, ensure_ascii=False, default=str)


def setup_json_logging(level: int = logging.INFO) -> None:
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter())
    root_logger.addHandler(handler)

"""Structured key=value logging for Portfolio Copilot.

Every module logs through ``get_logger(__name__)``. Records propagate to
the ``copilot`` package logger, which owns the single stdout handler, so a
request's lines share one format and one level.
"""

import json
import logging
import sys
from typing import Any

PACKAGE_LOGGER = "copilot"

# Fields every line starts with, in this order
_LEADING_FIELDS = ("timestamp", "level", "logger", "message")


def _render_value(value: Any) -> str:
    text = value if isinstance(value, str) else str(value)
    if not text or any(ch.isspace() or ch in '="' for ch in text):
        return json.dumps(text, ensure_ascii=False)
    return text


class StructuredFormatter(logging.Formatter):
    """Render records as ``key=value`` pairs, quoting values that need it."""

    def format(self, record: logging.LogRecord) -> str:
        fields: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = getattr(record, "request_id", None)
        if request_id:
            fields["request_id"] = request_id

        for key, value in (getattr(record, "extra_data", None) or {}).items():
            if value is None or key in _LEADING_FIELDS:
                continue
            fields[key] = value

        line = " ".join(f"{key}={_render_value(value)}" for key, value in fields.items())
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def _level_for_env() -> int:
    try:
        from copilot.core.config import get_settings

        return logging.DEBUG if get_settings().COPILOT_ENV == "dev" else logging.INFO
    except Exception:
        # Settings may be incomplete during import-time failures
        return logging.INFO


def configure_logging() -> logging.Logger:
    """Attach the stdout handler to the package logger once."""
    root = logging.getLogger(PACKAGE_LOGGER)
    if not any(isinstance(h.formatter, StructuredFormatter) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter())
        root.addHandler(handler)
        root.setLevel(_level_for_env())
    return root


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the package namespace.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger whose records reach the structured package handler
    """
    configure_logging()
    if name != PACKAGE_LOGGER and not name.startswith(f"{PACKAGE_LOGGER}."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)


def log_with_context(logger: logging.Logger, level: int, msg: str, **fields: Any) -> None:
    """Log ``msg`` with structured fields; ``request_id`` gets its own slot."""
    request_id = fields.pop("request_id", None)
    logger.log(level, msg, extra={"request_id": request_id, "extra_data": fields})

"""Structured logging configuration for dairychain.

Configurable via environment variables:
- LOG_LEVEL: Set log level (DEBUG, INFO, WARNING, ERROR). Default: INFO
- LOG_FORMAT: Set format ('text' or 'json'). Default: text

Stage code attaches simulation context through ``extra``:

    logger.info("Quota reached", extra={"stage": "collection", "tick": 42})

Both formatters lift ``stage`` and ``tick`` out of the extras so simulation
logs can be filtered per stage.

Usage:
    from dairychain.logging_config import configure_logging
    configure_logging()  # Call once at application startup
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import UTC, datetime
from typing import Any, ClassVar

LOGGER_NAMESPACE = "dairychain"

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RESERVED_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "thread",
        "threadName",
        "processName",
        "process",
        "message",
        "msecs",
        "relativeCreated",
        "taskName",
    }
)

# Simulation context promoted to first-class fields.
_CONTEXT_ATTRS = ("stage", "tick")


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {k: v for k, v in record.__dict__.items() if k not in _RESERVED_ATTRS}


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging.

    Produces one JSON object per line. Simulation context (stage, tick)
    is emitted at top level, remaining extras under "extra".
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Args:
            record: Log record to format.

        Returns:
            JSON string with log data.
        """
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extras = _extra_fields(record)
        for key in _CONTEXT_ATTRS:
            if key in extras:
                log_data[key] = extras.pop(key)

        if record.levelno in (logging.DEBUG, logging.ERROR, logging.CRITICAL):
            log_data["source"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if extras:
            log_data["extra"] = extras

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable formatter.

    Format: TIMESTAMP LEVEL [LOGGER] (stage@tick) MESSAGE
    For DEBUG/ERROR: includes file:line in source
    """

    LEVEL_COLORS: ClassVar[dict[str, str]] = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[1;31m",  # Bold red
    }
    RESET: ClassVar[str] = "\033[0m"

    def __init__(self, use_colors: bool = True) -> None:
        """Initialize formatter.

        Args:
            use_colors: Whether to use ANSI colors in output.
        """
        super().__init__()
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as text."""
        timestamp = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
        level = record.levelname

        if self.use_colors:
            color = self.LEVEL_COLORS.get(level, "")
            level_str = f"{color}{level:8s}{self.RESET}"
        else:
            level_str = f"{level:8s}"

        logger_name = record.name
        if logger_name.startswith(f"{LOGGER_NAMESPACE}."):
            logger_name = logger_name[len(LOGGER_NAMESPACE) + 1 :]

        parts = [f"{timestamp} {level_str} [{logger_name}]"]

        stage = getattr(record, "stage", None)
        tick = getattr(record, "tick", None)
        if stage is not None and tick is not None:
            parts.append(f" ({stage}@{tick})")
        elif stage is not None:
            parts.append(f" ({stage})")

        parts.append(f" {record.getMessage()}")

        if record.levelno in (logging.DEBUG, logging.ERROR, logging.CRITICAL):
            parts.append(f" ({record.filename}:{record.lineno})")

        if record.exc_info:
            parts.append(f"\n{self.formatException(record.exc_info)}")

        return "".join(parts)


def get_log_level() -> int:
    """Get log level from the LOG_LEVEL environment variable.

    Returns:
        Logging level constant, INFO when unset or unrecognised.
    """
    level_name = os.environ.get("LOG_LEVEL", "INFO").upper()
    level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "WARN": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    return level_map.get(level_name, logging.INFO)


def get_log_format() -> str:
    """Get log format ('text' or 'json') from the LOG_FORMAT environment variable."""
    format_name = os.environ.get("LOG_FORMAT", "text").lower()
    if format_name not in ("text", "json"):
        return "text"
    return format_name


def configure_logging(
    level: int | None = None,
    format_type: str | None = None,
    use_colors: bool = True,
) -> None:
    """Configure logging for the dairychain namespace.

    Should be called once at application startup before any logging.

    Args:
        level: Log level. If None, reads from LOG_LEVEL env var.
        format_type: Output format ('text' or 'json').
                     If None, reads from LOG_FORMAT env var.
        use_colors: Whether to use colors in text format (only if stderr is TTY).
    """
    if level is None:
        level = get_log_level()
    if format_type is None:
        format_type = get_log_format()

    handler = logging.StreamHandler(sys.stderr)
    if format_type == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(TextFormatter(use_colors=use_colors))

    root_logger = logging.getLogger(LOGGER_NAMESPACE)
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False

    # Route uvicorn request logs through the same handler when serving the API
    uvicorn_access = logging.getLogger("uvicorn.access")
    uvicorn_access.handlers.clear()
    uvicorn_access.addHandler(handler)
    uvicorn_access.setLevel(level)
    uvicorn_access.propagate = False

    root_logger.debug(
        "Logging configured: level=%s, format=%s",
        logging.getLevelName(level),
        format_type,
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the dairychain namespace.

    Args:
        name: Module name (typically __name__).

    Returns:
        Logger instance.
    """
    if not name.startswith(LOGGER_NAMESPACE):
        name = f"{LOGGER_NAMESPACE}.{name}"
    return logging.getLogger(name)

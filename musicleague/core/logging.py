"""
Music League Engine - Structured Logging

JSON output for deployed environments, a concise console format for local
work. Archive loads run concurrently, so per-load fields (archive, category)
live in a ContextVar rather than on a shared logger.

Usage:
    from musicleague.core.logging import LogContext

    logger = logging.getLogger(__name__)

    with LogContext(archive="coffee.zip", category="coffee-leagues"):
        logger.info("Loading archive")  # includes archive and category
"""

from __future__ import annotations

import json
import logging
import sys
import traceback
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Generator

# =============================================================================
# Context Variables
# =============================================================================

_log_context: ContextVar[Dict[str, Any]] = ContextVar("log_context", default={})

# Fields copied from `extra=` onto the JSON record when present
EXTRA_KEYS = (
    "archive",
    "category",
    "error_kind",
    "duration_ms",
    "rounds",
    "competitors",
    "dropped_rows",
    "count",
)


def get_current_context() -> Dict[str, Any]:
    """Get current logging context."""
    return _log_context.get().copy()


def clear_context() -> None:
    """Clear all context values."""
    _log_context.set({})


@contextmanager
def LogContext(**kwargs: Any) -> Generator[None, None, None]:
    """Add fields to every log record emitted inside the block."""
    previous = _log_context.get()
    merged = previous.copy()
    merged.update(kwargs)
    token = _log_context.set(merged)
    try:
        yield
    finally:
        _log_context.reset(token)


# =============================================================================
# Formatters
# =============================================================================


class StructuredJsonFormatter(logging.Formatter):
    """
    JSON log formatter.

    {"timestamp": "...", "level": "INFO", "logger": "musicleague.services.league_loader",
     "message": "League loaded", "archive": "coffee.zip", "rounds": 12, ...}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_dict: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log_dict.update(get_current_context())

        for key in EXTRA_KEYS:
            value = getattr(record, key, None)
            if value is not None:
                log_dict[key] = value

        if record.exc_info:
            log_dict["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": traceback.format_exception(*record.exc_info),
            }

        return json.dumps(log_dict, default=str, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """Single-line console output for development."""

    def format(self, record: logging.LogRecord) -> str:
        context = get_current_context()
        context_parts = [f"{key}={context[key]}" for key in ("category", "archive") if key in context]
        context_str = f" [{', '.join(context_parts)}]" if context_parts else ""

        timestamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
        line = f"[{timestamp}] {record.levelname:8} {record.name}:{context_str} {record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


# =============================================================================
# Split-Stream Handlers (stdout for INFO/DEBUG, stderr for WARNING+)
# =============================================================================


class _MaxLevelFilter(logging.Filter):
    """Filter that passes records at or below a maximum level."""

    def __init__(self, max_level: int):
        super().__init__()
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno <= self.max_level


def _create_split_handlers(formatter: logging.Formatter, level: int) -> list[logging.Handler]:
    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setLevel(level)
    stdout_handler.addFilter(_MaxLevelFilter(logging.INFO))
    stdout_handler.setFormatter(formatter)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(max(level, logging.WARNING))
    stderr_handler.setFormatter(formatter)

    return [stdout_handler, stderr_handler]


def configure_logging(level: str = "INFO", json_output: bool = False) -> None:
    """
    Configure root logging.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
        json_output: JSON lines if True, console format otherwise
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter: logging.Formatter = StructuredJsonFormatter() if json_output else ConsoleFormatter()
    for handler in _create_split_handlers(formatter, numeric_level):
        root_logger.addHandler(handler)

    # Quiet noisy loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

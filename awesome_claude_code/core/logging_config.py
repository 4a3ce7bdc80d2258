"""
Structured logging for awesome-claude-code.

Provides JSON-structured logging with per-run correlation IDs so every line
emitted by one install or upgrade can be grouped together.

Usage:
    from awesome_claude_code.core.logging_config import get_logger, run_context

    logger = get_logger(__name__)
    with run_context("upgrade"):
        logger.info("Planning", mode="force", files=12)

Configuration comes from ``awesome_claude_code.core.config.Settings``
(``ACC_LOG_LEVEL``, ``ACC_LOG_TO_FILE``, ``ACC_LOG_DIR``, ``ACC_PRETTY_JSON``).
"""

from __future__ import annotations

import json
import logging
import sys
import threading
import uuid
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from awesome_claude_code.core.config import Settings

LOG_MAX_SIZE_MB = 10
LOG_BACKUP_COUNT = 3

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# Attributes every LogRecord carries; anything else came in via ``extra``.
_RESERVED_ATTRS = frozenset({
    "name", "msg", "args", "created", "filename", "funcName", "levelname",
    "levelno", "lineno", "module", "msecs", "pathname", "process",
    "processName", "relativeCreated", "stack_info", "exc_info", "exc_text",
    "thread", "threadName", "taskName", "message", "correlation_id",
})

_settings: Settings | None = None
_loggers: dict[str, "StructuredLogger"] = {}
_correlation_id_context = threading.local()


# =============================================================================
# Correlation ID Management
# =============================================================================

def get_correlation_id() -> str | None:
    """Get the correlation ID of the current run, if any."""
    return getattr(_correlation_id_context, "correlation_id", None)


def set_correlation_id(correlation_id: str | None) -> None:
    """Set correlation ID in thread-local context."""
    _correlation_id_context.correlation_id = correlation_id


def generate_correlation_id() -> str:
    """Generate a new correlation ID."""
    return str(uuid.uuid4())[:8]


class CorrelationIdFilter(logging.Filter):
    """Filter that adds correlation_id to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or ""
        return True


# =============================================================================
# JSON Formatter
# =============================================================================

class StructuredJSONFormatter(logging.Formatter):
    """Formatter that outputs one JSON object per record."""

    def __init__(self, pretty: bool = False):
        super().__init__()
        self.pretty = pretty

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "function": record.funcName,
            "message": record.getMessage(),
        }

        correlation_id = getattr(record, "correlation_id", None)
        if correlation_id:
            log_data["run_id"] = correlation_id

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                log_data[key] = self._serialize_value(value)

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            log_data["exception"] = {
                "type": exc_type.__name__ if exc_type else "Unknown",
                "message": str(exc_value),
                "traceback": self.formatException(record.exc_info),
            }

        if self.pretty:
            return json.dumps(log_data, indent=2, default=str)
        return json.dumps(log_data, default=str)

    def _serialize_value(self, value: Any) -> Any:
        """Serialize complex values to JSON-compatible types."""
        if value is None or isinstance(value, (str, int, float, bool)):
            return value
        if isinstance(value, Path):
            return str(value)
        if isinstance(value, datetime):
            return value.isoformat()
        if isinstance(value, (list, tuple, set, frozenset)):
            return [self._serialize_value(v) for v in value]
        if isinstance(value, dict):
            return {str(k): self._serialize_value(v) for k, v in value.items()}
        return str(value)


# =============================================================================
# Structured Logger Class
# =============================================================================

class StructuredLogger:
    """Thin wrapper over ``logging.Logger`` that takes keyword fields.

    Records still propagate to the root logger, so ``caplog`` and any
    host application handlers see them.
    """

    def __init__(self, name: str):
        self.name = name
        self._logger = logging.getLogger(name)

    def _log(self, level: int, message: str, exc_info: bool | None = None, **fields: Any) -> None:
        self._logger.log(level, message, exc_info=exc_info, extra=fields, stacklevel=3)

    def debug(self, message: str, **fields: Any) -> None:
        """DEBUG: per-file decisions and plan details."""
        self._log(logging.DEBUG, message, **fields)

    def info(self, message: str, **fields: Any) -> None:
        """INFO: run milestones (plan built, backup taken, run finished)."""
        self._log(logging.INFO, message, **fields)

    def warning(self, message: str, **fields: Any) -> None:
        """WARNING: degraded runs, e.g. a hook failure that must not block installs."""
        self._log(logging.WARNING, message, **fields)

    def error(self, message: str, exc_info: bool | None = None, **fields: Any) -> None:
        """ERROR: fatal sync failures surfaced to the user."""
        self._log(logging.ERROR, message, exc_info=exc_info, **fields)

    def exception(self, message: str, **fields: Any) -> None:
        """Log exception with full traceback."""
        self._log(logging.ERROR, message, exc_info=True, **fields)


class _RunContext:
    """Context manager scoping a correlation ID to one sync run."""

    def __init__(self, operation: str, correlation_id: str | None = None):
        self.operation = operation
        self.correlation_id = correlation_id or generate_correlation_id()
        self._old_cid: str | None = None
        self._logger = get_logger("awesome_claude_code.run")

    def __enter__(self) -> str:
        self._old_cid = get_correlation_id()
        set_correlation_id(self.correlation_id)
        self._logger.debug(f"{self.operation} started", operation=self.operation)
        return self.correlation_id

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            self._logger.debug(
                f"{self.operation} ended with error",
                operation=self.operation,
                error=str(exc_val),
            )
        else:
            self._logger.debug(f"{self.operation} ended", operation=self.operation)
        set_correlation_id(self._old_cid)
        return False


# =============================================================================
# Public API
# =============================================================================

def setup_logging(settings: Settings | None = None) -> Settings:
    """Attach JSON handlers to the package logger.

    Safe to call repeatedly; handlers installed by a previous call are
    replaced.

    Args:
        settings: Settings to apply (defaults to ``Settings()``)

    Returns:
        The settings in effect
    """
    global _settings
    _settings = settings or Settings()

    package_logger = logging.getLogger("awesome_claude_code")
    package_logger.setLevel(LOG_LEVELS.get(_settings.log_level, logging.WARNING))
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    correlation_filter = CorrelationIdFilter()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(StructuredJSONFormatter(pretty=_settings.pretty_json))
    console_handler.addFilter(correlation_filter)
    package_logger.addHandler(console_handler)

    if _settings.log_to_file:
        log_path = Path(_settings.log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path / "awesome-claude-code.log",
            maxBytes=LOG_MAX_SIZE_MB * 1024 * 1024,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setFormatter(StructuredJSONFormatter())
        file_handler.addFilter(correlation_filter)
        package_logger.addHandler(file_handler)

    return _settings


def get_logger(name: str) -> StructuredLogger:
    """Get or create a structured logger.

    Args:
        name: Logger name (usually ``__name__``)

    Returns:
        StructuredLogger instance
    """
    if name not in _loggers:
        _loggers[name] = StructuredLogger(name)
    return _loggers[name]


def run_context(operation: str, correlation_id: str | None = None) -> _RunContext:
    """Scope a correlation ID to one install/upgrade run.

    Usage:
        with run_context("install") as run_id:
            ...
    """
    return _RunContext(operation, correlation_id)

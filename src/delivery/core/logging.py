"""
Logging utilities for the delivery module.

Provides structured logging with correlation fields so that a single sync
pass or client session can be traced across pages and fetches.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional


CORRELATION_FIELDS = ("space_id", "sync_id", "correlation_id", "page", "resource_id")


class StructuredFormatter(logging.Formatter):
    """
    Formatter that outputs JSON-structured log lines.

    Each log line includes:
    - Standard log fields (timestamp, level, message, logger)
    - Correlation fields if present (space_id, sync_id, page, ...)
    """

    def __init__(self, include_timestamp: bool = True):
        super().__init__()
        self.include_timestamp = include_timestamp

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as JSON."""
        log_entry = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if self.include_timestamp:
            log_entry["timestamp"] = datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat()

        for field in CORRELATION_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_entry[field] = value

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """
    Formatter that outputs human-readable log lines with correlation context.

    Format: TIMESTAMP - LOGGER - LEVEL - MESSAGE [space_id=X sync_id=Y]
    """

    def __init__(self, include_timestamp: bool = True):
        if include_timestamp:
            fmt = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        else:
            fmt = "%(name)s - %(levelname)s - %(message)s"
        super().__init__(fmt)

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with correlation context."""
        base = super().format(record)

        context_parts = []
        for field in ("space_id", "sync_id", "page"):
            value = getattr(record, field, None)
            if value is not None:
                context_parts.append(f"{field}={value}")

        if context_parts:
            return f"{base} [{' '.join(context_parts)}]"
        return base


def configure_logging(
    level: int = logging.INFO,
    format_string: Optional[str] = None,
    include_timestamp: bool = True,
    structured: bool = False,
) -> None:
    """
    Configure logging for the delivery package.

    Args:
        level: Logging level (default: INFO)
        format_string: Custom format string (optional, ignored if structured=True)
        include_timestamp: Whether to include timestamp in log messages
        structured: If True, output JSON-structured logs; if False, human-readable

    Example:
        >>> from delivery.core.logging import configure_logging
        >>> configure_logging(level=logging.DEBUG, structured=True)
    """
    package_logger = logging.getLogger("delivery")
    package_logger.setLevel(level)

    # Only add handler if none exist (avoid duplicate handlers)
    if not package_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level)

        if structured:
            formatter = StructuredFormatter(include_timestamp=include_timestamp)
        elif format_string:
            formatter = logging.Formatter(format_string)
        else:
            formatter = HumanReadableFormatter(include_timestamp=include_timestamp)

        handler.setFormatter(formatter)
        package_logger.addHandler(handler)


class CorrelationContext:
    """
    Context manager carrying correlation fields for log records.

    Example:
        >>> with CorrelationContext(space_id="cfexampleapi", sync_id="abc"):
        ...     log_with_context(logger, logging.INFO, "Fetched page", page=2)
    """

    _current: Optional["CorrelationContext"] = None

    def __init__(
        self,
        space_id: Optional[str] = None,
        sync_id: Optional[str] = None,
        correlation_id: Optional[str] = None,
        **extra: Any,
    ):
        self.context = {
            "space_id": space_id,
            "sync_id": sync_id,
            "correlation_id": correlation_id,
            **extra,
        }
        self.context = {k: v for k, v in self.context.items() if v is not None}
        self._previous: Optional["CorrelationContext"] = None

    def __enter__(self) -> "CorrelationContext":
        self._previous = CorrelationContext._current
        CorrelationContext._current = self
        return self

    def __exit__(self, *args) -> None:
        CorrelationContext._current = self._previous

    @classmethod
    def get_current(cls) -> Dict[str, Any]:
        """Get the current correlation context."""
        if cls._current is None:
            return {}
        return cls._current.context.copy()


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    **extra: Any,
) -> None:
    """
    Log a message with correlation context.

    Merges the current CorrelationContext with any extra fields provided.

    Args:
        logger: The logger to use
        level: Log level (e.g., logging.INFO)
        message: Log message
        **extra: Additional fields to include
    """
    context = CorrelationContext.get_current()
    context.update(extra)
    logger.log(level, message, extra=context)

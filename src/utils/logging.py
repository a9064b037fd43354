"""
Logging for the Renstra planner.

CLI runs log human-readable lines; the API logs one JSON object per line.
Gateway and grid events attach their context through `extra=`, built by the
`log_*` helpers below so every write to a hierarchy table has the same shape.
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any, Dict, List, Optional

from ..config.settings import settings


_RESERVED_ATTRS = {
    "name", "msg", "args", "levelname", "levelno", "pathname",
    "filename", "module", "exc_info", "exc_text", "stack_info",
    "lineno", "funcName", "created", "msecs", "relativeCreated",
    "thread", "threadName", "processName", "process", "getMessage",
    "taskName",
}


class StructuredFormatter(logging.Formatter):
    """Custom formatter for structured JSON logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON."""

        log_data = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Fields passed through `extra=`
        extra_fields = {
            k: v for k, v in record.__dict__.items()
            if k not in _RESERVED_ATTRS
        }

        if extra_fields:
            log_data["extra"] = extra_fields

        return json.dumps(log_data, ensure_ascii=False, default=str)


def setup_logging(
    level: Optional[str] = None,
    structured: Optional[bool] = None,
    include_console: bool = True
) -> None:
    """
    Configure the root logger.

    Args:
        level: Log level; defaults to LOG_LEVEL
        structured: JSON lines when true; defaults to LOG_STRUCTURED
        include_console: Attach a stdout handler
    """
    log_level = level or settings.log_level
    use_structured = settings.log_structured if structured is None else structured

    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    root_logger.setLevel(numeric_level)

    if include_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(numeric_level)

        if use_structured:
            console_handler.setFormatter(StructuredFormatter())
        else:
            # Human-readable format for development
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            console_handler.setFormatter(formatter)

        root_logger.addHandler(console_handler)

    # SQL echo is controlled by DB_ECHO, not the log level
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Module logger; call with __name__."""
    return logging.getLogger(name)


def log_timing(operation: str, duration_ms: float, **context) -> Dict[str, Any]:
    """
    Create structured log data for timing information.

    Args:
        operation: Name of the operation
        duration_ms: Duration in milliseconds
        **context: Additional context

    Returns:
        Dictionary of log data
    """
    return {
        "event": "timing",
        "operation": operation,
        "duration_ms": duration_ms,
        **context
    }


def log_error(error: Exception, **context) -> Dict[str, Any]:
    """
    Create structured log data for errors.

    Args:
        error: Exception instance
        **context: Additional context

    Returns:
        Dictionary of log data
    """
    return {
        "event": "error",
        "error_type": type(error).__name__,
        "error_message": str(error),
        **context
    }


def log_row_change(operation: str, table: str, row_id: str, **context) -> Dict[str, Any]:
    """
    Create structured log data for a write to a hierarchy table.

    Args:
        operation: create, update or delete
        table: Physical table name
        row_id: Id of the affected row
        **context: Additional context (dataset, level)

    Returns:
        Dictionary of log data
    """
    return {
        "event": "row_change",
        "operation": operation,
        "table": table,
        "row_id": row_id,
        **context
    }


def log_batch_delete(table: str, requested: int, failed_ids: List[str]) -> Dict[str, Any]:
    """Structured log data for a multi-row delete."""
    return {
        "event": "batch_delete",
        "table": table,
        "requested": requested,
        "deleted": requested - len(failed_ids),
        "failed_ids": list(failed_ids),
    }


# Initialize logging on import
setup_logging()

"""
Structured logging utilities with JSON formatting and context injection.

This module provides structured logging capabilities with:
- JSON formatted log output for machine-readable logs
- Context injection (repository, handle, stage, cycle_id) via LoggerAdapter
- Standardized log fields across all components
- Integration with Python's standard logging module
"""

import logging
import json
import sys
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, MutableMapping
from logging import LogRecord


# Context fields promoted to top-level keys of the JSON document
PROMOTED_FIELDS = ("repository", "handle", "stage", "cycle_id")

_RESERVED_RECORD_FIELDS = {
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "message", "pathname", "process", "processName", "relativeCreated",
    "thread", "threadName", "exc_info", "exc_text", "stack_info",
    "taskName",
}


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs log records as JSON with standard fields:
    - timestamp: ISO 8601 formatted timestamp
    - level: Log level (INFO, WARNING, ERROR, etc.)
    - logger: Logger name
    - message: Log message
    - repository/handle/stage/cycle_id: poll context, when present
    - context: Any other extra fields
    - error: Error details (when exception info is attached)
    """

    def format(self, record: LogRecord) -> str:
        """
        Format log record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON formatted log string
        """
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for field in PROMOTED_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        extra_fields = {}
        for key, value in record.__dict__.items():
            if key in _RESERVED_RECORD_FIELDS or key in PROMOTED_FIELDS:
                continue
            extra_fields[key] = value

        if extra_fields:
            log_data["context"] = extra_fields

        if record.exc_info:
            log_data["error"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "stack_trace": "".join(traceback.format_exception(*record.exc_info))
            }

        log_data["source"] = {
            "file": record.pathname,
            "line": record.lineno,
            "function": record.funcName
        }

        return json.dumps(log_data, default=str)


class LogContext:
    """
    Context manager for adding temporary context to logs.

    Usage:
        with LogContext(logger, repository="git@github.com:org/repo.git"):
            logger.info("Comparing revisions")  # Will include repository
    """

    def __init__(self, logger: logging.LoggerAdapter, **context: Any):
        """
        Initialize log context.

        Args:
            logger: Logger adapter to add context to
            **context: Context fields to add
        """
        self.logger = logger
        self.context = context
        self.old_extra = None

    def __enter__(self) -> logging.LoggerAdapter:
        """Enter context and add fields to logger."""
        self.old_extra = self.logger.extra.copy() if self.logger.extra else {}
        self.logger.extra.update(self.context)
        return self.logger

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Exit context and restore original logger state."""
        if self.old_extra is not None:
            self.logger.extra = self.old_extra


class ContextLoggerAdapter(logging.LoggerAdapter):
    """
    Logger adapter that injects context fields into all log records.

    Context set on the adapter (repository, stage, ...) is merged into the
    ``extra`` of every record it emits.
    """

    def __init__(self, logger: logging.Logger, extra: Optional[Dict[str, Any]] = None):
        super().__init__(logger, extra or {})

    def process(self, msg: str, kwargs: MutableMapping[str, Any]) -> tuple[str, MutableMapping[str, Any]]:
        extra = kwargs.get("extra", {})
        extra.update(self.extra)
        kwargs["extra"] = extra
        return msg, kwargs

    def with_context(self, **context: Any) -> "ContextLoggerAdapter":
        """
        Create a new logger adapter with additional context.

        Args:
            **context: Additional context fields

        Returns:
            New logger adapter with merged context
        """
        new_extra = self.extra.copy()
        new_extra.update(context)
        return ContextLoggerAdapter(self.logger, new_extra)


def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure structured logging for the process.

    Sets up:
    - JSON formatter for all handlers
    - Console handler (stderr) with appropriate log level
    - Root logger configuration

    Args:
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    formatter = JSONFormatter()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(console_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def get_logger(name: str, **context: Any) -> ContextLoggerAdapter:
    """
    Get a context-aware logger for a module.

    Args:
        name: Logger name (typically __name__)
        **context: Initial context fields (repository, stage, etc.)

    Returns:
        Context logger adapter

    Example:
        logger = get_logger(__name__, repository="https://github.com/org/repo.git")
        logger.info("Cloning")  # Will include repository
    """
    base_logger = logging.getLogger(name)
    return ContextLoggerAdapter(base_logger, context)


def log_repository_event(
    logger: logging.LoggerAdapter,
    repository: str,
    handle: str,
    event_type: str,
    **details: Any
) -> None:
    """
    Log a per-repository poll outcome (cloned, unchanged, notified, failed).

    Args:
        logger: Logger to use
        repository: Repository URL
        handle: Derived local handle
        event_type: Event type (e.g. 'unchanged', 'notified')
        **details: Additional fields (revisions, recipient, ...)
    """
    extra = {
        "repository": repository,
        "handle": handle,
        "event_type": event_type,
    }
    extra.update(details)
    logger.info(f"Repository event: {event_type} ({handle})", extra=extra)


def log_stage_transition(
    logger: logging.LoggerAdapter,
    repository: str,
    stage: str,
    status: str
) -> None:
    """
    Log pipeline stage transition (start or completion).

    Args:
        logger: Logger to use
        repository: Repository URL
        stage: Stage name ('clone', 'compare', 'fetch', 'render', 'deliver')
        status: Status ('started' or 'completed')
    """
    logger.debug(
        f"Stage {status}: {stage}",
        extra={
            "repository": repository,
            "stage": stage,
            "status": status,
        }
    )


def log_git_command(
    logger: logging.LoggerAdapter,
    command: str,
    args: List[str],
    exit_status: Optional[int] = None,
    duration_ms: Optional[float] = None,
    error: Optional[str] = None
) -> None:
    """
    Log an external git invocation with its outcome.

    Args:
        logger: Logger to use
        command: Git subcommand (e.g. 'ls-remote')
        args: Full argv passed to the binary
        exit_status: Process exit status (if the process ran)
        duration_ms: Invocation duration in milliseconds (if available)
        error: Error detail (if the invocation failed)
    """
    extra: Dict[str, Any] = {
        "command": command,
        "argv": args,
    }

    if exit_status is not None:
        extra["exit_status"] = exit_status
    if duration_ms is not None:
        extra["duration_ms"] = round(duration_ms, 2)
    if error is not None:
        extra["error"] = error

    if error:
        logger.warning(f"git {command} failed", extra=extra)
    else:
        logger.debug(f"git {command}", extra=extra)


def log_error_with_context(
    logger: logging.LoggerAdapter,
    message: str,
    error: Exception,
    **context: Any
) -> None:
    """
    Log error with full stack trace and context.

    Args:
        logger: Logger to use
        message: Error message
        error: Exception object
        **context: Additional context fields
    """
    logger.error(
        message,
        extra=context,
        exc_info=(type(error), error, error.__traceback__)
    )

"""
Centralized logging configuration for bulkdns.

Provides structured JSONL logging with optional rotation, query context
injection, and component-specific loggers. Standard output is reserved
for resolution results, so console logging always goes to stderr.

Query Context Propagation:
    Use `set_current_query()` inside a resolution task. The query text
    is automatically included in every log record emitted from that
    task (and from tasks it spawns).

    Example:
        from bulkDNS.logging_config import set_current_query, reset_current_query

        token = set_current_query("example.com")
        try:
            logger.debug("Resolving", extra={"action": "resolve"})
            # Log will include: "query": "example.com"
        finally:
            reset_current_query(token)
"""
import contextvars
import logging
import logging.handlers
import json
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
import traceback


# Context variable for query propagation across async boundaries
_query_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "query", default=""
)


def set_current_query(query: str) -> contextvars.Token:
    """
    Set the query being resolved in this async context.

    Args:
        query: The input line being resolved

    Returns:
        Token that can be used to reset the context variable
    """
    return _query_var.set(query)


def get_current_query() -> str:
    """Return the query bound to this async context, or empty string."""
    return _query_var.get()


def reset_current_query(token: contextvars.Token) -> None:
    """Reset the query context variable to its previous state."""
    _query_var.reset(token)


class JSONLFormatter(logging.Formatter):
    """
    Formatter that outputs logs in JSON Lines format.
    Each log entry is a single-line JSON object with standardized fields.
    Automatically includes the current query from contextvars if set.
    """

    # Extra attributes copied onto the JSON object when present
    EXTRA_ATTRS = (
        "query", "family", "mode", "cause", "outcome", "state",
        "duration", "concurrency", "ordered", "items", "succeeded",
        "failed", "error_type", "nameservers", "timeout_ms", "attempts",
    )

    def __init__(self, component: str = "bulkdns"):
        super().__init__()
        self.component = component
        self.hostname = os.getenv("HOSTNAME", os.getenv("COMPUTERNAME", "unknown"))

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "component": self.component,
            "logger": record.name,
            "message": record.getMessage(),
            "hostname": self.hostname,
            "process_id": record.process,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        query = get_current_query()
        if query:
            log_data["query"] = query

        if record.exc_info and record.exc_info[0] is not None:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": traceback.format_exception(*record.exc_info)
            }

        for attr in self.EXTRA_ATTRS:
            if hasattr(record, attr):
                log_data[attr] = getattr(record, attr)

        return json.dumps(log_data, default=str)


class ContextAdapter(logging.LoggerAdapter):
    """
    Logger adapter that injects a fixed context into every record.
    """

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        extra = kwargs.get("extra", {})
        extra.update(self.extra)
        kwargs["extra"] = extra
        return msg, kwargs


def setup_logging(
    component: str = "bulkdns",
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
    max_bytes: Optional[int] = None,
    backup_count: int = 10,
    enable_console: bool = True
) -> logging.Logger:
    """
    Set up logging configuration for a bulkdns component.

    Args:
        component: Component name (cli, dispatcher, client, source, rbl, ...)
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to a JSONL log file; no file logging when unset
        max_bytes: Max bytes per log file before rotation (default: 100MB)
        backup_count: Number of backup files to keep (default: 10)
        enable_console: Whether to log to stderr (default: True)

    Returns:
        Configured logger instance
    """
    log_level = (log_level or os.getenv("BULKDNS_LOG_LEVEL", "WARNING")).upper()
    log_file = log_file or os.getenv("BULKDNS_LOG_FILE") or None
    max_bytes = max_bytes or int(os.getenv("BULKDNS_LOG_MAX_BYTES", str(100 * 1024 * 1024)))  # 100MB

    numeric_level = getattr(logging, log_level, logging.WARNING)

    logger = logging.getLogger(f"bulkdns.{component}")
    logger.setLevel(numeric_level)
    logger.propagate = False

    # Remove existing handlers to avoid duplicates
    logger.handlers.clear()

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir, exist_ok=True)
        try:
            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8"
            )
            file_handler.setLevel(numeric_level)
            file_handler.setFormatter(JSONLFormatter(component=component))
            logger.addHandler(file_handler)
        except OSError as e:
            sys.stderr.write(f"Failed to set up file logging to {log_file}: {e}\n")

    if enable_console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(numeric_level)
        console_formatter = logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )
        console_handler.setFormatter(console_formatter)
        logger.addHandler(console_handler)

    # Keep a handler attached so get_logger() does not reconfigure
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    logger.debug(
        "Logging configured",
        extra={
            "log_level": log_level,
            "log_file": log_file,
            "console_enabled": enable_console
        }
    )

    return logger


def get_logger(component: str, context: Optional[Dict[str, Any]] = None) -> logging.Logger:
    """
    Get or create a logger for a component with optional context.

    Args:
        component: Component name
        context: Optional context dictionary to inject into all logs

    Returns:
        Logger or ContextAdapter if context is provided
    """
    logger = logging.getLogger(f"bulkdns.{component}")

    if not logger.handlers:
        logger = setup_logging(component)

    if context:
        return ContextAdapter(logger, context)

    return logger

"""
Structured logging for tv_screener.

Provides JSON logging for log aggregation tools and a coloured text format
for development.

Features:
- Structured JSON output with consistent fields
- Request context (request_id, market, url) attached to every record
- Timing of scanner requests (exec_ms)
- Error tracking with error kinds and HTTP status codes

Usage:
    from tv_screener.logging import setup_logging, get_logger

    # Setup logging (call once at startup)
    setup_logging()

    logger = get_logger(__name__)
    logger.info("Scan complete", extra={"rows": 50, "exec_ms": 120.4})
"""

import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from datetime import datetime
from typing import Any, Dict, Optional

from tv_screener.config import settings

# Context variables for request tracking
request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
market_ctx: ContextVar[Optional[str]] = ContextVar("market", default=None)
url_ctx: ContextVar[Optional[str]] = ContextVar("url", default=None)

# Extra record attributes copied into JSON output when present
EXTRA_FIELDS = [
    "exec_ms",
    "error_kind",
    "error_message",
    "error_details",
    "status_code",
    "timeout",
    "rows",
    "total_count",
    "columns",
    "markets",
    "filters",
    "operation",
]


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Standard fields:
    - timestamp: ISO 8601 timestamp
    - level: Log level (INFO, WARNING, ERROR, etc.)
    - logger: Logger name
    - message: Log message
    - request_id / market / url: from the active RequestContext
    - any of EXTRA_FIELDS passed via extra={}
    """

    def __init__(self):
        super().__init__()
        self.hostname = self._get_hostname()

    def _get_hostname(self) -> str:
        try:
            import socket

            return socket.gethostname()
        except OSError:
            return "unknown"

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "hostname": self.hostname,
            "process": record.process,
        }

        request_id = request_id_ctx.get()
        if request_id:
            log_entry["request_id"] = request_id

        market = market_ctx.get()
        if market:
            log_entry["market"] = market

        url = url_ctx.get()
        if url:
            log_entry["url"] = url

        for field in EXTRA_FIELDS:
            if hasattr(record, field):
                log_entry[field] = getattr(record, field)

        if record.exc_info:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        try:
            return json.dumps(log_entry, default=str)
        except (TypeError, ValueError) as e:
            # Fallback if JSON serialization fails
            return json.dumps(
                {
                    "timestamp": self.formatTime(record),
                    "level": "ERROR",
                    "logger": __name__,
                    "message": f"Failed to serialize log record: {e}",
                    "original_message": str(record.getMessage()),
                }
            )

    def formatTime(self, record: logging.LogRecord, datefmt: Optional[str] = None) -> str:
        return datetime.fromtimestamp(record.created).isoformat()


class TextFormatter(logging.Formatter):
    """Human-readable formatter with optional colour (for development)."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
        "RESET": "\033[0m",
    }

    def __init__(self, use_color: bool = True):
        super().__init__(
            fmt="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        self.use_color = use_color and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        if self.use_color and record.levelname in self.COLORS:
            record.levelname = (
                f"{self.COLORS[record.levelname]}{record.levelname}{self.COLORS['RESET']}"
            )

        extras = []
        market = market_ctx.get()
        if market:
            extras.append(f"market={market}")
        if hasattr(record, "status_code"):
            extras.append(f"status={record.status_code}")
        if hasattr(record, "rows"):
            extras.append(f"rows={record.rows}")
        if hasattr(record, "exec_ms"):
            extras.append(f"exec_ms={record.exec_ms:.2f}")

        if extras:
            record.msg = f"{record.msg} [{', '.join(extras)}]"

        return super().format(record)


def setup_logging(
    level: Optional[str] = None,
    format: Optional[str] = None,
    force: bool = False,
) -> None:
    """
    Setup logging for tv_screener.

    Configures the root logger from settings. Can be called multiple times,
    but only configures once unless force=True.

    Args:
        level: Log level, defaults to settings.TV_SCREENER_LOG_LEVEL
        format: 'text' or 'json', defaults to settings.LOG_FORMAT
        force: Force reconfiguration even if already configured
    """
    root = logging.getLogger()
    if root.handlers and not force:
        return

    log_level = level or settings.TV_SCREENER_LOG_LEVEL
    log_format = format or settings.LOG_FORMAT

    level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    numeric_level = level_map.get(log_level.upper(), logging.INFO)

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)

    if log_format.lower() == "json":
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = TextFormatter(use_color=True)

    handler.setFormatter(formatter)
    handler.setLevel(numeric_level)

    root.setLevel(numeric_level)
    root.addHandler(handler)

    root.debug(f"Logging configured: level={log_level}, format={log_format}")


def get_logger(name: str) -> logging.Logger:
    """Get logger with name (typically __name__)."""
    return logging.getLogger(name)


class RequestContext:
    """
    Context manager for setting request-level context.

    Example:
        with RequestContext(market="crypto", url=query.url):
            logger.info("Posting scan")  # includes request_id, market, url
    """

    def __init__(
        self,
        request_id: Optional[str] = None,
        market: Optional[str] = None,
        url: Optional[str] = None,
    ):
        self.request_id = request_id or str(uuid.uuid4())
        self.market = market
        self.url = url
        self._tokens = []

    def __enter__(self):
        self._tokens.append(request_id_ctx.set(self.request_id))
        if self.market:
            self._tokens.append(market_ctx.set(self.market))
        if self.url:
            self._tokens.append(url_ctx.set(self.url))
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        for token in reversed(self._tokens):
            token.var.reset(token)
        self._tokens.clear()


class TimedOperation:
    """
    Context manager for timing operations.

    Logs completion with exec_ms, or failure with the error kind. The
    measured duration is available as ``exec_ms`` after exit.

    Example:
        with TimedOperation("scan", logger):
            data = await transport.post(url, body)
    """

    def __init__(
        self,
        operation: str,
        logger: logging.Logger,
        level: int = logging.DEBUG,
        **extra_context,
    ):
        self.operation = operation
        self.logger = logger
        self.level = level
        self.extra_context = extra_context
        self.start_time: Optional[float] = None
        self.exec_ms: Optional[float] = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        self.logger.log(self.level, f"{self.operation} started", extra=self.extra_context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.start_time is None:
            return
        self.exec_ms = (time.perf_counter() - self.start_time) * 1000
        extra = {**self.extra_context, "exec_ms": self.exec_ms}

        if exc_type:
            extra["error_kind"] = exc_type.__name__
            self.logger.warning(f"{self.operation} failed", extra=extra)
        else:
            self.logger.log(self.level, f"{self.operation} completed", extra=extra)


def log_scan_start(
    logger: logging.Logger,
    url: str,
    payload: Dict[str, Any],
) -> None:
    """Log start of a scanner request."""
    logger.debug(
        f"Posting scan to {url}",
        extra={
            "columns": payload.get("columns"),
            "markets": payload.get("markets"),
            "filters": len(payload.get("filter") or []),
            "operation": "scan_start",
        },
    )


def log_scan_complete(
    logger: logging.Logger,
    url: str,
    rows: int,
    total_count: int,
    exec_ms: float,
) -> None:
    """Log completion of a scanner request."""
    logger.info(
        f"Scan {url} complete: {rows} of {total_count} rows in {exec_ms:.2f}ms",
        extra={
            "rows": rows,
            "total_count": total_count,
            "exec_ms": exec_ms,
            "operation": "scan_complete",
        },
    )


def log_error(
    logger: logging.Logger,
    error: Exception,
    context: Optional[Dict[str, Any]] = None,
) -> None:
    """Log error with context."""
    extra = {
        "error_kind": type(error).__name__,
        "error_message": str(error),
        **(context or {}),
    }

    if getattr(error, "status_code", None) is not None:
        extra["status_code"] = error.status_code
    if getattr(error, "details", None):
        extra["error_details"] = error.details

    logger.error(f"Error: {error}", extra=extra)


__all__ = [
    "setup_logging",
    "get_logger",
    "RequestContext",
    "TimedOperation",
    "JSONFormatter",
    "TextFormatter",
    "log_scan_start",
    "log_scan_complete",
    "log_error",
]

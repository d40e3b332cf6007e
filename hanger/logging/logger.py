"""
Core logging module with structured logging and correlation ID tracking.

Architecture:
- One log stream per marketplace concern (system, store, accounts,
  listings, trades, reputation, notifications, moderation)
- JSON formatting for file sinks, human-readable console output
- Correlation ID propagation (a trade or listing id scoped around an operation)
- Automatic rotation
"""

import logging
import logging.handlers
from pathlib import Path
from typing import Optional
from contextvars import ContextVar
import uuid

# Context variable for correlation ID (thread-safe)
_correlation_id: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)

LOGGER_PREFIX = "hanger"


# ============================================================================
# LOG STREAM DEFINITIONS
# ============================================================================

class LogStream:
    """Log stream identifiers."""
    SYSTEM = "system"                 # Startup, config, persistence failures
    STORE = "store"                   # Snapshot load/save, sequences
    ACCOUNTS = "accounts"             # Registration, removal
    LISTINGS = "listings"             # Listing creation, edits, soft deletes
    TRADES = "trades"                 # Trade lifecycle transitions
    REPUTATION = "reputation"         # Evaluations
    NOTIFICATIONS = "notifications"   # Outbox activity
    MODERATION = "moderation"         # Abuse reports, admin removals

    ALL = (
        SYSTEM, STORE, ACCOUNTS, LISTINGS, TRADES,
        REPUTATION, NOTIFICATIONS, MODERATION,
    )


# ============================================================================
# CORRELATION ID MANAGEMENT
# ============================================================================

def set_correlation_id(correlation_id: Optional[str] = None) -> str:
    """
    Set correlation ID for current context.

    Args:
        correlation_id: Optional correlation ID. If None, generates new UUID.

    Returns:
        The correlation ID that was set
    """
    if correlation_id is None:
        correlation_id = str(uuid.uuid4())
    _correlation_id.set(correlation_id)
    return correlation_id


def get_correlation_id() -> Optional[str]:
    """Get correlation ID for current context."""
    return _correlation_id.get()


class LogContext:
    """
    Context manager for scoped correlation ID.

    Usage:
        with LogContext("trade-2001"):
            logger.info("Trade accepted")  # Includes correlation_id
    """

    def __init__(self, correlation_id: Optional[str] = None):
        self.correlation_id = correlation_id
        self._token = None

    def __enter__(self):
        self._token = _correlation_id.set(self.correlation_id or str(uuid.uuid4()))
        return _correlation_id.get()

    def __exit__(self, exc_type, exc_val, exc_tb):
        _correlation_id.reset(self._token)


# ============================================================================
# CUSTOM LOG RECORD FACTORY
# ============================================================================

_original_factory = logging.getLogRecordFactory()


def _correlation_id_factory(*args, **kwargs):
    """Custom log record factory that injects correlation ID."""
    record = _original_factory(*args, **kwargs)
    record.correlation_id = get_correlation_id()
    return record


logging.setLogRecordFactory(_correlation_id_factory)


# ============================================================================
# LOGGER SETUP
# ============================================================================

_loggers_initialized = False
_console_handler: Optional[logging.Handler] = None


def setup_logging(
    log_dir: Path = Path("logs"),
    log_level: str = "INFO",
    console_level: str = "INFO",
    json_logs: bool = True,
    max_bytes: int = 10_000_000,  # 10MB
    backup_count: int = 5
) -> None:
    """
    Initialize logging infrastructure.

    Creates one rotating file per stream, e.g.:
    - logs/system/system.log
    - logs/trades/trades.log
    - logs/store/store.log

    Args:
        log_dir: Base directory for logs
        log_level: File logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        console_level: Console logging level
        json_logs: If True, use JSON formatting
        max_bytes: Max bytes per log file before rotation
        backup_count: Number of backup files to keep
    """
    global _loggers_initialized, _console_handler

    if _loggers_initialized:
        return

    from .formatters import JSONFormatter, ConsoleFormatter

    log_dir = Path(log_dir)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)  # Capture everything, filter at handler level
    root.handlers = []

    console_handler = logging.StreamHandler()
    console_handler.setLevel(getattr(logging, console_level.upper()))
    console_handler.setFormatter(ConsoleFormatter())
    root.addHandler(console_handler)
    _console_handler = console_handler

    file_level = getattr(logging, log_level.upper())

    for stream in LogStream.ALL:
        stream_dir = log_dir / stream
        stream_dir.mkdir(parents=True, exist_ok=True)

        handler = logging.handlers.RotatingFileHandler(
            stream_dir / f"{stream}.log",
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        )
        handler.setLevel(file_level)

        if json_logs:
            handler.setFormatter(JSONFormatter())
        else:
            handler.setFormatter(logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(correlation_id)s - %(message)s'
            ))

        logger = logging.getLogger(f"{LOGGER_PREFIX}.{stream}")
        logger.addHandler(handler)
        logger.setLevel(file_level)
        logger.propagate = True  # Also send to root logger (console)

    _loggers_initialized = True

    get_logger(LogStream.SYSTEM).info(
        "Logging system initialized",
        extra={
            "log_dir": str(log_dir),
            "log_level": log_level,
            "json_logs": json_logs
        }
    )


def reset_logging() -> None:
    """Detach handlers installed by setup_logging() so it can run again (tests)."""
    global _loggers_initialized, _console_handler

    if _console_handler is not None:
        logging.getLogger().removeHandler(_console_handler)
        _console_handler = None

    for stream in LogStream.ALL:
        logger = logging.getLogger(f"{LOGGER_PREFIX}.{stream}")
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        logger.setLevel(logging.NOTSET)
    _loggers_initialized = False


def get_logger(stream: str) -> logging.Logger:
    """
    Get logger for specific stream.

    Example:
        logger = get_logger(LogStream.TRADES)
        logger.info("Trade requested", extra={"trade_id": 2001})
    """
    return logging.getLogger(f"{LOGGER_PREFIX}.{stream}")


# ============================================================================
# PERFORMANCE LOGGING DECORATOR
# ============================================================================

def log_performance(stream: str = LogStream.STORE):
    """
    Decorator to log function execution time.

    Usage:
        @log_performance(LogStream.STORE)
        def save(self):
            ...
    """
    def decorator(func):
        import functools
        import time

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            logger = get_logger(stream)
            start = time.perf_counter()

            try:
                result = func(*args, **kwargs)
            except Exception as e:
                elapsed = time.perf_counter() - start
                logger.error(
                    f"{func.__name__} failed",
                    extra={
                        "function": func.__name__,
                        "duration_ms": round(elapsed * 1000, 2),
                        "success": False,
                        "error": str(e),
                        "error_type": type(e).__name__
                    },
                )
                raise

            elapsed = time.perf_counter() - start
            logger.debug(
                f"{func.__name__} completed",
                extra={
                    "function": func.__name__,
                    "duration_ms": round(elapsed * 1000, 2),
                    "success": True
                }
            )
            return result

        return wrapper
    return decorator

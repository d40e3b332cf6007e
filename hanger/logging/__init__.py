"""
Logging infrastructure for Hanger.

Provides structured, machine-readable logging for:
- Debugging and troubleshooting
- Audit trail of trade transitions, evaluations and moderation actions
- Persistence health (snapshot load/save)

Features:
- JSON structured logging per stream
- Correlation ID tracking (trace one trade through its lifecycle)
- Log rotation
- Thread-safe operation
"""

from .logger import (
    get_logger,
    setup_logging,
    reset_logging,
    LogContext,
    log_performance,
    set_correlation_id,
    get_correlation_id,
    LogStream,
)

from .formatters import (
    JSONFormatter,
    ConsoleFormatter,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "reset_logging",
    "LogContext",
    "log_performance",
    "set_correlation_id",
    "get_correlation_id",
    "LogStream",
    "JSONFormatter",
    "ConsoleFormatter",
]

from __future__ import annotations

from aduib_naming.observability.logging import (
    LOG_FORMAT_CONSOLE,
    LOG_FORMAT_ENV,
    LOG_FORMAT_JSON,
    PACKAGE_LOGGER,
    ConsoleFormatter,
    ContextFilter,
    JSONFormatter,
    LogContext,
    configure_logging,
    log_trace,
    log_warning,
)

__all__ = [
    "LOG_FORMAT_CONSOLE",
    "LOG_FORMAT_ENV",
    "LOG_FORMAT_JSON",
    "PACKAGE_LOGGER",
    "ConsoleFormatter",
    "ContextFilter",
    "JSONFormatter",
    "LogContext",
    "configure_logging",
    "log_trace",
    "log_warning",
]

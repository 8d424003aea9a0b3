"""Structured logging for watchers and resolvers.

Watch loops run for a long time and mostly log failures they recover from, so
every record carries a ``tag`` naming the step that emitted it (for instance
``naming.dns.srv.fail``) plus the scheme and target of the watch it belongs
to. Records are rendered either as JSON lines or as a console line followed by
``key=value`` pairs.
"""

from __future__ import annotations

import contextvars
import json
import logging
import os
import sys
from collections.abc import Iterator, Mapping
from datetime import datetime, timezone
from typing import Any, TextIO

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

LOG_FORMAT_ENV = "ADUIB_NAMING_LOG_FORMAT"
LOG_FORMAT_JSON = "json"
LOG_FORMAT_CONSOLE = "console"

PACKAGE_LOGGER = "aduib_naming"

NO_TAG = "-"
CONTEXT_KEYS = ("scheme", "target")

_context: contextvars.ContextVar[Mapping[str, Any]] = contextvars.ContextVar("aduib_naming_log_context", default={})

# Attributes every LogRecord has; anything else was passed through ``extra``.
_STANDARD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


class LogContext:
    """Binds values to every record logged while the context is active.

    Contexts nest; leaving one restores the values of the enclosing one. The
    values live in a context variable, so concurrent watch loops each keep
    their own.

    Args:
        scheme: URI scheme of the watched name.
        target: Name being resolved.
        **extra: Additional values; None values are ignored.
    """

    def __init__(self, scheme: str | None = None, target: str | None = None, **extra: Any) -> None:
        bound = {"scheme": scheme, "target": target, **extra}
        self._values = {key: value for key, value in bound.items() if value is not None}
        self._tokens: list[contextvars.Token[Mapping[str, Any]]] = []

    def __enter__(self) -> LogContext:
        self._tokens.append(_context.set({**_context.get(), **self._values}))
        return self

    def __exit__(self, exc_type: Any, exc: Any, traceback: Any) -> None:
        _context.reset(self._tokens.pop())

    @staticmethod
    def snapshot() -> dict[str, Any]:
        """Current values, with None for the standard keys that are unbound."""
        current = _context.get()
        values = dict.fromkeys(CONTEXT_KEYS)
        values.update(current)
        return values


class ContextFilter(logging.Filter):
    """Copies the bound context onto records so ``%(scheme)s`` style formats work."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.__dict__.setdefault("tag", NO_TAG)
        for key, value in LogContext.snapshot().items():
            record.__dict__.setdefault(key, NO_TAG if value is None else value)
        return True


def _fields(record: logging.LogRecord) -> Iterator[tuple[str, Any]]:
    """Yield the structured fields of a record: context values first, then extras."""
    seen = set()
    for key, value in LogContext.snapshot().items():
        seen.add(key)
        yield key, getattr(record, key, value)
    for key, value in record.__dict__.items():
        if key in _STANDARD_ATTRS or key in seen or key == "tag" or key.startswith("_"):
            continue
        yield key, value


class JSONFormatter(logging.Formatter):
    """One JSON object per record.

    The object holds ``timestamp``, ``level``, ``logger``, ``tag`` and
    ``message``, followed by the structured fields of the record.
    """

    _FIXED = ("timestamp", "level", "logger", "tag", "message", "exception")

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: dict[str, Any] = {
            "timestamp": created.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "tag": getattr(record, "tag", NO_TAG),
            "message": record.getMessage(),
        }
        for key, value in _fields(record):
            if key not in self._FIXED:
                payload[key] = NO_TAG if value is None else value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=repr)


class ConsoleFormatter(logging.Formatter):
    """Human readable line: ``<time> <level> <logger> [<tag>] <message> key=value ...``."""

    def __init__(self, datefmt: str | None = None) -> None:
        super().__init__("%(asctime)s %(levelname)s %(name)s [%(tag)s] %(message)s", datefmt=datefmt)

    def format(self, record: logging.LogRecord) -> str:
        record.__dict__.setdefault("tag", NO_TAG)
        line = super().format(record)
        pairs = " ".join(f"{key}={NO_TAG if value is None else value}" for key, value in _fields(record))
        return f"{line} {pairs}" if pairs else line


def configure_logging(
    level: int = logging.INFO,
    *,
    log_format: str | None = None,
    stream: TextIO | None = None,
    logger_name: str = PACKAGE_LOGGER,
) -> logging.Logger:
    """Install the structured handler on the package logger.

    Calling it again replaces the handler installed by the previous call, so
    the level and format can be changed at runtime.

    Args:
        level: Level of the logger and handler.
        log_format: ``json`` or ``console``; read from ``ADUIB_NAMING_LOG_FORMAT``
            when omitted, and ``json`` when unknown.
        stream: Output stream, stderr by default.
        logger_name: Logger receiving the handler.
    """
    chosen = (log_format or os.getenv(LOG_FORMAT_ENV) or LOG_FORMAT_JSON).strip().lower()
    formatter: logging.Formatter = ConsoleFormatter() if chosen == LOG_FORMAT_CONSOLE else JSONFormatter()

    logger = logging.getLogger(logger_name)
    for handler in list(logger.handlers):
        if getattr(handler, "_aduib_naming", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(formatter)
    handler.addFilter(ContextFilter())
    handler._aduib_naming = True
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger


def _emit(logger: logging.Logger, level: int, tag: str, message: str, fields: Mapping[str, Any]) -> None:
    if not logger.isEnabledFor(level):
        return
    extra = {key: value for key, value in fields.items() if key not in _STANDARD_ATTRS}
    extra["tag"] = tag
    logger.log(level, message, extra=extra, stacklevel=3)


def log_trace(logger: logging.Logger, tag: str, message: str, **fields: Any) -> None:
    """Log a recoverable step of a watch loop at DEBUG level."""
    _emit(logger, logging.DEBUG, tag, message, fields)


def log_warning(logger: logging.Logger, tag: str, message: str, **fields: Any) -> None:
    """Log a failure a watch loop skips over at WARNING level."""
    _emit(logger, logging.WARNING, tag, message, fields)

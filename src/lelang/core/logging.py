"""Structured logging for Lelang.

The acquisition engine emits events, not prose: the log message is a
short dotted event name (``strategy.failed``) and the fields travel in
``extra_data``. Use :func:`event` to build the ``extra`` mapping and
:class:`LogContext` to stamp shared fields (year, page) on every record
emitted inside a block.

All module loggers are children of the ``lelang`` package logger, which
owns the single stream handler.
"""

import logging
import sys
from contextvars import ContextVar
from typing import Any, Mapping

from lelang.core.config import get_settings

PACKAGE_LOGGER = "lelang"

# Fields bound by LogContext; each asyncio task sees its own value
_context_fields: ContextVar[Mapping[str, Any]] = ContextVar("lelang_log_context", default={})

_base_factory = logging.getLogRecordFactory()


def _context_record_factory(*args: Any, **kwargs: Any) -> logging.LogRecord:
    record = _base_factory(*args, **kwargs)
    fields = _context_fields.get()
    if fields:
        record.context_data = dict(fields)  # type: ignore[attr-defined]
    return record


logging.setLogRecordFactory(_context_record_factory)


def _record_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Merge LogContext fields with per-call extra_data."""
    fields: dict[str, Any] = {}
    fields.update(getattr(record, "context_data", None) or {})
    fields.update(getattr(record, "extra_data", None) or {})
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        import json
        from datetime import datetime

        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_record_fields(record),
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class PlainFormatter(logging.Formatter):
    """Human-readable line with event fields appended as ``key=value``."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = _record_fields(record)
        if fields:
            line += " | " + " ".join(f"{k}={v}" for k, v in fields.items())
        return line


def event(**fields: Any) -> dict[str, Any]:
    """Build the ``extra`` argument for a structured log call.

    Example:
        >>> logger.info("strategy.start", extra=event(strategy="Common Tokens"))
    """
    return {"extra_data": fields}


def _configure_package_logger(level: str, format: str) -> logging.Logger:
    package = logging.getLogger(PACKAGE_LOGGER)
    numeric = getattr(logging, level.upper(), logging.INFO)
    package.setLevel(numeric)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(numeric)
    handler.setFormatter(StructuredFormatter() if format == "structured" else PlainFormatter())

    for old in list(package.handlers):
        package.removeHandler(old)
    package.addHandler(handler)
    return package


def setup_logging(level: str = "INFO", format: str = "plain") -> None:
    """Configure the Lelang package logger.

    Calling it again replaces the previous handler.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        format: Output format ("plain" or "structured")
    """
    _configure_package_logger(level, format)


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the ``lelang`` hierarchy.

    The package logger is configured from settings on first use unless
    :func:`setup_logging` already ran. Records keep propagating past it,
    so pytest's caplog still sees them.

    Args:
        name: Logger name (typically __name__)
    """
    package = logging.getLogger(PACKAGE_LOGGER)
    if not package.handlers:
        settings = get_settings()
        _configure_package_logger(settings.log_level, settings.log_format)

    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)


class LogContext:
    """Stamp fields on every record created inside the block.

    Fields given here are merged under any per-call ``extra_data``.
    They live in a context variable, so concurrent tasks each see only
    the fields of their own block. Blocks nest.

    Example:
        >>> logger = get_logger(__name__)
        >>> with LogContext(logger, year=2024, pageNumber=1):
        ...     logger.info("strategy.start", extra=event(strategy="Without Token"))
    """

    def __init__(self, logger: logging.Logger, **fields: Any) -> None:
        self.logger = logger
        self.fields = fields
        self._token: Any = None

    def __enter__(self) -> "LogContext":
        self._token = _context_fields.set({**_context_fields.get(), **self.fields})
        return self

    def __exit__(self, *args: Any) -> None:
        if self._token is not None:
            _context_fields.reset(self._token)
            self._token = None

"""Logging setup for podarchiver.

Records from the ``podarchiver`` loggers go to stdout and, optionally, to a
file that rolls over at midnight. Two renderings are available: a compact
single-line console format that appends the ``extra`` fields of each call,
and JSON lines via python-json-logger. Exceptions attached to a record are
unpacked into their public attributes plus the chain of messages from the
outermost error down to its root cause.
"""

from collections.abc import Iterator
from contextvars import ContextVar
import json
import logging
from logging.config import dictConfig
from pathlib import Path
import sys
from typing import Any, Literal

PACKAGE_LOGGER = "podarchiver"
LOG_FILE_BACKUPS = 30

_base_record_factory = logging.getLogRecordFactory()
_show_context: ContextVar[str | None] = ContextVar("show_context", default=None)
_full_tracebacks = False

# attributes every LogRecord carries, plus the ones added below
_RECORD_FIELDS = frozenset(logging.makeLogRecord({}).__dict__) | {
    "message",
    "asctime",
    "context_id",
    "exc_custom_attrs",
    "semantic_trace",
}


def _exception_chain(error: BaseException) -> Iterator[BaseException]:
    current: BaseException | None = error
    while current is not None:
        yield current
        current = current.__cause__ or current.__context__


def _record_with_exception_detail(*args: Any, **kwargs: Any) -> logging.LogRecord:
    """Build a LogRecord and attach details of its exception, if any.

    ``exc_custom_attrs`` holds the public attributes found along the exception
    chain, outermost error winning on name clashes. ``semantic_trace`` holds
    the message of each error in the chain.
    """
    record = _base_record_factory(*args, **kwargs)
    error = record.exc_info[1] if record.exc_info else None
    if error is None:
        return record

    attrs: dict[str, Any] = {}
    messages: list[str] = []
    for link in _exception_chain(error):
        messages.append(str(link))
        for name, value in vars(link).items():
            if not name.startswith("_"):
                attrs.setdefault(name, value)

    if attrs:
        record.exc_custom_attrs = attrs
    record.semantic_trace = messages
    return record


def set_context_id(context_id: str) -> None:
    """Tag subsequent log records of the current task with ``context_id``.

    The archiver and uploader call this with the show being processed.
    """
    _show_context.set(context_id)


class ContextIdFilter(logging.Filter):
    """Copy the current context id onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        context_id = _show_context.get()
        if context_id is not None:
            record.context_id = context_id
        return True


def _render_value(value: Any) -> str:
    if isinstance(value, dict | list | tuple):
        try:
            return json.dumps(value, sort_keys=True, separators=(", ", ":"))
        except TypeError:
            return f"[Unserializable Value: {type(value).__name__}]"
    return str(value)


class ConsoleFormatter(logging.Formatter):
    """Single-line human format with the call's extra fields appended.

    Output looks like::

        2024-01-02 03:04:05 INFO [podarchiver.x] CtxID:Show key:value - Message

    When full tracebacks are disabled, a failing record is followed by its
    error chain (``Error: ...`` then one ``Caused by: ...`` line per cause).
    """

    def _extras(self, record: logging.LogRecord) -> dict[str, Any]:
        extras: dict[str, Any] = dict(getattr(record, "exc_custom_attrs", None) or {})
        extras.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RECORD_FIELDS and not key.startswith("_")
        )
        return extras

    def _error_lines(self, record: logging.LogRecord) -> list[str]:
        if _full_tracebacks and record.exc_info:
            if not record.exc_text:
                record.exc_text = self.formatException(record.exc_info)
            return [record.exc_text] if record.exc_text else []
        trace: list[str] = getattr(record, "semantic_trace", None) or []
        return [
            f"Error: {message}" if i == 0 else f"  Caused by: {message}"
            for i, message in enumerate(trace)
        ]

    def format(self, record: logging.LogRecord) -> str:
        head = [
            self.formatTime(record, self.datefmt),
            record.levelname,
            f"[{record.name}]",
        ]
        context_id = getattr(record, "context_id", None)
        if context_id is not None:
            head.append(f"CtxID:{context_id}")
        head.extend(
            f"{key}:{_render_value(value)}"
            for key, value in self._extras(record).items()
        )
        message = record.getMessage()
        head.append(f"- {message}" if message else "-")

        lines = [" ".join(head)]
        if record.exc_info:
            lines.extend(self._error_lines(record))
        if record.stack_info:
            lines.append(self.formatStack(record.stack_info))
        return "\n".join(lines)


def _resolve_level(level_name: str) -> str:
    level = level_name.upper()
    if isinstance(logging.getLevelName(level), int):
        return level
    print(
        f"Warning: Invalid LOG_LEVEL '{level_name}'. Defaulting to INFO.",
        file=sys.stderr,
    )
    return "INFO"


def build_logging_config(
    formatter: Literal["console", "json"],
    level: str,
    log_file: Path | None = None,
) -> dict[str, Any]:
    """Return a ``dictConfig`` mapping for the given output choices."""
    handlers: dict[str, dict[str, Any]] = {
        "stdout": {
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stdout",
            "formatter": formatter,
            "filters": ["context_id"],
        }
    }
    if log_file is not None:
        handlers["rolling_file"] = {
            "class": "logging.handlers.TimedRotatingFileHandler",
            "filename": str(log_file),
            "when": "midnight",
            "backupCount": LOG_FILE_BACKUPS,
            "encoding": "utf-8",
            "formatter": formatter,
            "filters": ["context_id"],
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"context_id": {"()": ContextIdFilter}},
        "formatters": {
            "console": {"()": ConsoleFormatter, "datefmt": "%Y-%m-%d %H:%M:%S"},
            "json": {
                "()": "pythonjsonlogger.json.JsonFormatter",
                "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
            },
        },
        "handlers": handlers,
        "loggers": {
            PACKAGE_LOGGER: {
                "handlers": list(handlers),
                "level": level,
                "propagate": False,
            }
        },
        # third-party libraries only surface warnings
        "root": {"handlers": ["stdout"], "level": "WARNING"},
    }


def setup_logging(
    log_format_type: Literal["human", "json"],
    app_log_level_name: str,
    include_stacktrace: bool,
    log_file: Path | None = None,
) -> None:
    """Install the logging configuration for a run.

    Args:
        log_format_type: ``human`` for the console format, ``json`` for JSON lines.
        app_log_level_name: Level for the package loggers; unknown names fall
            back to INFO with a warning on stderr.
        include_stacktrace: Render full tracebacks instead of the error chain.
        log_file: When given, records are also written to this file.
    """
    global _full_tracebacks
    _full_tracebacks = include_stacktrace
    logging.setLogRecordFactory(_record_with_exception_detail)

    formatter: Literal["console", "json"] = (
        "json" if log_format_type.lower() == "json" else "console"
    )
    dictConfig(
        build_logging_config(formatter, _resolve_level(app_log_level_name), log_file)
    )

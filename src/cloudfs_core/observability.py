"""Structured logging and timing for store operations.

Records are JSON lines. Each one carries the execution and store that
produced it, read from ContextVars, and may name the store operation and
path it concerns. Store backends wrap their slow operations in
``timed_operation``, which logs the duration and feeds any registered
metric sinks.
"""

import json
import logging
import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable

PACKAGE_LOGGER = "cloudfs_core"

execution_id_var: ContextVar[str | None] = ContextVar("execution_id", default=None)
store_name_var: ContextVar[str | None] = ContextVar("store_name", default=None)
store_id_var: ContextVar[str | None] = ContextVar("store_id", default=None)

# Store-specific attributes a StructuredLogger sets on its records
_RECORD_FIELDS = ("operation", "path", "duration_ms")


class LogLevel(str, Enum):
    """Levels accepted by ``configure_logging``."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


@dataclass(frozen=True)
class LogContext:
    """Execution and store identity active for the current task."""

    execution_id: str | None = None
    store_name: str | None = None
    store_id: str | None = None

    @classmethod
    def current(cls) -> "LogContext":
        return cls(
            execution_id=execution_id_var.get(),
            store_name=store_name_var.get(),
            store_id=store_id_var.get(),
        )

    def to_dict(self) -> dict[str, str]:
        fields = {
            "execution_id": self.execution_id,
            "store_name": self.store_name,
            "store_id": self.store_id,
        }
        return {key: value for key, value in fields.items() if value is not None}


class StructuredFormatter(logging.Formatter):
    """Render records as one JSON object per line.

    The current ``LogContext`` is flattened into the top level next to the
    record's operation, path and duration. Any other keyword fields passed
    to ``StructuredLogger`` go under ``"fields"``.
    """

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "level": record.levelname,
            "message": record.getMessage(),
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "logger": record.name,
        }
        data.update(LogContext.current().to_dict())

        for name in _RECORD_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                data[name] = value

        fields = getattr(record, "fields", None)
        if fields:
            data["fields"] = fields

        return json.dumps(data, default=str)


class StructuredLogger:
    """Logger whose records name the store operation and path.

    Example:
        logger = get_logger(__name__)
        logger.debug("File deleted", operation="delete_file", path="/data/a.txt")
    """

    def __init__(self, name: str) -> None:
        self.logger = logging.getLogger(name)

    def _log(
        self,
        level: int,
        message: str,
        operation: str | None,
        path: str | None,
        duration_ms: float | None,
        fields: dict[str, Any],
    ) -> None:
        if not self.logger.isEnabledFor(level):
            return
        extra = {
            "operation": operation,
            "path": path,
            "duration_ms": duration_ms,
            "fields": fields,
        }
        self.logger.log(level, message, extra=extra)

    def debug(
        self,
        message: str,
        *,
        operation: str | None = None,
        path: str | None = None,
        duration_ms: float | None = None,
        **fields: Any,
    ) -> None:
        self._log(logging.DEBUG, message, operation, path, duration_ms, fields)

    def info(
        self,
        message: str,
        *,
        operation: str | None = None,
        path: str | None = None,
        duration_ms: float | None = None,
        **fields: Any,
    ) -> None:
        self._log(logging.INFO, message, operation, path, duration_ms, fields)


class Timer:
    """Context manager measuring wall-clock time in milliseconds."""

    def __init__(self) -> None:
        self._start = 0.0
        self.duration_ms = 0.0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, *args: Any) -> None:
        self.duration_ms = (time.perf_counter() - self._start) * 1000


# Sinks receive (metric name, duration in ms, labels)
MetricSink = Callable[[str, float, dict[str, str]], None]

_metric_sinks: list[MetricSink] = []


def register_metric_callback(callback: MetricSink) -> None:
    """Send operation timings to ``callback`` from now on."""
    _metric_sinks.append(callback)


def emit_timer(name: str, duration_ms: float, labels: dict[str, str] | None = None) -> None:
    """Report a duration to every registered sink.

    The store of the current execution is added as the ``store_name`` label
    unless the caller set one. A failing sink is logged and skipped.
    """
    labels = dict(labels or {})
    store_name = store_name_var.get()
    if store_name:
        labels.setdefault("store_name", store_name)

    for sink in list(_metric_sinks):
        try:
            sink(name, duration_ms, labels)
        except Exception:
            logging.getLogger(__name__).debug("Metric sink failed: %s", name, exc_info=True)


@contextmanager
def timed_operation(
    logger: StructuredLogger,
    operation: str,
    path: str,
    store: str,
    **fields: Any,
) -> Iterator[Timer]:
    """Time a store operation that completes without raising.

    On success the duration is logged at debug level and emitted as the
    ``cloudfs.<operation>`` timer labelled with the backend name. Failed
    operations are neither logged nor emitted here.
    """
    with Timer() as timer:
        yield timer
    logger.debug(
        f"{operation} complete",
        operation=operation,
        path=path,
        duration_ms=timer.duration_ms,
        **fields,
    )
    emit_timer(f"cloudfs.{operation}", timer.duration_ms, {"store": store})


def configure_logging(level: LogLevel = LogLevel.INFO, format: str = "json") -> None:
    """Send package records to stdout, as JSON lines or plain text.

    Replaces any handlers previously installed on the package logger.
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(level.value)
    package_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    if format == "json":
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
    package_logger.addHandler(handler)


def get_logger(name: str) -> StructuredLogger:
    return StructuredLogger(name)

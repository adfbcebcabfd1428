"""
Structured trace logging.

Writes information, warning, error, debug and success records, with
optional structured payloads flattened into ``key:value`` detail lines, to
per-user, per-day, per-thread files and/or the OS event log:
- file: ``<log_path>/<username>/<yyyy-MM-dd>-<thread id>.log``
- event: Windows event log or syslog

Design Pattern: Strategy Pattern for sink abstraction.
Library: pydantic-settings for configuration, structlog + orjson for
tracelog's own diagnostics.
"""

from .config import TraceSettings
from .core import TraceLogger, get_trace_logger, init, shutdown
from .exceptions import FieldReadError, SinkWriteError, TraceLogError
from .flatten import CYCLE_MARKER, DEPTH_MARKER, PayloadFlattener, flatten
from .types import Describable, FlattenedField, LoggingLevel, LogRecord, Severity, SinkMode

__all__ = [
    "CYCLE_MARKER",
    "DEPTH_MARKER",
    "Describable",
    "FieldReadError",
    "FlattenedField",
    "LogRecord",
    "LoggingLevel",
    "PayloadFlattener",
    "Severity",
    "SinkMode",
    "SinkWriteError",
    "TraceLogError",
    "TraceLogger",
    "TraceSettings",
    "flatten",
    "get_trace_logger",
    "init",
    "shutdown",
]

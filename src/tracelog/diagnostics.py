"""
Diagnostics for the trace logger itself.

Trace records go to the configured file/event sinks. Problems with those
sinks (and other internal events) are reported here through structlog so
they never end up inside the trace files they concern.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from typing import Any, TextIO

import orjson
import structlog
from structlog.typing import EventDict, Processor, WrappedLogger


def get_logger(name: str | None = None) -> Any:
    """Get a structured diagnostics logger."""
    return structlog.get_logger(_name=name or "tracelog")


def orjson_dumps(v: Any, *, default: Any = None) -> str:
    """Fast JSON serialization using orjson."""
    return orjson.dumps(v, default=default, option=orjson.OPT_UTC_Z | orjson.OPT_NAIVE_UTC).decode()


# =============================================================================
# Structlog Processors
# =============================================================================


def add_timestamp(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Add ISO 8601 timestamp to log event."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def add_logger_name(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Add logger name to log event."""
    event_dict["logger"] = event_dict.pop("_name", "tracelog")
    return event_dict


def configure_diagnostics(*, level: str = "WARNING", fmt: str = "console", stream: TextIO | None = None) -> None:
    """
    Configure the diagnostics pipeline.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        fmt: Output format, "console" or "json"
        stream: Output stream (default: stderr)
    """
    processors: list[Processor] = [
        structlog.stdlib.add_log_level,
        add_timestamp,
        add_logger_name,
    ]
    if fmt.lower() == "json":
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(serializer=orjson_dumps),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level.upper(), logging.WARNING)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stderr),
        cache_logger_on_first_use=False,
    )

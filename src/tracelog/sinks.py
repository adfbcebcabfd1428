"""
Log sink abstractions and concrete implementations.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
import sys
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Any, Callable

from .types import EventType, Severity

if sys.platform == "win32":
    import msvcrt

    def _lock(fh: IO[Any]) -> None:
        fh.seek(0)
        msvcrt.locking(fh.fileno(), msvcrt.LK_LOCK, 1)

    def _unlock(fh: IO[Any]) -> None:
        fh.seek(0)
        msvcrt.locking(fh.fileno(), msvcrt.LK_UNLCK, 1)

else:
    import fcntl

    def _lock(fh: IO[Any]) -> None:
        fcntl.flock(fh.fileno(), fcntl.LOCK_EX)

    def _unlock(fh: IO[Any]) -> None:
        fcntl.flock(fh.fileno(), fcntl.LOCK_UN)


@dataclass(frozen=True)
class Envelope:
    """One formatted write addressed to a sink."""

    text: str
    severity: Severity
    destination: Path | None = None


# =============================================================================
# Sink Abstraction (Strategy Pattern)
# =============================================================================


class BaseSink(ABC):
    """Abstract base class for log sinks."""

    name = "sink"

    @abstractmethod
    def emit(self, envelope: Envelope) -> None:
        """Write the envelope. Raises on failure."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Close the sink and release resources."""
        ...


class FileSink(BaseSink):
    """Append-only file sink.

    Every emit creates missing directories, opens the destination in append
    mode, takes an exclusive OS lock, writes, flushes and closes. No handle
    is kept between writes and files are never truncated.
    """

    name = "file"

    def __init__(self, encoding: str = "utf-8"):
        self._encoding = encoding

    def emit(self, envelope: Envelope) -> None:
        if envelope.destination is None:
            raise ValueError("file sink requires a destination path")
        path = Path(envelope.destination)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "a", encoding=self._encoding) as fh:
            _lock(fh)
            try:
                fh.write(envelope.text)
                fh.flush()
            finally:
                _unlock(fh)

    def close(self) -> None:
        pass


HandlerFactory = Callable[[str], logging.Handler]

_EVENT_LEVELS = {
    EventType.ERROR: logging.ERROR,
    EventType.WARNING: logging.WARNING,
    EventType.INFORMATION: logging.INFO,
}


class RaisingHandlerMixin:
    """Re-raise the error a stdlib handler would otherwise print and swallow.

    Mix in ahead of a ``logging.Handler`` subclass. Handlers returned by a
    custom ``HandlerFactory`` need it for event write failures to reach the
    caller.
    """

    def handleError(self, record: logging.LogRecord) -> None:
        exc = sys.exc_info()[1]
        if exc is not None:
            raise exc


class EventSysLogHandler(RaisingHandlerMixin, logging.handlers.SysLogHandler):
    pass


class EventNTEventLogHandler(RaisingHandlerMixin, logging.handlers.NTEventLogHandler):
    pass


def default_handler_factory(source: str) -> logging.Handler:
    """OS event facility handler: Windows event log, syslog elsewhere."""
    if sys.platform == "win32":
        # Registers the event source under "Application" if it is missing
        return EventNTEventLogHandler(source, logtype="Application")
    address: str | tuple[str, int] = "/dev/log"
    if not os.path.exists(address):
        address = ("localhost", logging.handlers.SYSLOG_UDP_PORT)
    handler = EventSysLogHandler(address=address)
    handler.ident = f"{source}: "
    return handler


class EventSink(BaseSink):
    """OS event sink with a lazily created, named event source.

    Args:
        source: Event source name
        handler_factory: Builds the stdlib handler for ``source`` on first use
    """

    name = "event"

    def __init__(self, source: str, handler_factory: HandlerFactory | None = None):
        self._source = source
        self._factory = handler_factory or default_handler_factory
        self._handler: logging.Handler | None = None
        self._lock = threading.Lock()

    @property
    def source(self) -> str:
        return self._source

    def _ensure_handler(self) -> logging.Handler:
        if self._handler is None:
            with self._lock:
                if self._handler is None:
                    self._handler = self._factory(self._source)
        return self._handler

    def emit(self, envelope: Envelope) -> None:
        handler = self._ensure_handler()
        event_type = EventType.for_severity(envelope.severity)
        record = logging.LogRecord(
            name=self._source,
            level=_EVENT_LEVELS[event_type],
            pathname="",
            lineno=0,
            msg=envelope.text,
            args=None,
            exc_info=None,
        )
        handler.handle(record)

    def close(self) -> None:
        with self._lock:
            if self._handler is not None:
                self._handler.close()
                self._handler = None


def create_event_sink(source: str, handler_factory: HandlerFactory | None = None) -> EventSink:
    return EventSink(source, handler_factory=handler_factory)

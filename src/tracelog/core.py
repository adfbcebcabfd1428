"""
Trace logger facade and process-wide lifecycle.

Typical use::

    from tracelog import init, get_trace_logger

    init(trace=True, log_path="logs", destination="file")
    tracer = get_trace_logger()
    tracer.info("alice", 1, "start")
    tracer.info_payload(order, "alice", 1)

Every public operation returns normally even when a sink fails; failures
are redirected to ``report_exception``.
"""

from __future__ import annotations

import sys
import threading
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Callable, ClassVar, Optional

from .config import TraceSettings
from .diagnostics import configure_diagnostics, get_logger
from .exceptions import SinkWriteError
from .filters import is_enabled, should_emit, should_emit_event
from .flatten import PayloadFlattener, is_scalar, to_text
from .formatters import ExceptionFormatter
from .router import SinkRouter, current_thread_id, destination_file
from .sinks import BaseSink, HandlerFactory
from .types import FlattenedField, LogRecord, Severity

logger = get_logger(__name__)

SUCCESS_MESSAGE = "Command Succeeded"

FieldsBuilder = Callable[[], Optional[tuple[FlattenedField, ...]]]


def caller_origin(stacklevel: int = 2) -> str:
    """``<module>:<qualified function>`` of the frame ``stacklevel`` levels up."""
    try:
        frame = sys._getframe(stacklevel)
    except ValueError:
        return "<unknown>"
    code = frame.f_code
    module = frame.f_globals.get("__name__", "<unknown>")
    return f"{module}:{getattr(code, 'co_qualname', code.co_name)}"


def _mapping_fields(data: Mapping[Any, Any]) -> tuple[FlattenedField, ...]:
    return tuple(FlattenedField(to_text(key), to_text(value)) for key, value in data.items())


class TraceLogger:
    """Structured trace logger writing to per-user, per-day, per-thread files
    and/or the OS event sink.

    Args:
        settings: Configuration snapshot (read from the environment when omitted)
        file_sink: Replacement file sink
        event_sink: Replacement event sink
        handler_factory: Builds the stdlib handler behind the default event sink
        clock: Returns the current local time
    """

    _instance: ClassVar[Optional["TraceLogger"]] = None
    _instance_lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(
        self,
        settings: TraceSettings | None = None,
        *,
        file_sink: BaseSink | None = None,
        event_sink: BaseSink | None = None,
        handler_factory: HandlerFactory | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.settings = settings if settings is not None else TraceSettings()
        self._router = SinkRouter(
            self.settings,
            file_sink=file_sink,
            event_sink=event_sink,
            handler_factory=handler_factory,
        )
        self._formatter = ExceptionFormatter(self.settings.timestamp_format)
        self._clock = clock or datetime.now

    @classmethod
    def instance(cls) -> "TraceLogger":
        """Shared instance, created from the environment on first access."""
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    # =========================================================================
    # Public operations
    # =========================================================================

    def info(
        self,
        username: str,
        depth: int,
        message: str | None = None,
        data: Mapping[Any, Any] | None = None,
        *,
        origin: str | None = None,
    ) -> None:
        """Information record for the calling operation, with an optional
        message and raw key/value data."""
        if not is_enabled(self.settings):
            return
        origin = origin or caller_origin()
        text = origin if message is None else f"{origin}:{message}"
        build = (lambda: _mapping_fields(data)) if data is not None else None
        self._log(Severity.INFORMATION, username, depth, origin, text, build)

    def info_payload(self, payload: Any, username: str, depth: int, *, origin: str | None = None) -> None:
        """Information record with ``payload`` flattened into detail fields.

        Scalar payloads are appended to the message instead.
        """
        if not is_enabled(self.settings):
            return
        origin = origin or caller_origin()
        if is_scalar(payload):
            self._log(Severity.INFORMATION, username, depth, origin, f"{origin}:{to_text(payload)}")
            return

        def build() -> tuple[FlattenedField, ...]:
            flattener = PayloadFlattener(on_error=lambda err: self._report_safely(err, username))
            return tuple(flattener.flatten(payload))

        self._log(Severity.INFORMATION, username, depth, origin, origin, build)

    def warning(self, message: str, username: str, depth: int, *, origin: str | None = None) -> None:
        if not is_enabled(self.settings):
            return
        origin = origin or caller_origin()
        self._log(Severity.WARNING, username, depth, origin, f"{origin}:{message}")

    def error(self, message: str, username: str, depth: int, *, origin: str | None = None) -> None:
        if not is_enabled(self.settings):
            return
        origin = origin or caller_origin()
        self._log(Severity.ERROR, username, depth, origin, f"{origin}:{message}")

    def debug(self, message: str, username: str, depth: int, *, origin: str | None = None) -> None:
        if not is_enabled(self.settings):
            return
        origin = origin or caller_origin()
        self._log(Severity.DEBUG, username, depth, origin, f"{origin}:{message}")

    def success(self, username: str, depth: int, *, origin: str | None = None) -> None:
        """Mark the end of an operation that completed without error."""
        if not is_enabled(self.settings):
            return
        origin = origin or caller_origin()
        self._log(Severity.INFORMATION, username, depth, origin, f"{origin}:{SUCCESS_MESSAGE}")

    def report_exception(self, exc: BaseException, username: str) -> None:
        """Write ``exc`` and its whole cause chain to every configured sink.

        Not gated by the trace flag or the level/depth thresholds. Raises
        ``SinkWriteError`` when every sink failed.
        """
        now = self._clock()
        file_text, event_text = self._formatter.format_exception(exc, now)
        destination = destination_file(self.settings.log_path, username, now.date(), current_thread_id())
        attempted = self._router.targets()
        failures = self._router.dispatch(file_text, event_text, Severity.CRITICAL, destination)
        if attempted and len(failures) == len(attempted):
            raise SinkWriteError(sinks=[name for name, _ in failures]) from failures[-1][1]
        for name, error in failures:
            logger.warning("exception report sink failed", sink=name, username=username, error=repr(error))

    def close(self) -> None:
        self._router.close()

    # =========================================================================
    # Internals
    # =========================================================================

    def _log(
        self,
        severity: Severity,
        username: str,
        depth: int,
        origin: str,
        message: str,
        build_fields: FieldsBuilder | None = None,
    ) -> None:
        write_file = should_emit(severity, depth, self.settings)
        write_event = should_emit_event(severity, depth, self.settings)
        if not self._router.targets(write_file=write_file, write_event=write_event):
            # Filtered out everywhere; the payload is never read
            return
        try:
            now = self._clock()
            record = LogRecord(
                timestamp=now,
                severity=severity,
                origin=origin,
                message=message,
                username=username,
                depth=depth,
                fields=build_fields() if build_fields is not None else None,
            )
            file_text, event_text = self._formatter.format(record)
            destination = destination_file(self.settings.log_path, username, now.date(), current_thread_id())
            failures = self._router.dispatch(
                file_text,
                event_text,
                severity,
                destination,
                write_file=write_file,
                write_event=write_event,
            )
        except Exception as exc:
            self._report_safely(exc, username)
            return
        for name, error in failures:
            logger.debug("sink write failed", sink=name, username=username, error=repr(error))
            self._report_safely(error, username)

    def _report_safely(self, exc: BaseException, username: str) -> None:
        try:
            self.report_exception(exc, username)
        except Exception:
            logger.exception("exception report failed", username=username)


# =============================================================================
# Lifecycle
# =============================================================================


def init(settings: TraceSettings | None = None, *, diagnostics: bool = True, **overrides: Any) -> TraceLogger:
    """
    Build the shared trace logger.

    Args:
        settings: Explicit configuration snapshot; read from the environment when omitted
        diagnostics: Also configure tracelog's own structlog diagnostics
        **overrides: Setting values that take precedence over ``settings``
    """
    if settings is None:
        settings = TraceSettings(**overrides)
    elif overrides:
        settings = TraceSettings(**{**settings.model_dump(), **overrides})

    if diagnostics:
        configure_diagnostics(level=settings.diagnostics_level, fmt=settings.diagnostics_format)

    tracer = TraceLogger(settings)
    with TraceLogger._instance_lock:
        previous, TraceLogger._instance = TraceLogger._instance, tracer
    if previous is not None:
        previous.close()
    logger.debug("trace logger initialized", destination=settings.destination.value, trace=settings.trace)
    return tracer


def get_trace_logger() -> TraceLogger:
    return TraceLogger.instance()


def shutdown() -> None:
    """Close the shared trace logger's sinks and forget it."""
    with TraceLogger._instance_lock:
        tracer, TraceLogger._instance = TraceLogger._instance, None
    if tracer is not None:
        tracer.close()

"""
Sink routing: destination file naming and dispatch to the configured sinks.
"""

from __future__ import annotations

import threading
from datetime import date
from pathlib import Path

from .config import TraceSettings
from .sinks import BaseSink, Envelope, EventSink, FileSink, HandlerFactory
from .types import Severity


def current_thread_id() -> int:
    return threading.get_native_id()


def destination_file(log_path: str | Path, username: str, day: date, thread_id: int) -> Path:
    """``<log_path>/<username>/<yyyy-MM-dd>-<thread_id>.log``"""
    return Path(log_path) / username / f"{day:%Y-%m-%d}-{thread_id}.log"


class SinkRouter:
    """Sends formatted text to the file sink, the event sink, both or neither.

    Sinks are chosen from ``settings.destination`` unless given explicitly.
    """

    def __init__(
        self,
        settings: TraceSettings,
        *,
        file_sink: BaseSink | None = None,
        event_sink: BaseSink | None = None,
        handler_factory: HandlerFactory | None = None,
    ):
        mode = settings.destination
        self.file_sink = file_sink if file_sink is not None else (FileSink() if mode.uses_file else None)
        if event_sink is None and mode.uses_event:
            event_sink = EventSink(settings.event_source, handler_factory=handler_factory)
        self.event_sink = event_sink

    def targets(self, *, write_file: bool = True, write_event: bool = True) -> list[BaseSink]:
        sinks: list[BaseSink] = []
        if write_file and self.file_sink is not None:
            sinks.append(self.file_sink)
        if write_event and self.event_sink is not None:
            sinks.append(self.event_sink)
        return sinks

    def dispatch(
        self,
        file_text: str,
        event_text: str,
        severity: Severity,
        destination: Path,
        *,
        write_file: bool = True,
        write_event: bool = True,
    ) -> list[tuple[str, Exception]]:
        """Write to each selected sink; return ``(sink name, error)`` for every failed write."""
        failures: list[tuple[str, Exception]] = []
        for sink in self.targets(write_file=write_file, write_event=write_event):
            text = file_text if sink is self.file_sink else event_text
            try:
                sink.emit(Envelope(text=text, severity=severity, destination=destination))
            except Exception as exc:
                failures.append((sink.name, exc))
        return failures

    def close(self) -> None:
        for sink in self.targets():
            sink.close()

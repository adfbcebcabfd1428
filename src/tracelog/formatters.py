"""
Record and exception formatters.

File encoding of a record::

    Time-<t>,Type-<severity>,Message-<message>
    Time-<t>,Type-<severity>,Message-<message>,"Details-<k1>:<v1>
    <k2>:<v2>
    "

Exception reports render one block per level of the cause chain, both in
the file encoding and in the event sink encoding.
"""

from __future__ import annotations

import traceback
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Iterator

from .flatten import to_text
from .types import LogRecord, Severity


@dataclass(frozen=True)
class ExceptionLevel:
    """Printable view of one exception in a cause chain."""

    message: str
    source: str
    target_site: str
    stack_trace: str
    help_link: str
    data: tuple[tuple[str, str], ...]


def iter_exception_chain(exc: BaseException) -> Iterator[BaseException]:
    """Yield ``exc`` and its causes, outermost first."""
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        if current.__cause__ is not None:
            current = current.__cause__
        elif current.__suppress_context__:
            current = None
        else:
            current = current.__context__


def _exception_data(exc: BaseException) -> tuple[tuple[str, str], ...]:
    items: list[tuple[str, str]] = []
    for attr in ("data", "details"):
        mapping = getattr(exc, attr, None)
        if isinstance(mapping, Mapping):
            items.extend((to_text(k), to_text(v)) for k, v in mapping.items())
            break
    for idx, note in enumerate(getattr(exc, "__notes__", None) or ()):
        items.append((f"note#{idx}", to_text(note)))
    return tuple(items)


def describe_exception(exc: BaseException) -> ExceptionLevel:
    tb = exc.__traceback__
    source = type(exc).__module__
    target_site = ""
    if tb is not None:
        while tb.tb_next is not None:
            tb = tb.tb_next
        frame = tb.tb_frame
        code = frame.f_code
        source = frame.f_globals.get("__name__", source)
        target_site = getattr(code, "co_qualname", code.co_name)

    return ExceptionLevel(
        message=to_text(exc) or type(exc).__name__,
        source=source,
        target_site=target_site,
        stack_trace="".join(traceback.format_tb(exc.__traceback__)).rstrip("\n"),
        help_link=to_text(getattr(exc, "help_link", None)),
        data=_exception_data(exc),
    )


def describe_exception_chain(exc: BaseException) -> list[ExceptionLevel]:
    return [describe_exception(level) for level in iter_exception_chain(exc)]


class RecordFormatter:
    """Renders ``LogRecord`` instances into file and event text."""

    def __init__(self, timestamp_format: str = "%Y-%m-%d %H:%M:%S"):
        self._timestamp_format = timestamp_format

    def format_timestamp(self, timestamp: datetime) -> str:
        try:
            return timestamp.strftime(self._timestamp_format)
        except ValueError:
            return timestamp.isoformat()

    def format(self, record: LogRecord) -> tuple[str, str]:
        """Return ``(file_text, event_text)`` for ``record``."""
        return self.file_text(record), self.event_text(record)

    def file_text(self, record: LogRecord) -> str:
        header = f"Time-{self.format_timestamp(record.timestamp)},Type-{record.severity.label},"
        if not record.fields:
            return f"{header}Message-{record.message}\n"
        details = "\n".join(f"{key}:{value}" for key, value in record.fields)
        return f'{header}Message-{record.message},"Details-{details}\n"\n'

    def event_text(self, record: LogRecord) -> str:
        return record.message


class ExceptionFormatter(RecordFormatter):
    """Renders exception reports, one block per level of the cause chain."""

    def format_exception(self, exc: BaseException, timestamp: datetime) -> tuple[str, str]:
        """Return ``(file_text, event_text)`` for ``exc``."""
        levels = describe_exception_chain(exc)
        return self.exception_file_text(levels, timestamp), self.exception_event_text(levels)

    def exception_file_text(self, levels: list[ExceptionLevel], timestamp: datetime) -> str:
        outer, inner = levels[0], levels[1:]
        lines = [
            f"Time-{self.format_timestamp(timestamp)},Type-{Severity.CRITICAL.label},"
            f'Message-{outer.message},"Details-'
        ]
        lines += [f"{key}:{value}" for key, value in outer.data]
        lines.append("")
        lines.append(f"HelpLink-{outer.help_link};Source-{outer.source};StackTrace-")
        lines.append(outer.stack_trace)
        lines.append(f"TargetSite-{outer.target_site}")
        for level in inner:
            lines.append("Inner Exception-")
            lines.append(f"Message-{level.message},Details-")
            lines += [f"{key}:{value};" for key, value in level.data]
            lines.append(f"HelpLink-{level.help_link};Source-{level.source};StackTrace-")
            lines.append(level.stack_trace)
            lines.append(f"TargetSite-{level.target_site}")
        lines[-1] += '"'
        return "\n".join(lines) + "\n"

    def exception_event_text(self, levels: list[ExceptionLevel]) -> str:
        lines: list[str] = []
        for level in levels:
            lines.append(f"Message-{level.message}")
            lines.append(f"Source-{level.source}")
            lines += [f"Data-{key}:{value}" for key, value in level.data]
            lines.append(f"TargetSite-{level.target_site}")
            lines.append(f"StackTrace-{level.stack_trace}")
            lines.append(f"HelpLink-{level.help_link}")
        return "\n".join(lines) + "\n"

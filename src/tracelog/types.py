"""
Core types for trace logging: severities, sink modes and log records.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any, Iterable, NamedTuple, Protocol, runtime_checkable


class Severity(IntEnum):
    """Severity of a log record.

    The ordinal values are the filtering ranks. They follow the historical
    declaration order (Critical, Information, Error, Warning, Debug), so
    Information ranks below Error.
    """

    CRITICAL = 0
    INFORMATION = 1
    ERROR = 2
    WARNING = 3
    DEBUG = 4

    @property
    def label(self) -> str:
        return self.name.capitalize()


class LoggingLevel(IntEnum):
    """Named thresholds for the ``level`` setting."""

    CRITICAL_ONLY = 0
    INFO_ONLY = 1
    ERROR_ONLY = 2
    WARNING_ONLY = 3
    ALL_INFO = 4


class SinkMode(str, Enum):
    FILE = "file"
    EVENT = "event"
    BOTH = "both"
    NONE = "none"

    @property
    def uses_file(self) -> bool:
        return self in (SinkMode.FILE, SinkMode.BOTH)

    @property
    def uses_event(self) -> bool:
        return self in (SinkMode.EVENT, SinkMode.BOTH)


class EventType(str, Enum):
    """Entry class understood by the OS event facility."""

    ERROR = "error"
    WARNING = "warning"
    INFORMATION = "information"

    @classmethod
    def for_severity(cls, severity: Severity) -> "EventType":
        if severity in (Severity.CRITICAL, Severity.ERROR):
            return cls.ERROR
        if severity is Severity.WARNING:
            return cls.WARNING
        return cls.INFORMATION


class FlattenedField(NamedTuple):
    """A single ``key:value`` detail line."""

    key: str
    value: str


@runtime_checkable
class Describable(Protocol):
    """Payload types that list their own loggable members."""

    def describe_fields(self) -> Iterable[tuple[str, Any]]: ...


@dataclass(frozen=True)
class LogRecord:
    """One logging event, built and consumed within a single call."""

    timestamp: datetime
    severity: Severity
    origin: str
    message: str
    username: str
    depth: int
    fields: tuple[FlattenedField, ...] | None = field(default=None)

    @property
    def has_fields(self) -> bool:
        return bool(self.fields)

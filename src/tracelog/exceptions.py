"""
Exception hierarchy for trace logging.

Every error carries a stable ``code`` and a ``details`` mapping. When one of
these errors is itself reported, ``details`` becomes its ``Details-`` lines.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class TraceLogError(Exception):
    """Base exception for trace logging."""

    def __init__(
        self,
        message: str,
        *,
        code: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details = details or {}


class FieldReadError(TraceLogError):
    """A member of a structured payload could not be read.

    Raised ``from`` the original failure, so a report of it shows both the
    field identity and the underlying cause.
    """

    def __init__(self, *, field: str, owner: str) -> None:
        super().__init__(
            f"Failed to read field '{field}' of {owner}",
            code="FIELD_READ_FAILED",
            details={"field": field, "owner": owner},
        )


class SinkWriteError(TraceLogError):
    """Every sink attempted by an exception report failed."""

    def __init__(self, *, sinks: list[str]) -> None:
        super().__init__(
            f"Exception report could not be written to: {', '.join(sinks)}",
            code="SINK_WRITE_FAILED",
            details={"sinks": ",".join(sinks)},
        )

"""
Trace Logging Configuration.

Loaded once from ``TRACELOG_*`` environment variables (and an optional
``.env`` file) and read-only afterwards. Missing or malformed values fall
back to defaults instead of failing startup.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .types import LoggingLevel, SinkMode

DEFAULT_LEVEL = 2
DEFAULT_DEPTH = 1
# Fallback for unparseable level/depth values
MALFORMED_FALLBACK = 1

_SINK_ALIASES = {
    "file": SinkMode.FILE,
    "event": SinkMode.EVENT,
    "windows": SinkMode.EVENT,
    "both": SinkMode.BOTH,
    "none": SinkMode.NONE,
}


def _default_event_source() -> str:
    return Path(sys.argv[0]).name if sys.argv and sys.argv[0] else "tracelog"


def _parse_threshold(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return MALFORMED_FALLBACK
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if not text:
        return default
    try:
        return int(text)
    except ValueError:
        pass
    normalized = text.replace("-", "_").upper()
    if normalized in LoggingLevel.__members__:
        return int(LoggingLevel[normalized])
    # CamelCase spellings such as "AllInfo"
    for member in LoggingLevel:
        if member.name.replace("_", "") == normalized.replace("_", ""):
            return int(member)
    return MALFORMED_FALLBACK


class TraceSettings(BaseSettings):
    """Configuration snapshot for the trace logger."""

    model_config = SettingsConfigDict(
        env_prefix="TRACELOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    trace: bool = Field(default=False, description="Global enable flag")
    log_path: Path = Field(default=Path("logs"), description="Root directory for log files")
    destination: SinkMode = Field(default=SinkMode.FILE, description="Sinks to write to (file, event, both, none)")
    level: int = Field(default=DEFAULT_LEVEL, description="Highest severity rank written to file")
    depth: int = Field(default=DEFAULT_DEPTH, description="Highest call depth written to file")
    event_source: str = Field(default_factory=_default_event_source, description="Event sink source name")
    timestamp_format: str = Field(default="%Y-%m-%d %H:%M:%S", description="Timestamp format for file lines")
    filter_event_sink: bool = Field(
        default=False,
        description="Apply the level/depth check to event sink writes as well",
    )
    diagnostics_level: str = Field(default="WARNING", description="Level of tracelog's own diagnostics")
    diagnostics_format: str = Field(default="console", description="Diagnostics output format (console, json)")

    @field_validator("trace", mode="before")
    @classmethod
    def _parse_trace(cls, value: Any) -> bool:
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() == "true"

    @field_validator("destination", mode="before")
    @classmethod
    def _parse_destination(cls, value: Any) -> SinkMode:
        if isinstance(value, SinkMode):
            return value
        return _SINK_ALIASES.get(str(value).strip().lower(), SinkMode.NONE)

    @field_validator("level", "depth", mode="before")
    @classmethod
    def _parse_thresholds(cls, value: Any, info: ValidationInfo) -> int:
        default = DEFAULT_LEVEL if info.field_name == "level" else DEFAULT_DEPTH
        return _parse_threshold(value, default)

"""
Severity and depth filtering.

``is_enabled`` gates every public logging operation before any record is
built. ``should_emit`` gates the file write. The event sink write is only
gated by ``should_emit`` when ``filter_event_sink`` is set.
"""

from __future__ import annotations

from .config import TraceSettings
from .types import Severity


def is_enabled(settings: TraceSettings) -> bool:
    return settings.trace


def should_emit(severity: Severity, depth: int, settings: TraceSettings) -> bool:
    """True when tracing is on and both the rank and depth are within thresholds."""
    return settings.trace and int(severity) <= settings.level and depth <= settings.depth


def should_emit_event(severity: Severity, depth: int, settings: TraceSettings) -> bool:
    if not settings.filter_event_sink:
        return settings.trace
    return should_emit(severity, depth, settings)

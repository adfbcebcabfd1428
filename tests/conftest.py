import os
from datetime import datetime

import pytest
import structlog

from tracelog import shutdown
from tracelog.sinks import BaseSink, Envelope

FIXED_NOW = datetime(2026, 10, 19, 8, 30, 0)


class RecordingSink(BaseSink):
    """In-memory sink capturing every envelope."""

    def __init__(self, name: str = "event"):
        self.name = name
        self.envelopes: list[Envelope] = []
        self.closed = False

    def emit(self, envelope: Envelope) -> None:
        self.envelopes.append(envelope)

    def close(self) -> None:
        self.closed = True

    @property
    def texts(self) -> list[str]:
        return [envelope.text for envelope in self.envelopes]


class FailingSink(BaseSink):
    """Sink whose every write fails."""

    def __init__(self, name: str = "file", error: Exception | None = None):
        self.name = name
        self.error = error or OSError("disk full")
        self.attempts = 0

    def emit(self, envelope: Envelope) -> None:
        self.attempts += 1
        raise self.error

    def close(self) -> None:
        pass


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Run every test without TRACELOG_* variables, .env files or a shared instance."""
    for key in list(os.environ):
        if key.startswith("TRACELOG_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    yield
    shutdown()
    structlog.reset_defaults()


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def recording_sink():
    return RecordingSink()


@pytest.fixture
def failing_sink():
    return FailingSink()

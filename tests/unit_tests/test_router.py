from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from tracelog.config import TraceSettings
from tracelog.router import SinkRouter, destination_file
from tracelog.sinks import EventSink, FileSink
from tracelog.types import Severity


def test_destination_file_layout() -> None:
    path = destination_file("logs", "alice", date(2026, 10, 19), 4242)
    assert path == Path("logs") / "alice" / "2026-10-19-4242.log"


class TestSinkSelection:
    """Sinks chosen from the destination mode"""

    @pytest.mark.parametrize(
        "mode, has_file, has_event",
        [
            ("file", True, False),
            ("event", False, True),
            ("both", True, True),
            ("none", False, False),
        ],
    )
    def test_mode(self, mode, has_file, has_event) -> None:
        router = SinkRouter(TraceSettings(destination=mode))
        assert isinstance(router.file_sink, FileSink) is has_file
        assert isinstance(router.event_sink, EventSink) is has_event

    def test_event_handler_not_built_at_construction(self) -> None:
        def factory(source):
            raise AssertionError("handler must be created lazily")

        router = SinkRouter(TraceSettings(destination="event"), handler_factory=factory)
        assert router.event_sink is not None


class TestDispatch:
    """Dispatch to the selected sinks"""

    def test_file_and_event_text_go_to_their_sinks(self, tmp_path, recording_sink) -> None:
        router = SinkRouter(TraceSettings(destination="both"), event_sink=recording_sink)
        target = tmp_path / "u" / "f.log"

        failures = router.dispatch("file text\n", "event text", Severity.WARNING, target)

        assert failures == []
        assert target.read_text(encoding="utf-8") == "file text\n"
        assert recording_sink.texts == ["event text"]
        assert recording_sink.envelopes[0].severity is Severity.WARNING

    def test_file_write_can_be_skipped(self, tmp_path, recording_sink) -> None:
        router = SinkRouter(TraceSettings(destination="both"), event_sink=recording_sink)
        target = tmp_path / "u" / "f.log"

        router.dispatch("file text\n", "event text", Severity.DEBUG, target, write_file=False)

        assert not target.exists()
        assert recording_sink.texts == ["event text"]

    def test_failures_are_collected_not_raised(self, tmp_path, failing_sink, recording_sink) -> None:
        router = SinkRouter(TraceSettings(destination="both"), file_sink=failing_sink, event_sink=recording_sink)

        failures = router.dispatch("f", "e", Severity.ERROR, tmp_path / "x.log")

        assert [name for name, _ in failures] == ["file"]
        assert isinstance(failures[0][1], OSError)
        assert recording_sink.texts == ["e"]

    def test_close_closes_sinks(self, recording_sink) -> None:
        router = SinkRouter(TraceSettings(destination="event"), event_sink=recording_sink)
        router.close()
        assert recording_sink.closed

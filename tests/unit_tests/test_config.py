from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from tracelog.config import TraceSettings
from tracelog.types import LoggingLevel, SinkMode


class TestDefaults:
    """Defaults when nothing is configured"""

    def test_defaults(self) -> None:
        settings = TraceSettings()
        assert settings.trace is False
        assert settings.log_path == Path("logs")
        assert settings.destination is SinkMode.FILE
        assert settings.level == 2
        assert settings.depth == 1
        assert settings.event_source
        assert settings.filter_event_sink is False

    def test_snapshot_is_frozen(self) -> None:
        settings = TraceSettings()
        with pytest.raises(ValidationError):
            settings.level = 4


class TestEnvironment:
    """Values read from TRACELOG_* variables"""

    def test_full_configuration(self, monkeypatch, tmp_path) -> None:
        monkeypatch.setenv("TRACELOG_TRACE", "True")
        monkeypatch.setenv("TRACELOG_LOG_PATH", str(tmp_path))
        monkeypatch.setenv("TRACELOG_DESTINATION", "both")
        monkeypatch.setenv("TRACELOG_LEVEL", "4")
        monkeypatch.setenv("TRACELOG_DEPTH", "3")
        monkeypatch.setenv("TRACELOG_EVENT_SOURCE", "billing")

        settings = TraceSettings()
        assert settings.trace is True
        assert settings.log_path == tmp_path
        assert settings.destination is SinkMode.BOTH
        assert settings.level == 4
        assert settings.depth == 3
        assert settings.event_source == "billing"

    def test_env_file(self, tmp_path) -> None:
        (tmp_path / ".env").write_text("TRACELOG_TRACE=true\nTRACELOG_LEVEL=3\n", encoding="utf-8")
        settings = TraceSettings()
        assert settings.trace is True
        assert settings.level == 3

    @pytest.mark.parametrize("raw", ["yes", "1", "on", "false", ""])
    def test_trace_only_accepts_true(self, monkeypatch, raw) -> None:
        monkeypatch.setenv("TRACELOG_TRACE", raw)
        assert TraceSettings().trace is False

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("file", SinkMode.FILE),
            (" Event ", SinkMode.EVENT),
            ("Windows", SinkMode.EVENT),
            ("BOTH", SinkMode.BOTH),
            ("none", SinkMode.NONE),
            ("carrier-pigeon", SinkMode.NONE),
        ],
    )
    def test_destination_aliases(self, monkeypatch, raw, expected) -> None:
        monkeypatch.setenv("TRACELOG_DESTINATION", raw)
        assert TraceSettings().destination is expected


class TestThresholds:
    """Malformed level and depth values fall back instead of failing"""

    def test_malformed_level_falls_back(self, monkeypatch) -> None:
        monkeypatch.setenv("TRACELOG_LEVEL", "verbose")
        monkeypatch.setenv("TRACELOG_DEPTH", "deep")
        settings = TraceSettings()
        assert settings.level == 1
        assert settings.depth == 1

    def test_empty_values_keep_defaults(self, monkeypatch) -> None:
        monkeypatch.setenv("TRACELOG_LEVEL", "")
        monkeypatch.setenv("TRACELOG_DEPTH", "")
        settings = TraceSettings()
        assert settings.level == 2
        assert settings.depth == 1

    @pytest.mark.parametrize("raw", ["AllInfo", "ALL_INFO", "all-info"])
    def test_named_levels(self, monkeypatch, raw) -> None:
        monkeypatch.setenv("TRACELOG_LEVEL", raw)
        assert TraceSettings().level == LoggingLevel.ALL_INFO

    def test_enum_value_passes_through(self) -> None:
        assert TraceSettings(level=LoggingLevel.WARNING_ONLY).level == 3
